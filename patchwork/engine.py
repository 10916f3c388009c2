"""The engine context: configuration, partitions, cache and executors.

Built once at start-up and shared read-only by every request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from patchwork.backends.base import Executor
from patchwork.backends.sparql import SparqlExecutor, connect
from patchwork.backends.sql import SqlExecutor
from patchwork.cache import Cache, create_cache
from patchwork.config import PLUGIN_NAME, Settings, UnsupportedConfiguration
from patchwork.partitions import PartitionRegistry

logger = logging.getLogger(__name__)

__all__ = ["Engine", "UnsupportedConfiguration", "build_engine"]


@dataclass(frozen=True)
class Engine:
    settings: Settings
    partitions: PartitionRegistry
    cache: Cache | None = None
    sparql: Executor | None = None
    database: Executor | None = None

    @property
    def executor(self) -> Executor:
        # a relational connection is always preferred
        if self.database is not None:
            return self.database
        if self.sparql is not None:
            return self.sparql
        raise UnsupportedConfiguration("no query backend is configured")

    def close(self) -> None:
        for executor in (self.database, self.sparql):
            if executor is not None:
                executor.close()


def build_engine(settings: Settings) -> Engine:
    partitions = PartitionRegistry.from_config(settings.values)
    cache = create_cache(settings)

    database = None
    if settings.db:
        try:
            database = SqlExecutor.connect(settings.db, root=settings.root)
        except SQLAlchemyError as exc:
            logger.critical("%s: failed to connect to database <%s>: %s", PLUGIN_NAME, settings.db, exc)
            raise UnsupportedConfiguration(f"failed to connect to database <{settings.db}>") from exc

    sparql = None
    if settings.sparql:
        try:
            sparql = SparqlExecutor(connect(settings.sparql), root=settings.root)
        except (OSError, ValueError) as exc:
            logger.critical("%s: failed to open SPARQL store <%s>: %s", PLUGIN_NAME, settings.sparql, exc)
            raise UnsupportedConfiguration(f"failed to open SPARQL store <{settings.sparql}>") from exc

    if database is None and sparql is None:
        logger.critical("%s: neither a database nor a SPARQL endpoint is configured", PLUGIN_NAME)
        raise UnsupportedConfiguration("no query backend is configured")

    logger.info(
        "%s: root <%s>, %d partitions, cache %r, executor %s",
        PLUGIN_NAME,
        settings.root,
        len(partitions),
        cache,
        type(database or sparql).__name__,
    )
    return Engine(settings=settings, partitions=partitions, cache=cache, sparql=sparql, database=database)
