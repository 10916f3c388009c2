"""Request classification.

In order of preference: partitions (looked up in the registry), items
(matched by shape), URI lookups, queries at the root and finally the home
page itself.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from patchwork.identifiers import IDENTIFIER_LENGTH, is_identifier
from patchwork.index import resolve_home, resolve_index
from patchwork.item import lookup, resolve_item
from patchwork.request import Request

if TYPE_CHECKING:
    from patchwork.engine import Engine

logger = logging.getLogger(__name__)

QUERY_PARAMS = ("q", "media", "for", "type")


def process(engine: Engine, request: Request) -> int:
    matched, qclass = _is_partition(engine, request)
    if matched:
        return resolve_index(engine, request, qclass)
    if _is_item(request):
        return resolve_item(engine, request)
    target = _is_lookup(request)
    if target:
        return lookup(engine, request, target)
    if _is_query(request):
        return resolve_index(engine, request)
    if request.home:
        return resolve_home(engine, request)
    return 404


def _is_partition(engine: Engine, request: Request) -> tuple[bool, str | None]:
    partition = engine.partitions.get(request.path)
    if partition is not None:
        logger.debug("request: <%s> is partition %r", request.path, partition)
        request.indextitle = partition.title
        request.index = True
        request.home = False
        request.canonical.add_path(partition.path)
        return True, partition.qclass
    qclass = request.getparam("class")
    if qclass and request.home:
        request.canonical.set_param("class", qclass)
        if not request.indextitle:
            request.indextitle = qclass
        request.index = True
        request.home = False
        return True, qclass
    return False, None


def _is_item(request: Request) -> bool:
    segment = request.path.lstrip("/").split("/", 1)[0]
    if len(segment) == IDENTIFIER_LENGTH and segment.isascii() and segment.isalnum():
        return True
    # hyphenated UUID form
    return "-" in segment and is_identifier(segment)


def _is_lookup(request: Request) -> str | None:
    if not request.home:
        return None
    return request.getparam("uri")


def _is_query(request: Request) -> bool:
    if not request.home:
        return False
    if any(request.getparam(name) for name in QUERY_PARAMS):
        request.index = True
        request.home = False
        return True
    return False
