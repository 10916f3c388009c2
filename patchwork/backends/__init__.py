from patchwork.backends.base import Executor
from patchwork.backends.sparql import EndpointConnection, SparqlExecutor, StoreConnection
from patchwork.backends.sql import SqlExecutor

__all__ = ["EndpointConnection", "Executor", "SparqlExecutor", "SqlExecutor", "StoreConnection"]
