"""Query executor protocol shared by the relational and SPARQL backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from patchwork.query import QueryDescriptor
    from patchwork.request import Request


@runtime_checkable
class Executor(Protocol):
    """Populates a request's model and reports an HTTP status code.

    Every operation returns ``200`` on success. ``lookup`` returns ``303``
    with ``request.location`` set when the target is known.
    """

    def query(self, request: Request, query: QueryDescriptor) -> int:
        """Add one page of matching items and set ``query.more``."""
        ...

    def lookup(self, request: Request, target: str) -> int:
        """Resolve an external URI to the local proxy document."""
        ...

    def membership(self, request: Request, identifier: str) -> int:
        """Add the collections an item belongs to."""
        ...

    def item(self, request: Request, identifier: str) -> int:
        """Add the description of a single item."""
        ...

    def close(self) -> None:
        ...
