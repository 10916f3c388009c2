"""Cache protocol: a fetch of one item's cached N-Quads document."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from rdflib.exceptions import ParserError

from patchwork.identifiers import InvalidIdentifier, normalize_identifier

if TYPE_CHECKING:
    from patchwork.request import Request

logger = logging.getLogger(__name__)

NQUADS = "application/n-quads"


@runtime_checkable
class Cache(Protocol):
    def fetch(self, request: Request, identifier: str) -> int:
        """Parse the cached document for ``identifier`` into the request model.

        Returns ``404`` on a miss and ``500`` on any other failure.
        """
        ...


def valid_key(identifier: str) -> bool:
    # keys are stored in normalised form only
    try:
        return normalize_identifier(identifier) == identifier
    except InvalidIdentifier:
        return False


def parse_document(request: Request, data: bytes, source: str) -> int:
    """Parse N-Quads into the request model; statements without a graph land in the request graph."""
    try:
        request.model.parse(data, request.graph, format="nquads")
    except (ParserError, UnicodeDecodeError, ValueError) as exc:
        logger.error("failed to parse %s as '%s': %s", source, NQUADS, exc)
        return 500
    return 200
