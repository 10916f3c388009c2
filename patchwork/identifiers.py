"""Item identifiers: 32 lowercase hex digits, hyphens allowed on input."""

from __future__ import annotations

import string
from urllib.parse import urlsplit

IDENTIFIER_LENGTH = 32

_HEX = frozenset(string.hexdigits)


class InvalidIdentifier(ValueError):
    def __init__(self, raw: str | None) -> None:
        super().__init__(f"not a valid item identifier: {raw!r}")
        self.raw = raw


def normalize_identifier(raw: str | None) -> str:
    if not raw:
        raise InvalidIdentifier(raw)
    stripped = raw.replace("-", "")
    if len(stripped) != IDENTIFIER_LENGTH or not all(c in _HEX for c in stripped):
        raise InvalidIdentifier(raw)
    return stripped.lower()


def is_identifier(raw: str | None) -> bool:
    try:
        normalize_identifier(raw)
    except InvalidIdentifier:
        return False
    return True


def identifier_from_uri(uri: str) -> str:
    """Return the identifier carried as the last path segment of ``uri``."""
    path = urlsplit(uri).path
    segment = path.rstrip("/").rsplit("/", 1)[-1]
    return normalize_identifier(segment)


def item_uri(root: str, identifier: str, fragment: str = "id") -> str:
    return f"{root.rstrip('/')}/{identifier}#{fragment}"


def local_identifier(root: str, identifier: str) -> str:
    """Map a bare token, hyphenated UUID or token-bearing URI to ``<root>/<id>#id``.

    Anything else is returned unchanged so that callers can still act on
    proxy URIs that are not in the local form.
    """
    candidate = identifier.strip()
    try:
        return item_uri(root, normalize_identifier(candidate))
    except InvalidIdentifier:
        pass
    if "://" in candidate:
        try:
            return item_uri(root, identifier_from_uri(candidate))
        except InvalidIdentifier:
            pass
    return identifier
