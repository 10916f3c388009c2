"""Flat-file cache: one N-Quads document per item, named by its identifier."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from patchwork.cache.base import parse_document, valid_key

if TYPE_CHECKING:
    from patchwork.request import Request

logger = logging.getLogger(__name__)


class FileCache:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"<FileCache {str(self.path)!r}>"

    def fetch(self, request: Request, identifier: str) -> int:
        if not valid_key(identifier):
            return 404
        path = self.path / identifier
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            logger.debug("file: no cached document at %s", path)
            return 404
        except OSError as exc:
            logger.error("file: failed to read cache file %s: %s", path, exc)
            return 500
        return parse_document(request, data, str(path))
