"""Item caches, selected once from the scheme of ``patchwork:cache``."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlsplit

from patchwork.cache.base import Cache
from patchwork.cache.file import FileCache
from patchwork.cache.s3 import S3Cache
from patchwork.config import PLUGIN_NAME, Settings, UnsupportedConfiguration

logger = logging.getLogger(__name__)

__all__ = ["Cache", "FileCache", "S3Cache", "create_cache"]


def create_cache(settings: Settings) -> Cache | None:
    if settings.cache:
        uri = settings.cache
        parts = urlsplit(uri)
        if parts.scheme == "s3":
            if not parts.netloc:
                logger.critical("%s: no bucket named in cache URI <%s>", PLUGIN_NAME, uri)
                raise UnsupportedConfiguration(f"no S3 bucket in cache URI <{uri}>")
            logger.info("%s: using S3 bucket '%s' as cache", PLUGIN_NAME, parts.netloc)
            return S3Cache.from_settings(parts.netloc, settings)
        if parts.scheme == "file":
            path = unquote(parts.path)
        elif not parts.scheme:
            # relative to the working directory, as any relative URI would be
            path = str(Path.cwd() / uri) if uri else ""
        else:
            logger.critical("%s: cache scheme '%s' is not supported in URI <%s>", PLUGIN_NAME, parts.scheme, uri)
            raise UnsupportedConfiguration(f"cache scheme '{parts.scheme}' is not supported")
        if not path:
            return None
        logger.info("%s: using %s as cache directory", PLUGIN_NAME, path)
        return FileCache(path)
    if settings.bucket:
        logger.warning(
            "%s: the 'bucket' configuration option is deprecated; you should specify an S3 bucket URI"
            " as the value of the 'cache' option instead",
            PLUGIN_NAME,
        )
        return S3Cache.from_settings(settings.bucket, settings)
    return None
