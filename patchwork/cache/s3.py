"""S3 cache: one N-Quads object per item, keyed by its identifier."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from patchwork.cache.base import parse_document, valid_key
from patchwork.config import DEFAULT_FETCH_LIMIT

if TYPE_CHECKING:
    from patchwork.config import Settings
    from patchwork.request import Request

logger = logging.getLogger(__name__)

_MISSING = {"NoSuchKey", "404", "NotFound"}


def _s3_client(endpoint: str | None, access_key: str | None, secret_key: str | None) -> Any:
    session = boto3.session.Session()
    return session.client(
        "s3",
        endpoint_url=endpoint or None,
        aws_access_key_id=access_key or None,
        aws_secret_access_key=secret_key or None,
    )


def _endpoint_url(endpoint: str | None) -> str | None:
    if not endpoint:
        return None
    if "://" not in endpoint:
        return f"https://{endpoint}"
    return endpoint.rstrip("/")


class S3Cache:
    def __init__(self, client: Any, bucket: str, *, fetch_limit: int = DEFAULT_FETCH_LIMIT * 1024) -> None:
        self.client = client
        self.bucket = bucket
        self.fetch_limit = fetch_limit

    def __repr__(self) -> str:
        return f"<S3Cache {self.bucket!r}>"

    @classmethod
    def from_settings(cls, bucket: str, settings: Settings) -> S3Cache:
        if settings.s3_verbose:
            logging.getLogger("botocore").setLevel(logging.DEBUG)
        client = _s3_client(_endpoint_url(settings.s3_endpoint), settings.s3_access, settings.s3_secret)
        # fetch_limit is configured in kilobytes
        return cls(client, bucket, fetch_limit=settings.s3_fetch_limit * 1024)

    def fetch(self, request: Request, identifier: str) -> int:
        if not valid_key(identifier):
            return 404
        source = f"s3://{self.bucket}/{identifier}"
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=identifier)
            length = response.get("ContentLength")
            if length is not None and length > self.fetch_limit:
                logger.error("S3: %s is %d bytes, exceeding the fetch limit of %d", source, length, self.fetch_limit)
                return 500
            data = response["Body"].read(self.fetch_limit + 1)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING:
                logger.debug("S3: %s not found", source)
                return 404
            logger.error("S3: failed to fetch %s: %s", source, exc)
            return 500
        except BotoCoreError as exc:
            logger.error("S3: failed to fetch %s: %s", source, exc)
            return 500
        if len(data) > self.fetch_limit:
            logger.error("S3: %s exceeds the fetch limit of %d bytes", source, self.fetch_limit)
            return 500
        return parse_document(request, data, source)
