"""Poster object storage: validation, key generation and S3-compatible backends."""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from movie_catalog.common.errors import PosterStorageError, PosterValidationError
from movie_catalog.config import runtime_config
from movie_catalog.posters.models import ALLOWED_POSTER_TYPES, MAX_POSTER_BYTES, PosterUpload

logger = logging.getLogger(__name__)

_OK_STATUSES = {200, 202}


def validate_poster(
    poster: PosterUpload,
    size_limit: int = MAX_POSTER_BYTES,
    allowed_types: Iterable[str] = ALLOWED_POSTER_TYPES,
) -> None:
    if poster.size > size_limit:
        raise PosterValidationError(
            f"File size exceeds the maximum allowed limit of {size_limit // (1024 * 1024)}MB."
        )
    if poster.content_type not in set(allowed_types):
        raise PosterValidationError("Unsupported file type. Only JPEG, PNG, and WEBP are allowed.")


def generate_unique_key(filename: str, now: Optional[datetime] = None) -> str:
    """<stem>_<yyyyMMddHHmmss>_<8 hex chars><ext>, e.g. foo_20240101120000_ab12cd34.jpg."""
    name = Path(filename or "").name
    stem = Path(name).stem or "poster"
    suffix = Path(name).suffix
    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%d%H%M%S")
    return f"{stem}_{timestamp}_{uuid.uuid4().hex[:8]}{suffix}"


def extract_key(key_or_url: str) -> str:
    """Return the trailing path segment of a public URL, or the key itself."""
    return key_or_url.rsplit("/", 1)[-1] if "/" in key_or_url else key_or_url


class PosterStorage(Protocol):
    """Abstract poster blob storage."""

    def upload(
        self,
        poster: PosterUpload,
        size_limit: int = MAX_POSTER_BYTES,
        allowed_types: Iterable[str] = ALLOWED_POSTER_TYPES,
    ) -> str:
        """Store the poster, return its public URL."""
        ...

    def delete(self, key_or_url: str) -> None:
        ...


class InMemoryPosterStorage:
    """Dict-backed storage for tests and local development."""

    def __init__(self, public_url: str = "https://posters.local") -> None:
        self.public_url = public_url.rstrip("/")
        self.objects: Dict[str, bytes] = {}
        self.uploads: List[str] = []
        self.deleted: List[str] = []

    def upload(
        self,
        poster: PosterUpload,
        size_limit: int = MAX_POSTER_BYTES,
        allowed_types: Iterable[str] = ALLOWED_POSTER_TYPES,
    ) -> str:
        validate_poster(poster, size_limit, allowed_types)
        key = generate_unique_key(poster.filename)
        self.objects[key] = poster.content
        self.uploads.append(key)
        return f"{self.public_url}/{key}"

    def delete(self, key_or_url: str) -> None:
        key = extract_key(key_or_url)
        self.objects.pop(key, None)
        self.deleted.append(key)


class R2PosterStorage:
    """Cloudflare R2 (S3 API) poster storage.

    Keys live at the bucket root; the public URL is R2_PUBLIC_URL/<key>.
    Raises at init if the bucket, public URL or credentials are missing.
    """

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        client: Optional[object] = None,
    ) -> None:
        self.bucket_name = bucket_name or runtime_config.get_r2_bucket_name()
        public_url = public_url or runtime_config.get_r2_public_url()
        if not self.bucket_name or not public_url:
            raise RuntimeError(
                "R2_BUCKET_NAME and R2_PUBLIC_URL config missing for poster storage. "
                "Set them or use POSTER_BACKEND=memory."
            )
        self.public_url = public_url.rstrip("/")
        self.client = client if client is not None else self._build_client()

    @staticmethod
    def _build_client():
        access_key = runtime_config.get_r2_access_key()
        secret_key = runtime_config.get_r2_secret_key()
        endpoint = runtime_config.get_r2_service_url()
        if not access_key or not secret_key or not endpoint:
            raise RuntimeError("R2_ACCESS_KEY, R2_SECRET_KEY and R2_ACCOUNT_ID (or R2_SERVICE_URL) are required")
        return boto3.client(
            "s3",
            endpoint_url=endpoint,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name="auto",
            config=Config(
                signature_version="s3v4",
                connect_timeout=runtime_config.get_r2_connect_timeout(),
                read_timeout=runtime_config.get_r2_read_timeout(),
                retries={"total_max_attempts": 1, "mode": "standard"},
            ),
        )

    def upload(
        self,
        poster: PosterUpload,
        size_limit: int = MAX_POSTER_BYTES,
        allowed_types: Iterable[str] = ALLOWED_POSTER_TYPES,
    ) -> str:
        validate_poster(poster, size_limit, allowed_types)
        key = generate_unique_key(poster.filename)
        try:
            response = self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=poster.content,
                ContentType=poster.content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to upload poster %s: %s", key, exc)
            raise PosterStorageError(f"Upload to object storage failed: {exc}", exc) from exc
        status = (response or {}).get("ResponseMetadata", {}).get("HTTPStatusCode")
        if status not in _OK_STATUSES:
            logger.error("Poster upload %s returned status %s", key, status)
            raise PosterStorageError("Upload to object storage failed")
        url = f"{self.public_url}/{key}"
        logger.info("Stored poster: %s", url)
        return url

    def delete(self, key_or_url: str) -> None:
        key = extract_key(key_or_url)
        try:
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Failed to delete poster %s: %s", key, exc)
            raise PosterStorageError(f"Delete from object storage failed: {exc}", exc) from exc
        logger.info("Deleted poster: %s", key)
