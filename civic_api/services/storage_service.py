"""DigitalOcean Spaces integration for report images and avatars."""
from __future__ import annotations

import logging
import os
import re
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable
from urllib.parse import urlparse

from boto3.session import Session
from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)


_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class SpacesConfig:
    """Runtime configuration extracted from environment variables."""

    key: str
    secret: str
    region: str
    bucket: str
    api_endpoint: str
    public_endpoint: str


@dataclass(frozen=True)
class StoredObject:
    """Metadata returned after writing an object to Spaces."""

    url: str
    key: str
    size: int
    content_type: str


class StorageConfigurationError(RuntimeError):
    """Raised when required DigitalOcean Spaces settings are missing or invalid."""


class StorageUploadError(RuntimeError):
    """Raised when an upload to DigitalOcean Spaces fails."""


class StorageDeletionError(RuntimeError):
    """Raised when deleting an object from DigitalOcean Spaces fails."""


_SPACES_ENV = ("DO_SPACES_KEY", "DO_SPACES_SECRET", "DO_SPACES_REGION", "DO_SPACES_NAME", "DO_SPACES_ENDPOINT")


def _public_endpoint(raw: str) -> str:
    endpoint = raw.strip().rstrip("/")
    if "://" not in endpoint:
        endpoint = f"https://{endpoint.lstrip(':/')}"
    if not urlparse(endpoint).netloc:
        raise StorageConfigurationError("DO_SPACES_ENDPOINT must include a hostname")
    return endpoint


@lru_cache(maxsize=1)
def load_spaces_config() -> SpacesConfig:
    """Build the Spaces configuration from ``DO_SPACES_*`` variables.

    The result is cached; call ``load_spaces_config.cache_clear()`` after
    changing the environment.
    """

    missing = sorted(name for name in _SPACES_ENV if not (os.getenv(name) or "").strip())
    if missing:
        raise StorageConfigurationError("Missing DigitalOcean Spaces settings: " + ", ".join(missing))

    try:
        key, secret = require_secret("DO_SPACES_KEY"), require_secret("DO_SPACES_SECRET")
    except MissingSecretError as exc:
        raise StorageConfigurationError(str(exc)) from exc

    region = os.environ["DO_SPACES_REGION"].strip()
    bucket = os.environ["DO_SPACES_NAME"].strip()
    for name, value in (("DO_SPACES_REGION", region), ("DO_SPACES_NAME", bucket)):
        if is_placeholder(value):
            raise StorageConfigurationError(f"{name} still holds a template value")

    return SpacesConfig(
        key=key,
        secret=secret,
        region=region,
        bucket=bucket,
        api_endpoint=f"https://{region}.digitaloceanspaces.com",
        public_endpoint=_public_endpoint(os.environ["DO_SPACES_ENDPOINT"]),
    )


@lru_cache(maxsize=1)
def get_spaces_client() -> BaseClient:
    """Create a singleton boto3 client for Spaces interactions."""

    config = load_spaces_config()
    session = Session()
    return session.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.api_endpoint,
        aws_access_key_id=config.key,
        aws_secret_access_key=config.secret,
    )


def _sanitize_segments(parts: Iterable[str]) -> list[str]:
    sanitized: list[str] = []
    for part in parts:
        if part in {"", ".", ".."}:
            continue
        cleaned = re.sub(r"[^A-Za-z0-9._-]", "-", part.strip())
        cleaned = re.sub(r"-+", "-", cleaned).strip("-._")
        if cleaned:
            sanitized.append(cleaned)
    return sanitized


def object_key(content_type: str, folder: str) -> str:
    """Generate a unique key inside ``folder`` with an extension matching the content type."""

    extension = _EXTENSIONS.get(content_type.lower(), "")
    safe_folder = "/".join(_sanitize_segments((folder or "uploads").replace("\\", "/").split("/"))) or "uploads"
    return f"{safe_folder}/{uuid.uuid4().hex}{extension}"


def build_public_url(key: str) -> str:
    """Build the public URL for an object stored in DigitalOcean Spaces."""

    config = load_spaces_config()
    normalized_key = key.lstrip("/")
    return f"{config.public_endpoint}/{normalized_key}" if normalized_key else config.public_endpoint


def key_from_url(url: str | None) -> str | None:
    """Return the object key for ``url`` when it points into the configured bucket."""

    if not url:
        return None
    try:
        endpoint = load_spaces_config().public_endpoint
    except StorageConfigurationError:
        return None
    prefix = f"{endpoint}/"
    if not url.startswith(prefix):
        return None
    key = urlparse(url).path.lstrip("/")
    endpoint_path = urlparse(endpoint).path.strip("/")
    if endpoint_path and key.startswith(f"{endpoint_path}/"):
        key = key[len(endpoint_path) + 1 :]
    return key or None


async def upload_bytes(
    data: bytes,
    *,
    content_type: str,
    folder: str = "uploads",
    client: BaseClient | None = None,
) -> StoredObject:
    """Write ``data`` to Spaces as a publicly readable object."""

    config = load_spaces_config()
    s3_client = client or get_spaces_client()
    key = object_key(content_type, folder)

    def _upload() -> None:
        try:
            s3_client.put_object(
                Bucket=config.bucket,
                Key=key,
                Body=data,
                ACL="public-read",
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
            logger.exception("Upload to DigitalOcean Spaces failed: %s", exc)
            raise StorageUploadError("Upload to DigitalOcean Spaces failed") from exc

    await run_in_threadpool(_upload)
    logger.info("Stored %d bytes at %s", len(data), key)
    return StoredObject(url=build_public_url(key), key=key, size=len(data), content_type=content_type)


def delete_object(key: str, *, client: BaseClient | None = None) -> None:
    """Remove an object from DigitalOcean Spaces."""

    if not key:
        return

    config = load_spaces_config()
    s3_client = client or get_spaces_client()
    try:
        s3_client.delete_object(Bucket=config.bucket, Key=key.lstrip("/"))
    except (ClientError, BotoCoreError) as exc:  # pragma: no cover - network bound
        logger.exception("Failed to delete Spaces object %s", key)
        raise StorageDeletionError("Unable to delete file from storage") from exc


def delete_stored_file(url: str | None) -> None:
    """Best-effort removal of a previously uploaded file.

    URLs outside the configured bucket (Google profile pictures, external
    links) are left alone. Failures are logged and never propagate.
    """

    key = key_from_url(url)
    if key is None:
        return
    try:
        delete_object(key)
    except (StorageDeletionError, StorageConfigurationError) as exc:
        logger.warning("Could not delete replaced file %s: %s", key, exc)


__all__ = [
    "SpacesConfig",
    "StoredObject",
    "StorageConfigurationError",
    "StorageUploadError",
    "StorageDeletionError",
    "load_spaces_config",
    "get_spaces_client",
    "object_key",
    "build_public_url",
    "key_from_url",
    "upload_bytes",
    "delete_object",
    "delete_stored_file",
]
