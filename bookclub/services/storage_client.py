"""Gallery bucket access: client construction and public object URLs."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import boto3
from botocore.client import BaseClient
from botocore.config import Config

from bookclub.core.config import settings

GCS_HOST = "storage.googleapis.com"
ADDRESSING_STYLES = {"path", "virtual"}


def _endpoint() -> str | None:
    return settings.S3_ENDPOINT_URL.rstrip("/") or None


def _targets_gcs(endpoint: str | None) -> bool:
    host = (urlparse(endpoint).hostname or "").lower() if endpoint else ""
    return host == GCS_HOST or host.endswith("." + GCS_HOST)


def _region(endpoint: str | None) -> str | None:
    region = settings.S3_REGION or None
    # SigV4 against the GCS interoperability API must be signed for "auto"
    if _targets_gcs(endpoint) and region in (None, "us-east-1"):
        return "auto"
    return region


def client_kwargs() -> dict[str, Any]:
    """Keyword arguments for ``boto3.client("s3", ...)`` from current settings."""
    endpoint = _endpoint()
    style = settings.S3_URL_STYLE.strip().lower()
    return {
        "region_name": _region(endpoint),
        "endpoint_url": endpoint,
        # Blank keys defer to the default credential chain
        "aws_access_key_id": settings.AWS_ACCESS_KEY_ID or None,
        "aws_secret_access_key": settings.AWS_SECRET_ACCESS_KEY or None,
        "config": Config(s3={"addressing_style": style}) if style in ADDRESSING_STYLES else None,
    }


def get_s3_client() -> BaseClient:
    """S3 (or S3-compatible) client for the gallery bucket."""
    return boto3.client("s3", **client_kwargs())


def object_url(storage_key: str) -> str:
    """Public URL of an uploaded object, for either storage backend."""
    return f"{settings.PUBLIC_STORAGE_BASE_URL.rstrip('/')}/{storage_key.lstrip('/')}"
