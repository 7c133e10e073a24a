"""Upload service - photo uploads for recaps and avatars."""

import logging
import mimetypes
import os
import secrets
import time
from dataclasses import dataclass
from typing import BinaryIO
from uuid import UUID

from botocore.exceptions import ClientError

from bookclub.core.config import settings
from bookclub.services.storage_client import get_s3_client, object_url

logger = logging.getLogger(__name__)


class UploadTooLargeError(ValueError):
    """File exceeds the per-file size limit."""

    pass


@dataclass
class IncomingFile:
    """One part of a multipart upload."""
    filename: str
    content_type: str
    size: int
    file: BinaryIO


# =============================================================================
# Storage Backend
# =============================================================================

def _get_storage_backend() -> str:
    """Get configured storage backend."""
    return settings.STORAGE_BACKEND


def _get_local_storage_path() -> str:
    """Get local storage directory path."""
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def store_file(storage_key: str, file: BinaryIO, content_type: str) -> None:
    """Store file to configured backend."""
    backend = _get_storage_backend()

    if backend == "s3":
        s3 = get_s3_client()
        file.seek(0)
        s3.upload_fileobj(
            file,
            settings.S3_BUCKET,
            storage_key,
            ExtraArgs={"ContentType": content_type, "CacheControl": "max-age=3600"},
        )
    else:
        # Local storage
        path = os.path.join(_get_local_storage_path(), storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            file.seek(0)
            f.write(file.read())


# =============================================================================
# Validation
# =============================================================================

def validate_image(content_type: str | None, file_size: int) -> tuple[bool, str | None]:
    """
    Validate an upload part.

    Returns (is_valid, error_message)
    """
    if not content_type or not content_type.lower().startswith("image/"):
        return False, "Only image files can be uploaded"

    if file_size > settings.MAX_UPLOAD_BYTES:
        max_mb = settings.MAX_UPLOAD_BYTES / (1024 * 1024)
        return False, f"File size exceeds {max_mb:.0f} MB limit"

    return True, None


def build_storage_key(user_id: UUID, filename: str | None, content_type: str) -> str:
    """Object key: ``<user_id>/<epoch-millis>-<random>.<ext>``."""
    ext = ""
    if filename and "." in filename:
        ext = filename.rsplit(".", 1)[-1].lower()
    if not ext or not ext.isalnum():
        guessed = mimetypes.guess_extension(content_type) or ".bin"
        ext = guessed.lstrip(".")
    stamp = int(time.time() * 1000)
    return f"{user_id}/{stamp}-{secrets.token_hex(4)}.{ext}"


def upload_images(user_id: UUID, files: list[IncomingFile]) -> list[str]:
    """
    Validate every part, then store them all and return their public URLs.

    The first invalid part rejects the whole upload before anything is stored.

    Raises:
        ValueError: No files, or a part is not an image
        UploadTooLargeError: A part exceeds MAX_UPLOAD_BYTES
    """
    if not files:
        raise ValueError("No files were uploaded")

    for incoming in files:
        ok, error = validate_image(incoming.content_type, incoming.size)
        if not ok:
            if incoming.size > settings.MAX_UPLOAD_BYTES:
                raise UploadTooLargeError(error)
            raise ValueError(error)

    urls = []
    for incoming in files:
        key = build_storage_key(user_id, incoming.filename, incoming.content_type)
        try:
            store_file(key, incoming.file, incoming.content_type)
        except ClientError as exc:
            logger.error("Upload to bucket failed for key %s", key, exc_info=exc)
            raise
        urls.append(object_url(key))

    logger.info("Stored %d uploaded image(s) for member %s", len(urls), user_id)
    return urls
