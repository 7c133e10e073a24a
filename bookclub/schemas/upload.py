"""Pydantic schemas for image upload."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Public URLs of the stored images, in upload order."""
    urls: list[str]
