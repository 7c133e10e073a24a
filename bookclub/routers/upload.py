"""Upload router - image uploads for recaps and avatars."""

from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from bookclub.core.config import settings
from bookclub.core.deps import require_action, require_csrf_header
from bookclub.core.policies import Action
from bookclub.schemas.auth import UserSession
from bookclub.schemas.upload import UploadResponse
from bookclub.services import upload_service

router = APIRouter(tags=["Upload"])


async def read_part(upload: UploadFile) -> upload_service.IncomingFile:
    """
    Buffer one multipart part, reading at most one byte past the size limit.

    A part whose declared size is already over the limit is not read at all;
    the reported size still lets validation reject it.
    """
    limit = settings.MAX_UPLOAD_BYTES
    declared = upload.size or 0
    content = b"" if declared > limit else await upload.read(limit + 1)
    return upload_service.IncomingFile(
        filename=upload.filename or "image",
        content_type=upload.content_type or "application/octet-stream",
        size=max(declared, len(content)),
        file=BytesIO(content),
    )


@router.post(
    "/upload",
    response_model=UploadResponse,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_images(
    files: Annotated[list[UploadFile], File()],
    session: UserSession = Depends(require_action(Action.PARTICIPATE)),
):
    """
    Upload one or more images.

    Every part must be an image of at most MAX_UPLOAD_BYTES; one bad part
    rejects the whole request.
    """
    incoming = [await read_part(upload) for upload in files]

    try:
        urls = upload_service.upload_images(session.user_id, incoming)
    except upload_service.UploadTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UploadResponse(urls=urls)
