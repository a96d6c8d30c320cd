import logging

from fastapi import APIRouter, Depends, status

from ragdesk.api.deps import get_current_user, get_upload_service
from ragdesk.schemas.files import (
    ConfirmUploadRequest,
    ConfirmUploadResponse,
    SignedUrlRequest,
    SignedUrlResponse,
)
from ragdesk.services.uploads import UploadService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/signed-url", response_model=SignedUrlResponse)
async def create_signed_url(
    request: SignedUrlRequest,
    current_user: dict = Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service),
):
    """Reserve a file and return a presigned URL the client uploads to directly."""
    return await uploads.reserve_upload(
        file_name=request.file_name,
        mime_type=request.file_type,
        size_bytes=request.file_size,
        is_public=request.is_public,
        user=current_user,
    )


@router.post("/confirm", response_model=ConfirmUploadResponse, status_code=status.HTTP_202_ACCEPTED)
async def confirm_upload(
    request: ConfirmUploadRequest,
    current_user: dict = Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service),
):
    """Confirm a finished direct upload and queue it for ingestion."""
    file = await uploads.confirm_upload(request.file_id, current_user)
    return ConfirmUploadResponse(file_id=file.id, status=file.status)
