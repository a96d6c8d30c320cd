from typing import List, Literal

from fastapi import APIRouter, Depends, Query

from ragdesk.api.deps import get_current_user, get_upload_service
from ragdesk.schemas.files import FileResponse
from ragdesk.services.uploads import UploadService

router = APIRouter()


@router.get("", response_model=List[FileResponse])
async def list_files(
    scope: Literal["mine", "public", "all"] = Query("all"),
    current_user: dict = Depends(get_current_user),
    uploads: UploadService = Depends(get_upload_service),
):
    """List the caller's files and public files, with their ingestion status."""
    return await uploads.list_files(current_user, scope=scope)
