from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ragdesk.db.models import FileStatus


class SignedUrlRequest(BaseModel):
    """Request for a presigned upload URL."""

    file_name: str = Field(..., min_length=1, max_length=255)
    file_type: str = Field(..., description="MIME type of the file")
    file_size: int = Field(..., gt=0, description="Size in bytes")
    is_public: bool = False


class SignedUrlResponse(BaseModel):
    upload_url: str
    storage_key: str
    file_id: str


class ConfirmUploadRequest(BaseModel):
    file_id: str


class ConfirmUploadResponse(BaseModel):
    file_id: str
    status: FileStatus


class FileResponse(BaseModel):
    """A file as shown in listings."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    original_name: str
    mime_type: str
    size_bytes: Optional[int] = None
    is_public: bool
    status: FileStatus
    user_id: str
    created_at: Optional[datetime] = None
