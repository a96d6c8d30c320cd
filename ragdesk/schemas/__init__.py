from ragdesk.schemas.chat import ChatMessage, ChatRequest
from ragdesk.schemas.files import (
    ConfirmUploadRequest,
    ConfirmUploadResponse,
    FileResponse,
    SignedUrlRequest,
    SignedUrlResponse,
)

__all__ = [
    "ChatMessage",
    "ChatRequest",
    "ConfirmUploadRequest",
    "ConfirmUploadResponse",
    "FileResponse",
    "SignedUrlRequest",
    "SignedUrlResponse",
]
