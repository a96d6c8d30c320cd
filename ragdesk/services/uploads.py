"""Upload reservation, confirmation and file listing."""

import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.core.config import settings
from ragdesk.core.constants import ALLOWED_UPLOAD_MIME_TYPES, PUBLISHER_ROLES
from ragdesk.core.exceptions import (
    ConflictError,
    InvalidUploadError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
)
from ragdesk.db.models import File, FileStatus
from ragdesk.services.storage import ObjectStorage, build_storage_key
from ragdesk.worker.jobs import IngestFileJob, Job
from ragdesk.worker.tasks import enqueue_job

logger = logging.getLogger(__name__)

FILE_SCOPES = ("mine", "public", "all")


class UploadService:
    """Entry point creating *Reserved* files and handing them to ingestion."""

    def __init__(
        self,
        db: AsyncSession,
        storage: Optional[ObjectStorage] = None,
        enqueue: Callable[[Job], None] = enqueue_job,
    ):
        self.db = db
        self.storage = storage or ObjectStorage()
        self.enqueue = enqueue

    async def reserve_upload(
        self,
        file_name: str,
        mime_type: str,
        size_bytes: int,
        is_public: bool,
        user: Dict[str, Any],
    ) -> Dict[str, str]:
        """Create a *Reserved* file and a presigned upload URL for it.

        Args:
            file_name: Name shown to users and used in citations
            mime_type: Declared content type
            size_bytes: Declared size
            is_public: Requested visibility; only publishers may share files
            user: The caller, ``{"id", "role"}``

        Returns:
            ``upload_url``, ``storage_key`` and ``file_id``

        Raises:
            InvalidUploadError: Unsupported type or file too large
        """
        if mime_type not in ALLOWED_UPLOAD_MIME_TYPES:
            raise InvalidUploadError(f"Unsupported file type: {mime_type}")
        if size_bytes <= 0 or size_bytes > settings.MAX_UPLOAD_BYTES:
            raise InvalidUploadError(f"File size must be between 1 and {settings.MAX_UPLOAD_BYTES} bytes")

        if is_public and user.get("role") not in PUBLISHER_ROLES:
            logger.info(f"User {user['id']} may not publish, reserving '{file_name}' as private")
            is_public = False

        storage_key = build_storage_key(user["id"], file_name)
        file = File(
            storage_key=storage_key,
            user_id=user["id"],
            mime_type=mime_type,
            original_name=file_name,
            size_bytes=size_bytes,
            is_public=is_public,
            status=FileStatus.RESERVED,
        )
        self.db.add(file)
        await self.db.flush()

        upload_url = await self.storage.generate_upload_url(storage_key, mime_type)
        await self.db.commit()

        logger.info(f"Reserved file {file.id} for user {user['id']} at {storage_key}")
        return {"upload_url": upload_url, "storage_key": storage_key, "file_id": file.id}

    async def confirm_upload(self, file_id: str, user: Dict[str, Any]) -> File:
        """Mark a reserved file as uploaded and enqueue its ingestion.

        Raises:
            NotFoundError: Unknown file
            PermissionDeniedError: The caller does not own the file
            ConflictError: The file was already confirmed
            ServiceUnavailableError: The ingestion job could not be queued;
                the file stays reserved so the caller can confirm again
        """
        file = await self.db.get(File, file_id)
        if file is None:
            raise NotFoundError(f"File {file_id} not found")
        if file.user_id != user["id"]:
            raise PermissionDeniedError("You do not own this file")
        if file.status != FileStatus.RESERVED:
            raise ConflictError(f"File {file_id} is already {file.status.value}")

        file.transition_to(FileStatus.UPLOADED)
        await self.db.flush()

        # A worker picking the job up before this commit finds the file still
        # reserved and retries later
        try:
            self.enqueue(IngestFileJob(file_id=file.id))
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Could not queue ingestion of file {file_id}: {e!r}")
            raise ServiceUnavailableError("Ingestion queue is unavailable, try confirming again") from e
        await self.db.commit()

        logger.info(f"Confirmed upload of file {file_id}, ingestion queued")
        return file

    async def list_files(self, user: Dict[str, Any], scope: str = "all") -> List[File]:
        """List files visible to the user, newest first.

        Args:
            user: The caller
            scope: ``mine``, ``public`` or ``all`` (own files plus public ones)
        """
        if scope not in FILE_SCOPES:
            raise InvalidUploadError(f"Unknown scope: {scope}")

        stmt = select(File)
        if scope == "mine":
            stmt = stmt.where(File.user_id == user["id"])
        elif scope == "public":
            stmt = stmt.where(File.is_public.is_(True))
        else:
            stmt = stmt.where(or_(File.user_id == user["id"], File.is_public.is_(True)))

        result = await self.db.execute(stmt.order_by(File.created_at.desc()))
        return list(result.scalars().all())
