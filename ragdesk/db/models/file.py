"""File model tracking one uploaded artifact through ingestion."""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, Index, Integer, String, func, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ragdesk.core.exceptions import InvalidStatusTransition
from ragdesk.db.base_class import Base

if TYPE_CHECKING:
    from ragdesk.db.models.document_chunk import DocumentChunk


class FileStatus(str, enum.Enum):
    """Lifecycle of an uploaded file."""

    RESERVED = "reserved"
    UPLOADED = "uploaded"
    PROCESSING = "processing"
    INDEXED = "indexed"
    DUPLICATE = "duplicate"
    FAILED = "failed"


# FAILED -> PROCESSING is the queue retrying the same ingestion job
ALLOWED_TRANSITIONS = {
    FileStatus.RESERVED: {FileStatus.UPLOADED},
    FileStatus.UPLOADED: {FileStatus.PROCESSING},
    FileStatus.PROCESSING: {FileStatus.INDEXED, FileStatus.DUPLICATE, FileStatus.FAILED},
    FileStatus.FAILED: {FileStatus.PROCESSING},
    FileStatus.INDEXED: set(),
    FileStatus.DUPLICATE: set(),
}


class File(Base):
    """An uploaded file and its ingestion state.

    A file is reserved when an upload URL is issued, confirmed by the
    client, and then picked up by exactly one ingestion job at a time.
    """

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    storage_key: Mapped[str] = mapped_column(String(1024), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    content_hash: Mapped[Optional[str]] = mapped_column(String(64), index=True, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, default=False, server_default=text("false"), index=True)
    status: Mapped[FileStatus] = mapped_column(
        Enum(FileStatus, native_enum=False, length=16),
        default=FileStatus.RESERVED,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    chunks: Mapped[List["DocumentChunk"]] = relationship(
        "DocumentChunk",
        back_populates="file",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        # Only one indexed copy of the same content per owner
        Index(
            "uq_files_owner_hash_indexed",
            "user_id",
            "content_hash",
            unique=True,
            postgresql_where=text("status = 'INDEXED'"),
            sqlite_where=text("status = 'INDEXED'"),
        ),
    )

    def transition_to(self, new_status: FileStatus) -> None:
        """Move the file to ``new_status`` if the lifecycle allows it.

        Raises:
            InvalidStatusTransition: If the move goes backwards or skips a state
        """
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidStatusTransition(
                f"File {self.id} cannot move from {self.status.name} to {new_status.name}"
            )
        self.status = new_status

    def __repr__(self) -> str:
        return f"<File(id={self.id}, name='{self.original_name}', status='{self.status.value}')>"
