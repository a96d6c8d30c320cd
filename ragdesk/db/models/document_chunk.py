"""DocumentChunk model for embedded fragments of a file's text."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List

from pgvector.sqlalchemy import Vector
from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ragdesk.core.config import settings
from ragdesk.db.base_class import Base

if TYPE_CHECKING:
    from ragdesk.db.models.file import File


class DocumentChunk(Base):
    """One embedded chunk of a file.

    Rows are written once per ingestion run and never updated; they go
    away with their file. The embedding size is fixed by
    ``settings.EMBEDDING_DIMENSIONS`` and must match the embedding model.
    """

    __tablename__ = "document_chunks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    file_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("files.id", ondelete="CASCADE"), index=True, nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # original_name, chunk_index, total_chunks, token_count, char_start
    chunk_metadata: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, default=dict, nullable=False)
    embedding: Mapped[List[float]] = mapped_column(Vector(settings.EMBEDDING_DIMENSIONS), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    file: Mapped["File"] = relationship("File", back_populates="chunks")

    def __repr__(self) -> str:
        return f"<DocumentChunk(id={self.id}, file_id={self.file_id}, index={self.chunk_metadata.get('chunk_index')})>"
