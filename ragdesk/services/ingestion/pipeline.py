"""Ingestion pipeline turning one uploaded file into embedded chunks."""

import logging
from typing import Callable, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.core.exceptions import ConflictError
from ragdesk.db.models import DocumentChunk, File, FileStatus
from ragdesk.db.session import AsyncSessionLocal
from ragdesk.services.ingestion.chunking import DocumentChunker
from ragdesk.services.ingestion.dedup import DeduplicationGate
from ragdesk.services.ingestion.embedding import EmbeddingClient
from ragdesk.services.ingestion.parsers import ContentExtractor
from ragdesk.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


class IngestionPipeline:
    """Drive a file from *Uploaded* to *Indexed*, *Duplicate* or *Failed*.

    Every step is safe to re-run: the queue delivers at least once and a
    crashed attempt is retried from the top. Business outcomes (missing
    object, duplicate content, no text) finish the job normally; any other
    exception marks the file *Failed* and propagates so the queue retries.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        storage: Optional[ObjectStorage] = None,
        extractor: Optional[ContentExtractor] = None,
        chunker: Optional[DocumentChunker] = None,
        embedder: Optional[EmbeddingClient] = None,
        dedup: Optional[DeduplicationGate] = None,
    ):
        self.session_factory = session_factory
        self.storage = storage or ObjectStorage()
        self.extractor = extractor or ContentExtractor()
        self.chunker = chunker or DocumentChunker()
        self.embedder = embedder or EmbeddingClient()
        self.dedup = dedup or DeduplicationGate()

    async def run(self, file_id: str) -> Optional[FileStatus]:
        """Ingest one file.

        Args:
            file_id: Identifier of the file to ingest

        Returns:
            The file's final status, or None if the row is gone

        Raises:
            ConflictError: The upload is still reserved; the job is retried
                once the confirmation commits
        """
        async with self.session_factory() as session:
            file = await session.get(File, file_id)
            if file is None:
                logger.info(f"File {file_id} no longer exists, nothing to ingest")
                return None
            if file.status in (FileStatus.INDEXED, FileStatus.DUPLICATE):
                logger.info(f"File {file_id} already {file.status.name}, skipping")
                return file.status
            if file.status == FileStatus.RESERVED:
                raise ConflictError(f"File {file_id} has not been confirmed yet")

            try:
                return await self._ingest(session, file)
            except Exception as e:
                logger.error(f"Ingestion of file {file_id} failed: {e!r}", exc_info=True)
                await self._mark_failed(session, file_id)
                raise

    async def _ingest(self, session: AsyncSession, file: File) -> Optional[FileStatus]:
        file_id = file.id

        # A crashed attempt may leave the row in PROCESSING; the caller holds the file lock
        if file.status != FileStatus.PROCESSING:
            file.transition_to(FileStatus.PROCESSING)
        await session.execute(delete(DocumentChunk).where(DocumentChunk.file_id == file_id))
        await session.commit()
        logger.info(f"Processing file {file_id} ({file.mime_type}, '{file.original_name}')")

        data = await self.storage.get_object(file.storage_key)
        if data is None:
            logger.warning(f"Object {file.storage_key} missing, removing incomplete upload {file_id}")
            await session.delete(file)
            await session.commit()
            return None

        content_hash = self.dedup.compute_hash(data)
        duplicate = await self.dedup.find_duplicate(session, file, content_hash)
        if duplicate is not None:
            try:
                await self.storage.delete_object(file.storage_key)
            except Exception as e:
                logger.error(f"Failed to delete duplicate object {file.storage_key}: {e!r}")
            file.content_hash = content_hash
            file.transition_to(FileStatus.DUPLICATE)
            await session.commit()
            logger.warning(f"File {file_id} is a duplicate of {duplicate.id}")
            return FileStatus.DUPLICATE

        file.content_hash = content_hash
        await session.commit()

        text = await self.extractor.extract(data, file.mime_type)
        if not text or not text.strip():
            file.transition_to(FileStatus.FAILED)
            await session.commit()
            logger.warning(f"No text extracted from file {file_id}, marked FAILED")
            return FileStatus.FAILED

        chunks = self.chunker.chunk_document(text, {"original_name": file.original_name})
        vectors = await self.embedder.embed_many([chunk["content"] for chunk in chunks])

        session.add_all(
            [
                DocumentChunk(
                    file_id=file_id,
                    user_id=file.user_id,
                    content=chunk["content"],
                    chunk_metadata=chunk["metadata"],
                    embedding=vector,
                )
                for chunk, vector in zip(chunks, vectors)
            ]
        )
        file.transition_to(FileStatus.INDEXED)
        await session.commit()

        logger.info(f"Indexed file {file_id} as {len(chunks)} chunks")
        return FileStatus.INDEXED

    async def _mark_failed(self, session: AsyncSession, file_id: str) -> None:
        """Drop this attempt's chunks and mark the file *Failed*, best effort."""
        try:
            await session.rollback()
            await session.execute(delete(DocumentChunk).where(DocumentChunk.file_id == file_id))
            file = await session.get(File, file_id, populate_existing=True)
            if file is not None and file.status == FileStatus.PROCESSING:
                file.transition_to(FileStatus.FAILED)
            await session.commit()
        except Exception as e:
            logger.error(f"Could not mark file {file_id} as FAILED: {e!r}")
