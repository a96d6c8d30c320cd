"""Access-controlled similarity search over document chunks."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.core.config import settings
from ragdesk.core.constants import PRIVATE_LABEL, PUBLIC_LABEL, UNAVAILABLE_LINK
from ragdesk.db.models import DocumentChunk, File
from ragdesk.services.ingestion.embedding import EmbeddingClient
from ragdesk.services.storage import ObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class RetrievedChunk:
    """One search hit with everything needed to cite it."""

    content: str
    source_name: str
    source_link: str
    visibility: str
    distance: float
    metadata: Dict[str, Any] = field(default_factory=dict)


def build_search_statement(query_vector: Sequence[float], user_id: str, limit: int) -> Select:
    """Build the nearest-chunks query visible to ``user_id``.

    A chunk is visible when its owner is the user or its file is public.
    The vector is bound as a typed parameter.
    """
    distance = DocumentChunk.embedding.cosine_distance(query_vector).label("distance")
    return (
        select(
            DocumentChunk.content,
            DocumentChunk.chunk_metadata,
            File.original_name,
            File.storage_key,
            File.is_public,
            distance,
        )
        .join(File, DocumentChunk.file_id == File.id)
        .where(or_(DocumentChunk.user_id == user_id, File.is_public.is_(True)))
        .order_by(distance)
        .limit(limit)
    )


def format_context(chunks: Sequence[RetrievedChunk]) -> str:
    """Render retrieved chunks as citation-annotated context blocks."""
    return "\n\n".join(
        f"[Source: {chunk.source_name} | Link: {chunk.source_link} | Visibility: {chunk.visibility}]\n"
        f"Content: {chunk.content}"
        for chunk in chunks
    )


class RetrievalService:
    """Embed a query and fetch the closest chunks the user may see."""

    def __init__(
        self,
        storage: Optional[ObjectStorage] = None,
        embedder: Optional[EmbeddingClient] = None,
        limit: Optional[int] = None,
    ):
        self.storage = storage or ObjectStorage()
        # A user is waiting, so no retry on the query embedding
        self.embedder = embedder or EmbeddingClient(max_attempts=settings.QUERY_EMBEDDING_ATTEMPTS)
        self.limit = limit or settings.RETRIEVAL_LIMIT

    async def retrieve(self, session: AsyncSession, query: str, user_id: str) -> List[RetrievedChunk]:
        """Return up to ``limit`` chunks ordered by ascending cosine distance.

        Args:
            session: Database session
            query: Standalone search query
            user_id: The asking user

        Returns:
            Retrieved chunks, closest first
        """
        query_vector = await self.embedder.embed(query)
        result = await session.execute(build_search_statement(query_vector, user_id, self.limit))
        rows = result.all()
        logger.info(f"Retrieved {len(rows)} chunks for user {user_id}")

        links = await asyncio.gather(*(self._citation_link(row.storage_key) for row in rows))

        return [
            RetrievedChunk(
                content=row.content,
                source_name=row.original_name,
                source_link=link,
                visibility=PUBLIC_LABEL if row.is_public else PRIVATE_LABEL,
                distance=float(row.distance),
                metadata=row.chunk_metadata or {},
            )
            for row, link in zip(rows, links)
        ]

    async def _citation_link(self, storage_key: Optional[str]) -> str:
        if not storage_key:
            return UNAVAILABLE_LINK
        try:
            return await self.storage.generate_download_url(storage_key)
        except Exception as e:
            logger.warning(f"Could not sign download URL for {storage_key}: {e!r}")
            return UNAVAILABLE_LINK
