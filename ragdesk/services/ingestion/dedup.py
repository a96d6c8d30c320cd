"""Content-hash deduplication for uploaded files."""

import hashlib
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.db.models import File, FileStatus

logger = logging.getLogger(__name__)


class DeduplicationGate:
    """Detect byte-identical uploads already indexed for the same owner."""

    @staticmethod
    def compute_hash(data: bytes) -> str:
        """Return the hex SHA-256 digest of ``data``."""
        return hashlib.sha256(data).hexdigest()

    async def find_duplicate(self, session: AsyncSession, file: File, content_hash: str) -> Optional[File]:
        """Find another indexed file of the same owner with the same content.

        Args:
            session: Database session
            file: The file being ingested; never matched against itself
            content_hash: Hash of the file's bytes

        Returns:
            The earlier indexed file, or None
        """
        stmt = (
            select(File)
            .where(
                File.user_id == file.user_id,
                File.content_hash == content_hash,
                File.status == FileStatus.INDEXED,
                File.id != file.id,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        duplicate = result.scalars().first()
        if duplicate is not None:
            logger.info(f"File {file.id} duplicates indexed file {duplicate.id} for user {file.user_id}")
        return duplicate
