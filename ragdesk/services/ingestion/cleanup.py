"""Garbage collection of abandoned reservations and failed files."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ragdesk.core.config import settings
from ragdesk.db.models import File, FileStatus
from ragdesk.db.session import AsyncSessionLocal
from ragdesk.services.storage import ObjectStorage

logger = logging.getLogger(__name__)

SWEPT_STATUSES = (FileStatus.RESERVED, FileStatus.FAILED)


async def sweep_abandoned_files(
    older_than_hours: Optional[int] = None,
    session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
    storage: Optional[ObjectStorage] = None,
) -> int:
    """Delete *Reserved* and *Failed* files older than the retention window.

    Objects are removed first, best effort; rows go even when the object
    delete fails so a broken bucket cannot keep rows around forever.

    Returns:
        Number of file rows deleted
    """
    hours = older_than_hours if older_than_hours is not None else settings.FILE_RETENTION_HOURS
    cutoff = datetime.now(timezone.utc) - timedelta(hours=hours)
    storage = storage or ObjectStorage()

    async with session_factory() as session:
        result = await session.execute(
            select(File).where(File.status.in_(SWEPT_STATUSES), File.created_at < cutoff)
        )
        files = result.scalars().all()
        if not files:
            logger.info("No abandoned files to sweep")
            return 0

        for file in files:
            try:
                await storage.delete_object(file.storage_key)
            except Exception as e:
                logger.error(f"Failed to delete object {file.storage_key}: {e!r}")
            await session.delete(file)

        await session.commit()

    logger.info(f"Swept {len(files)} abandoned files older than {hours}h")
    return len(files)
