"""Typed background jobs and their dispatch."""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union, assert_never

from ragdesk.core.config import settings
from ragdesk.core.exceptions import InvalidJobMessage
from ragdesk.db.models import FileStatus
from ragdesk.services.ingestion.cleanup import sweep_abandoned_files
from ragdesk.services.ingestion.pipeline import IngestionPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestFileJob:
    file_id: str

    kind = "ingest_file"


@dataclass(frozen=True)
class SweepAbandonedFilesJob:
    older_than_hours: int = settings.FILE_RETENTION_HOURS

    kind = "sweep_abandoned_files"


Job = Union[IngestFileJob, SweepAbandonedFilesJob]

JOB_TYPES = {job_type.kind: job_type for job_type in (IngestFileJob, SweepAbandonedFilesJob)}


def job_to_message(job: Job) -> Dict[str, Any]:
    """Serialize a job to the ``{kind, payload}`` queue message."""
    return {"kind": job.kind, "payload": asdict(job)}


def job_from_message(kind: str, payload: Dict[str, Any]) -> Job:
    """Rebuild a typed job from a queue message.

    Raises:
        InvalidJobMessage: If the kind is unknown or the payload does not fit it
    """
    job_type = JOB_TYPES.get(kind)
    if job_type is None:
        raise InvalidJobMessage(f"Unknown job kind: {kind}")
    try:
        return job_type(**payload)
    except TypeError as e:
        raise InvalidJobMessage(f"Invalid payload for {kind}: {payload}") from e


async def dispatch(job: Job, pipeline: Optional[IngestionPipeline] = None) -> Optional[Union[FileStatus, int]]:
    """Run a job.

    Returns:
        The file's final status for ingestion, the number of swept files for a sweep
    """
    match job:
        case IngestFileJob(file_id=file_id):
            logger.info(f"Dispatching ingestion for file {file_id}")
            return await (pipeline or IngestionPipeline()).run(file_id)
        case SweepAbandonedFilesJob(older_than_hours=hours):
            logger.info(f"Dispatching sweep of files older than {hours}h")
            return await sweep_abandoned_files(older_than_hours=hours)
        case _:
            assert_never(job)
