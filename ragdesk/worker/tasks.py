"""Celery task running typed jobs."""

import asyncio
import logging
from typing import Any, Dict, Optional

import redis
from celery.exceptions import Retry

from ragdesk.core.config import settings
from ragdesk.core.exceptions import ConfigurationError, InvalidJobMessage
from ragdesk.worker.celery_app import celery_app
from ragdesk.worker.jobs import IngestFileJob, Job, dispatch, job_from_message, job_to_message

logger = logging.getLogger(__name__)

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.Redis.from_url(settings.REDIS_URL)
    return _redis_client


def lock_name(file_id: str) -> str:
    return f"ragdesk:ingest:{file_id}"


def run_async(coro):
    """Run a coroutine on this worker thread's event loop."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = None
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)


@celery_app.task(
    bind=True,
    name="ragdesk.run_job",
    autoretry_for=(Exception,),
    dont_autoretry_for=(Retry, InvalidJobMessage, ConfigurationError),
    max_retries=settings.INGESTION_MAX_ATTEMPTS - 1,
    retry_backoff=settings.INGESTION_RETRY_BASE_DELAY,
    retry_jitter=False,
    acks_late=True,
    ignore_result=True,
)
def run_job(self, kind: str, payload: Dict[str, Any]) -> None:
    """Run one queued job.

    Ingestion holds a per-file Redis lock so one file never has two runs
    in flight; a delivery that finds the lock taken is retried later.
    """
    job = job_from_message(kind, payload)
    logger.info(f"Running {kind} job (attempt {self.request.retries + 1}): {payload}")

    if not isinstance(job, IngestFileJob):
        run_async(dispatch(job))
        return

    lock = get_redis().lock(
        lock_name(job.file_id),
        timeout=settings.INGESTION_LOCK_TIMEOUT_SECONDS,
        blocking=False,
    )
    if not lock.acquire():
        logger.warning(f"File {job.file_id} is already being ingested, retrying later")
        raise self.retry(countdown=settings.INGESTION_RETRY_BASE_DELAY)

    try:
        run_async(dispatch(job))
    finally:
        try:
            lock.release()
        except redis.exceptions.LockError as e:
            logger.warning(f"Lock for file {job.file_id} expired before release: {e}")


def enqueue_job(job: Job) -> None:
    """Put a job on the ingestion queue."""
    run_job.apply_async(kwargs=job_to_message(job))
    logger.info(f"Enqueued {job.kind} job: {job}")
