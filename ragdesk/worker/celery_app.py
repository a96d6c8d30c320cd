"""Celery app configuration."""

from celery import Celery, signals
from celery.schedules import crontab

from ragdesk.core.config import settings
from ragdesk.core.constants import INGESTION_QUEUE
from ragdesk.core.logging import setup_logging

celery_app = Celery(
    "ragdesk.worker",
    broker=settings.REDIS_URL,
    include=["ragdesk.worker.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_default_queue=INGESTION_QUEUE,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    worker_hijack_root_logger=False,
    beat_schedule={
        "sweep-abandoned-files": {
            "task": "ragdesk.run_job",
            "schedule": crontab(hour=0, minute=0),
            "kwargs": {
                "kind": "sweep_abandoned_files",
                "payload": {"older_than_hours": settings.FILE_RETENTION_HOURS},
            },
        },
    },
)


@signals.setup_logging.connect
def configure_worker_logging(**kwargs):
    setup_logging()
