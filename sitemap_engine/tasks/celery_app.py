"""
Celery application configuration for background tasks
"""

import logging
from typing import Any, Dict

from celery import Celery
from celery.signals import setup_logging

from sitemap_engine.core.config import settings
from sitemap_engine.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

# Create Celery app instance
celery_app = Celery(
    'sitemap_engine',
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=['sitemap_engine.tasks.scan_tasks'],
)

# Load configuration
celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.SCAN_TASK_TIME_LIMIT,
    task_soft_time_limit=settings.SCAN_TASK_SOFT_TIME_LIMIT,
)


@setup_logging.connect
def on_setup_logging(**kwargs):
    """Use the application log format in workers instead of Celery's own"""
    configure_logging()


class CeleryTaskQueue:
    """Task queue that sends jobs to Celery workers by task name"""

    def __init__(self, app: Celery = None):
        self.app = app or celery_app

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> None:
        result = self.app.send_task(job_name, kwargs=payload)
        logger.debug(f"Sent {job_name} as task {result.id}")
