"""
Background tasks for scanning rendered pages for media
"""

import logging
from typing import Any, Dict, Optional

from celery import shared_task
from celery.exceptions import SoftTimeLimitExceeded
from sqlalchemy.orm import Session

from sitemap_engine.core.cache import KeyValueStore, get_default_store
from sitemap_engine.core.config import settings
from sitemap_engine.core.database import SessionLocal
from sitemap_engine.services.media_scanner import MediaScanJob, PENDING_SCAN_KEY, SCAN_TASK_NAME, TaskQueue
from sitemap_engine.services.page_renderer import HttpPageRenderer, PageRenderer
from sitemap_engine.services.sitemap_store import SitemapItemStore
from sitemap_engine.tasks.celery_app import CeleryTaskQueue

logger = logging.getLogger(__name__)


def build_media_scan_job(
    session: Session,
    pending: Optional[KeyValueStore] = None,
    task_queue: Optional[TaskQueue] = None,
    renderer: Optional[PageRenderer] = None,
) -> MediaScanJob:
    """
    Media scan job configured from settings

    Used by the task below and by callers that want ``request_scan`` to go
    through Celery.
    """
    return MediaScanJob(
        store=SitemapItemStore(session),
        pending=pending or get_default_store(),
        task_queue=task_queue or CeleryTaskQueue(),
        renderer=renderer or HttpPageRenderer(),
        images_enabled=settings.ENABLE_IMAGES_SITEMAP,
        videos_enabled=settings.ENABLE_VIDEOS_SITEMAP,
    )


@shared_task(
    bind=True,
    name=SCAN_TASK_NAME,
    soft_time_limit=settings.SCAN_TASK_SOFT_TIME_LIMIT,
    time_limit=settings.SCAN_TASK_TIME_LIMIT,
)
def scan_page_for_media(self, loc: str) -> Dict[str, Any]:
    """
    Scan one sitemap location for images and videos

    Failed renders are not retried; the next content change of the page
    queues a new scan.

    Args:
        loc: Absolute URL of the sitemap item

    Returns:
        Dict with scan results
    """
    db = SessionLocal()
    pending = get_default_store()

    try:
        job = build_media_scan_job(db, pending=pending)
        updated = job.execute(loc)
        return {'status': 'success' if updated else 'skipped', 'loc': loc}

    except SoftTimeLimitExceeded:
        logger.warning(f"Media scan of {loc} timed out, abandoning it")
        db.rollback()
        pending.remove_member(PENDING_SCAN_KEY, loc)
        return {'status': 'error', 'loc': loc, 'message': 'Render timed out'}

    except Exception as e:
        logger.error(f"Error scanning {loc} for media: {e}")
        return {'status': 'error', 'loc': loc, 'message': str(e)}

    finally:
        db.close()
