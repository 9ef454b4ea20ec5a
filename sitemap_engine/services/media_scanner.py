"""
Discovery of images and videos on rendered pages
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from sitemap_engine.core.cache import KeyValueStore
from sitemap_engine.core.exceptions import PageRenderFailure
from sitemap_engine.models.sitemap_media import MediaType
from sitemap_engine.schemas.media import ImageAsset, VideoAsset
from sitemap_engine.services.page_renderer import PageRenderer, RenderContext
from sitemap_engine.services.sitemap_store import SitemapItemStore

logger = logging.getLogger(__name__)

PENDING_SCAN_KEY = "pending_media_scans"
SCAN_TASK_NAME = "sitemap_engine.tasks.scan_tasks.scan_page_for_media"

VIDEO_OBJECT_TYPE = "https://schema.org/VideoObject"

# schema.org itemprop -> VideoAsset field
_VIDEO_PROPERTY_FIELDS = {
    'embedUrl': 'player_loc',
    'uploadDate': 'publication_date',
    'thumbnailUrl': 'thumbnail_loc',
    'name': 'title',
    'contentUrl': 'loc',
    'title': 'title',
    'description': 'description',
    'loc': 'loc',
    'player_loc': 'player_loc',
    'thumbnail_loc': 'thumbnail_loc',
    'publication_date': 'publication_date',
}


class TaskQueue(Protocol):
    """Asynchronous job queue"""

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> None: ...


def extract_images(html: str, base_url: str) -> List[ImageAsset]:
    """
    Collect every <img> with a non-empty src, as absolute URLs

    Args:
        html: Page body
        base_url: Location of the page, relative sources resolve against it
    """
    soup = BeautifulSoup(html, "html.parser")

    images = []
    for img in soup.find_all('img'):
        src = (img.get('src') or '').strip()
        if not src:
            continue
        images.append(ImageAsset(loc=urljoin(base_url, src)))
    return images


def _parse_upload_date(value: str) -> Optional[datetime]:
    try:
        value = value.strip()
        if value.endswith('Z'):
            value = value[:-1] + '+00:00'
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning(f"Ignoring unparseable video upload date: {value}")
        return None


def extract_videos(html: str) -> List[VideoAsset]:
    """
    Collect schema.org VideoObject microdata blocks

    Only <meta itemprop content> tags directly under the VideoObject element
    are read; properties without a matching video field are ignored.
    """
    soup = BeautifulSoup(html, "html.parser")

    videos = []
    for element in soup.find_all(attrs={'itemtype': True}):
        if VIDEO_OBJECT_TYPE not in element.get('itemtype', ''):
            continue

        fields: Dict[str, Any] = {}
        for meta in element.find_all('meta', recursive=False):
            prop = meta.get('itemprop')
            content = meta.get('content')
            field_name = _VIDEO_PROPERTY_FIELDS.get(prop)
            if field_name is None or content is None:
                continue

            if field_name == 'publication_date':
                value = _parse_upload_date(content)
                if value is None:
                    continue
                fields[field_name] = value
            else:
                fields[field_name] = content

        videos.append(VideoAsset(**fields))
    return videos


class MediaScanJob:
    """
    Queues and runs media scans of sitemap items

    A location stays in the pending set from the moment its scan is queued
    until the scan finishes, so it is never queued twice at the same time.
    """

    def __init__(
        self,
        store: SitemapItemStore,
        pending: KeyValueStore,
        task_queue: Optional[TaskQueue],
        renderer: Optional[PageRenderer],
        images_enabled: bool = False,
        videos_enabled: bool = False,
    ):
        self.store = store
        self.pending = pending
        self.task_queue = task_queue
        self.renderer = renderer
        self.images_enabled = images_enabled
        self.videos_enabled = videos_enabled

    @property
    def enabled(self) -> bool:
        return self.images_enabled or self.videos_enabled

    def is_pending(self, loc: str) -> bool:
        return self.pending.has_member(PENDING_SCAN_KEY, loc)

    def request_scan(self, loc: str) -> bool:
        """
        Queue a scan of ``loc`` unless one is already pending

        Returns:
            True if a scan was queued
        """
        if not self.enabled:
            return False

        if self.task_queue is None:
            logger.warning(f"No task queue configured, not scanning {loc} for media")
            return False

        if not self.pending.add_member(PENDING_SCAN_KEY, loc):
            logger.debug(f"Media scan of {loc} already pending")
            return False

        try:
            self.task_queue.enqueue(SCAN_TASK_NAME, {'loc': loc})
        except Exception:
            # Never leave a location pending without a job behind it
            self.pending.remove_member(PENDING_SCAN_KEY, loc)
            raise

        logger.info(f"Queued media scan of {loc}")
        return True

    def execute(self, loc: str) -> bool:
        """
        Render ``loc`` and replace its items' media with what the page shows

        The page is rendered once, in the context of the first site listing
        it, and the media are synced onto every item at that location.
        Render failures abandon the scan without touching the items.

        Returns:
            True if the items' media were updated
        """
        try:
            items = self.store.list_by_loc(loc)
            if not items:
                logger.info(f"No sitemap item at {loc}, skipping media scan")
                return False

            try:
                result = self.render(loc, items[0].site_id)
            except PageRenderFailure as e:
                logger.warning(f"Abandoning media scan: {e}")
                return False

            images = extract_images(result.body, loc) if self.images_enabled else []
            videos = extract_videos(result.body) if self.videos_enabled else []

            for item in items:
                if self.images_enabled:
                    self.store.sync_media(item, images, MediaType.IMAGE)
                if self.videos_enabled:
                    self.store.sync_media(item, videos, MediaType.VIDEO)

            self.store.commit()

            logger.info(
                f"Media scan of {loc}: {len(images)} image(s), {len(videos)} video(s) "
                f"on {len(items)} item(s)"
            )
            return True

        except Exception:
            self.store.rollback()
            raise

        finally:
            self.pending.remove_member(PENDING_SCAN_KEY, loc)

    def render(self, loc: str, site_id: Optional[int] = None):
        """
        Render a location in its own context

        Raises:
            PageRenderFailure: If rendering raised or returned a non-200 status
        """
        if self.renderer is None:
            raise PageRenderFailure(loc, "No page renderer configured")

        context = RenderContext.for_loc(loc, site_id)
        try:
            result = self.renderer.render(context.path, context)
        except PageRenderFailure:
            raise
        except Exception as e:
            raise PageRenderFailure(loc, f"Render raised {type(e).__name__}: {e}")

        if not result.ok:
            raise PageRenderFailure(loc, f"Render returned status {result.status_code}", result.status_code)
        return result
