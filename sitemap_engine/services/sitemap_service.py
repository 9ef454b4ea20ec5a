"""
Entry points for generating a site's sitemap documents
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from sitemap_engine.core.cache import KeyValueStore
from sitemap_engine.core.config import Settings, settings as default_settings
from sitemap_engine.core.events import EventEmitter
from sitemap_engine.models.sitemap_media import MediaType
from sitemap_engine.schemas.site import SiteDefinition
from sitemap_engine.services.catalogs import PageCatalog, StaticPageCatalog
from sitemap_engine.services.change_detector import ChangeDetector
from sitemap_engine.services.model_query import ModelQuery, SqlAlchemyModelQuery
from sitemap_engine.services.pages_generator import PagesGenerator, ScanRequester
from sitemap_engine.services.sitemap_store import SitemapItemStore
from sitemap_engine.services.url_pattern import UrlPatternEngine
from sitemap_engine.services.xml_generators import (
    AbstractSitemapGenerator,
    ImagesSitemapGenerator,
    IndexSitemapGenerator,
    PagesSitemapGenerator,
    VideosSitemapGenerator,
)

logger = logging.getLogger(__name__)

SITEMAP_FILE = "sitemap.xml"
IMAGES_SITEMAP_FILE = "sitemap-images.xml"
VIDEOS_SITEMAP_FILE = "sitemap-videos.xml"


@dataclass
class GenerationResult:
    """Outcome of a sitemap request: a full document or an error, never both"""
    ok: bool
    xml: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, xml: str) -> "GenerationResult":
        return cls(ok=True, xml=xml)

    @classmethod
    def failure(cls, error: str) -> "GenerationResult":
        return cls(ok=False, error=error)


class SitemapService:
    """
    Wires the generator, store and serializers around one database session

    Callers must not run ``generate_sitemap`` for the same site concurrently.
    """

    def __init__(
        self,
        session: Session,
        cache: KeyValueStore,
        page_catalog: PageCatalog,
        static_page_catalog: Optional[StaticPageCatalog] = None,
        model_query: Optional[ModelQuery] = None,
        scan_requester: Optional[ScanRequester] = None,
        events: Optional[EventEmitter] = None,
        settings: Settings = default_settings,
    ):
        self.session = session
        self.cache = cache
        self.page_catalog = page_catalog
        self.static_page_catalog = static_page_catalog
        self.model_query = model_query or SqlAlchemyModelQuery(session)
        self.scan_requester = scan_requester
        self.events = events or EventEmitter()
        self.settings = settings

        self.store = SitemapItemStore(session)
        self.change_detector = ChangeDetector(cache)
        self.url_patterns = UrlPatternEngine(settings.APP_URL)

    def make_generator(self, site: SiteDefinition) -> PagesGenerator:
        return PagesGenerator(
            site=site,
            store=self.store,
            change_detector=self.change_detector,
            url_patterns=self.url_patterns,
            model_query=self.model_query,
            page_catalog=self.page_catalog,
            static_page_catalog=self.static_page_catalog,
            scan_requester=self.scan_requester,
            events=self.events,
        )

    def generate_sitemap(self, site: SiteDefinition) -> GenerationResult:
        """
        Refresh the site's items and serialize the plain sitemap

        Returns:
            GenerationResult with the XML document, or the error that
            stopped generation
        """
        if not self.settings.ENABLE_SITEMAP:
            return GenerationResult.failure("Sitemap generation is disabled")

        generator = self.make_generator(site)

        def build() -> AbstractSitemapGenerator:
            return PagesSitemapGenerator(generator.refresh())

        # Rolled back writes must be regenerated on the next call
        return self._generate(site, "sitemap", build, on_failure=generator.forget_changes)

    def generate_image_sitemap(self, site: SiteDefinition) -> GenerationResult:
        """Serialize the image sitemap from the media found by past scans"""
        if not self.settings.ENABLE_IMAGES_SITEMAP:
            return GenerationResult.failure("Image sitemap generation is disabled")

        return self._generate(
            site,
            "image sitemap",
            lambda: ImagesSitemapGenerator(self.store.list_with_media(site, MediaType.IMAGE)),
        )

    def generate_video_sitemap(self, site: SiteDefinition) -> GenerationResult:
        """Serialize the video sitemap from the media found by past scans"""
        if not self.settings.ENABLE_VIDEOS_SITEMAP:
            return GenerationResult.failure("Video sitemap generation is disabled")

        return self._generate(
            site,
            "video sitemap",
            lambda: VideosSitemapGenerator(self.store.list_with_media(site, MediaType.VIDEO)),
        )

    def generate_index_sitemap(self, site: SiteDefinition) -> GenerationResult:
        """Serialize a sitemap index of the site's enabled documents"""
        if not self.settings.ENABLE_INDEX_SITEMAP:
            return GenerationResult.failure("Sitemap index generation is disabled")

        return self._generate(
            site,
            "sitemap index",
            lambda: IndexSitemapGenerator([(loc, None) for loc in self.document_locations(site)]),
        )

    def document_locations(self, site: SiteDefinition) -> List[str]:
        """Public locations of the site's enabled sitemap documents"""
        files: List[Tuple[bool, str]] = [
            (self.settings.ENABLE_SITEMAP, SITEMAP_FILE),
            (self.settings.ENABLE_IMAGES_SITEMAP, IMAGES_SITEMAP_FILE),
            (self.settings.ENABLE_VIDEOS_SITEMAP, VIDEOS_SITEMAP_FILE),
        ]
        app_url = self.settings.APP_URL.rstrip('/')
        return [app_url + site.attach_route_prefix(name) for enabled, name in files if enabled]

    def reset_change_cache(self) -> None:
        """Force every page to be re-resolved on the next refresh"""
        self.change_detector.reset()
        logger.info("Reset page content hash cache")

    def _generate(
        self,
        site: SiteDefinition,
        label: str,
        build: Callable[[], AbstractSitemapGenerator],
        on_failure: Optional[Callable[[], None]] = None,
    ) -> GenerationResult:
        try:
            xml = build().generate()
            self.store.commit()
        except Exception as e:
            self.store.rollback()
            if on_failure is not None:
                on_failure()
            logger.exception(f"Failed to generate {label} for site {site.code}: {e}")
            return GenerationResult.failure(str(e) or type(e).__name__)

        logger.info(f"Generated {label} for site {site.code}")
        return GenerationResult.success(xml)
