"""
Regeneration of a site's sitemap items from CMS and static pages
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Tuple

from pydantic import ValidationError

from sitemap_engine.core.events import (
    EventEmitter,
    BEFORE_CLEARING_SITEMAP_ITEMS,
    PAGE_REFRESHED,
    SITEMAP_ITEMS,
)
from sitemap_engine.core.exceptions import SitemapEngineError
from sitemap_engine.models.sitemap_item import SitemapItem
from sitemap_engine.schemas.page import PageDefinition
from sitemap_engine.schemas.site import SiteDefinition
from sitemap_engine.services.catalogs import PageCatalog, StaticPageCatalog
from sitemap_engine.services.change_detector import ChangeDetector
from sitemap_engine.services.model_query import ModelQuery
from sitemap_engine.services.sitemap_store import SitemapItemStore
from sitemap_engine.services.url_pattern import UrlPatternEngine

logger = logging.getLogger(__name__)


class ScanRequester(Protocol):
    def request_scan(self, loc: str) -> None: ...


@dataclass(frozen=True)
class PlannedItem:
    """A sitemap item resolved for a page, not yet written"""

    loc: str
    lastmod: Optional[datetime]
    priority: Optional[float]
    changefreq: Optional[str]

    def attrs(self) -> Dict[str, Any]:
        return {
            'lastmod': self.lastmod,
            'priority': self.priority,
            'changefreq': self.changefreq,
        }


def is_disabled_record(model: Any) -> bool:
    """
    Check if a model record opted out of the sitemap through its SEO options
    """
    options = getattr(model, 'seo_options', None)
    if options is None and isinstance(model, dict):
        options = model.get('seo_options')
    if not options:
        return False

    value = options.get('enabled_in_sitemap')
    if value is None:
        return False
    return str(value).strip().lower() in ('0', 'false')


class PagesGenerator:
    """
    Refreshes the stored sitemap items of one site

    Only pages whose source changed since the previous run are re-resolved;
    unchanged pages keep their items. Runs for the same site must not overlap.
    """

    def __init__(
        self,
        site: SiteDefinition,
        store: SitemapItemStore,
        change_detector: ChangeDetector,
        url_patterns: UrlPatternEngine,
        model_query: ModelQuery,
        page_catalog: PageCatalog,
        static_page_catalog: Optional[StaticPageCatalog] = None,
        scan_requester: Optional[ScanRequester] = None,
        events: Optional[EventEmitter] = None,
    ):
        self.site = site
        self.store = store
        self.change_detector = change_detector
        self.url_patterns = url_patterns
        self.model_query = model_query
        self.page_catalog = page_catalog
        self.static_page_catalog = static_page_catalog
        self.scan_requester = scan_requester
        self.events = events or EventEmitter()

        # Pages whose new hash the current run committed
        self.changed_pages: List[str] = []
        # Static pages whose options could not be read, keyed out of reconciliation
        self.invalid_static_pages: List[str] = []

    def get_enabled_pages(self) -> List[PageDefinition]:
        """
        Pages listed in this site's sitemap

        CMS pages come first, by descending priority, followed by static
        pages in catalog order. Static pages with invalid view bag options
        are logged and left out.
        """
        cms_pages = [
            page for page in self.page_catalog.list_pages()
            if page.is_enabled_for_locale(self.site.locale)
        ]
        cms_pages.sort(key=lambda page: page.priority or 0.0, reverse=True)

        static_pages: List[PageDefinition] = []
        self.invalid_static_pages = []
        if self.static_page_catalog is not None:
            for static_page in self.static_page_catalog.list_pages():
                try:
                    page = static_page.to_page_definition()
                except ValidationError as e:
                    logger.error(f"Skipping static page {static_page.file_name} for site {self.site.code}: {e}")
                    self.invalid_static_pages.append(static_page.file_name)
                    continue
                if page.enabled_in_sitemap:
                    static_pages.append(page)

        return cms_pages + static_pages

    def forget_changes(self) -> None:
        """
        Drop the hashes committed by the current run so its pages are retried

        Called when the run's writes are rolled back.
        """
        for base_file_name in self.changed_pages:
            self.change_detector.forget(self.site, base_file_name)
        if self.changed_pages:
            logger.info(f"Forgot {len(self.changed_pages)} page hash(es) of site {self.site.code}")
        self.changed_pages = []

    def refresh(self) -> List[SitemapItem]:
        """
        Bring the site's sitemap items up to date

        Returns:
            Enabled items of the site, after the ``sitemap_items`` hook
        """
        self.changed_pages = []
        try:
            pages, locs_to_scan, failed = self._refresh_pages()
        except Exception:
            self.forget_changes()
            raise

        if self.scan_requester is not None:
            for loc in locs_to_scan:
                self.scan_requester.request_scan(loc)

        self.store.delete_orphaned_media()

        sitemap_items = self.store.list_enabled(self.site)
        self.events.fire(SITEMAP_ITEMS, sitemap_items)

        logger.info(
            f"Refreshed sitemap of site {self.site.code}: {len(pages)} page(s), "
            f"{len(locs_to_scan)} item(s) updated, {failed} failed"
        )

        return sitemap_items

    def _refresh_pages(self) -> Tuple[List[PageDefinition], List[str], int]:
        """Re-resolve changed pages, reconcile and commit"""
        pages = self.get_enabled_pages()

        # Invalid static pages keep their items until they are fixed or removed
        base_file_names_to_leave: List[str] = list(self.invalid_static_pages)
        locs_to_scan: List[str] = []
        failed = len(self.invalid_static_pages)

        for page in pages:
            base_file_names_to_leave.append(page.base_file_name)

            if not self.change_detector.has_changed(self.site, page.base_file_name, page.content):
                continue
            self.changed_pages.append(page.base_file_name)

            try:
                planned = self.plan_items(page)
            except SitemapEngineError as e:
                failed += 1
                logger.error(f"Skipping page {page.base_file_name} for site {self.site.code}: {e}")
                # Retry the page on the next run
                self.change_detector.forget(self.site, page.base_file_name)
                continue
            except Exception as e:
                failed += 1
                logger.exception(f"Unexpected error resolving page {page.base_file_name}: {e}")
                # Retry the page on the next run
                self.change_detector.forget(self.site, page.base_file_name)
                continue

            items = self.store_page_items(page, planned)
            locs_to_scan.extend(item.loc for item in items)

        self.events.fire(BEFORE_CLEARING_SITEMAP_ITEMS, base_file_names_to_leave)

        removed = self.store.reconcile(self.site, base_file_names_to_leave)
        if removed:
            logger.info(f"Removed {removed} sitemap item(s) of removed pages from site {self.site.code}")

        # Scan jobs look items up in their own session
        self.store.commit()

        return pages, locs_to_scan, failed

    def refresh_page(self, page: PageDefinition) -> List[SitemapItem]:
        """
        Re-resolve and store the items of a single page

        Every URL of the page is resolved before anything is written, so a
        failure leaves the page's stored items as they were.
        """
        return self.store_page_items(page, self.plan_items(page))

    def store_page_items(self, page: PageDefinition, planned: List[PlannedItem]) -> List[SitemapItem]:
        """Upsert the planned items of a page and drop its stale ones"""
        items = [
            self.store.upsert_for_page(self.site, page.base_file_name, p.loc, p.attrs())
            for p in planned
        ]

        # Drop items of records that disappeared from the model's data set
        self.store.reconcile_for_single_page(
            self.site,
            page.base_file_name,
            [item.id for item in items],
        )

        self.events.fire(PAGE_REFRESHED, page, items)

        return items

    def plan_items(self, page: PageDefinition) -> List[PlannedItem]:
        """
        Resolve the sitemap entries a page produces

        A page bound to a model yields one entry per record that is not
        disabled; any other page yields a single entry.
        """
        pattern = self.url_patterns.build_pattern(page, self.site)
        changefreq = page.changefreq.value if page.changefreq else None
        page_lastmod = page.get_lastmod()

        if not page.model_class or not self.model_query.has_model(page.model_class):
            if page.model_class:
                logger.warning(
                    f"Page {page.base_file_name} references unknown model {page.model_class}, "
                    f"listing it as a single URL"
                )
            return [PlannedItem(
                loc=self.url_patterns.fill_pattern(pattern),
                lastmod=page_lastmod,
                priority=page.priority,
                changefreq=changefreq,
            )]

        planned: Dict[str, PlannedItem] = {}
        for model in self.model_query.fetch(page.model_class, page.model_scope):
            if is_disabled_record(model):
                continue

            loc = self.url_patterns.resolve(pattern, page.model_params, model)

            lastmod = page_lastmod
            updated_at = getattr(model, 'updated_at', None)
            if page.use_updated_at and updated_at is not None:
                lastmod = updated_at

            # Records resolving to the same URL collapse into one entry
            planned[loc] = PlannedItem(
                loc=loc,
                lastmod=lastmod,
                priority=page.priority,
                changefreq=changefreq,
            )

        return list(planned.values())
