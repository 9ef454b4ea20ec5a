"""
Repository of sitemap items and their media, scoped per site
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session, selectinload

from sitemap_engine.core.exceptions import StoreIntegrityViolation
from sitemap_engine.models.sitemap_item import SitemapItem
from sitemap_engine.models.sitemap_media import SitemapMedia, MediaType, media_loc
from sitemap_engine.schemas.media import MediaAsset
from sitemap_engine.schemas.site import SiteDefinition

logger = logging.getLogger(__name__)

# Attributes overwritten on every upsert
UPSERT_ATTRIBUTES = ('lastmod', 'priority', 'changefreq')


class SitemapItemStore:
    """
    Persists sitemap items through a SQLAlchemy session

    The store flushes but never commits on its own; ``commit`` is called by
    the generator and the scan job at their consistency points.
    """

    def __init__(self, session: Session):
        self.session = session

    def _site_query(self, site: SiteDefinition):
        return self.session.query(SitemapItem).filter(SitemapItem.site_id == site.id)

    def find_by_loc(self, site: SiteDefinition, loc: str) -> Optional[SitemapItem]:
        """Get the item of a site with the given location"""
        items = self._site_query(site).filter(SitemapItem.loc == loc).all()
        if len(items) > 1:
            raise StoreIntegrityViolation(f"{len(items)} sitemap items share loc {loc} in site {site.code}")
        return items[0] if items else None

    def list_by_loc(self, loc: str) -> List[SitemapItem]:
        """Get every item with the given location, whatever its site"""
        return self.session.query(SitemapItem).filter(SitemapItem.loc == loc).order_by(SitemapItem.site_id).all()

    def upsert_for_page(
        self,
        site: SiteDefinition,
        base_file_name: str,
        loc: str,
        attrs: Optional[Dict[str, Any]] = None,
    ) -> SitemapItem:
        """
        Create or update the item of a site at ``loc``

        ``lastmod``, ``priority`` and ``changefreq`` are replaced as a whole:
        attributes missing from ``attrs`` are cleared.

        Args:
            site: Owning site
            base_file_name: Page that produced the item
            loc: Absolute URL of the item
            attrs: lastmod, priority and changefreq values

        Returns:
            The saved item, flushed so it has an id
        """
        attrs = attrs or {}
        item = self.find_by_loc(site, loc)
        if item is None:
            item = SitemapItem(loc=loc, site_id=site.id, base_file_name=base_file_name)
            self.session.add(item)

        for attribute in UPSERT_ATTRIBUTES:
            setattr(item, attribute, attrs.get(attribute))

        item.base_file_name = base_file_name
        item.site_id = site.id

        self.session.flush()
        return item

    def reconcile(self, site: SiteDefinition, base_file_names_in_use: Iterable[str]) -> int:
        """
        Delete items of the site whose page is no longer in use

        Returns:
            Number of deleted items
        """
        names = set(base_file_names_in_use)
        query = self._site_query(site)
        if names:
            query = query.filter(SitemapItem.base_file_name.notin_(names))

        return self._delete_all(query.all())

    def reconcile_for_single_page(
        self,
        site: SiteDefinition,
        base_file_name: str,
        ids_to_keep: Iterable[Any],
    ) -> int:
        """
        Delete items of one page that the latest refresh did not produce,
        for example when a record behind a listing page was removed

        Returns:
            Number of deleted items
        """
        ids = set(ids_to_keep)
        query = self._site_query(site).filter(SitemapItem.base_file_name == base_file_name)
        if ids:
            query = query.filter(SitemapItem.id.notin_(ids))

        return self._delete_all(query.all())

    def list_enabled(self, site: SiteDefinition) -> List[SitemapItem]:
        """All enabled items of a site"""
        return (
            self._site_query(site)
            .filter(SitemapItem.enabled.is_(True))
            .order_by(SitemapItem.created_at, SitemapItem.loc)
            .all()
        )

    def list_with_media(self, site: SiteDefinition, media_type: MediaType) -> List[SitemapItem]:
        """Enabled items of a site that have at least one media of the given type"""
        media_type = MediaType(media_type)
        return (
            self._site_query(site)
            .filter(SitemapItem.enabled.is_(True))
            .filter(SitemapItem.media.any(SitemapMedia.type == media_type.value))
            .options(selectinload(SitemapItem.media))
            .order_by(SitemapItem.created_at, SitemapItem.loc)
            .all()
        )

    def set_enabled(self, site: SiteDefinition, loc: str, enabled: bool) -> Optional[SitemapItem]:
        """Enable or disable the item at ``loc``"""
        item = self.find_by_loc(site, loc)
        if item is not None:
            item.enabled = enabled
            self.session.flush()
        return item

    def sync_media(self, item: SitemapItem, assets: Sequence[MediaAsset], media_type: MediaType) -> None:
        """
        Replace the item's media of one type

        Media of the other type are left untouched. A media row with the same
        type and location is reused and its fields refreshed.
        """
        media_type = MediaType(media_type)

        kept = [m for m in item.media if m.type != media_type.value]
        synced: List[SitemapMedia] = []
        seen = set()

        for asset in assets:
            if asset.media_type != media_type:
                continue

            data = asset.to_data()
            loc = media_loc(media_type, data)
            if loc is not None:
                if loc in seen:
                    continue
                seen.add(loc)

            media = self._find_media(media_type, loc)
            if media is None:
                media = SitemapMedia(type=media_type.value, loc=loc, data=data)
                self.session.add(media)
            else:
                media.data = data
            synced.append(media)

        item.media = kept + synced
        self.session.flush()

        logger.debug(f"Synced {len(synced)} {media_type.value}(s) for {item.loc}")

    def delete_orphaned_media(self) -> int:
        """
        Delete media no longer attached to any item

        Returns:
            Number of deleted media
        """
        orphans = self.session.query(SitemapMedia).filter(~SitemapMedia.items.any()).all()
        for media in orphans:
            self.session.delete(media)
        self.session.flush()

        if orphans:
            logger.info(f"Deleted {len(orphans)} orphaned sitemap media")
        return len(orphans)

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    def _find_media(self, media_type: MediaType, loc: Optional[str]) -> Optional[SitemapMedia]:
        if loc is None:
            return None
        return (
            self.session.query(SitemapMedia)
            .filter(SitemapMedia.type == media_type.value, SitemapMedia.loc == loc)
            .first()
        )

    def _delete_all(self, items: List[SitemapItem]) -> int:
        for item in items:
            self.session.delete(item)
        self.session.flush()
        return len(items)
