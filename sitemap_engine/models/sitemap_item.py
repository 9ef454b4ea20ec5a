"""
SitemapItem model - one <url> entry of a site's sitemap
"""

from sqlalchemy import Column, String, Boolean, DateTime, Float, Integer, Index
from sqlalchemy.orm import relationship, validates
from typing import List, Optional
from enum import Enum

from sitemap_engine.models.base import BaseModel
from sitemap_engine.models.sitemap_media import SitemapMedia, sitemap_items_media


class Changefreq(str, Enum):
    """Sitemap protocol change frequency hints"""
    ALWAYS = "always"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    NEVER = "never"


class SitemapItem(BaseModel):
    """
    Sitemap entry produced from a CMS or static page

    ``base_file_name`` points back at the page that produced the entry, so a
    listing page bound to a model yields many items sharing one base file name.
    """
    __tablename__ = "sitemap_items"

    site_id = Column(
        Integer,
        nullable=False,
        index=True,
        comment="Owning site definition"
    )

    base_file_name = Column(
        String(255),
        nullable=False,
        index=True,
        comment="Identifier of the source page, used for reconciliation"
    )

    loc = Column(
        String(2048),
        nullable=False,
        comment="Absolute URL of the entry"
    )

    lastmod = Column(
        DateTime(timezone=True),
        nullable=True,
        comment="Last modification of the page or its model"
    )

    changefreq = Column(
        String(10),
        nullable=True,
        comment="Change frequency hint (always, hourly, ..., never)"
    )

    priority = Column(
        Float,
        nullable=True,
        comment="Priority relative to other URLs of the site (0.0 to 1.0)"
    )

    enabled = Column(
        Boolean,
        default=True,
        nullable=False,
        index=True,
        comment="Whether the entry is listed in generated sitemaps"
    )

    media = relationship(
        SitemapMedia,
        secondary=sitemap_items_media,
        back_populates="items",
    )

    __table_args__ = (
        Index('ix_sitemap_items_site_loc', 'site_id', 'loc', unique=True),
        {"comment": "Cached sitemap entries per site"}
    )

    @validates('changefreq')
    def validate_changefreq(self, key: str, changefreq: Optional[str]) -> Optional[str]:
        """Validate change frequency against the sitemap protocol values"""
        if changefreq is None or changefreq == "":
            return None
        if isinstance(changefreq, Changefreq):
            return changefreq.value
        valid = [c.value for c in Changefreq]
        if changefreq.lower() not in valid:
            raise ValueError(f"Change frequency must be one of: {', '.join(valid)}")
        return changefreq.lower()

    @validates('priority')
    def validate_priority(self, key: str, priority: Optional[float]) -> Optional[float]:
        """Validate priority is between 0 and 1"""
        if priority is None or priority == "":
            return None
        priority = float(priority)
        if priority < 0 or priority > 1:
            raise ValueError("Priority must be between 0.0 and 1.0")
        return priority

    @property
    def images(self) -> List[SitemapMedia]:
        """Image media attached to this item"""
        return [m for m in self.media if m.is_image]

    @property
    def videos(self) -> List[SitemapMedia]:
        """Video media attached to this item"""
        return [m for m in self.media if m.is_video]

    def __repr__(self) -> str:
        return f"<SitemapItem(site={self.site_id}, loc={self.loc})>"
