"""
Database models package
"""

from .base import Base, BaseModel
from .sitemap_media import SitemapMedia, MediaType, MEDIA_FIELDS, sitemap_items_media
from .sitemap_item import SitemapItem, Changefreq

__all__ = [
    "Base", "BaseModel", "SitemapItem", "SitemapMedia", "sitemap_items_media",
    "MediaType", "MEDIA_FIELDS", "Changefreq"
]
