"""
Pydantic schemas for sites, pages and discovered media
"""

from .site import SiteDefinition
from .page import PageDefinition, PageKind, StaticPageDefinition
from .media import MediaAsset, ImageAsset, VideoAsset

__all__ = [
    "SiteDefinition",
    "PageDefinition", "PageKind", "StaticPageDefinition",
    "MediaAsset", "ImageAsset", "VideoAsset"
]
