"""
Pydantic schemas for media discovered while scanning rendered pages
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime

from sitemap_engine.models.sitemap_media import MediaType


class MediaAsset(BaseModel):
    """Base media schema"""

    media_type: MediaType

    def to_data(self) -> Dict[str, Any]:
        """
        Fields with a value, JSON-ready, for the media's data blob
        """
        return self.model_dump(mode='json', exclude_none=True, exclude={'media_type'})


class ImageAsset(MediaAsset):
    """An <img> found on a page"""

    media_type: MediaType = MediaType.IMAGE
    loc: str = Field(..., min_length=1, description="Absolute image URL")


class VideoAsset(MediaAsset):
    """A schema.org VideoObject found on a page"""

    media_type: MediaType = MediaType.VIDEO
    title: Optional[str] = Field(None, description="Video title")
    description: Optional[str] = Field(None, description="Video description")
    loc: Optional[str] = Field(None, description="Video content URL")
    player_loc: Optional[str] = Field(None, description="Embeddable player URL")
    thumbnail_loc: Optional[str] = Field(None, description="Thumbnail URL")
    publication_date: Optional[datetime] = Field(None, description="Upload date")
