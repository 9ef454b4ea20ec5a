"""
Media assets (images and videos) discovered on pages listed in the sitemap
"""

from sqlalchemy import Column, ForeignKey, JSON, String, Table, Uuid
from sqlalchemy.orm import relationship, validates
from typing import Any, Dict, Optional
from enum import Enum

from sitemap_engine.models.base import Base, BaseModel


class MediaType(str, Enum):
    """Kinds of media that can be attached to a sitemap item"""
    IMAGE = "image"
    VIDEO = "video"


# Fields meaningful for each media type, in serialization order
MEDIA_FIELDS = {
    MediaType.IMAGE: ("loc",),
    MediaType.VIDEO: (
        "thumbnail_loc",
        "title",
        "description",
        "loc",
        "player_loc",
        "publication_date",
    ),
}


sitemap_items_media = Table(
    "sitemap_items_media",
    Base.metadata,
    Column("sitemap_item_id", Uuid(as_uuid=True), ForeignKey("sitemap_items.id", ondelete="CASCADE"), primary_key=True),
    Column("sitemap_media_id", Uuid(as_uuid=True), ForeignKey("sitemap_media.id", ondelete="CASCADE"), primary_key=True),
    comment="Many-to-many association between sitemap items and media",
)


class SitemapMedia(BaseModel):
    """
    A single image or video referenced by one or more sitemap items
    """
    __tablename__ = "sitemap_media"

    type = Column(
        String(10),
        nullable=False,
        index=True,
        comment="Media type discriminator (image, video)"
    )

    loc = Column(
        String(2048),
        nullable=True,
        index=True,
        comment="Image location or video content location, used to reuse rows"
    )

    data = Column(
        JSON,
        default=lambda: {},
        nullable=False,
        comment="Type-specific fields (title, player_loc, thumbnail_loc, ...)"
    )

    items = relationship("SitemapItem", secondary=sitemap_items_media, back_populates="media")

    @validates('type')
    def validate_type(self, key: str, media_type: str) -> str:
        """Validate media type"""
        return MediaType(media_type).value

    def get_field(self, name: str, default: Any = None) -> Any:
        """
        Get one type-specific field from the data blob
        """
        if not self.data:
            return default
        return self.data.get(name, default)

    def present_fields(self) -> Dict[str, Any]:
        """
        Fields of this media's type that carry a value, in serialization order
        """
        fields = MEDIA_FIELDS[MediaType(self.type)]
        return {name: self.data[name] for name in fields if self.data and self.data.get(name)}

    @property
    def is_image(self) -> bool:
        return self.type == MediaType.IMAGE.value

    @property
    def is_video(self) -> bool:
        return self.type == MediaType.VIDEO.value

    def __repr__(self) -> str:
        return f"<SitemapMedia(type={self.type}, loc={self.loc})>"


def media_loc(media_type: MediaType, data: Dict[str, Any]) -> Optional[str]:
    """
    Location used to identify a media row for reuse
    """
    if media_type == MediaType.VIDEO:
        return data.get("loc") or data.get("player_loc")
    return data.get("loc")
