"""
Pydantic schemas for the page definitions read from the theme and static page catalogs
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum

from sitemap_engine.models.sitemap_item import Changefreq


class PageKind(str, Enum):
    """Where a page definition comes from"""
    CMS = "cms"
    STATIC = "static"


class PageDefinition(BaseModel):
    """
    A page eligible for the sitemap

    CMS pages may bind a model class: the page then yields one sitemap item
    per model record, with URL parameters filled from ``model_params``
    (``slug:slug|category:category.slug``).
    """

    model_config = {"protected_namespaces": ()}

    base_file_name: str = Field(..., min_length=1, description="Stable identifier of the page file")
    url: str = Field(..., description="Route template, e.g. /blog/:category/:slug?")
    content: str = Field("", description="Raw page source, hashed for change detection")
    kind: PageKind = Field(PageKind.CMS, description="Catalog the page was read from")

    # Sitemap options
    enabled_in_sitemap: bool = Field(False, description="Whether the page is listed in the sitemap")
    locale_enabled_in_sitemap: Dict[str, bool] = Field(
        default_factory=dict,
        description="Per-locale override of enabled_in_sitemap"
    )
    locale_urls: Dict[str, str] = Field(default_factory=dict, description="Localized route templates")
    priority: Optional[float] = Field(None, ge=0, le=1, description="Sitemap priority")
    changefreq: Optional[Changefreq] = Field(None, description="Sitemap change frequency")

    # Model binding
    model_class: Optional[str] = Field(None, description="Model class name or dotted import path")
    model_scope: Optional[str] = Field(None, description="Scope definition, e.g. published:yesterday")
    model_params: Optional[str] = Field(None, description="URL parameter definitions, pipe delimited")
    use_updated_at: bool = Field(False, description="Use the model's updated_at as lastmod")

    # Modification times
    lastmod: Optional[datetime] = Field(None, description="Explicit last modification date")
    mtime: Optional[float] = Field(None, description="File modification time (unix timestamp)")

    @field_validator('changefreq', mode='before')
    @classmethod
    def validate_changefreq(cls, v):
        """Treat blank change frequencies as unset"""
        if v == "":
            return None
        return v.lower() if isinstance(v, str) else v

    @field_validator('priority', mode='before')
    @classmethod
    def validate_priority(cls, v):
        """Treat blank priorities as unset"""
        if v == "":
            return None
        return v

    def is_enabled_for_locale(self, locale: Optional[str]) -> bool:
        """
        Check if the page is enabled in the sitemap of a site with this locale

        Falls back to ``enabled_in_sitemap`` when the page has no override for
        the locale.
        """
        if locale is not None and locale in self.locale_enabled_in_sitemap:
            return bool(self.locale_enabled_in_sitemap[locale])
        return bool(self.enabled_in_sitemap)

    def get_lastmod(self) -> datetime:
        """
        Page's lastmod, then its file mtime, then the current time
        """
        if self.lastmod is not None:
            return self.lastmod
        if self.mtime is not None:
            return datetime.fromtimestamp(self.mtime, tz=timezone.utc)
        return datetime.now(timezone.utc)


class StaticPageDefinition(BaseModel):
    """A page from the static pages catalog, configured through its view bag"""

    file_name: str = Field(..., min_length=1, description="Page file name")
    url: str = Field(..., description="Page URL")
    content: str = Field("", description="Raw page source, hashed for change detection")
    mtime: Optional[float] = Field(None, description="File modification time (unix timestamp)")
    view_bag: Dict[str, Any] = Field(default_factory=dict, description="Author-supplied page options")

    def to_page_definition(self) -> PageDefinition:
        """
        Normalize into the page definition consumed by the generator
        """
        view_bag = self.view_bag
        return PageDefinition(
            base_file_name=self.file_name,
            url=self.url,
            content=self.content,
            kind=PageKind.STATIC,
            enabled_in_sitemap=_truthy(view_bag.get('enabled_in_sitemap')),
            locale_urls=view_bag.get('localeUrl') or {},
            priority=view_bag.get('priority'),
            changefreq=view_bag.get('changefreq'),
            lastmod=view_bag.get('lastmod') or None,
            mtime=self.mtime,
        )


def _truthy(value: Any) -> bool:
    """View bag flags arrive as strings from page files"""
    if isinstance(value, str):
        return value.strip().lower() not in ('', '0', 'false', 'no', 'off')
    return bool(value)
