"""
Pydantic schema for the site definitions a sitemap is generated for
"""

from pydantic import BaseModel, Field
from typing import Optional


class SiteDefinition(BaseModel):
    """A site (or locale variant of a site) served by the content platform"""

    id: int = Field(..., description="Site definition identifier")
    code: str = Field(..., min_length=1, description="Short site code, used in cache keys")
    locale: Optional[str] = Field(None, description="Locale served by the site, e.g. en or pl")
    route_prefix: Optional[str] = Field(None, description="URL prefix of the site, e.g. /en")
    is_prefixed: bool = Field(False, description="Whether URLs of the site carry the route prefix")

    model_config = {"frozen": True}

    def attach_route_prefix(self, path: str) -> str:
        """
        Prefix a site-relative path with the site's route prefix

        Args:
            path: Path without a leading slash, e.g. ``blog/:slug``

        Returns:
            Path starting with ``/``
        """
        path = path.lstrip('/')
        if not self.is_prefixed or not self.route_prefix:
            return '/' + path

        prefix = '/' + self.route_prefix.strip('/')
        if not path:
            return prefix
        return f"{prefix}/{path}"
