"""
Synthetic page rendering used by media scans
"""

import httpx
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol
from urllib.parse import urlsplit

from sitemap_engine.core.config import settings
from sitemap_engine.core.exceptions import PageRenderFailure

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """
    Request context of a single synthetic render

    Built fresh for every scan and passed explicitly, never shared between
    concurrent renders.
    """
    loc: str
    path: str
    site_id: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    origin: Optional[str] = None

    @classmethod
    def for_loc(cls, loc: str, site_id: Optional[int] = None) -> "RenderContext":
        parts = urlsplit(loc)
        path = parts.path or '/'
        if parts.query:
            path = f"{path}?{parts.query}"
        origin = f"{parts.scheme}://{parts.netloc}" if parts.netloc else None
        headers = {'User-Agent': 'sitemap-engine media scanner'}
        if parts.netloc:
            headers['Host'] = parts.netloc
        return cls(loc=loc, path=path, site_id=site_id, headers=headers, origin=origin)


@dataclass
class RenderResult:
    status_code: int
    body: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class PageRenderer(Protocol):
    """Renders a page path to a status code and HTML body"""

    def render(self, path: str, context: RenderContext) -> RenderResult: ...


class HttpPageRenderer:
    """
    Renders pages by requesting them from the content server

    Every call opens its own client, so cookies and connection state never
    leak from one scan into another.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the renderer

        Args:
            base_url: Server to render against, defaults to SCAN_RENDER_URL
                and then to the origin of each rendered location
            timeout: Request timeout in seconds
            transport: Optional httpx transport, e.g. a WSGI transport for an
                in-process content server
        """
        self.base_url = base_url if base_url is not None else settings.SCAN_RENDER_URL
        self.timeout = timeout if timeout is not None else settings.SCAN_RENDER_TIMEOUT
        self.transport = transport

    def render(self, path: str, context: RenderContext) -> RenderResult:
        base_url = self.base_url or context.origin
        if not base_url:
            raise PageRenderFailure(context.loc, "No server to render against")

        url = base_url.rstrip('/') + '/' + path.lstrip('/')

        try:
            with httpx.Client(
                timeout=self.timeout,
                transport=self.transport,
                headers=context.headers,
                follow_redirects=False,
            ) as client:
                response = client.get(url)
        except httpx.TimeoutException as e:
            raise PageRenderFailure(context.loc, f"Render timed out: {e}")
        except httpx.HTTPError as e:
            raise PageRenderFailure(context.loc, f"Render failed: {e}")

        logger.debug(f"Rendered {url} with status {response.status_code}")
        return RenderResult(status_code=response.status_code, body=response.text)
