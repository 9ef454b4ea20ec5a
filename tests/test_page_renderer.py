"""
Tests for the HTTP page renderer
"""

import httpx
import pytest

from sitemap_engine.core.exceptions import PageRenderFailure
from sitemap_engine.services.page_renderer import HttpPageRenderer, RenderContext


def test_context_from_loc():
    context = RenderContext.for_loc("https://example.com/blog/post?page=2", site_id=3)

    assert context.path == "/blog/post?page=2"
    assert context.origin == "https://example.com"
    assert context.site_id == 3
    assert context.headers["Host"] == "example.com"


def test_context_for_root():
    assert RenderContext.for_loc("https://example.com").path == "/"


def test_renders_against_origin_of_loc():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, text="<img src='/a.png'>")

    renderer = HttpPageRenderer(base_url="", transport=httpx.MockTransport(handler))
    context = RenderContext.for_loc("https://example.com/blog/post")

    result = renderer.render(context.path, context)

    assert result.ok
    assert result.body == "<img src='/a.png'>"
    assert str(requests[0].url) == "https://example.com/blog/post"
    assert requests[0].headers["Host"] == "example.com"


def test_renders_against_configured_server():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="ok")

    renderer = HttpPageRenderer(base_url="http://content:8000/", transport=httpx.MockTransport(handler))
    context = RenderContext.for_loc("https://example.com/blog/post")

    renderer.render(context.path, context)

    assert seen == ["http://content:8000/blog/post"]


def test_non_200_is_returned_not_raised():
    renderer = HttpPageRenderer(
        base_url="",
        transport=httpx.MockTransport(lambda request: httpx.Response(503, text="down")),
    )
    context = RenderContext.for_loc("https://example.com/")

    result = renderer.render(context.path, context)

    assert result.status_code == 503
    assert not result.ok


def test_timeout_becomes_render_failure():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    renderer = HttpPageRenderer(base_url="", transport=httpx.MockTransport(handler))
    context = RenderContext.for_loc("https://example.com/slow")

    with pytest.raises(PageRenderFailure, match="timed out"):
        renderer.render(context.path, context)


def test_connection_error_becomes_render_failure():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    renderer = HttpPageRenderer(base_url="", transport=httpx.MockTransport(handler))
    context = RenderContext.for_loc("https://example.com/")

    with pytest.raises(PageRenderFailure) as exc_info:
        renderer.render(context.path, context)
    assert exc_info.value.loc == "https://example.com/"
