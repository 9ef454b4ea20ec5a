"""
Exception hierarchy for sitemap generation and media scanning
"""


class SitemapEngineError(Exception):
    """Base error for all sitemap engine operations"""
    pass


class MalformedParamDefinition(SitemapEngineError):
    """A page's URL parameter definition could not be parsed"""
    pass


class UnknownModelError(SitemapEngineError):
    """A page references a model class or scope that is not registered"""
    pass


class PageRenderFailure(SitemapEngineError):
    """Rendering a page for media scanning failed or returned a non-200 status"""

    def __init__(self, loc: str, message: str, status_code: int = None):
        super().__init__(f"{loc}: {message}")
        self.loc = loc
        self.status_code = status_code


class StoreIntegrityViolation(SitemapEngineError):
    """More than one sitemap item shares a location within a site"""
    pass


class GenerationError(SitemapEngineError):
    """Building a sitemap document failed"""
    pass
