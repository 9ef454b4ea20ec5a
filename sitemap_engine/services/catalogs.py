"""
Page catalogs the generator reads page definitions from
"""

from typing import Iterable, List, Protocol

from sitemap_engine.schemas.page import PageDefinition, StaticPageDefinition


class PageCatalog(Protocol):
    """Source of CMS page definitions (the theme's pages)"""

    def list_pages(self) -> Iterable[PageDefinition]: ...


class StaticPageCatalog(Protocol):
    """Source of static page definitions"""

    def list_pages(self) -> Iterable[StaticPageDefinition]: ...


class ListPageCatalog:
    """Catalog over an in-memory list, for embedding applications that load pages themselves"""

    def __init__(self, pages: Iterable = ()):
        self.pages: List = list(pages)

    def add(self, page) -> None:
        self.pages.append(page)

    def remove(self, name: str) -> None:
        """Remove a page by base file name (CMS) or file name (static)"""
        self.pages = [
            p for p in self.pages
            if getattr(p, 'base_file_name', None) != name and getattr(p, 'file_name', None) != name
        ]

    def list_pages(self) -> List:
        return list(self.pages)
