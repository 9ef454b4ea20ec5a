"""
Shared fixtures: in-memory database, sites, fakes for the queue and renderer
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

from sitemap_engine.core.cache import InMemoryKeyValueStore
from sitemap_engine.core.database import create_tables, make_engine
from sitemap_engine.core.events import EventEmitter
from sitemap_engine.schemas.page import PageDefinition
from sitemap_engine.schemas.site import SiteDefinition
from sitemap_engine.services.catalogs import ListPageCatalog
from sitemap_engine.services.change_detector import ChangeDetector
from sitemap_engine.services.model_query import SqlAlchemyModelQuery
from sitemap_engine.services.page_renderer import RenderContext, RenderResult
from sitemap_engine.services.pages_generator import PagesGenerator
from sitemap_engine.services.sitemap_store import SitemapItemStore
from sitemap_engine.services.url_pattern import UrlPatternEngine

APP_URL = "https://example.com"

# Content models of the embedding application, kept apart from the sitemap tables
ContentBase = declarative_base()


class Category(ContentBase):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    slug = Column(String(100), nullable=False)

    articles = relationship("Article", back_populates="category")


class Article(ContentBase):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True)
    slug = Column(String(100), nullable=False)
    published = Column(Boolean, default=True, nullable=False)
    seo_options = Column(JSON, nullable=True)
    updated_at = Column(DateTime, nullable=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)

    category = relationship(Category, back_populates="articles")

    @classmethod
    def scope_published(cls, query, parameter=None):
        return query.filter(cls.published.is_(True))


class FakeTaskQueue:
    """Records enqueued jobs instead of sending them"""

    def __init__(self):
        self.jobs: List[tuple] = []

    def enqueue(self, job_name: str, payload: Dict[str, Any]) -> None:
        self.jobs.append((job_name, payload))


class FakeRenderer:
    """Serves canned responses by path and records every render context"""

    def __init__(self, responses: Optional[Dict[str, RenderResult]] = None, error: Exception = None):
        self.responses = responses or {}
        self.error = error
        self.contexts: List[RenderContext] = []

    def render(self, path: str, context: RenderContext) -> RenderResult:
        self.contexts.append(context)
        if self.error is not None:
            raise self.error
        return self.responses.get(path, RenderResult(status_code=404, body="Not found"))


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    create_tables(bind=engine)
    ContentBase.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def site():
    return SiteDefinition(id=1, code="main", locale="en")


@pytest.fixture
def other_site():
    return SiteDefinition(id=2, code="pl", locale="pl", route_prefix="/pl", is_prefixed=True)


@pytest.fixture
def cache():
    return InMemoryKeyValueStore()


@pytest.fixture
def store(db):
    return SitemapItemStore(db)


@pytest.fixture
def task_queue():
    return FakeTaskQueue()


@pytest.fixture
def articles(db):
    """Three published articles and one opted out of the sitemap"""
    news = Category(id=1, slug="news")
    guides = Category(id=2, slug="guides")
    db.add_all([news, guides])
    db.add_all([
        Article(id=1, slug="first", category=news, updated_at=datetime(2024, 3, 1, 12, 0)),
        Article(id=2, slug="second", category=news, updated_at=datetime(2024, 3, 2, 12, 0)),
        Article(id=3, slug="third", category=guides, updated_at=datetime(2024, 3, 3, 12, 0)),
        Article(id=4, slug="hidden", category=guides, seo_options={"enabled_in_sitemap": "0"}),
    ])
    db.commit()
    return db.query(Article).order_by(Article.id).all()


@pytest.fixture
def blog_page():
    return PageDefinition(
        base_file_name="blog-post",
        url="/blog/:category/:slug",
        content="{% blog post %}",
        enabled_in_sitemap=True,
        priority=0.7,
        changefreq="weekly",
        model_class="Article",
        model_params="slug:slug|category:category.slug",
        use_updated_at=True,
    )


@pytest.fixture
def home_page():
    return PageDefinition(
        base_file_name="home",
        url="/",
        content="home",
        enabled_in_sitemap=True,
        priority=1.0,
        lastmod=datetime(2024, 1, 1),
    )


@pytest.fixture
def page_catalog(home_page, blog_page):
    return ListPageCatalog([home_page, blog_page])


@pytest.fixture
def make_generator(db, store, cache, page_catalog):
    """Build a pages generator for a site with the shared fixtures"""

    def factory(site, static_page_catalog=None, scan_requester=None, events=None, catalog=None):
        return PagesGenerator(
            site=site,
            store=store,
            change_detector=ChangeDetector(cache),
            url_patterns=UrlPatternEngine(APP_URL),
            model_query=SqlAlchemyModelQuery(db, {"Article": Article}),
            page_catalog=catalog or page_catalog,
            static_page_catalog=static_page_catalog,
            scan_requester=scan_requester,
            events=events or EventEmitter(),
        )

    return factory
