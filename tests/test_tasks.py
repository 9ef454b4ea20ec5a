"""
Tests for the Celery task queue and the media scan task
"""

from unittest.mock import Mock

import pytest

from sitemap_engine.core.config import settings
from sitemap_engine.services.media_scanner import PENDING_SCAN_KEY, SCAN_TASK_NAME
from sitemap_engine.services.page_renderer import RenderResult
from sitemap_engine.tasks import scan_tasks
from sitemap_engine.tasks.celery_app import CeleryTaskQueue, celery_app

from conftest import FakeRenderer

PAGE_LOC = "https://example.com/gallery"


def test_celery_task_queue_sends_by_name():
    app = Mock()
    CeleryTaskQueue(app).enqueue(SCAN_TASK_NAME, {"loc": PAGE_LOC})

    app.send_task.assert_called_once_with(SCAN_TASK_NAME, kwargs={"loc": PAGE_LOC})


def test_scan_task_is_registered_under_its_name():
    assert scan_tasks.scan_page_for_media.name == SCAN_TASK_NAME
    assert celery_app.conf.task_soft_time_limit == settings.SCAN_TASK_SOFT_TIME_LIMIT


@pytest.fixture
def task_env(monkeypatch, session_factory, cache):
    renderer = FakeRenderer({"/gallery": RenderResult(status_code=200, body='<img src="/a.png">')})
    monkeypatch.setattr(scan_tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(scan_tasks, "get_default_store", lambda: cache)
    monkeypatch.setattr(scan_tasks, "HttpPageRenderer", lambda: renderer)
    monkeypatch.setattr(settings, "ENABLE_IMAGES_SITEMAP", True)
    monkeypatch.setattr(settings, "ENABLE_VIDEOS_SITEMAP", False)
    return renderer


def test_scan_task_updates_item_media(task_env, store, site, cache):
    item = store.upsert_for_page(site, "gallery", PAGE_LOC)
    store.commit()
    cache.add_member(PENDING_SCAN_KEY, PAGE_LOC)

    result = scan_tasks.scan_page_for_media(PAGE_LOC)

    assert result == {"status": "success", "loc": PAGE_LOC}
    store.session.refresh(item)
    assert [m.loc for m in item.images] == ["https://example.com/a.png"]
    assert not cache.has_member(PENDING_SCAN_KEY, PAGE_LOC)


def test_scan_task_skips_missing_item(task_env):
    result = scan_tasks.scan_page_for_media("https://example.com/missing")

    assert result["status"] == "skipped"
    assert task_env.contexts == []


def test_build_media_scan_job_uses_settings(db, cache, task_queue, monkeypatch):
    monkeypatch.setattr(settings, "ENABLE_IMAGES_SITEMAP", False)
    monkeypatch.setattr(settings, "ENABLE_VIDEOS_SITEMAP", True)

    job = scan_tasks.build_media_scan_job(db, pending=cache, task_queue=task_queue, renderer=FakeRenderer())

    assert job.images_enabled is False
    assert job.videos_enabled is True
    assert job.task_queue is task_queue
