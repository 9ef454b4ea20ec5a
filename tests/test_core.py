"""
Tests for configuration, database helpers and logging setup
"""

import logging

from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

from sitemap_engine.core.config import Settings
from sitemap_engine.core.database import engine_options
from sitemap_engine.core.logging_config import configure_logging


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("ENABLE_IMAGES_SITEMAP", "true")
    monkeypatch.setenv("SCAN_RENDER_TIMEOUT", "5")

    config = Settings(_env_file=None)

    assert config.ENABLE_IMAGES_SITEMAP is True
    assert config.SCAN_RENDER_TIMEOUT == 5.0


def test_engine_options():
    assert engine_options("sqlite://")["poolclass"] is StaticPool
    assert "poolclass" not in engine_options("sqlite:///./sitemaps.db")
    assert engine_options("postgresql://localhost/sitemaps")["pool_pre_ping"] is True


def test_tables_are_created(engine):
    tables = set(inspect(engine).get_table_names())
    assert {"sitemap_items", "sitemap_media", "sitemap_items_media"} <= tables


def test_configure_logging_quiets_sql_echo():
    configure_logging("info")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
