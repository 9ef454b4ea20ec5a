"""
Tests for sitemap XML serialization
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone

import pytest

from sitemap_engine.core.exceptions import GenerationError
from sitemap_engine.models import SitemapItem, SitemapMedia
from sitemap_engine.services.xml_generators import (
    IMAGE_NS,
    SITEMAP_NS,
    VIDEO_NS,
    ImagesSitemapGenerator,
    IndexSitemapGenerator,
    PagesSitemapGenerator,
    VideosSitemapGenerator,
    format_w3c_datetime,
)

NS = {"s": SITEMAP_NS, "image": IMAGE_NS, "video": VIDEO_NS}


def make_item(loc, media=(), **attrs):
    item = SitemapItem(site_id=1, base_file_name="page", loc=loc, **attrs)
    item.media = list(media)
    return item


def image(loc):
    return SitemapMedia(type="image", loc=loc, data={"loc": loc})


def parse(xml):
    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    return ET.fromstring(xml)


class TestPagesSitemap:

    def test_url_entries(self):
        xml = PagesSitemapGenerator([
            make_item(
                "https://example.com/",
                lastmod=datetime(2024, 1, 2, 3, 4, 5),
                changefreq="daily",
                priority=1,
            ),
            make_item("https://example.com/about"),
        ]).generate()

        root = parse(xml)
        assert root.tag == f"{{{SITEMAP_NS}}}urlset"

        first, second = root.findall("s:url", NS)
        assert first.findtext("s:loc", namespaces=NS) == "https://example.com/"
        assert first.findtext("s:lastmod", namespaces=NS) == "2024-01-02T03:04:05+00:00"
        assert first.findtext("s:changefreq", namespaces=NS) == "daily"
        assert first.findtext("s:priority", namespaces=NS) == "1.0"

        assert second.findtext("s:loc", namespaces=NS) == "https://example.com/about"
        assert second.find("s:lastmod", NS) is None
        assert second.find("s:priority", NS) is None

    def test_schema_location(self):
        xml = PagesSitemapGenerator([]).generate()
        assert 'xsi:schemaLocation="http://www.sitemaps.org/schemas/sitemap/0.9' in xml

    def test_loc_is_escaped(self):
        root = parse(PagesSitemapGenerator([make_item("https://example.com/?a=1&b=2")]).generate())
        assert root.find("s:url/s:loc", NS).text == "https://example.com/?a=1&b=2"

    def test_root_is_cached_and_entries_rebuilt(self):
        item = make_item("https://example.com/")
        generator = PagesSitemapGenerator([item])

        first = generator.generate()
        root = generator.get_root()
        assert generator.generate() == first
        assert generator.get_root() is root

        generator.items.append(make_item("https://example.com/new"))
        assert len(parse(generator.generate()).findall("s:url", NS)) == 2

    def test_item_without_loc_fails(self):
        with pytest.raises(GenerationError):
            PagesSitemapGenerator([make_item(None)]).generate()


class TestImagesSitemap:

    def test_one_image_block_per_image(self):
        xml = ImagesSitemapGenerator([
            make_item("https://example.com/", media=[image("https://example.com/a.png")]),
        ]).generate()

        root = parse(xml)
        blocks = root.findall("s:url/image:image", NS)
        assert len(blocks) == 1
        assert blocks[0].findtext("image:loc", namespaces=NS) == "https://example.com/a.png"

    def test_item_without_images_is_omitted(self):
        root = parse(ImagesSitemapGenerator([make_item("https://example.com/")]).generate())

        assert root.findall("s:url", NS) == []
        assert len(list(root.iter(f"{{{IMAGE_NS}}}image"))) == 0

    def test_declares_image_namespace(self):
        assert f'xmlns:image="{IMAGE_NS}"' in ImagesSitemapGenerator([]).generate()


class TestVideosSitemap:

    def test_video_block(self):
        video = SitemapMedia(type="video", loc="https://example.com/v.mp4", data={
            "title": "Launch",
            "description": "Launch event",
            "loc": "https://example.com/v.mp4",
            "player_loc": "https://player.example.com/1",
            "thumbnail_loc": "https://example.com/t.jpg",
            "publication_date": "2024-05-01T10:00:00Z",
        })
        root = parse(VideosSitemapGenerator([
            make_item("https://example.com/", media=[video, image("https://example.com/a.png")]),
        ]).generate())

        [block] = root.findall("s:url/video:video", NS)
        assert [child.tag.split("}")[1] for child in block] == [
            "thumbnail_loc", "title", "description", "content_loc", "player_loc", "publication_date",
        ]
        assert block.findtext("video:content_loc", namespaces=NS) == "https://example.com/v.mp4"
        assert block.findtext("video:title", namespaces=NS) == "Launch"

    def test_missing_fields_are_omitted(self):
        video = SitemapMedia(type="video", loc="https://player.example.com/1", data={
            "player_loc": "https://player.example.com/1",
        })
        root = parse(VideosSitemapGenerator([make_item("https://example.com/", media=[video])]).generate())

        [block] = root.findall("s:url/video:video", NS)
        assert [child.tag.split("}")[1] for child in block] == ["player_loc"]


class TestIndexSitemap:

    def test_lists_documents(self):
        root = parse(IndexSitemapGenerator([
            ("https://example.com/sitemap.xml", datetime(2024, 1, 1, tzinfo=timezone.utc)),
            ("https://example.com/sitemap-images.xml", None),
        ]).generate())

        assert root.tag == f"{{{SITEMAP_NS}}}sitemapindex"
        sitemaps = root.findall("s:sitemap", NS)
        assert [s.findtext("s:loc", namespaces=NS) for s in sitemaps] == [
            "https://example.com/sitemap.xml",
            "https://example.com/sitemap-images.xml",
        ]
        assert sitemaps[0].findtext("s:lastmod", namespaces=NS) == "2024-01-01T00:00:00+00:00"
        assert sitemaps[1].find("s:lastmod", NS) is None


def test_w3c_datetime_keeps_timezone():
    value = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)
    assert format_w3c_datetime(value) == "2024-06-01T08:30:00+00:00"
