"""
XML serializers for sitemap documents

Implements the plain, image and video variants of the sitemap protocol plus
a sitemap index. Each generator caches its root element; the entries under
it are rebuilt on every ``generate()`` call.
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from sitemap_engine.core.exceptions import GenerationError
from sitemap_engine.models.sitemap_item import SitemapItem
from sitemap_engine.models.sitemap_media import SitemapMedia

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
SITEMAP_SCHEMA_LOCATION = f"{SITEMAP_NS} {SITEMAP_NS}/sitemap.xsd"
SITEMAP_INDEX_SCHEMA_LOCATION = f"{SITEMAP_NS} {SITEMAP_NS}/siteindex.xsd"
IMAGE_NS = "http://www.google.com/schemas/sitemap-image/1.1"
VIDEO_NS = "http://www.google.com/schemas/sitemap-video/1.1"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Video data field -> <video:*> element, in the order the protocol lists them
VIDEO_ELEMENTS = (
    ('thumbnail_loc', 'video:thumbnail_loc'),
    ('title', 'video:title'),
    ('description', 'video:description'),
    ('loc', 'video:content_loc'),
    ('player_loc', 'video:player_loc'),
    ('publication_date', 'video:publication_date'),
)


def format_w3c_datetime(value: datetime) -> str:
    """W3C datetime, naive values are taken as UTC"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec='seconds')


class AbstractSitemapGenerator:
    """Shared document building of all sitemap variants"""

    root_tag = "urlset"
    schema_location = SITEMAP_SCHEMA_LOCATION

    def __init__(self, items: Optional[Iterable[SitemapItem]] = None):
        self.items: List[SitemapItem] = list(items or [])
        self._root: Optional[ET.Element] = None

    def namespaces(self) -> List[Tuple[str, str]]:
        return []

    def get_root(self) -> ET.Element:
        """The document root, built once per generator"""
        if self._root is None:
            root = ET.Element(self.root_tag)
            root.set("xmlns", SITEMAP_NS)
            root.set("xmlns:xsi", XSI_NS)
            for prefix, uri in self.namespaces():
                root.set(f"xmlns:{prefix}", uri)
            root.set("xsi:schemaLocation", self.schema_location)
            self._root = root
        return self._root

    def populate(self, root: ET.Element) -> None:
        raise NotImplementedError

    def build(self) -> ET.Element:
        root = self.get_root()
        for child in list(root):
            root.remove(child)
        root.text = None
        self.populate(root)
        return root

    def generate(self) -> str:
        """Serialize the document with an XML declaration"""
        root = self.build()
        ET.indent(root, space="  ")
        return XML_DECLARATION + ET.tostring(root, encoding="unicode")

    def add_url(self, root: ET.Element, item: SitemapItem) -> ET.Element:
        if not item.loc:
            raise GenerationError(f"Sitemap item {item.id} has no location")
        url = ET.SubElement(root, "url")
        ET.SubElement(url, "loc").text = item.loc
        return url


class PagesSitemapGenerator(AbstractSitemapGenerator):
    """Plain sitemap with lastmod, changefreq and priority"""

    def populate(self, root: ET.Element) -> None:
        for item in self.items:
            url = self.add_url(root, item)

            if item.lastmod:
                ET.SubElement(url, "lastmod").text = format_w3c_datetime(item.lastmod)
            if item.changefreq:
                ET.SubElement(url, "changefreq").text = item.changefreq
            if item.priority is not None:
                ET.SubElement(url, "priority").text = f"{item.priority:.1f}"


class ImagesSitemapGenerator(AbstractSitemapGenerator):
    """Image sitemap, listing only items with images"""

    def namespaces(self) -> List[Tuple[str, str]]:
        return [("image", IMAGE_NS)]

    def populate(self, root: ET.Element) -> None:
        for item in self.items:
            images = [m for m in item.images if m.loc]
            if not images:
                continue

            url = self.add_url(root, item)
            for image in images:
                block = ET.SubElement(url, "image:image")
                ET.SubElement(block, "image:loc").text = image.loc


class VideosSitemapGenerator(AbstractSitemapGenerator):
    """Video sitemap, listing only items with videos"""

    def namespaces(self) -> List[Tuple[str, str]]:
        return [("video", VIDEO_NS)]

    def populate(self, root: ET.Element) -> None:
        for item in self.items:
            videos = item.videos
            if not videos:
                continue

            url = self.add_url(root, item)
            for video in videos:
                self.add_video(url, video)

    def add_video(self, url: ET.Element, video: SitemapMedia) -> ET.Element:
        block = ET.SubElement(url, "video:video")
        for field_name, tag in VIDEO_ELEMENTS:
            value = video.get_field(field_name)
            if value:
                ET.SubElement(block, tag).text = str(value)
        return block


class IndexSitemapGenerator(AbstractSitemapGenerator):
    """Sitemap index pointing at the documents of a site"""

    root_tag = "sitemapindex"
    schema_location = SITEMAP_INDEX_SCHEMA_LOCATION

    def __init__(self, sitemaps: Sequence[Tuple[str, Optional[datetime]]] = ()):
        super().__init__()
        self.sitemaps = list(sitemaps)

    def populate(self, root: ET.Element) -> None:
        for loc, lastmod in self.sitemaps:
            sitemap = ET.SubElement(root, "sitemap")
            ET.SubElement(sitemap, "loc").text = loc
            if lastmod:
                ET.SubElement(sitemap, "lastmod").text = format_w3c_datetime(lastmod)
