"""
Content hash cache deciding whether a page's sitemap items need regeneration
"""

import hashlib
import json
import logging
import threading
from typing import Dict

from sitemap_engine.core.cache import KeyValueStore
from sitemap_engine.schemas.site import SiteDefinition

logger = logging.getLogger(__name__)

HASH_PAGE_CACHE_KEY = "pages_content_hashes"


class ChangeDetector:
    """
    Remembers the md5 of every page's source per site

    ``has_changed`` commits the new hash when it reports a change, so it is a
    one-shot signal: the next call with the same content returns False.
    """

    def __init__(self, cache: KeyValueStore, cache_key: str = HASH_PAGE_CACHE_KEY):
        self.cache = cache
        self.cache_key = cache_key
        self._lock = threading.Lock()

    @staticmethod
    def make_key(site: SiteDefinition, base_file_name: str) -> str:
        return f"{site.code}-{base_file_name}"

    def has_changed(self, site: SiteDefinition, base_file_name: str, content: str) -> bool:
        """
        Check if page content changed since the last call, storing the new hash if so

        Args:
            site: Site the page is generated for
            base_file_name: Page identifier
            content: Current page source

        Returns:
            True if the content is new or different, False otherwise
        """
        key = self.make_key(site, base_file_name)
        digest = hashlib.md5((content or "").encode("utf-8")).hexdigest()

        with self._lock:
            hashes = self._load()
            if hashes.get(key) == digest:
                return False

            hashes[key] = digest
            self._save(hashes)

        logger.debug(f"Content of {key} changed")
        return True

    def forget(self, site: SiteDefinition, base_file_name: str) -> None:
        """
        Drop the stored hash of one page so the next run regenerates it
        """
        key = self.make_key(site, base_file_name)
        with self._lock:
            hashes = self._load()
            if hashes.pop(key, None) is not None:
                self._save(hashes)

    def reset(self) -> None:
        """
        Forget every stored hash, forcing a full regeneration on the next run
        """
        with self._lock:
            self.cache.forget(self.cache_key)
        logger.info("Page content hash cache cleared")

    def _load(self) -> Dict[str, str]:
        raw = self.cache.get(self.cache_key)
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Page content hash cache is corrupted, starting from scratch")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, hashes: Dict[str, str]) -> None:
        self.cache.put(self.cache_key, json.dumps(hashes))
