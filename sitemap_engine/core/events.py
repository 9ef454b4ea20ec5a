"""
Named extension hooks fired during sitemap regeneration
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# Hook names
BEFORE_CLEARING_SITEMAP_ITEMS = "sitemap.before_clearing_sitemap_items"
SITEMAP_ITEMS = "sitemap.sitemap_items"
PAGE_REFRESHED = "sitemap.page_refreshed"


class EventEmitter:
    """
    Registry of listeners keyed by hook name

    Listeners receive the fired arguments as-is, so passing a list lets them
    mutate it in place. Listener exceptions propagate to the caller of ``fire``.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[..., Any]]] = defaultdict(list)
        self._lock = threading.Lock()

    def listen(self, name: str, listener: Callable[..., Any]) -> Callable[..., Any]:
        """Register a listener, returns it so it can be used as a decorator"""
        with self._lock:
            self._listeners[name].append(listener)
        return listener

    def remove(self, name: str, listener: Callable[..., Any]) -> None:
        """Unregister a listener if present"""
        with self._lock:
            if listener in self._listeners.get(name, []):
                self._listeners[name].remove(listener)

    def fire(self, name: str, *args: Any) -> List[Any]:
        """
        Call every listener of a hook in registration order

        Returns:
            The listeners' return values
        """
        with self._lock:
            listeners = list(self._listeners.get(name, []))

        if listeners:
            logger.debug(f"Firing {name} to {len(listeners)} listener(s)")

        return [listener(*args) for listener in listeners]
