"""
Logging setup shared by the worker and any embedding application
"""

import logging

from sitemap_engine.core.config import settings


def configure_logging(level: str = None) -> None:
    """
    Configure root logging once for the process

    Args:
        level: Log level name, defaults to the LOG_LEVEL setting
    """
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # SQL echo is noisy outside of debug mode
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
