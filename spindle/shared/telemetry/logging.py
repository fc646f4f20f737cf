"""Logging configuration for the engine.

Every record carries the site id of the current request context (``-``
outside a request), so interleaved tenants can be told apart in the log.
"""

import logging
import sys

from spindle.core.config import get_settings
from spindle.core.site_context import get_site_id

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [site=%(site_id)s] %(message)s"


class SiteContextFilter(logging.Filter):
    """Adds ``site_id`` from the site context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.site_id = get_site_id() or "-"
        return True


def setup_logging() -> None:
    """Configure engine-wide logging on stdout.

    Level is DEBUG when settings.debug is True, otherwise INFO. SQLAlchemy
    engine logging stays at WARNING unless DATABASE_ECHO is set (echo
    installs its own handler).
    """
    settings = get_settings()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(SiteContextFilter())
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=[handler],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
