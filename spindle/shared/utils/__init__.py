"""Shared utilities: datetime, generators, sanitization."""

from spindle.shared.utils.datetime import (
    ensure_utc,
    isoformat_utc,
    parse_iso_date,
    parse_iso_datetime,
    utc_now,
)
from spindle.shared.utils.generators import generate_cuid, slugify, strict_slugify
from spindle.shared.utils.sanitization import HtmlSanitizer

__all__ = [
    "generate_cuid",
    "slugify",
    "strict_slugify",
    "utc_now",
    "ensure_utc",
    "isoformat_utc",
    "parse_iso_date",
    "parse_iso_datetime",
    "HtmlSanitizer",
]
