"""Shared telemetry: logging setup and tracing helpers."""

from spindle.shared.telemetry.logging import SiteContextFilter, setup_logging
from spindle.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    traced,
)

__all__ = [
    "setup_logging",
    "SiteContextFilter",
    "traced",
    "add_span_attributes",
    "add_span_event",
]
