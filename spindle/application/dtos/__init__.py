"""Application DTOs (no ORM dependency)."""

from spindle.application.dtos.collection import CollectionResult, UrlMatch
from spindle.application.dtos.content import (
    BatchResult,
    ContentItemResult,
    ContentPage,
    ImportResult,
    RowError,
)
from spindle.application.dtos.markdown import ParsedDocument, RenderedContent, TocEntry
from spindle.application.dtos.seo import SEOData
from spindle.application.dtos.site import SiteResult

__all__ = [
    "BatchResult",
    "CollectionResult",
    "ContentItemResult",
    "ContentPage",
    "ImportResult",
    "ParsedDocument",
    "RenderedContent",
    "RowError",
    "SEOData",
    "SiteResult",
    "TocEntry",
    "UrlMatch",
]
