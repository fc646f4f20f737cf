"""DTOs for content items, pages and batch results (no dependency on ORM)."""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any

from spindle.application.dtos.markdown import RenderedContent
from spindle.domain.entities.content import ContentState, content_state, merge_overlay
from spindle.domain.enums import ContentStatus
from spindle.shared.utils.datetime import isoformat_utc


@dataclass(frozen=True)
class ContentItemResult:
    """Content item read-model.

    ``data`` is the live document. ``draft_data`` is the pending overlay of a
    published item (None otherwise). ``rendered`` is filled only when a read
    asked for HTML.
    """

    id: str
    site_id: str
    collection_id: str
    collection_slug: str
    slug: str
    title: str
    data: dict[str, Any]
    status: ContentStatus
    draft_data: dict[str, Any] | None
    author_id: str | None
    created_at: datetime | None
    updated_at: datetime | None
    published_at: datetime | None
    rendered: RenderedContent | None = None

    @property
    def state(self) -> ContentState:
        return content_state(self.status, self.published_at, self.draft_data)

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED

    @property
    def body(self) -> str:
        """Markdown body of the live document ('' when absent)."""
        value = self.data.get("body")
        return value if isinstance(value, str) else ""

    def effective_data(self) -> dict[str, Any]:
        """Live data with any pending overlay applied (editing view)."""
        return merge_overlay(self.data, self.draft_data)

    def with_rendered(self, rendered: RenderedContent) -> "ContentItemResult":
        return replace(self, rendered=rendered)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation with camelCase keys."""
        out: dict[str, Any] = {
            "id": self.id,
            "siteId": self.site_id,
            "collectionId": self.collection_id,
            "collection": self.collection_slug,
            "slug": self.slug,
            "title": self.title,
            "data": dict(self.data),
            "status": self.status.value,
            "draftData": dict(self.draft_data) if self.draft_data is not None else None,
            "authorId": self.author_id,
            "createdAt": isoformat_utc(self.created_at),
            "updatedAt": isoformat_utc(self.updated_at),
            "publishedAt": isoformat_utc(self.published_at),
        }
        if self.rendered is not None:
            out["html"] = self.rendered.html
            out["excerpt"] = self.rendered.excerpt
            out["readingTime"] = self.rendered.reading_time
            out["toc"] = [entry.to_dict() for entry in self.rendered.toc]
        return out


@dataclass(frozen=True)
class ContentPage:
    """One page of a content listing."""

    items: list[ContentItemResult]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total


@dataclass(frozen=True)
class RowError:
    """A failed input row (1-based row number as seen by the importer's caller)."""

    row: int
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one create_content_batch call.

    ``success`` counts inserted rows, ``skipped`` counts rows whose slug
    already existed (re-imports), ``failed`` counts rejected rows.
    """

    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)


@dataclass(frozen=True)
class ImportResult:
    """Aggregate outcome of an import run. ``errors`` is capped; counts are not."""

    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[RowError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.success + self.failed + self.skipped

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": [e.to_dict() for e in self.errors],
        }
