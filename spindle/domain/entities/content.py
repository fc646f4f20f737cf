"""Content item domain entity and publication state.

A content item is in exactly one publication state:

- Unpublished: status draft, no pending overlay.
- Live: published, no pending overlay.
- LiveWithPendingDraft: published, with a draft overlay awaiting publish.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from spindle.domain.enums import ContentStatus
from spindle.domain.exceptions import ValidationException
from spindle.domain.value_objects.core import ContentSlug


@dataclass(frozen=True)
class Unpublished:
    """Draft item; never visible to the public read API."""


@dataclass(frozen=True)
class Live:
    """Published item with no pending edits."""

    published_at: datetime | None


@dataclass(frozen=True)
class LiveWithPendingDraft:
    """Published item carrying an unpublished draft overlay."""

    published_at: datetime | None
    draft: dict[str, Any]


ContentState = Unpublished | Live | LiveWithPendingDraft


def content_state(
    status: ContentStatus | str,
    published_at: datetime | None,
    draft_data: dict[str, Any] | None,
) -> ContentState:
    """Derive the publication state from stored columns.

    Raises:
        ValidationException: If an unpublished item carries a draft overlay.
    """
    if ContentStatus(status) != ContentStatus.PUBLISHED:
        if draft_data:
            raise ValidationException(
                "Draft overlay is only valid on published content", field="draft_data"
            )
        return Unpublished()
    if draft_data:
        return LiveWithPendingDraft(published_at=published_at, draft=dict(draft_data))
    return Live(published_at=published_at)


def merge_overlay(data: dict[str, Any], overlay: dict[str, Any] | None) -> dict[str, Any]:
    """Return a new dict with overlay keys replacing those of data (shallow)."""
    merged = dict(data)
    if overlay:
        merged.update(overlay)
    return merged


@dataclass
class ContentItemEntity:
    """Identity and addressing of a content item (site, collection, slug, title).

    Built before a write to enforce the column-level rules; publication state
    is derived on the read model (ContentItemResult.state).
    """

    id: str
    site_id: str
    collection_id: str
    slug: str
    title: str

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate content item rules. Raises ValidationException if invalid."""
        if not self.site_id:
            raise ValidationException("Content item must belong to a site", field="site_id")
        if not self.collection_id:
            raise ValidationException(
                "Content item must belong to a collection", field="collection_id"
            )
        if not self.title or not self.title.strip():
            raise ValidationException("Title is required", field="title")
        try:
            ContentSlug(self.slug)
        except ValueError as e:
            raise ValidationException(str(e), field="slug") from e
