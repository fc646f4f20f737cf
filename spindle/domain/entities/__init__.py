"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from spindle.domain.entities.content import (
    ContentItemEntity,
    ContentState,
    Live,
    LiveWithPendingDraft,
    Unpublished,
    content_state,
    merge_overlay,
)

__all__ = [
    "ContentItemEntity",
    "ContentState",
    "Live",
    "LiveWithPendingDraft",
    "Unpublished",
    "content_state",
    "merge_overlay",
]
