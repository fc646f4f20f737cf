"""ContentItem ORM model. One document of a collection, with live data and a draft overlay."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from spindle.domain.enums import ContentStatus
from spindle.infrastructure.persistence.database import Base
from spindle.infrastructure.persistence.models.mixins import (
    JSONDocument,
    SiteScopedModel,
)


class ContentItem(SiteScopedModel, Base):
    """Content item. Table: content_item. Unique (site_id, collection_id, slug).

    data holds live values; draft_data is non-null only while a published
    item has unpublished edits. published_at is stamped on first publish.
    """

    __tablename__ = "content_item"

    collection_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("collection.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=dict
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ContentStatus.DRAFT.value
    )
    draft_data: Mapped[dict[str, Any] | None] = mapped_column(
        JSONDocument, nullable=True
    )
    author_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint(
            "site_id", "collection_id", "slug", name="uq_content_item_site_collection_slug"
        ),
        Index("ix_content_item_site_collection_status", "site_id", "collection_id", "status"),
        Index("ix_content_item_collection_updated", "collection_id", "updated_at"),
    )
