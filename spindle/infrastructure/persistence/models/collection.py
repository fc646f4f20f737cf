"""Collection ORM model. Site-defined content schema with URL pattern and settings."""

from typing import Any

from sqlalchemy import String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from spindle.infrastructure.persistence.database import Base
from spindle.infrastructure.persistence.models.mixins import (
    JSONDocument,
    SiteScopedModel,
)


class Collection(SiteScopedModel, Base):
    """Collection definition. Table: collection. Unique (site_id, slug).

    schema holds {"fields": [...]} with author-defined fields only; the
    default field set is injected at read time.
    """

    __tablename__ = "collection"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url_pattern: Mapped[str] = mapped_column(String(500), nullable=False)
    schema: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=lambda: {"fields": []}
    )
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=dict
    )

    __table_args__ = (
        UniqueConstraint("site_id", "slug", name="uq_collection_site_slug"),
    )
