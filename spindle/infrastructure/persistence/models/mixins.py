"""SQLAlchemy mixins for common model patterns.

Provides: CuidMixin, SiteMixin, TimestampMixin, the combined SiteScopedModel,
and the JSONDocument column type (JSONB on PostgreSQL, JSON elsewhere).
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func

from spindle.shared.utils.datetime import utc_now
from spindle.shared.utils.generators import generate_cuid

# Python None is stored as SQL NULL, so "draft_data IS NULL" filters work.
JSONDocument = JSON(none_as_null=True).with_variant(
    JSONB(none_as_null=True), "postgresql"
)


class CuidMixin:
    """Mixin for models using CUID as primary key. Provides id with default generate_cuid."""

    @declared_attr
    def id(cls) -> Mapped[str]:
        return mapped_column(String, primary_key=True, default=generate_cuid)


class SiteMixin:
    """Mixin for site-scoped models. Provides site_id FK to site with CASCADE delete."""

    @declared_attr
    def site_id(cls) -> Mapped[str]:
        return mapped_column(
            String,
            ForeignKey("site.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class TimestampMixin:
    """Mixin for created_at and updated_at (timezone-aware, UTC)."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            nullable=False,
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True),
            default=utc_now,
            server_default=func.now(),
            onupdate=utc_now,
            nullable=False,
        )


class SiteScopedModel(CuidMixin, SiteMixin, TimestampMixin):
    """Combined mixin: CUID + site_id + created_at/updated_at."""

    __abstract__ = True
