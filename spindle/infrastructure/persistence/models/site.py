"""Site ORM model. The tenant boundary that owns collections and content."""

from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from spindle.infrastructure.persistence.database import Base
from spindle.infrastructure.persistence.models.mixins import (
    CuidMixin,
    JSONDocument,
    TimestampMixin,
)


class Site(CuidMixin, TimestampMixin, Base):
    """Site (tenant). Table: site. Subdomain is globally unique when set."""

    __tablename__ = "site"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subdomain: Mapped[str | None] = mapped_column(
        String(100), nullable=True, unique=True
    )
    # siteUrl / siteName / defaultOgImage override engine SEO defaults.
    settings: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument, nullable=False, default=dict
    )
