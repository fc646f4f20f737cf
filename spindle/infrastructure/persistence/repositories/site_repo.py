"""Site repository. Returns application DTOs."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from spindle.application.dtos.site import SiteResult
from spindle.infrastructure.persistence.models.site import Site
from spindle.infrastructure.persistence.repositories.base import BaseRepository
from spindle.shared.utils.datetime import ensure_utc


def _to_result(s: Site) -> SiteResult:
    """Map ORM Site to SiteResult."""
    return SiteResult(
        id=s.id,
        name=s.name,
        domain=s.domain,
        subdomain=s.subdomain,
        settings=dict(s.settings or {}),
        created_at=ensure_utc(s.created_at),
        updated_at=ensure_utc(s.updated_at),
    )


class SiteRepository(BaseRepository[Site]):
    """Site (tenant) repository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Site)

    async def get_site(self, site_id: str) -> SiteResult | None:
        row = await self.get_by_id(site_id)
        return _to_result(row) if row else None

    async def get_by_subdomain(self, subdomain: str) -> SiteResult | None:
        result = await self.db.execute(select(Site).where(Site.subdomain == subdomain))
        row = result.scalar_one_or_none()
        return _to_result(row) if row else None

    async def create_site(
        self,
        name: str,
        *,
        domain: str | None = None,
        subdomain: str | None = None,
        settings: dict[str, Any] | None = None,
    ) -> SiteResult:
        site = Site(
            name=name,
            domain=domain,
            subdomain=subdomain,
            settings=dict(settings or {}),
        )
        created = await self.create(site)
        return _to_result(created)
