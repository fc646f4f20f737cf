"""DTOs for sites (no dependency on ORM)."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class SiteResult:
    """Site read-model (result of get_by_id, create_site)."""

    id: str
    name: str
    domain: str | None
    subdomain: str | None
    settings: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def site_url(self) -> str | None:
        """Public base URL configured for the site, if any."""
        return self.settings.get("siteUrl")

    @property
    def site_name(self) -> str | None:
        return self.settings.get("siteName") or self.name

    @property
    def default_og_image(self) -> str | None:
        return self.settings.get("defaultOgImage")
