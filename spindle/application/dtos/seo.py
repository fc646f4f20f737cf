"""DTOs for SEO metadata."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SEOData:
    """Derived presentation metadata for one content item."""

    title: str
    description: str
    og_title: str
    og_description: str
    og_image: str
    canonical_url: str
    json_ld: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "ogTitle": self.og_title,
            "ogDescription": self.og_description,
            "ogImage": self.og_image,
            "canonicalUrl": self.canonical_url,
            "jsonLd": self.json_ld,
        }
