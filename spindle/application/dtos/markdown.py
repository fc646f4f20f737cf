"""DTOs produced by the markdown pipeline."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ParsedDocument:
    """Frontmatter metadata and markdown body of a document."""

    data: dict[str, Any] = field(default_factory=dict)
    content: str = ""


@dataclass(frozen=True)
class TocEntry:
    """One ATX heading in a table of contents."""

    level: int
    text: str
    slug: str

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "text": self.text, "slug": self.slug}


@dataclass(frozen=True)
class RenderedContent:
    """Derived rendering of an item body."""

    html: str
    excerpt: str
    reading_time: int
    toc: tuple[TocEntry, ...] = ()
