"""SEO metadata, JSON-LD structured data, sitemap and robots.txt.

Everything here is derived from a content item and its collection; nothing
is written back. Absolute URLs are built from the site URL with any
trailing slash removed.
"""

import logging
import re
from typing import Any
from xml.sax.saxutils import escape

from spindle.application.dtos.collection import CollectionResult
from spindle.application.dtos.content import ContentItemResult
from spindle.application.dtos.markdown import TocEntry
from spindle.application.dtos.seo import SEOData
from spindle.application.dtos.site import SiteResult
from spindle.application.services.markdown_processor import MarkdownProcessor
from spindle.core.config import Settings, get_settings
from spindle.shared.telemetry.tracing import traced
from spindle.shared.utils.datetime import isoformat_utc

logger = logging.getLogger(__name__)

SCHEMA_CONTEXT = "https://schema.org"
LANDING_PAGES = "landing-pages"
DESCRIPTION_LENGTH = 160
SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

_FAQ_HEADINGS = ("## FAQ", "## Frequently Asked Questions")
_STEP_RE = re.compile(r"^Step \d+", re.IGNORECASE)

# Crawlers explicitly allowed in robots.txt.
SEARCH_CRAWLERS = ("Googlebot", "Bingbot", "Slurp", "DuckDuckBot")
AI_CRAWLERS = ("GPTBot", "ChatGPT-User", "CCBot", "anthropic-ai", "Claude-Web")


def _text(value: Any) -> str | None:
    """Non-empty string value or None."""
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _section_lines(body: str, headings: tuple[str, ...]) -> list[str] | None:
    """Lines of the first ``##`` section whose heading is in headings, or None."""
    lines = body.splitlines()
    for i, line in enumerate(lines):
        if line.rstrip() in headings:
            section: list[str] = []
            for following in lines[i + 1 :]:
                if following.startswith("## "):
                    break
                section.append(following)
            return section
    return None


def _question_answer_pairs(lines: list[str]) -> list[tuple[str, str]]:
    """``### Question`` headings with the answer text up to the next heading."""
    pairs: list[tuple[str, str]] = []
    question: str | None = None
    answer: list[str] = []
    for line in [*lines, "### "]:
        if line.startswith("### "):
            if question and answer:
                pairs.append((question, " ".join(answer)))
            question = line[4:].strip()
            answer = []
        elif line.strip() and question is not None:
            answer.append(line.strip())
    return pairs


class SEOGenerator:
    """Derives SEO metadata and structured data for one site.

    Args:
        site_url: Public base URL of the site.
        site_name: Site name used as publisher and brand.
        markdown: Markdown processor for excerpts, reading time and TOC.
        default_og_image: Site-level OG image path or URL.
    """

    def __init__(
        self,
        site_url: str,
        site_name: str,
        *,
        markdown: MarkdownProcessor | None = None,
        default_og_image: str = "/og-default.png",
    ) -> None:
        self.site_url = site_url.rstrip("/")
        self.site_name = site_name
        self.markdown = markdown or MarkdownProcessor()
        self.default_og_image = default_og_image

    @classmethod
    def for_site(
        cls,
        site: SiteResult,
        settings: Settings | None = None,
        *,
        markdown: MarkdownProcessor | None = None,
    ) -> "SEOGenerator":
        """Generator using the site's settings, falling back to application settings."""
        settings = settings or get_settings()
        return cls(
            site.site_url or settings.site_url,
            site.site_name or settings.site_name,
            markdown=markdown,
            default_og_image=site.default_og_image or settings.default_og_image,
        )

    # ---- per item ----

    @traced("seo.generate")
    def generate_seo_data(
        self, item: ContentItemResult, collection: CollectionResult
    ) -> SEOData:
        """Title, description, OG tags, canonical URL and JSON-LD for an item.

        Fallbacks: title is seoTitle then title; description is
        seoDescription, then data.excerpt, then an excerpt of the body.
        ogTitle and ogDescription fall back to those results.
        """
        url = self.item_url(item, collection)
        title = _text(item.data.get("seoTitle")) or item.title
        description = self._description(item, collection)
        return SEOData(
            title=title,
            description=description,
            og_title=_text(item.data.get("ogTitle")) or title,
            og_description=_text(item.data.get("ogDescription")) or description,
            og_image=self.og_image(item, collection),
            canonical_url=url,
            json_ld=self.generate_json_ld(item, collection, url),
        )

    def item_url(self, item: ContentItemResult, collection: CollectionResult) -> str:
        """Absolute canonical URL ({slug} of the URL pattern substituted)."""
        return f"{self.site_url}{collection.item_path(item.slug)}"

    def _absolute(self, path_or_url: str) -> str:
        if path_or_url.startswith("http"):
            return path_or_url
        return f"{self.site_url}{path_or_url}"

    def _description(
        self, item: ContentItemResult, collection: CollectionResult | None = None
    ) -> str:
        explicit = _text(item.data.get("seoDescription")) or _text(item.data.get("excerpt"))
        if explicit:
            return explicit
        excerpt = self.markdown.extract_excerpt(item.body, DESCRIPTION_LENGTH)
        if excerpt:
            return excerpt
        if collection is not None and collection.default_description:
            return collection.default_description
        return _text(item.data.get("description")) or ""

    def og_image(
        self, item: ContentItemResult, collection: CollectionResult | None = None
    ) -> str:
        """Item ogImage, then the collection default, then the site default."""
        own = _text(item.data.get("ogImage"))
        if own:
            return self._absolute(own)
        if collection is not None and collection.default_og_image:
            return self._absolute(collection.default_og_image)
        return self._absolute(self.default_og_image)

    # ---- JSON-LD ----

    def generate_json_ld(
        self, item: ContentItemResult, collection: CollectionResult, url: str
    ) -> list[dict[str, Any]]:
        """Base schema and breadcrumbs, then FAQPage, Product and HowTo when triggered."""
        schemas = [
            self._base_schema(item, collection, url),
            self._breadcrumb_schema(item, collection, url),
        ]
        body = item.body
        faq = self._faq_schema(body)
        if faq is not None:
            schemas.append(faq)
        if collection.slug == LANDING_PAGES and item.data.get("pageType") == "Product":
            schemas.append(self._product_schema(item, url))
        howto = self._howto_schema(item, collection, url)
        if howto is not None:
            schemas.append(howto)
        return schemas

    def _base_schema(
        self, item: ContentItemResult, collection: CollectionResult, url: str
    ) -> dict[str, Any]:
        description = self._description(item, collection)
        published = isoformat_utc(item.published_at or item.created_at)
        modified = isoformat_utc(item.updated_at)
        image = self.og_image(item, collection)
        minutes = self.markdown.estimate_reading_time(item.body)

        if collection.slug == "blog":
            tags = item.data.get("tags")
            keywords = ", ".join(str(t) for t in tags) if isinstance(tags, list) else ""
            return {
                "@context": SCHEMA_CONTEXT,
                "@type": "BlogPosting",
                "headline": item.title,
                "description": description,
                "author": {
                    "@type": "Person",
                    "name": _text(item.data.get("author")) or "Unknown Author",
                },
                "datePublished": published,
                "dateModified": modified,
                "image": image,
                "url": url,
                "timeRequired": f"PT{minutes}M",
                "keywords": keywords,
                "articleSection": _text(item.data.get("category")) or "General",
                "publisher": {
                    "@type": "Organization",
                    "name": self.site_name,
                    "logo": {"@type": "ImageObject", "url": f"{self.site_url}/logo.png"},
                },
            }
        if collection.slug == "docs":
            return {
                "@context": SCHEMA_CONTEXT,
                "@type": "TechArticle",
                "headline": item.title,
                "description": description,
                "datePublished": published,
                "dateModified": modified,
                "image": image,
                "url": url,
                "proficiencyLevel": _text(item.data.get("difficulty")) or "Beginner",
                "timeRequired": f"PT{minutes}M",
            }
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": "WebPage",
            "name": item.title,
            "description": description,
            "url": url,
            "datePublished": published,
            "dateModified": modified,
            "image": image,
        }

    def _breadcrumb_schema(
        self, item: ContentItemResult, collection: CollectionResult, url: str
    ) -> dict[str, Any]:
        trail = [("Home", self.site_url)]
        if collection.slug != LANDING_PAGES:
            trail.append((collection.name, f"{self.site_url}/{collection.slug}"))
        trail.append((item.title, url))
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": "BreadcrumbList",
            "itemListElement": [
                {"@type": "ListItem", "position": i, "name": name, "item": link}
                for i, (name, link) in enumerate(trail, start=1)
            ],
        }

    def _faq_schema(self, body: str) -> dict[str, Any] | None:
        section = _section_lines(body, _FAQ_HEADINGS)
        if section is None:
            return None
        pairs = _question_answer_pairs(section)
        if not pairs:
            return None
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": "FAQPage",
            "mainEntity": [
                {
                    "@type": "Question",
                    "name": question,
                    "acceptedAnswer": {"@type": "Answer", "text": answer},
                }
                for question, answer in pairs
            ],
        }

    def _product_schema(self, item: ContentItemResult, url: str) -> dict[str, Any]:
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": "Product",
            "name": _text(item.data.get("heroTitle")) or item.title,
            "description": _text(item.data.get("heroSubtitle")) or self._description(item),
            "url": url,
            "image": self.og_image(item),
            "brand": {"@type": "Organization", "name": self.site_name},
            "offers": {
                "@type": "Offer",
                "price": "0",
                "priceCurrency": "USD",
                "availability": "https://schema.org/InStock",
            },
        }

    def _howto_steps(self, body: str) -> list[TocEntry]:
        toc = self.markdown.generate_table_of_contents(body)
        steps = [entry for entry in toc if _STEP_RE.match(entry.text)]
        if steps:
            return steps
        section = _section_lines(body, ("## Steps",))
        if not section:
            return []
        headings = self.markdown.generate_table_of_contents("\n".join(section))
        return [entry for entry in headings if entry.level == 3]

    def _howto_schema(
        self, item: ContentItemResult, collection: CollectionResult, url: str
    ) -> dict[str, Any] | None:
        body = item.body
        steps = self._howto_steps(body)
        if not steps:
            if item.data.get("category") == "Tutorial":
                logger.debug("Tutorial %s has no step headings; HowTo omitted", item.id)
            return None
        return {
            "@context": SCHEMA_CONTEXT,
            "@type": "HowTo",
            "name": item.title,
            "description": self._description(item, collection),
            "url": url,
            "step": [
                {
                    "@type": "HowToStep",
                    "position": i,
                    "name": step.text,
                    "url": f"{url}#{step.slug}",
                }
                for i, step in enumerate(steps, start=1)
            ],
        }

    # ---- site level ----

    @traced("seo.sitemap")
    def generate_sitemap(
        self,
        collections: list[CollectionResult],
        items: list[ContentItemResult],
    ) -> str:
        """Sitemap XML for published items.

        The site root comes first. A collection index URL is listed only when
        the collection has at least one item (landing pages never get one).
        Items of collections not in ``collections`` are ignored.
        """
        by_slug = {c.slug: c for c in collections}
        with_items = {item.collection_slug for item in items}
        entries: list[tuple[str, str | None, str]] = [(self.site_url, None, "1.0")]
        for collection in collections:
            if collection.slug != LANDING_PAGES and collection.slug in with_items:
                entries.append((f"{self.site_url}/{collection.slug}", None, "0.8"))
        for item in items:
            collection = by_slug.get(item.collection_slug)
            if collection is None:
                continue
            entries.append(
                (self.item_url(item, collection), isoformat_utc(item.updated_at), "0.8")
            )

        blocks = []
        for loc, lastmod, priority in entries:
            lines = ["  <url>", f"    <loc>{escape(loc)}</loc>"]
            if lastmod:
                lines.append(f"    <lastmod>{escape(lastmod)}</lastmod>")
            lines.append("    <changefreq>weekly</changefreq>")
            lines.append(f"    <priority>{priority}</priority>")
            lines.append("  </url>")
            blocks.append("\n".join(lines))
        return (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<urlset xmlns="{SITEMAP_NS}">\n'
            + "\n".join(blocks)
            + "\n</urlset>"
        )

    def generate_robots_txt(self) -> str:
        """robots.txt allowing crawlers (AI crawlers included) outside admin paths."""
        lines = [
            "User-agent: *",
            "Allow: /",
            "Disallow: /admin",
            "Disallow: /api/admin",
            "",
            "# Search engine crawlers",
            *(f"User-agent: {agent}" for agent in SEARCH_CRAWLERS),
            "Allow: /",
            "",
            "# LLM and AI crawlers",
            *(f"User-agent: {agent}" for agent in AI_CRAWLERS),
            "Allow: /",
            "",
            f"Sitemap: {self.site_url}/sitemap.xml",
        ]
        return "\n".join(lines) + "\n"
