"""Markdown pipeline: frontmatter parsing, HTML rendering and derived text.

Frontmatter is YAML between ``---`` fences at the very start of a document.
Rendering is CommonMark with GFM tables, strikethrough and task lists, and
the HTML is sanitized before it leaves this module. Rendering failures
degrade to the raw text; they never fail the caller.
"""

import logging
import math
import re
from typing import Any

import yaml
from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from spindle.application.dtos.markdown import ParsedDocument, RenderedContent, TocEntry
from spindle.domain.exceptions import ValidationException
from spindle.shared.telemetry.tracing import traced
from spindle.shared.utils.sanitization import HtmlSanitizer

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
DEFAULT_EXCERPT_LENGTH = 160
ELLIPSIS = "..."

_FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)", re.DOTALL
)
_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+?)[ \t]*$", re.MULTILINE)
_FENCE_RE = re.compile(r"^[ \t]*(```|~~~)")
_SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# Excerpt stripping, applied in order.
_EXCERPT_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```[\s\S]*?```"), ""),
    (re.compile(r"#{1,6}\s+"), ""),
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\*\*|__"), ""),
    (re.compile(r"~~"), ""),
    (re.compile(r"\*|_"), ""),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"^\s*>\s?", re.MULTILINE), ""),
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),
    (re.compile(r"\s+"), " "),
)


def heading_slug(text: str) -> str:
    """Anchor slug for a heading: lowercase, drop non-word chars, spaces to hyphens."""
    cleaned = re.sub(r"[^\w\s-]", "", text.lower(), flags=re.ASCII)
    return re.sub(r"\s+", "-", cleaned.strip())


def _build_renderer() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False, "linkify": False})
    md.enable(["table", "strikethrough"])
    md.use(tasklists_plugin)
    return md


class MarkdownProcessor:
    """Two-way frontmatter mapping and markdown rendering.

    Stateless apart from the configured renderer; one instance may be
    shared by all services of a process.
    """

    def __init__(self) -> None:
        self._md = _build_renderer()

    def parse(self, raw: str) -> ParsedDocument:
        """Split a document into frontmatter data and markdown body.

        Args:
            raw: Full document text.

        Returns:
            ParsedDocument; data is empty when the document has no frontmatter.

        Raises:
            ValidationException: If the frontmatter is not a YAML mapping.
        """
        match = _FRONTMATTER_RE.match(raw)
        if match is None:
            return ParsedDocument(data={}, content=raw)
        block = match.group(1) or ""
        try:
            loaded = yaml.safe_load(block) if block.strip() else {}
        except yaml.YAMLError as e:
            raise ValidationException(f"Invalid frontmatter: {e}", field="frontmatter") from e
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValidationException(
                "Frontmatter must be a mapping of keys to values", field="frontmatter"
            )
        return ParsedDocument(data=loaded, content=raw[match.end() :])

    def stringify(self, meta: dict[str, Any], content: str) -> str:
        """Serialize frontmatter and body; inverse of parse.

        Top-level keys whose value is None or an empty string are dropped.
        """
        clean = {k: v for k, v in meta.items() if v is not None and v != ""}
        if not clean:
            return f"---\n---\n{content}"
        front = yaml.safe_dump(
            clean, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        return f"---\n{front}---\n{content}"

    def validate_frontmatter(
        self, meta: dict[str, Any], required_fields: list[str] | tuple[str, ...]
    ) -> list[str]:
        """Return human-readable problems with frontmatter (empty list when valid)."""
        errors = [
            f"Missing required field: {name}" for name in required_fields if not meta.get(name)
        ]
        slug = meta.get("slug")
        if slug and (not isinstance(slug, str) or not _SLUG_RE.match(slug)):
            errors.append("Slug must be lowercase letters, numbers, and hyphens only")
        return errors

    @traced("markdown.render")
    def process_markdown(self, content: str) -> str:
        """Render markdown to sanitized HTML; returns the raw text on failure."""
        if not content:
            return ""
        try:
            env: dict[str, Any] = {}
            tokens = self._md.parse(content, env)
            for i, token in enumerate(tokens):
                if token.type == "heading_open" and i + 1 < len(tokens):
                    anchor = heading_slug(tokens[i + 1].content)
                    if anchor:
                        token.attrSet("id", anchor)
            html = self._md.renderer.render(tokens, self._md.options, env)
            return HtmlSanitizer.sanitize_html(html)
        except Exception:
            logger.exception("Markdown rendering failed; returning raw content")
            return content

    def extract_excerpt(self, content: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
        """Plain-text excerpt of at most max_length characters.

        Markdown syntax is stripped. Text that fits is returned whole;
        otherwise it is cut at the last whole word that leaves room for
        the trailing ellipsis.
        """
        try:
            text = content or ""
            for pattern, repl in _EXCERPT_RULES:
                text = pattern.sub(repl, text)
            text = text.strip()
        except Exception:
            logger.exception("Excerpt extraction failed; returning raw content")
            text = (content or "").strip()
        if len(text) <= max_length:
            return text
        limit = max(max_length - len(ELLIPSIS), 0)
        window = text[: limit + 1]
        cut = window.rfind(" ")
        head = text[:cut] if cut > 0 else text[:limit]
        return head.rstrip() + ELLIPSIS

    def generate_table_of_contents(self, content: str) -> list[TocEntry]:
        """ATX headings (outside fenced code) in document order."""
        entries: list[TocEntry] = []
        in_fence = False
        for line in (content or "").splitlines():
            if _FENCE_RE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            match = _HEADING_RE.match(line)
            if match:
                text = match.group(2)
                entries.append(
                    TocEntry(level=len(match.group(1)), text=text, slug=heading_slug(text))
                )
        return entries

    def estimate_reading_time(self, content: str) -> int:
        """Minutes to read at 200 words per minute, rounded up (0 for empty text)."""
        words = len((content or "").split())
        return math.ceil(words / WORDS_PER_MINUTE)

    def render(self, content: str) -> RenderedContent:
        """All derived renderings of a body in one call."""
        return RenderedContent(
            html=self.process_markdown(content),
            excerpt=self.extract_excerpt(content),
            reading_time=self.estimate_reading_time(content),
            toc=tuple(self.generate_table_of_contents(content)),
        )
