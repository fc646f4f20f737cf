"""HTML sanitization for rendered markdown and imported text."""

from typing import ClassVar

import nh3


class HtmlSanitizer:
    """
    Sanitize HTML produced by the markdown renderer.

    The allowlist covers what GFM rendering emits (tables, strikethrough,
    task-list checkboxes, code blocks). Anything else, including script
    and event-handler attributes, is removed.
    """

    ALLOWED_TAGS: ClassVar[set[str]] = {
        "a", "blockquote", "br", "code", "del", "em", "h1", "h2", "h3", "h4",
        "h5", "h6", "hr", "img", "input", "li", "ol", "p", "pre", "s",
        "strong", "table", "tbody", "td", "th", "thead", "tr", "ul",
    }
    ALLOWED_ATTRIBUTES: ClassVar[dict[str, set[str]]] = {
        "a": {"href", "title"},
        "h1": {"id"},
        "h2": {"id"},
        "h3": {"id"},
        "h4": {"id"},
        "h5": {"id"},
        "h6": {"id"},
        "img": {"src", "alt", "title"},
        "input": {"type", "checked", "disabled"},
        "th": {"style"},
        "td": {"style"},
        "code": {"class"},
        "li": {"class"},
        "ul": {"class"},
    }

    @classmethod
    def sanitize_html(cls, value: str) -> str:
        """Clean rendered HTML against the markdown allowlist.

        Args:
            value: HTML from the markdown renderer.

        Returns:
            Sanitized HTML safe for embedding.
        """
        if not value:
            return value
        return nh3.clean(
            value,
            tags=cls.ALLOWED_TAGS,
            attributes=cls.ALLOWED_ATTRIBUTES,
            link_rel=None,
        )
