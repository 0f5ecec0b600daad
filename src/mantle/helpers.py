"""Request-scoped layout helpers.

One ``LayoutHelpers`` instance lives for one request. Handlers call it
directly, and templates reach it as ``layout``::

    {{ layout.css("/static/blog.css") }}
    {{ layout.section("footer", "<p>Thanks for reading</p>") }}

Each helper sanitizes its own argument, silently drops what it cannot
use, and returns ``""`` so it can sit inline in a template without
emitting output.
"""

from mantle.sanitize import (
    META_FIELDS,
    sanitize_resource_url,
    sanitize_section_content,
    sanitize_section_name,
    sanitize_text,
)


class LayoutHelpers:
    """Accumulates sections, resources and metadata for one request."""

    __slots__ = (
        "_max_resources",
        "_max_section_size",
        "css_urls",
        "js_urls",
        "meta_fields",
        "page_title",
        "sections",
    )

    def __init__(self, *, max_section_size: int, max_resources: int) -> None:
        self._max_section_size = max_section_size
        self._max_resources = max_resources
        self.sections: dict[str, str] = {}
        self.css_urls: list[str] = []
        self.js_urls: list[str] = []
        self.page_title: str | None = None
        self.meta_fields: dict[str, str] = {}

    def section(self, name: object, content: object) -> str:
        safe_name = sanitize_section_name(name)
        safe_content = sanitize_section_content(content, self._max_section_size)
        if safe_content is not None:
            self.sections[safe_name] = safe_content
        return ""

    def css(self, href: object) -> str:
        safe = sanitize_resource_url(href)
        if safe and safe not in self.css_urls and len(self.css_urls) < self._max_resources:
            self.css_urls.append(safe)
        return ""

    def js(self, src: object) -> str:
        safe = sanitize_resource_url(src)
        if safe and safe not in self.js_urls and len(self.js_urls) < self._max_resources:
            self.js_urls.append(safe)
        return ""

    def title(self, text: object) -> str:
        safe = sanitize_text(text, 100)
        if safe:
            self.page_title = safe
        return ""

    def meta(self, name: object, content: object) -> str:
        """Set one of the allow-listed meta fields; other names are ignored."""
        safe_name = sanitize_text(name, 50)
        safe_content = sanitize_text(content, 200)
        if safe_name in META_FIELDS and safe_content:
            self.meta_fields[safe_name] = safe_content
        return ""
