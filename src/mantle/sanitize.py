"""Sanitization pipeline for untrusted render input.

Every function here is total: it never raises, returns a safe default
(or ``None``, meaning "drop it") for invalid input, and has no side
effects. The composition engine never touches a raw request- or
option-derived string; each value passes exactly one sanitizer chosen
for its destination (filesystem path, HTML attribute, cache key).

Invalid *content* is dropped silently, while invalid *paths* are
rejected loudly further down in ``mantle.paths``.
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from mantle.context import MetaRecord

_NAME_RE = re.compile(r"[^A-Za-z0-9_-]")
_VIEW_RE = re.compile(r"[^A-Za-z0-9_\-/]")

LAYOUT_NAME_MAX = 50
VIEW_NAME_MAX = 100
SECTION_NAME_MAX = 50
META_FIELD_MAX = 200
URL_MAX = 200
PARAM_KEY_MAX = 50
PARAM_VALUE_MAX = 200

META_FIELDS = ("title", "description", "keywords", "author", "viewport")
DEFAULT_VIEWPORT = "width=device-width, initial-scale=1.0"

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"'/]")

_URL_PREFIXES = ("/", "https://", "./")


def _clean_name(value: str, limit: int) -> str:
    return _NAME_RE.sub("", value)[:limit]


# -- Names ------------------------------------------------------------------


def sanitize_layout_name(name: Any, default: str) -> str:
    """Reduce *name* to ``[A-Za-z0-9_-]{1,50}``, falling back to *default*."""
    if not isinstance(name, str):
        return default
    return _clean_name(name, LAYOUT_NAME_MAX) or default


def sanitize_view_name(view: Any) -> str:
    """Reduce *view* to ``[A-Za-z0-9_-/]{1,100}``, falling back to ``"index"``.

    Names that try to climb out of the views root are replaced outright
    rather than cleaned.
    """
    if not isinstance(view, str):
        return "index"
    if ".." in view or "\\" in view or view.startswith("/"):
        return "index"
    return _VIEW_RE.sub("", view)[:VIEW_NAME_MAX].strip("/") or "index"


def sanitize_section_name(name: Any) -> str:
    if not isinstance(name, str):
        return "default"
    return _clean_name(name, SECTION_NAME_MAX) or "default"


def sanitize_section_content(content: Any, max_size: int) -> str | None:
    """Return *content* unchanged when it is a string within *max_size*.

    Anything else returns ``None``: the caller drops the section.
    """
    if not isinstance(content, str) or len(content) > max_size:
        return None
    return content


def sanitize_sections(sections: Any, max_size: int) -> dict[str, str]:
    """Sanitize a ``{name: html}`` mapping, dropping non-conforming pairs."""
    if not isinstance(sections, Mapping):
        return {}
    sanitized: dict[str, str] = {}
    for key, value in sections.items():
        if not isinstance(key, str) or len(key) > SECTION_NAME_MAX:
            continue
        clean_key = _clean_name(key, SECTION_NAME_MAX)
        content = sanitize_section_content(value, max_size)
        if clean_key and content is not None:
            sanitized[clean_key] = content
    return sanitized


# -- Text -------------------------------------------------------------------


def sanitize_text(text: Any, max_length: int = 100) -> str:
    """Strip angle brackets and truncate. Non-strings become ``""``."""
    if not isinstance(text, str):
        return ""
    return text.replace("<", "").replace(">", "")[:max_length]


def sanitize_meta_data(meta: Any, default_title: str) -> MetaRecord:
    """Build a ``MetaRecord`` from the allow-listed fields of *meta*.

    Unknown keys are ignored. Missing, empty or non-string fields take
    their default.
    """
    values: dict[str, str] = {}
    if isinstance(meta, Mapping):
        for field_name in META_FIELDS:
            value = meta.get(field_name)
            if isinstance(value, str) and value:
                values[field_name] = value[:META_FIELD_MAX]
    return MetaRecord(
        title=values.get("title", default_title[:META_FIELD_MAX]),
        description=values.get("description", ""),
        keywords=values.get("keywords", ""),
        author=values.get("author", ""),
        viewport=values.get("viewport", DEFAULT_VIEWPORT),
    )


# -- URLs -------------------------------------------------------------------


def sanitize_resource_url(url: Any) -> str | None:
    """Accept a stylesheet/script URL only if it is relative or HTTPS.

    Examples::

        >>> sanitize_resource_url("/static/app.css")
        '/static/app.css'
        >>> sanitize_resource_url("https://cdn.example.com/x.js")
        'https://cdn.example.com/x.js'
        >>> sanitize_resource_url("javascript:alert(1)") is None
        True
    """
    if not isinstance(url, str):
        return None
    if len(url) > URL_MAX or "<" in url or ">" in url:
        return None
    if url.startswith(_URL_PREFIXES):
        return url
    return None


def sanitize_resource_urls(urls: Any, limit: int) -> tuple[str, ...]:
    """Sanitize a sequence of URLs, keeping at most *limit* of the first entries."""
    if isinstance(urls, str) or not isinstance(urls, Iterable):
        return ()
    kept: list[str] = []
    for url in list(urls)[:limit]:
        safe = sanitize_resource_url(url)
        if safe is not None and safe not in kept:
            kept.append(safe)
    return tuple(kept)


# -- Request data -----------------------------------------------------------


def sanitize_query_params(query: Any) -> dict[str, str]:
    """Keep only short string keys (cleaned) with short string values."""
    if not isinstance(query, Mapping):
        return {}
    sanitized: dict[str, str] = {}
    for key, value in query.items():
        if not isinstance(key, str) or len(key) > PARAM_KEY_MAX:
            continue
        if not isinstance(value, str) or len(value) > PARAM_VALUE_MAX:
            continue
        clean_key = _clean_name(key, PARAM_KEY_MAX)
        if clean_key:
            sanitized[clean_key] = value
    return sanitized


def sanitize_params(params: Any) -> dict[str, str]:
    """Route parameters follow the same rules as query parameters."""
    return sanitize_query_params(params)


# -- Escaping ---------------------------------------------------------------


def escape_html(text: Any) -> str:
    """Escape ``& < > " ' /`` as HTML entities. Non-strings become ``""``.

    kida's autoescaping covers ordinary ``{{ value }}`` output; this is
    for values that bypass it (pre-built attribute strings, plain-text
    error bodies).
    """
    if not isinstance(text, str):
        return ""
    return _HTML_ESCAPE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], text)
