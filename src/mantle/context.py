"""Render options and the per-render composition context.

``RenderOptions`` is what callers hand to ``render()``: an enumerated
record built from a plain mapping, ignoring unknown keys. ``RenderContext``
is what the composition engine builds from it; every string inside has
already been through ``mantle.sanitize``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from kida.template import Markup


class SectionMap(dict[str, Markup]):
    """Section name to HTML. Attribute access yields ``""`` for absent sections.

    Layouts can write ``{{ sections.sidebar }}`` without guarding for
    sections this particular view never filled.
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Markup:
        if name.startswith("__"):
            raise AttributeError(name)
        return self.get(name, Markup(""))


@dataclass(frozen=True, slots=True)
class MetaRecord:
    """The five allow-listed ``<meta>`` fields. Always fully populated."""

    title: str
    description: str = ""
    keywords: str = ""
    author: str = ""
    viewport: str = "width=device-width, initial-scale=1.0"


@dataclass(frozen=True, slots=True)
class LayoutOptions:
    css: tuple[str, ...] = ()
    js: tuple[str, ...] = ()
    body_class: str = ""


@dataclass(frozen=True, slots=True)
class SafeRequestSnapshot:
    """The subset of the current request a template may see."""

    url: str = ""
    path: str = ""
    method: str = "GET"
    query: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Options accepted by ``render()``.

    Build from a caller mapping with ``RenderOptions.from_mapping()``;
    keys outside the fields below are dropped there. Values are kept
    raw and sanitized by the engine.
    """

    layout: str | Literal[False] | None = None
    sections: Mapping[str, Any] = field(default_factory=dict)
    meta: Mapping[str, Any] = field(default_factory=dict)
    title: Any = None
    description: Any = None
    keywords: Any = None
    body_class: Any = None
    css: Any = ()
    js: Any = ()
    context: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> RenderOptions:
        if not options:
            return cls()
        layout = options.get("layout")
        if layout is not False and not isinstance(layout, str):
            layout = None
        sections = options.get("sections")
        meta = options.get("meta")
        context = options.get("context")
        body_class = options.get("body_class", options.get("bodyClass"))
        return cls(
            layout=layout,
            sections=sections if isinstance(sections, Mapping) else {},
            meta=meta if isinstance(meta, Mapping) else {},
            title=options.get("title"),
            description=options.get("description"),
            keywords=options.get("keywords"),
            body_class=body_class,
            css=options.get("css", ()),
            js=options.get("js", ()),
            context=context if isinstance(context, Mapping) else {},
        )


@dataclass(slots=True)
class RenderContext:
    """Everything a view and its layout are rendered with.

    ``sections["content"]`` is written exactly once, by the engine,
    after the view has been rendered.
    """

    view: str
    layout: str
    sections: dict[str, str]
    meta: MetaRecord
    layout_options: LayoutOptions
    request: SafeRequestSnapshot
    view_locals: dict[str, Any] = field(default_factory=dict)
    # Validated view name the file is looked up by; ``view`` is its cleaned form
    view_file: str = ""

    def template_data(self, *, required_sections: tuple[str, ...] = ()) -> dict[str, Any]:
        """Build the top-level variables handed to kida.

        Sections are HTML by definition and are wrapped in ``Markup`` so
        autoescaping leaves them alone. Meta and request values stay
        plain strings and are escaped on output.
        """
        sections = SectionMap((name, Markup("")) for name in required_sections)
        sections.update((name, Markup(value)) for name, value in self.sections.items())
        return {
            "view": self.view,
            "layout_name": self.layout,
            "sections": sections,
            "meta": self.meta,
            "layout_options": self.layout_options,
            "request": self.request,
        }
