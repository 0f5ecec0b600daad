"""Composition engine: render a view, then wrap it in its layout.

The pipeline, in order; any failing step raises and the interceptor
takes over with its fallback path:

1. Validate the view name and options (``ValidationError``).
2. ``layout=False``: hand the call to the native renderer untouched.
3. Sanitize: layout identity plus the ``RenderContext``.
4. Resolve the layout path inside the layouts root.
5. Render the view to a string; it becomes ``sections["content"]``.
6. Make sure the layout file exists, writing the default one if not.
7. Native-render the layout with the composed context.

File checks, reads and writes go through ``anyio.Path``; each is a
point where another request's render may interleave. Nothing shared is
mutated across those points except the cache, which tolerates it.
"""

from __future__ import annotations

import keyword
import logging
import re
import secrets
from collections.abc import Mapping
from contextvars import ContextVar
from pathlib import Path
from typing import Any

import anyio
from kida import Environment

from mantle.cache import LayoutCache, LayoutEntry
from mantle.config import LayoutConfig
from mantle.context import LayoutOptions, RenderContext, RenderOptions, SafeRequestSnapshot
from mantle.errors import RenderError, TemplateIOError, ValidationError
from mantle.helpers import LayoutHelpers
from mantle.host import NativeRender, RenderCallback, RequestLike
from mantle.paths import PathSandbox
from mantle.sanitize import (
    META_FIELDS,
    sanitize_layout_name,
    sanitize_meta_data,
    sanitize_params,
    sanitize_query_params,
    sanitize_resource_urls,
    sanitize_sections,
    sanitize_text,
    sanitize_view_name,
)
from mantle.templating import DEFAULT_LAYOUT, render_source

logger = logging.getLogger("mantle.layout")

MAX_VIEW_LENGTH = 255
_LOCAL_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,49}$")
_RESERVED_NAMES = frozenset(
    {"view", "layout", "layout_name", "sections", "meta", "layout_options", "request"}
)
_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"})

_render_depth: ContextVar[int] = ContextVar("mantle_render_depth", default=0)


def validate_render_parameters(view: Any, options: Any) -> None:
    """Reject malformed render calls before anything touches the filesystem.

    Raises:
        ValidationError: If *view* is not a short, relative, non-climbing
            name or *options* is not a mapping.
    """
    if not isinstance(view, str) or not view:
        raise ValidationError("View name must be a non-empty string")
    if len(view) > MAX_VIEW_LENGTH:
        raise ValidationError("View name too long")
    if ".." in view or "\\" in view or "\x00" in view or view.startswith("/"):
        raise ValidationError("Invalid view name: path traversal detected")
    if options is not None and not isinstance(options, (Mapping, RenderOptions)):
        raise ValidationError("Options must be a mapping")


def raw_template_data(options: Mapping[str, Any] | RenderOptions | None) -> dict[str, Any]:
    """The data the native renderer gets when composition is skipped."""
    if isinstance(options, RenderOptions):
        return dict(options.context)
    if isinstance(options, Mapping):
        return dict(options)
    return {}


def request_snapshot(request: RequestLike | None) -> SafeRequestSnapshot:
    if request is None:
        return SafeRequestSnapshot()
    method = getattr(request, "method", "GET")
    return SafeRequestSnapshot(
        url=sanitize_text(getattr(request, "url", ""), 2048),
        path=sanitize_text(getattr(request, "path", ""), 2048),
        method=method if method in _METHODS else "GET",
        query=sanitize_query_params(getattr(request, "query", None)),
        params=sanitize_params(getattr(request, "path_params", None)),
    )


class CompositionEngine:
    """Runs the render pipeline for one ``LayoutManager``."""

    __slots__ = ("_cache", "_config", "_env", "_layouts", "_views")

    def __init__(
        self,
        config: LayoutConfig,
        *,
        views: PathSandbox,
        layouts: PathSandbox,
        cache: LayoutCache,
        env: Environment,
    ) -> None:
        self._config = config
        self._views = views
        self._layouts = layouts
        self._cache = cache
        self._env = env

    # -- Pipeline --

    async def render(
        self,
        view: Any,
        options: Mapping[str, Any] | RenderOptions | None,
        *,
        native_render: NativeRender,
        callback: RenderCallback | None = None,
        request: RequestLike | None = None,
        helpers: LayoutHelpers | None = None,
    ) -> None:
        validate_render_parameters(view, options)
        opts = options if isinstance(options, RenderOptions) else RenderOptions.from_mapping(options)

        if opts.layout is False:
            await native_render(view, raw_template_data(options), callback)
            return

        depth = _render_depth.get()
        if depth >= self._config.security.max_nesting_depth:
            msg = f"Layout nesting deeper than {self._config.security.max_nesting_depth}"
            raise ValidationError(msg)
        token = _render_depth.set(depth + 1)
        try:
            context = self.build_context(view, opts, request=request, helpers=helpers)
            layout_path = self._layouts.resolve(context.layout)

            content = await self.render_view(context, helpers)
            if helpers is not None:
                # Helpers invoked from inside the view template
                self._fold_helpers(context, opts, helpers)
            context.sections["content"] = content

            await self.ensure_layout(context.layout, layout_path)
            self._cache.put_sections(f"{context.view}:{context.layout}", tuple(sorted(context.sections)))

            data = context.template_data(required_sections=self._config.sections)
            await native_render(layout_path, data, callback)
        finally:
            _render_depth.reset(token)

    # -- Context --

    def build_context(
        self,
        view: str,
        options: RenderOptions,
        *,
        request: RequestLike | None = None,
        helpers: LayoutHelpers | None = None,
    ) -> RenderContext:
        """Build the sanitized ``RenderContext`` for one render call."""
        config = self._config
        layout = sanitize_layout_name(options.layout or config.default_layout, config.default_layout)
        view_file = view.removesuffix(config.extension) or view
        context = RenderContext(
            view=sanitize_view_name(view_file),
            layout=layout,
            sections={},
            meta=sanitize_meta_data(None, config.app_name),
            layout_options=LayoutOptions(),
            request=request_snapshot(request),
            view_locals=self._view_locals(options.context),
            view_file=view_file,
        )
        self._fold_helpers(context, options, helpers)
        return context

    def _fold_helpers(
        self,
        context: RenderContext,
        options: RenderOptions,
        helpers: LayoutHelpers | None,
    ) -> None:
        """(Re)compute sections, meta and resources from helpers and options.

        Precedence, lowest first: helper calls, ``options`` fields,
        top-level shorthand options.
        """
        limits = self._config.security

        sections: dict[str, str] = dict(helpers.sections) if helpers else {}
        sections.update(sanitize_sections(options.sections, limits.max_section_size))
        context.sections = sections

        merged: dict[str, str] = {}
        if helpers is not None:
            merged.update(helpers.meta_fields)
            if helpers.page_title:
                merged["title"] = helpers.page_title
        for field_name in META_FIELDS:
            value = options.meta.get(field_name)
            if isinstance(value, str) and value:
                merged[field_name] = value
        for field_name in ("title", "description", "keywords"):
            value = sanitize_text(getattr(options, field_name), 200)
            if value:
                merged[field_name] = value
        context.meta = sanitize_meta_data(merged, self._config.app_name)

        css = list(sanitize_resource_urls(options.css, limits.max_option_resources))
        js = list(sanitize_resource_urls(options.js, limits.max_option_resources))
        if helpers is not None:
            css.extend(url for url in helpers.css_urls if url not in css)
            js.extend(url for url in helpers.js_urls if url not in js)
        context.layout_options = LayoutOptions(
            css=tuple(css),
            js=tuple(js),
            body_class=sanitize_text(options.body_class, 100),
        )

    @staticmethod
    def _view_locals(values: Mapping[str, Any]) -> dict[str, Any]:
        return {
            name: value
            for name, value in values.items()
            if isinstance(name, str)
            and _LOCAL_NAME_RE.match(name)
            and not keyword.iskeyword(name)
            and name not in _RESERVED_NAMES
        }

    # -- Files --

    async def render_view(self, context: RenderContext, helpers: LayoutHelpers | None = None) -> str:
        """Render the view template to an HTML string.

        Raises:
            PathTraversalError: If the view resolves outside the views root.
            TemplateIOError: If the view file is missing or unreadable.
            RenderError: If kida fails to compile or render it.
        """
        view_path = anyio.Path(self._views.resolve(context.view_file or context.view))
        if not await view_path.is_file():
            msg = f"View not accessible: {view_path.name}"
            raise TemplateIOError(msg)
        try:
            source = await view_path.read_text(encoding="utf-8")
        except OSError as exc:
            msg = f"View not readable: {view_path.name}"
            raise TemplateIOError(msg) from exc

        data = dict(context.view_locals)
        data.update(context.template_data(required_sections=self._config.sections))
        data["layout"] = helpers
        try:
            return render_source(self._env, source, data)
        except Exception as exc:
            msg = f"Template rendering failed: {exc}"
            raise RenderError(msg) from exc

    async def ensure_layout(self, name: str, path: Path) -> LayoutEntry:
        """Return the cache entry for layout *name*, writing the default if absent."""
        entry = self._cache.get(name)
        if entry is not None and entry.path == path:
            return entry

        synthesized = False
        if not await anyio.Path(path).is_file():
            synthesized = await self.write_default_layout(path)
        entry = LayoutEntry(name=name, path=path, synthesized=synthesized)
        self._cache.put(entry)
        return entry

    async def write_default_layout(self, path: Path) -> bool:
        """Write the built-in layout to *path* unless a file is already there.

        The document is written to a temporary sibling and renamed into
        place, so a concurrent reader never sees a partial file. Two
        concurrent first renders both write identical content; the last
        rename wins.

        Returns:
            True if this call created the file.
        """
        target = anyio.Path(path)
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            if await target.exists():
                return False
            tmp = target.with_name(f".{path.name}.{secrets.token_hex(4)}.tmp")
            await tmp.write_text(DEFAULT_LAYOUT, encoding="utf-8")
            await tmp.replace(target)
        except OSError as exc:
            msg = f"Could not create default layout {path.name}: {exc.strerror or exc}"
            raise TemplateIOError(msg) from exc
        logger.info("Default layout created: %s", path)
        return True
