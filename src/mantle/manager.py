"""The layout manager: one per application.

Owns the configuration, both path sandboxes, the layout cache and its
cleanup task, and the composition engine. Hands out one
``RenderInterceptor`` per request and exposes the administrative
operations (create, delete, list, reload, destroy).

Lifecycle::

    manager = LayoutManager(LayoutConfig(views_dir="views"))
    manager.start()                 # inside a running event loop
    ...
    interceptor = manager.intercept(request, response)
    await interceptor.render("index", {"title": "Home"})
    ...
    manager.destroy()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import anyio

from mantle.cache import LayoutCache
from mantle.config import LayoutConfig
from mantle.engine import CompositionEngine
from mantle.errors import TemplateIOError, ValidationError
from mantle.helpers import LayoutHelpers
from mantle.host import TemplateRenderer
from mantle.interceptor import RenderInterceptor
from mantle.paths import PathSandbox
from mantle.sanitize import sanitize_layout_name
from mantle.templating import DEFAULT_LAYOUT, create_environment

if TYPE_CHECKING:
    from mantle.host import NativeRender, RequestLike, ResponseWriter

logger = logging.getLogger("mantle.layout")


class LayoutManager:
    """Layout composition for one application."""

    __slots__ = ("_cache", "_config", "_engine", "_layouts", "_renderer", "_views")

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self._config = config or LayoutConfig()
        self._views = PathSandbox(self._config.views_dir, self._config.extension)
        self._layouts = PathSandbox(self._config.layouts_dir, self._config.extension)
        self._cache = LayoutCache(self._config.security.max_cache_size)
        self._engine = CompositionEngine(
            self._config,
            views=self._views,
            layouts=self._layouts,
            cache=self._cache,
            env=create_environment([self._views.root]),
        )
        self._renderer: TemplateRenderer | None = None

    @property
    def config(self) -> LayoutConfig:
        return self._config

    @property
    def cache(self) -> LayoutCache:
        return self._cache

    @property
    def engine(self) -> CompositionEngine:
        return self._engine

    # -- Lifecycle --

    def start(self) -> LayoutManager:
        """Start periodic cache maintenance. Requires a running event loop."""
        self._cache.start(self._config.cleanup_interval)
        return self

    def destroy(self) -> None:
        """Stop maintenance and drop both caches. Safe to call more than once."""
        self._cache.destroy()

    async def __aenter__(self) -> LayoutManager:
        return self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self._cache.aclose()

    # -- Request integration --

    @property
    def renderer(self) -> TemplateRenderer:
        """The bundled native renderer over the views and layouts roots."""
        if self._renderer is None:
            self._renderer = TemplateRenderer(
                self._views.root,
                extension=self._config.extension,
                extra_roots=(self._layouts.root,),
            )
        return self._renderer

    def intercept(
        self,
        request: RequestLike | None,
        response: ResponseWriter,
        native_render: NativeRender | None = None,
    ) -> RenderInterceptor:
        """Wrap the host's render function for one request.

        Without *native_render*, the bundled ``TemplateRenderer`` bound
        to *response* is used.
        """
        limits = self._config.security
        return RenderInterceptor(
            self._engine,
            request=request,
            response=response,
            native_render=native_render or self.renderer.bind(response),
            helpers=LayoutHelpers(
                max_section_size=limits.max_section_size,
                max_resources=limits.max_resources,
            ),
        )

    # -- Paths --

    def resolve_view_path(self, view: str) -> Path:
        return self._views.resolve(view)

    def resolve_layout_path(self, name: str) -> Path:
        return self._layouts.resolve(name)

    # -- Administration --

    def default_layout_content(self) -> str:
        return DEFAULT_LAYOUT

    def _admin_layout_name(self, name: object) -> str:
        """Clean *name* for a CRUD operation. Never falls back to the default layout."""
        safe_name = sanitize_layout_name(name, "")
        if not safe_name:
            msg = f"Invalid layout name: {name!r}"
            raise ValidationError(msg)
        return safe_name

    async def create_layout(self, name: str, content: str | None = None) -> LayoutManager:
        """Write a layout file, replacing any existing one of the same name.

        Without *content* the built-in default layout is written.

        Raises:
            ValidationError: If *name* has no usable characters, or *content*
                is not a string or is too large.
            TemplateIOError: If the file cannot be written.
        """
        safe_name = self._admin_layout_name(name)
        path = self._layouts.resolve(safe_name)
        body = DEFAULT_LAYOUT if content is None else content
        if not isinstance(body, str) or len(body) > self._config.security.max_layout_size:
            raise ValidationError("Invalid layout content")

        target = anyio.Path(path)
        try:
            await target.parent.mkdir(parents=True, exist_ok=True)
            await target.write_text(body, encoding="utf-8")
        except OSError as exc:
            logger.error("Error creating layout %s: %s", safe_name, exc)
            msg = f"Could not write layout {safe_name!r}"
            raise TemplateIOError(msg) from exc

        self._cache.evict(safe_name)
        if self._renderer is not None:
            self._renderer.clear()
        logger.info("Layout created: %s", path)
        return self

    async def delete_layout(self, name: str) -> LayoutManager:
        """Delete a layout file. A layout that is already gone is only logged.

        Raises:
            ValidationError: If *name* has no usable characters.
            TemplateIOError: If the file exists but cannot be removed.
        """
        safe_name = self._admin_layout_name(name)
        path = self._layouts.resolve(safe_name)
        try:
            await anyio.Path(path).unlink()
        except FileNotFoundError:
            logger.warning("Layout not found: %s", safe_name)
            return self
        except OSError as exc:
            logger.error("Error deleting layout %s: %s", safe_name, exc)
            msg = f"Could not delete layout {safe_name!r}"
            raise TemplateIOError(msg) from exc
        finally:
            self._cache.evict(safe_name)

        logger.info("Layout deleted: %s", path)
        return self

    async def list_layouts(self) -> list[str]:
        """Names of the renderable layout files on disk, sorted.

        Only files with the configured extension count. Empty if the
        directory is missing.
        """
        root = anyio.Path(self._layouts.root)
        extension = self._config.extension
        try:
            return sorted(
                [
                    entry.stem
                    async for entry in root.iterdir()
                    if entry.suffix == extension and entry.stem and not entry.name.startswith(".")
                ]
            )
        except (FileNotFoundError, NotADirectoryError):
            return []

    def reload_layouts(self) -> LayoutManager:
        """Forget every cached layout and section, e.g. after editing templates."""
        self._cache.clear()
        if self._renderer is not None:
            self._renderer.clear()
        logger.info("Layout cache cleared: all layouts will be re-checked")
        return self

    def composed_sections(self, view: str, layout: str) -> tuple[str, ...] | None:
        """Section names of the last composition of *view* into *layout*, if cached."""
        return self._cache.get_sections(f"{view}:{layout}")
