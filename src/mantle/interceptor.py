"""Per-request render interceptor with a two-tier fallback.

The interceptor wraps the host's native render function. It holds a
reference to the original and never alters it; the host simply calls
``interceptor.render`` instead for the lifetime of the request.

States::

    intercepted -> pipeline running -> success
                                    -> fallback (native render of the view)
                                       -> terminal (500 response)

Nothing escapes ``render()``: the terminal tier swallows its own
failure after logging it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from mantle.engine import raw_template_data
from mantle.helpers import LayoutHelpers

if TYPE_CHECKING:
    from mantle.context import RenderOptions
    from mantle.engine import CompositionEngine
    from mantle.host import NativeRender, RenderCallback, RequestLike, ResponseWriter

logger = logging.getLogger("mantle.layout")

ERROR_BODY = "Internal Server Error"


class RenderInterceptor:
    """Replaces the native render call for one request.

    Usage::

        interceptor = manager.intercept(request, response, native_render)
        interceptor.helpers.css("/static/blog.css")
        await interceptor.render("blog/post", {"title": post.title})
    """

    __slots__ = ("_engine", "_native_render", "_request", "_response", "helpers")

    def __init__(
        self,
        engine: CompositionEngine,
        *,
        request: RequestLike | None,
        response: ResponseWriter,
        native_render: NativeRender,
        helpers: LayoutHelpers,
    ) -> None:
        self._engine = engine
        self._request = request
        self._response = response
        self._native_render = native_render
        self.helpers = helpers

    @property
    def native_render(self) -> NativeRender:
        """The host's original, un-wrapped render function."""
        return self._native_render

    async def render(
        self,
        view: str,
        options: Mapping[str, Any] | RenderOptions | None = None,
        callback: RenderCallback | None = None,
    ) -> None:
        """Render *view* inside its layout, falling back on any failure."""
        try:
            await self._engine.render(
                view,
                options,
                native_render=self._native_render,
                callback=callback,
                request=self._request,
                helpers=self.helpers,
            )
        except Exception as exc:
            await self._fallback(exc, view, options, callback)

    async def _fallback(
        self,
        error: Exception,
        view: Any,
        options: Mapping[str, Any] | RenderOptions | None,
        callback: RenderCallback | None,
    ) -> None:
        logger.error(
            "Layout render error: %s (view=%r)",
            error,
            view,
            exc_info=error,
        )
        try:
            await self._native_render(view, raw_template_data(options), callback)
        except Exception as fallback_error:
            logger.exception("Fallback render failed for view %r", view)
            self._terminal(fallback_error, callback)

    def _terminal(self, error: Exception, callback: RenderCallback | None) -> None:
        response = self._response
        if response.sent:
            return
        try:
            response.status = 500
            if callback is not None:
                callback(error, None)
            else:
                response.send(ERROR_BODY, content_type="text/plain; charset=utf-8")
        except Exception:
            logger.exception("Could not send error response")
