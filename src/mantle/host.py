"""Host-side interfaces: the request, the response and the native renderer.

Mantle does not own the HTTP transport. A host server hands it a
request-like object, a response writer and a *native render* callable
(its own, un-layouted renderer). ``TemplateRenderer`` is the bundled
native renderer for hosts that do not bring one; ``BufferedResponse``
is a response writer that simply collects the output.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from kida import Environment

from mantle.paths import PathSandbox
from mantle.templating import create_environment

logger = logging.getLogger("mantle.layout")

# (error, html); exactly one of the two is None
type RenderCallback = Callable[[BaseException | None, str | None], None]

# The host's own render function, already bound to one response
type NativeRender = Callable[[str | Path, Mapping[str, Any], RenderCallback | None], Awaitable[None]]


class RequestLike(Protocol):
    """The request attributes mantle reads. All are optional at runtime."""

    url: str
    path: str
    method: str
    query: Mapping[str, Any]
    path_params: Mapping[str, Any]


class ResponseWriter(Protocol):
    """The response surface used by the fallback path."""

    status: int

    @property
    def sent(self) -> bool: ...

    def send(self, body: str, *, content_type: str = "text/html; charset=utf-8") -> None: ...


@dataclass(frozen=True, slots=True)
class RequestInfo:
    """A plain ``RequestLike`` for hosts without a request object of their own."""

    path: str = "/"
    method: str = "GET"
    query: Mapping[str, Any] = field(default_factory=dict)
    path_params: Mapping[str, Any] = field(default_factory=dict)
    query_string: str = ""

    @property
    def url(self) -> str:
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path


class ResponseAlreadySentError(RuntimeError):
    """A second body was written to a response that already has one."""


@dataclass(slots=True)
class BufferedResponse:
    """A ``ResponseWriter`` that keeps the body in memory."""

    status: int = 200
    body: str = ""
    content_type: str = "text/html; charset=utf-8"
    _sent: bool = False

    @property
    def sent(self) -> bool:
        return self._sent

    def send(self, body: str, *, content_type: str = "text/html; charset=utf-8") -> None:
        if self._sent:
            raise ResponseAlreadySentError("Response body has already been sent")
        self.body = body
        self.content_type = content_type
        self._sent = True


class TemplateRenderer:
    """Native (layout-free) renderer backed by kida.

    Template names are resolved against the views root; absolute paths
    are accepted if they lie under the views root or one of
    *extra_roots* (e.g. a layouts directory kept elsewhere).

    Usage::

        renderer = TemplateRenderer("views")
        native = renderer.bind(response)
        await native("index", {"title": "Home"}, None)
    """

    __slots__ = ("_envs", "_filters", "_sandboxes")

    def __init__(
        self,
        views_dir: str | Path,
        *,
        extension: str = ".html",
        extra_roots: Sequence[str | Path] = (),
        filters: dict[str, Callable[..., Any]] | None = None,
    ) -> None:
        self._sandboxes = [PathSandbox(views_dir, extension)]
        self._sandboxes.extend(PathSandbox(root, extension) for root in extra_roots)
        self._filters = filters
        self._envs: dict[Path, Environment] = {}

    def clear(self) -> None:
        """Drop compiled templates so edited files are picked up."""
        self._envs.clear()

    def environment(self, root: Path) -> Environment:
        env = self._envs.get(root)
        if env is None:
            env = create_environment([root], filters=self._filters)
            self._envs[root] = env
        return env

    def _locate(self, template: str | Path) -> tuple[PathSandbox, str]:
        path = Path(template)
        if path.is_absolute():
            for sandbox in self._sandboxes:
                if sandbox.contains(path):
                    return sandbox, sandbox.relative_name(path)
            msg = f"Template {path.name!r} is outside every template root"
            raise FileNotFoundError(msg)
        views = self._sandboxes[0]
        return views, views.relative_name(views.resolve(str(template)))

    def render_to_string(self, template: str | Path, data: Mapping[str, Any]) -> str:
        sandbox, name = self._locate(template)
        return self.environment(sandbox.root).get_template(name).render(dict(data))

    def bind(self, response: ResponseWriter) -> NativeRender:
        """Return a native render function that writes to *response*."""

        async def render(
            template: str | Path,
            data: Mapping[str, Any],
            callback: RenderCallback | None = None,
        ) -> None:
            try:
                html = self.render_to_string(template, data)
            except Exception as exc:
                if callback is None:
                    raise
                callback(exc, None)
                return
            if callback is not None:
                callback(None, html)
                return
            if response.sent:
                logger.warning("Response already sent; dropping render of %s", template)
                return
            response.send(html)

        return render
