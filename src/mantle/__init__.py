"""Mantle — secure layout composition for server-rendered HTML.

Renders a view to HTML, wraps it in a layout shell, and keeps
request-derived data on the safe side of the filesystem and the markup.

Basic usage::

    from mantle import LayoutConfig, LayoutManager

    manager = LayoutManager(LayoutConfig(views_dir="views"))

    async def handler(request, response):
        page = manager.intercept(request, response)
        page.helpers.css("/static/site.css")
        await page.render("index", {"title": "Home", "sections": {"footer": "<p>Bye</p>"}})
"""

__version__ = "0.1.0"
__all__ = [
    "BufferedResponse",
    "ConfigurationError",
    "LayoutConfig",
    "LayoutManager",
    "MantleError",
    "PathTraversalError",
    "RenderError",
    "RenderInterceptor",
    "RenderOptions",
    "RequestInfo",
    "SecurityLimits",
    "TemplateIOError",
    "TemplateRenderer",
    "ValidationError",
    "escape_html",
]

_ERRORS = (
    "ConfigurationError",
    "MantleError",
    "PathTraversalError",
    "RenderError",
    "TemplateIOError",
    "ValidationError",
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import mantle`` fast; kida and anyio load on first use.
    """
    if name == "LayoutManager":
        from mantle.manager import LayoutManager

        return LayoutManager

    if name in ("LayoutConfig", "SecurityLimits"):
        import mantle.config

        return getattr(mantle.config, name)

    if name in _ERRORS:
        import mantle.errors

        return getattr(mantle.errors, name)

    if name == "RenderInterceptor":
        from mantle.interceptor import RenderInterceptor

        return RenderInterceptor

    if name == "RenderOptions":
        from mantle.context import RenderOptions

        return RenderOptions

    if name in ("BufferedResponse", "RequestInfo", "TemplateRenderer"):
        import mantle.host

        return getattr(mantle.host, name)

    if name == "escape_html":
        from mantle.sanitize import escape_html

        return escape_html

    msg = f"module 'mantle' has no attribute {name!r}"
    raise AttributeError(msg)
