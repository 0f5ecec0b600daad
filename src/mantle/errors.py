"""Mantle exception hierarchy.

Shared across the sanitizers, the path sandbox, the composition engine
and the layout manager so every module raises and catches the same types.
"""


class MantleError(Exception):
    """Base for all mantle-specific errors."""


class ConfigurationError(MantleError):
    """Raised when layout configuration is invalid.

    Typically raised by ``LayoutConfig.__post_init__`` at construction.
    """


class ValidationError(MantleError):
    """A view name, render options or layout content is malformed."""


class PathTraversalError(MantleError):
    """A resolved path escapes its configured root directory."""

    def __init__(self, path: str, root: str) -> None:
        self.path = path
        self.root = root
        super().__init__(f"Path {path!r} is outside {root!r}")


class TemplateIOError(MantleError, OSError):
    """A view or layout file is missing, unreadable or unwritable."""


class RenderError(MantleError):
    """The template engine failed while rendering a view.

    The original exception is chained as ``__cause__``.
    """
