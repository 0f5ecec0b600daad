"""Filesystem sandbox for views and layouts.

Names reaching this module have already been reduced to a small
character set by ``mantle.sanitize``, so ``..`` and backslashes cannot
appear. The resolver still canonicalizes every result and verifies it
stays under the configured root before any I/O is allowed.
"""

from pathlib import Path

from mantle.errors import PathTraversalError


class PathSandbox:
    """Resolve template names to files inside one root directory.

    Security: resolves symlinks and verifies the final path is within
    the root, so a path is never returned outside it, even partially.

    Usage::

        views = PathSandbox("views", extension=".html")
        views.resolve("blog/post")   # -> /abs/views/blog/post.html
        views.resolve("../secret")   # raises PathTraversalError
    """

    __slots__ = ("_extension", "_root")

    def __init__(self, root: str | Path, extension: str) -> None:
        self._root = Path(root).resolve()
        self._extension = extension

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, name: str) -> Path:
        """Return the absolute file path for *name*.

        Raises:
            PathTraversalError: If the result is not a descendant of the root.
        """
        if not name.endswith(self._extension):
            name = name + self._extension
        candidate = (self._root / name).resolve()
        if candidate == self._root or not candidate.is_relative_to(self._root):
            raise PathTraversalError(str(candidate), str(self._root))
        return candidate

    def contains(self, path: str | Path) -> bool:
        """True if *path* resolves to somewhere under the root."""
        return Path(path).resolve().is_relative_to(self._root)

    def relative_name(self, path: str | Path) -> str:
        """Template name of *path* relative to the root, with ``/`` separators."""
        return Path(path).resolve().relative_to(self._root).as_posix()
