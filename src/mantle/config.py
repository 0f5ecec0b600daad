"""Layout configuration.

LayoutConfig is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups. Unknown options are
simply not accepted by the constructor.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from mantle.errors import ConfigurationError

_LAYOUT_NAME_RE = re.compile(r"[A-Za-z0-9_-]{1,50}")


@dataclass(frozen=True, slots=True)
class SecurityLimits:
    """Hard limits applied at the sanitization boundary.

    All fields have sensible defaults. Override what you need::

        limits = SecurityLimits(max_cache_size=200, max_section_size=10_000)
    """

    # Caches
    max_cache_size: int = 1000

    # Content
    max_section_size: int = 50_000
    max_layout_size: int = 100_000

    # Template extensions a LayoutConfig may choose from
    allowed_extensions: tuple[str, ...] = (".html", ".kida")

    # Nested render() calls within one task
    max_nesting_depth: int = 10

    # CSS/JS entries collected by helpers, and accepted from render options
    max_resources: int = 20
    max_option_resources: int = 10


@dataclass(frozen=True, slots=True)
class LayoutConfig:
    """Layout manager configuration. Immutable after creation.

    Relative directories are resolved against the current working
    directory when the manager is created::

        config = LayoutConfig(views_dir="templates", default_layout="main")
    """

    default_layout: str = "default"
    views_dir: str | Path = "views"
    layouts_dir: str | Path = "views/layouts"
    extension: str = ".html"

    # Default <title> when the caller supplies none
    app_name: str = "Mantle App"

    # Sections every layout can rely on being defined (possibly empty)
    sections: tuple[str, ...] = ("head", "header", "content", "footer", "scripts")

    # Seconds between cache maintenance passes
    cleanup_interval: float = 30 * 60

    security: SecurityLimits = field(default_factory=SecurityLimits)

    def __post_init__(self) -> None:
        if not self.extension.startswith(".") or len(self.extension) < 2:
            msg = f"extension must look like '.html', got {self.extension!r}"
            raise ConfigurationError(msg)
        if self.extension not in self.security.allowed_extensions:
            msg = (
                f"extension {self.extension!r} is not one of "
                f"security.allowed_extensions {self.security.allowed_extensions!r}"
            )
            raise ConfigurationError(msg)
        if not isinstance(self.default_layout, str) or not _LAYOUT_NAME_RE.fullmatch(
            self.default_layout
        ):
            msg = f"default_layout must match [A-Za-z0-9_-]{{1,50}}, got {self.default_layout!r}"
            raise ConfigurationError(msg)
        if self.cleanup_interval <= 0:
            raise ConfigurationError("cleanup_interval must be positive")
        limits = self.security
        for name in (
            "max_cache_size",
            "max_section_size",
            "max_layout_size",
            "max_nesting_depth",
            "max_resources",
            "max_option_resources",
        ):
            if getattr(limits, name) <= 0:
                msg = f"security.{name} must be positive"
                raise ConfigurationError(msg)
