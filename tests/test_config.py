"""Tests for mantle.config — LayoutConfig and SecurityLimits frozen dataclasses."""

from pathlib import Path

import pytest

from mantle.config import LayoutConfig, SecurityLimits
from mantle.errors import ConfigurationError


class TestLayoutConfig:
    def test_defaults(self) -> None:
        cfg = LayoutConfig()

        assert cfg.default_layout == "default"
        assert cfg.views_dir == "views"
        assert cfg.layouts_dir == "views/layouts"
        assert cfg.extension == ".html"
        assert cfg.cleanup_interval == 1800
        assert cfg.sections == ("head", "header", "content", "footer", "scripts")

    def test_security_defaults(self) -> None:
        limits = LayoutConfig().security

        assert limits.max_cache_size == 1000
        assert limits.max_section_size == 50_000
        assert limits.max_layout_size == 100_000
        assert limits.max_nesting_depth == 10
        assert limits.max_resources == 20
        assert limits.max_option_resources == 10

    def test_override(self) -> None:
        cfg = LayoutConfig(views_dir=Path("templates"), default_layout="main")

        assert cfg.views_dir == Path("templates")
        assert cfg.default_layout == "main"

    def test_frozen(self) -> None:
        cfg = LayoutConfig()

        with pytest.raises(AttributeError):
            cfg.extension = ".ejs"  # type: ignore[misc]

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(TypeError):
            LayoutConfig(layout_engine="ejs")  # type: ignore[call-arg]


class TestValidation:
    @pytest.mark.parametrize("extension", ["", "html", "."])
    def test_bad_extension(self, extension: str) -> None:
        with pytest.raises(ConfigurationError):
            LayoutConfig(extension=extension)

    @pytest.mark.parametrize("name", ["", "my layout", "../main", "x" * 51])
    def test_default_layout_must_be_a_clean_name(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match="default_layout"):
            LayoutConfig(default_layout=name)

    def test_default_layout_at_length_limit(self) -> None:
        assert LayoutConfig(default_layout="x" * 50).default_layout == "x" * 50

    def test_extension_must_be_allowed(self) -> None:
        with pytest.raises(ConfigurationError, match="allowed_extensions"):
            LayoutConfig(extension=".ejs")

    def test_extension_from_custom_allow_list(self) -> None:
        cfg = LayoutConfig(extension=".ejs", security=SecurityLimits(allowed_extensions=(".ejs",)))
        assert cfg.extension == ".ejs"

    def test_non_positive_interval(self) -> None:
        with pytest.raises(ConfigurationError):
            LayoutConfig(cleanup_interval=0)

    def test_non_positive_limit(self) -> None:
        with pytest.raises(ConfigurationError, match="max_cache_size"):
            LayoutConfig(security=SecurityLimits(max_cache_size=0))
