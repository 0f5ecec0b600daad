"""Shared fixtures: a throwaway views tree and a manager over it."""

from pathlib import Path

import pytest

from mantle.config import LayoutConfig, SecurityLimits
from mantle.manager import LayoutManager

INDEX_VIEW = "<h1>{{ meta.title }}</h1>\n<p>Welcome</p>\n"


@pytest.fixture
def views_dir(tmp_path: Path) -> Path:
    """A views root with a few views and an empty layouts directory."""
    views = tmp_path / "views"
    (views / "layouts").mkdir(parents=True)
    (views / "index.html").write_text(INDEX_VIEW)
    (views / "blog").mkdir()
    (views / "blog" / "post.html").write_text("<article>{{ headline }}</article>\n")
    (views / "helpers.html").write_text(
        '{{ layout.css("/static/inline.css") }}'
        '{{ layout.section("footer", "<p>from the view</p>") }}'
        "<p>body</p>\n"
    )
    (views / "broken.html").write_text("{% if %}\n")
    return views


@pytest.fixture
def config(views_dir: Path) -> LayoutConfig:
    return LayoutConfig(views_dir=views_dir, layouts_dir=views_dir / "layouts")


@pytest.fixture
def manager(config: LayoutConfig):
    mgr = LayoutManager(config)
    yield mgr
    mgr.destroy()


@pytest.fixture
def make_manager(views_dir: Path):
    """Build managers with overridden security limits."""
    created: list[LayoutManager] = []

    def _make(**limits: int) -> LayoutManager:
        mgr = LayoutManager(
            LayoutConfig(
                views_dir=views_dir,
                layouts_dir=views_dir / "layouts",
                security=SecurityLimits(**limits),
            )
        )
        created.append(mgr)
        return mgr

    yield _make
    for mgr in created:
        mgr.destroy()
