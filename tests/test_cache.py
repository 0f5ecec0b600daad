"""Tests for mantle.cache — coarse bounded caches and their cleanup task."""

import asyncio
from pathlib import Path

from mantle.cache import LayoutCache, LayoutEntry


def _entry(name: str) -> LayoutEntry:
    return LayoutEntry(name=name, path=Path(f"/layouts/{name}.html"))


class TestBounds:
    def test_put_and_get(self) -> None:
        cache = LayoutCache(max_size=5)
        cache.put(_entry("main"))
        assert cache.get("main") == _entry("main")

    def test_crossing_bound_clears_everything(self) -> None:
        cache = LayoutCache(max_size=3)
        for i in range(3):
            cache.put(_entry(f"l{i}"))
        assert cache.layout_count == 3
        cache.put(_entry("l3"))
        assert cache.layout_count == 0
        assert cache.get("l0") is None

    def test_section_bound(self) -> None:
        cache = LayoutCache(max_size=2)
        cache.put_sections("a:main", ("content",))
        cache.put_sections("b:main", ("content",))
        cache.put_sections("c:main", ("content",))
        assert cache.section_count == 0

    def test_evict(self) -> None:
        cache = LayoutCache(max_size=5)
        cache.put(_entry("main"))
        cache.evict("main")
        cache.evict("missing")
        assert cache.get("main") is None

    def test_cleanup_only_clears_oversized_maps(self) -> None:
        cache = LayoutCache(max_size=2)
        cache.put(_entry("a"))
        cache._sections.update({"x": (), "y": (), "z": ()})
        cache.cleanup()
        assert cache.layout_count == 1
        assert cache.section_count == 0


class TestLifecycle:
    async def test_start_runs_cleanup_immediately(self) -> None:
        cache = LayoutCache(max_size=1)
        cache._layouts.update({"a": _entry("a"), "b": _entry("b")})
        cache.start(3600)
        await asyncio.sleep(0)
        assert cache.layout_count == 0
        assert cache.running
        await cache.aclose()

    async def test_start_is_idempotent(self) -> None:
        cache = LayoutCache(max_size=10)
        cache.start(3600)
        task = cache._task
        cache.start(3600)
        assert cache._task is task
        await cache.aclose()

    async def test_periodic_cleanup(self) -> None:
        cache = LayoutCache(max_size=1)
        cache.start(0.01)
        await asyncio.sleep(0)
        cache._layouts.update({"a": _entry("a"), "b": _entry("b")})
        await asyncio.sleep(0.05)
        assert cache.layout_count == 0
        await cache.aclose()

    async def test_destroy_twice(self) -> None:
        cache = LayoutCache(max_size=10)
        cache.start(3600)
        cache.put(_entry("main"))
        cache.put_sections("index:main", ("content",))
        cache.destroy()
        cache.destroy()
        assert not cache.running
        assert cache.layout_count == 0
        assert cache.section_count == 0

    def test_destroy_without_start(self) -> None:
        cache = LayoutCache(max_size=10)
        cache.destroy()
        assert cache.layout_count == 0
