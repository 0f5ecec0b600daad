"""Tests for mantle.interceptor — end-to-end rendering and fallback tiers."""

import logging
from pathlib import Path
from typing import Any

import pytest

from mantle.host import BufferedResponse, RequestInfo
from mantle.interceptor import ERROR_BODY
from mantle.manager import LayoutManager


class TestSuccess:
    async def test_composed_page(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        page = manager.intercept(RequestInfo(path="/"), response)
        await page.render("index", {"title": "Home", "sections": {"footer": "<p>Bye</p>"}})
        assert response.status == 200
        assert response.sent
        assert "<!DOCTYPE html>" in response.body
        assert "<title>Home</title>" in response.body
        assert "<h1>Home</h1>" in response.body
        assert "<p>Bye</p>" in response.body

    async def test_script_in_title_is_escaped(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        page = manager.intercept(RequestInfo(), response)
        await page.render("index", {"layout": "default", "meta": {"title": "<script>x</script>"}})
        assert "<script>" not in response.body
        assert "&lt;script&gt;" in response.body

    async def test_custom_layout_is_created_and_reused(self, manager: LayoutManager) -> None:
        layout_path = manager.resolve_layout_path("custom")
        assert not layout_path.exists()

        first = BufferedResponse()
        await manager.intercept(RequestInfo(), first).render("index", {"layout": "custom"})
        assert layout_path.is_file()
        assert "<main>" in first.body

        layout_path.write_text("<div id='shell'>{{ sections.content }}</div>")
        manager.reload_layouts()
        second = BufferedResponse()
        await manager.intercept(RequestInfo(), second).render("index", {"layout": "custom"})
        assert "<div id='shell'>" in second.body
        assert "Welcome" in second.body

    async def test_layout_false_is_plain_view_output(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        options = {"layout": False, "headline": "Plain"}
        await manager.intercept(RequestInfo(), response).render("blog/post", options)
        assert response.body == manager.renderer.render_to_string("blog/post", options)
        assert "<html" not in response.body

    async def test_helpers_from_handler(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        page = manager.intercept(RequestInfo(), response)
        assert page.helpers.css("/static/site.css") == ""
        assert page.helpers.js("/static/site.js") == ""
        page.helpers.meta("description", "A page")
        await page.render("index")
        assert '<link rel="stylesheet" href="/static/site.css"' in response.body
        assert '<script src="/static/site.js"' in response.body
        assert '<meta name="description" content="A page">' in response.body

    async def test_callback_receives_html(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        results: list[tuple[Any, Any]] = []
        await manager.intercept(RequestInfo(), response).render(
            "index", {"title": "Cb"}, lambda err, html: results.append((err, html))
        )
        assert not response.sent
        [(err, html)] = results
        assert err is None
        assert "<title>Cb</title>" in html


class TestFallback:
    async def test_first_tier_uses_native_render(
        self, manager: LayoutManager, caplog: pytest.LogCaptureFixture
    ) -> None:
        response = BufferedResponse()
        calls: list[Any] = []

        async def native(template: Any, data: Any, callback: Any = None) -> None:
            calls.append(template)
            if isinstance(template, Path):
                raise RuntimeError("layout engine down")
            response.send("plain view")

        with caplog.at_level(logging.ERROR, logger="mantle.layout"):
            await manager.intercept(RequestInfo(), response, native).render("index")
        assert response.body == "plain view"
        assert response.status == 200
        assert calls[-1] == "index"
        assert "Layout render error" in caplog.text
        assert "layout engine down" in caplog.text
        [record] = [r for r in caplog.records if r.getMessage().startswith("Layout render error")]
        assert isinstance(record.exc_info[1], RuntimeError)

    async def test_traversal_ends_in_500(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        await manager.intercept(RequestInfo(), response).render("../../etc/passwd")
        assert response.status == 500
        assert response.body == ERROR_BODY
        assert "Traceback" not in response.body

    async def test_broken_view_ends_in_500(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        await manager.intercept(RequestInfo(), response).render("broken")
        assert response.status == 500
        assert response.body == ERROR_BODY

    async def test_terminal_tier_uses_callback(self, manager: LayoutManager) -> None:
        response = BufferedResponse()
        errors: list[BaseException | None] = []

        async def native(template: Any, data: Any, callback: Any = None) -> None:
            raise RuntimeError("always fails")

        await manager.intercept(RequestInfo(), response, native).render(
            "index", None, lambda err, html: errors.append(err)
        )
        assert response.status == 500
        assert not response.sent
        assert isinstance(errors[0], RuntimeError)

    async def test_no_double_send(self, manager: LayoutManager) -> None:
        response = BufferedResponse()

        async def native(template: Any, data: Any, callback: Any = None) -> None:
            response.send("partial")
            raise RuntimeError("failed after sending")

        await manager.intercept(RequestInfo(), response, native).render("index")
        assert response.body == "partial"
        assert response.status == 200

    async def test_native_render_is_not_replaced(self, manager: LayoutManager) -> None:
        async def native(template: Any, data: Any, callback: Any = None) -> None:
            return None

        page = manager.intercept(RequestInfo(), BufferedResponse(), native)
        assert page.native_render is native
