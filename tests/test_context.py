"""Tests for mantle.context — render options and template data."""

from kida.template import Markup

from mantle.context import (
    LayoutOptions,
    MetaRecord,
    RenderContext,
    RenderOptions,
    SafeRequestSnapshot,
    SectionMap,
)


class TestRenderOptions:
    def test_empty(self) -> None:
        assert RenderOptions.from_mapping(None) == RenderOptions()

    def test_known_keys(self) -> None:
        opts = RenderOptions.from_mapping(
            {"layout": "main", "sections": {"head": "<meta>"}, "bodyClass": "home", "css": ["/a.css"]}
        )
        assert opts.layout == "main"
        assert opts.sections == {"head": "<meta>"}
        assert opts.body_class == "home"
        assert opts.css == ["/a.css"]

    def test_layout_false_is_kept(self) -> None:
        assert RenderOptions.from_mapping({"layout": False}).layout is False

    def test_invalid_shapes_are_dropped(self) -> None:
        opts = RenderOptions.from_mapping({"layout": 3, "sections": "x", "meta": [], "context": 1})
        assert opts.layout is None
        assert opts.sections == {}
        assert opts.meta == {}
        assert opts.context == {}

    def test_unknown_keys_are_ignored(self) -> None:
        opts = RenderOptions.from_mapping({"__class__": "x", "admin": True})
        assert opts == RenderOptions()


class TestSectionMap:
    def test_attribute_access(self) -> None:
        sections = SectionMap(head=Markup("<meta>"))
        assert sections.head == "<meta>"
        assert sections.missing == ""


class TestTemplateData:
    def test_sections_are_markup(self) -> None:
        context = RenderContext(
            view="index",
            layout="main",
            sections={"content": "<p>x</p>"},
            meta=MetaRecord(title="T"),
            layout_options=LayoutOptions(),
            request=SafeRequestSnapshot(),
        )
        data = context.template_data(required_sections=("head", "content"))
        assert isinstance(data["sections"]["content"], Markup)
        assert data["sections"]["head"] == ""
        assert data["meta"].title == "T"
        assert set(data) == {"view", "layout_name", "sections", "meta", "layout_options", "request"}
