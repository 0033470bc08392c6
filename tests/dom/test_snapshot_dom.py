"""Tests for the lxml-backed SnapshotDOM provider."""

import pytest

from relocator.dom.provider import ElementStyle, is_visible
from relocator.dom.snapshot import SnapshotDOM
from relocator.errors import DOMQueryError
from relocator.geometry import BoundingBox


class TestVisibilityRule:
    """Tests for the shared visibility predicate."""

    def test_visible(self):
        assert is_visible(ElementStyle(), BoundingBox(0, 0, 10, 10))

    @pytest.mark.parametrize(
        "style,rect",
        [
            (ElementStyle(display="none"), BoundingBox(0, 0, 10, 10)),
            (ElementStyle(visibility="hidden"), BoundingBox(0, 0, 10, 10)),
            (ElementStyle(opacity="0"), BoundingBox(0, 0, 10, 10)),
            (ElementStyle(), BoundingBox(0, 0, 0, 10)),
        ],
    )
    def test_hidden(self, style, rect):
        assert not is_visible(style, rect)

    def test_unparseable_opacity_is_opaque(self):
        assert not ElementStyle(opacity="inherit").is_transparent


class TestSnapshotQueries:
    """Tests for CSS and XPath queries over parsed HTML."""

    @pytest.mark.asyncio
    async def test_css_query_in_document_order(self, make_dom):
        dom = make_dom('<p class="x">1</p><div><p class="x">2</p></div>')
        matches = await dom.query_all("p.x")
        assert [m.text for m in matches] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_query_one(self, make_dom):
        dom = make_dom("<p>1</p>")
        assert (await dom.query_one("p")).text == "1"
        assert await dom.query_one("span") is None

    @pytest.mark.asyncio
    async def test_invalid_selector(self, make_dom):
        with pytest.raises(DOMQueryError) as exc_info:
            await make_dom("<p>1</p>").query_all("p[")
        assert exc_info.value.query == "p["

    @pytest.mark.asyncio
    async def test_xpath(self, make_dom):
        dom = make_dom('<ul><li>a</li><li id="b">b</li></ul>')
        assert [el.text for el in await dom.evaluate_xpath("//li")] == ["a", "b"]
        assert await dom.evaluate_xpath("count(//li)") == []

    @pytest.mark.asyncio
    async def test_invalid_xpath(self, make_dom):
        with pytest.raises(DOMQueryError):
            await make_dom("<p>1</p>").evaluate_xpath("//p[")

    @pytest.mark.asyncio
    async def test_all_elements_under_body(self, make_dom):
        dom = make_dom("<p>a</p><span>b</span>", head="<title>t</title>")
        tags = [await dom.tag_name(el) for el in await dom.all_elements()]
        assert tags == ["p", "span"]

    @pytest.mark.asyncio
    async def test_all_elements_by_tag(self, make_dom):
        dom = make_dom("<p>a</p><span>b</span><p>c</p>")
        assert [el.text for el in await dom.all_elements("P")] == ["a", "c"]

    @pytest.mark.asyncio
    async def test_template_content_is_not_queried(self, make_dom):
        dom = make_dom('<template><p id="t">x</p></template>')
        assert await dom.query_all("#t") == []


class TestSnapshotLayoutAndStyle:
    """Tests for rectangles, computed style, and text."""

    @pytest.mark.asyncio
    async def test_layout_map(self, make_dom):
        dom = make_dom(
            '<button id="a">A</button><button id="b">B</button>',
            layout={"button": (0, 0, 50, 50), "#b": (200, 10, 80, 30)},
        )
        a = await dom.query_one("#a")
        b = await dom.query_one("#b")

        assert await dom.bounding_rect(a) == BoundingBox(0, 0, 50, 50)
        assert await dom.bounding_rect(b) == BoundingBox(200, 10, 80, 30)

    @pytest.mark.asyncio
    async def test_default_rect(self, make_dom):
        dom = make_dom("<span>x</span>")
        assert await dom.bounding_rect(await dom.query_one("span")) == BoundingBox(0, 0, 100, 20)

    @pytest.mark.asyncio
    async def test_collapsed_elements_have_no_box(self, make_dom):
        dom = make_dom('<div style="display: none"><span id="s">x</span></div><p hidden id="h">y</p>')
        span = await dom.query_one("#s")
        hidden = await dom.query_one("#h")

        assert (await dom.bounding_rect(span)).is_empty
        assert not await dom.is_visible(span)
        assert (await dom.style(hidden)).display == "none"

    @pytest.mark.asyncio
    async def test_visibility_is_inherited(self, make_dom):
        dom = make_dom('<div style="visibility:hidden"><span>x</span></div>')
        style = await dom.style(await dom.query_one("span"))
        assert style.visibility == "hidden"

    @pytest.mark.asyncio
    async def test_transparent(self, make_dom):
        dom = make_dom('<span style="opacity: 0 !important">x</span>')
        assert not await dom.is_visible(await dom.query_one("span"))

    @pytest.mark.asyncio
    async def test_rendered_text(self, make_dom):
        dom = make_dom(
            "<p>Hello <b>big</b>\n   world<script>var x;</script>"
            '<span style="display:none">no</span></p><div>a<br>b</div>'
        )
        assert await dom.text_content(await dom.query_one("p")) == "Hello big world"
        assert await dom.text_content(await dom.query_one("div")) == "a b"

    @pytest.mark.asyncio
    async def test_visible_text_of_form_fields(self, make_dom):
        dom = make_dom('<input id="e" placeholder="Email"><input id="v" value="typed"><textarea>notes</textarea>')

        assert await dom.visible_text(await dom.query_one("#e")) == "Email"
        assert await dom.visible_text(await dom.query_one("#v")) == "typed"
        assert await dom.visible_text(await dom.query_one("textarea")) == "notes"

    @pytest.mark.asyncio
    async def test_class_list(self, make_dom):
        dom = make_dom('<div class="a  b">x</div>')
        assert await dom.class_list(await dom.query_one("div")) == ["a", "b"]

    def test_to_html(self, make_dom):
        assert '<p id="x">' in make_dom('<p id="x">1</p>').to_html()


class TestSnapshotScoping:
    """Tests for frame and shadow root scoping."""

    SHADOW = '<x-card id="host"><template shadowrootmode="open"><b id="inner">In</b></template></x-card><i id="plain">p</i>'

    @pytest.mark.asyncio
    async def test_shadow_root_boundary(self, make_dom):
        dom = make_dom(self.SHADOW)
        assert await dom.query_all("#inner") == []

        inside = await dom.scoped(shadow_hosts=["#host"])
        assert [el.get("id") for el in await inside.query_all("b")] == ["inner"]
        assert [el.get("id") for el in await inside.all_elements()] == ["inner"]

    @pytest.mark.asyncio
    async def test_missing_shadow_host(self, make_dom):
        with pytest.raises(DOMQueryError, match="Shadow host not found"):
            await make_dom(self.SHADOW).scoped(shadow_hosts=["#nope"])

    @pytest.mark.asyncio
    async def test_host_without_shadow_root(self, make_dom):
        with pytest.raises(DOMQueryError, match="no shadow root"):
            await make_dom(self.SHADOW).scoped(shadow_hosts=["#plain"])

    @pytest.mark.asyncio
    async def test_frames(self, make_dom):
        inner = make_dom('<a id="link">x</a>')
        outer = make_dom("<iframe></iframe>", frames=[inner])

        scoped = await outer.scoped(iframe_chain=[0])
        assert scoped is inner
        with pytest.raises(DOMQueryError, match="out of range"):
            await outer.scoped(iframe_chain=[1])

    @pytest.mark.asyncio
    async def test_empty_chains_return_self(self, make_dom):
        dom = make_dom("<p>x</p>")
        assert await dom.scoped() is dom


CAPTURE = {
    "tag": "html",
    "attributes": {},
    "children": [
        {
            "tag": "body",
            "attributes": {},
            "rect": {"x": 0, "y": 0, "width": 1280, "height": 720},
            "style": {"display": "block", "visibility": "visible", "opacity": "1"},
            "children": [
                {
                    "tag": "button",
                    "attributes": {"id": "go", "@click": "submit()"},
                    "rect": {"x": 10, "y": 20, "width": 80, "height": 30},
                    "style": {"display": "inline-block", "visibility": "visible", "opacity": "1"},
                    "children": [{"text": "Go"}],
                },
                {
                    "tag": "input",
                    "attributes": {"name": "q"},
                    "value": "typed",
                    "rect": {"x": 10, "y": 60, "width": 200, "height": 24},
                    "style": {"display": "inline-block", "visibility": "visible", "opacity": "1"},
                    "children": [],
                },
                {
                    "tag": "div",
                    "attributes": {"id": "gone"},
                    "rect": {"x": 0, "y": 0, "width": 0, "height": 0},
                    "style": {"display": "none", "visibility": "visible", "opacity": "1"},
                    "children": [{"text": "secret"}],
                },
                {
                    "tag": "x-card",
                    "attributes": {"id": "host"},
                    "children": [],
                    "shadowChildren": [
                        {
                            "tag": "span",
                            "attributes": {"id": "inner"},
                            "rect": {"x": 300, "y": 20, "width": 50, "height": 20},
                            "style": {"display": "inline", "visibility": "visible", "opacity": "1"},
                            "children": [{"text": "Inside"}],
                        }
                    ],
                },
                {
                    "tag": "iframe",
                    "attributes": {},
                    "children": [],
                    "frame": {
                        "tag": "html",
                        "children": [
                            {"tag": "body", "children": [{"tag": "a", "attributes": {"id": "link"}, "children": []}]}
                        ],
                    },
                },
                {"tag": "iframe", "attributes": {}, "children": [], "frame": None},
            ],
        }
    ],
}


class TestSnapshotFromCapture:
    """Tests for SnapshotDOM.from_capture."""

    @pytest.fixture
    def dom(self):
        return SnapshotDOM.from_capture(CAPTURE)

    @pytest.mark.asyncio
    async def test_geometry_and_style(self, dom):
        button = await dom.query_one("#go")

        assert await dom.bounding_rect(button) == BoundingBox(10, 20, 80, 30)
        assert (await dom.style(button)).display == "inline-block"
        assert await dom.text_content(button) == "Go"
        assert await dom.is_visible(button)

    @pytest.mark.asyncio
    async def test_invalid_attribute_names_are_dropped(self, dom):
        button = await dom.query_one("#go")
        assert await dom.attribute(button, "id") == "go"
        assert "@click" not in button.attrib

    @pytest.mark.asyncio
    async def test_live_value(self, dom):
        assert await dom.visible_text(await dom.query_one("input")) == "typed"

    @pytest.mark.asyncio
    async def test_hidden_element(self, dom):
        assert not await dom.is_visible(await dom.query_one("#gone"))

    @pytest.mark.asyncio
    async def test_missing_rect_is_empty(self, dom):
        assert (await dom.bounding_rect(await dom.query_one("x-card"))).is_empty

    @pytest.mark.asyncio
    async def test_shadow_children(self, dom):
        assert await dom.query_all("#inner") == []
        inside = await dom.scoped(shadow_hosts=["#host"])
        assert await inside.text_content(await inside.query_one("#inner")) == "Inside"

    @pytest.mark.asyncio
    async def test_frames(self, dom):
        frame = await dom.scoped(iframe_chain=[0])
        assert await frame.query_one("#link") is not None
        with pytest.raises(DOMQueryError, match="not accessible"):
            await dom.scoped(iframe_chain=[1])
