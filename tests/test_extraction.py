"""Tests for the extraction protocol: payload submission and result parsing."""

import pytest

from browserlens.browser.connection import TabSession
from browserlens.browser.extraction import (
    ExtractionProtocol,
    build_screenshot_params,
    prettify_css,
    prettify_html,
)
from browserlens.browser.views import (
    CaptureOptions,
    ClipRegion,
    CSSCaptureOptions,
    HTMLCaptureOptions,
    ScrollOptions,
)
from browserlens.exceptions import PageScriptError

from conftest import PNG_DATA, evaluate_returns, evaluate_throws, make_mock_cdp_client


@pytest.fixture()
def client():
    return make_mock_cdp_client()


@pytest.fixture()
def session(client):
    tab_session = TabSession(client, "A")
    tab_session.session_id = "session-A"
    return tab_session


@pytest.fixture()
def extraction():
    return ExtractionProtocol()


def element_entry(selector="button", **overrides):
    entry = {
        "selector": selector,
        "tagName": "button",
        "textContent": "Submit",
        "styles": {"display": "inline-block", "color": "rgb(0, 0, 0)"},
        "attributes": {"type": "submit", "class": "primary"},
        "boundingBox": {"x": 10, "y": 20, "width": 80, "height": 32},
        "isVisible": True,
        "scrollPosition": {"scrollTop": 0, "scrollLeft": 0},
    }
    entry.update(overrides)
    return entry


class TestScreenshotParams:
    """Tests for mapping CaptureOptions onto Page.captureScreenshot."""

    def test_png_defaults(self):
        params = build_screenshot_params(CaptureOptions())
        assert params == {"format": "png", "captureBeyondViewport": False}

    def test_jpeg_default_quality(self):
        params = build_screenshot_params(CaptureOptions(format="jpeg"))
        assert params["quality"] == 80

    def test_explicit_quality_for_lossy_formats(self):
        assert build_screenshot_params(CaptureOptions(format="webp", quality=55))["quality"] == 55
        assert build_screenshot_params(CaptureOptions(format="jpeg", quality=30))["quality"] == 30

    def test_png_ignores_quality(self):
        assert "quality" not in build_screenshot_params(CaptureOptions(format="png", quality=50))

    def test_full_page_captures_beyond_viewport(self):
        assert build_screenshot_params(CaptureOptions(fullPage=True))["captureBeyondViewport"] is True

    def test_clip_scaled_by_device_pixel_ratio(self):
        options = CaptureOptions(clip=ClipRegion(x=0, y=10, width=300, height=200), device_pixel_ratio=2)
        assert build_screenshot_params(options)["clip"] == {"x": 0, "y": 10, "width": 300, "height": 200, "scale": 2}

    def test_clip_scale_defaults_to_one(self):
        options = CaptureOptions(clip={"x": 1, "y": 2, "width": 3, "height": 4})
        assert build_screenshot_params(options)["clip"]["scale"] == 1


class TestPrettify:
    def test_html_breaks_between_tags(self):
        assert prettify_html("<div><p>Hi</p>  <p>There</p></div>") == "<div>\n<p>Hi</p>\n<p>There</p>\n</div>"

    def test_css_normalizes_blocks(self):
        formatted = prettify_css("h1{   color: red;   margin: 0;   }   p{  color: blue; }")
        assert "h1 {\n  color: red;\n  margin: 0;\n}" in formatted
        assert "}\n\np {" in formatted


class TestEvaluate:
    """Tests for telling page-script exceptions apart from transport failures."""

    @pytest.mark.asyncio
    async def test_returns_value(self, client, session, extraction):
        evaluate_returns(client, "Example Domain")
        assert await extraction.evaluate(session, "document.title") == "Example Domain"
        call = client.send.Runtime.evaluate.await_args
        assert call.kwargs["params"]["returnByValue"] is True
        assert call.kwargs["params"]["awaitPromise"] is False
        assert call.kwargs["session_id"] == "session-A"

    @pytest.mark.asyncio
    async def test_page_exception(self, client, session, extraction):
        evaluate_throws(client, "TypeError: x is undefined")
        with pytest.raises(PageScriptError) as exc_info:
            await extraction.evaluate(session, "x.y")
        assert exc_info.value.exception_text == "TypeError: x is undefined"

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_a_page_error(self, client, session, extraction):
        client.send.Runtime.evaluate.side_effect = ConnectionError("socket closed")
        with pytest.raises(ConnectionError):
            await extraction.evaluate(session, "1")


class TestCaptures:
    """Tests for HTML, CSS and screenshot capture through a session."""

    @pytest.mark.asyncio
    async def test_capture_html(self, client, session, extraction):
        evaluate_returns(client, "<html><body>Hi</body></html>")
        assert await extraction.capture_html(session, HTMLCaptureOptions()) == "<html><body>Hi</body></html>"

    @pytest.mark.asyncio
    async def test_capture_html_prettified(self, client, session, extraction):
        evaluate_returns(client, "<html><body></body></html>")
        html = await extraction.capture_html(session, HTMLCaptureOptions(prettify=True))
        assert html == "<html>\n<body>\n</body>\n</html>"

    @pytest.mark.asyncio
    async def test_capture_html_empty_result(self, client, session, extraction):
        evaluate_returns(client, None)
        assert await extraction.capture_html(session, HTMLCaptureOptions(prettify=True)) == ""

    @pytest.mark.asyncio
    async def test_capture_css(self, client, session, extraction):
        css = "h1 {\n  color: red;\n}\n\n/* No elements found for selector: .missing */"
        evaluate_returns(client, css)
        assert await extraction.capture_css(session, CSSCaptureOptions(selectors=["h1", ".missing"])) == css

    @pytest.mark.asyncio
    async def test_capture_screenshot(self, client, session, extraction):
        data = await extraction.capture_screenshot(session, CaptureOptions(format="jpeg"))
        assert data == PNG_DATA
        call = client.send.Page.captureScreenshot.await_args
        assert call.kwargs["params"]["format"] == "jpeg"
        assert call.kwargs["session_id"] == "session-A"

    @pytest.mark.asyncio
    async def test_capture_screenshot_without_data(self, client, session, extraction):
        client.send.Page.captureScreenshot.return_value = {}
        with pytest.raises(RuntimeError):
            await extraction.capture_screenshot(session, CaptureOptions())


class TestExtractElements:
    """Tests for parsing element extraction results."""

    @pytest.mark.asyncio
    async def test_parses_entries(self, client, session, extraction):
        evaluate_returns(client, [element_entry()])
        elements = await extraction.extract_elements(session, ["button"])

        assert len(elements) == 1
        element = elements[0]
        assert element.tag_name == "button"
        assert element.text_content == "Submit"
        assert element.attributes["type"] == "submit"
        assert element.bounding_box.width == 80
        assert element.is_visible is True
        assert element.scroll_position.scroll_top == 0

    @pytest.mark.asyncio
    async def test_error_markers_are_dropped(self, client, session, extraction):
        evaluate_returns(
            client,
            [
                element_entry("li:nth-child(1)"),
                {"selector": "li", "tagName": None, "textContent": None, "error": "Error processing element: boom"},
                element_entry("li:nth-child(3)"),
                {"selector": ".missing", "tagName": None, "textContent": None, "error": "No elements found for selector"},
            ],
        )
        elements = await extraction.extract_elements(session, ["li", ".missing"])
        assert [element.selector for element in elements] == ["li:nth-child(1)", "li:nth-child(3)"]

    @pytest.mark.asyncio
    async def test_malformed_entries_are_dropped(self, client, session, extraction):
        evaluate_returns(client, [element_entry(), {"selector": "div"}, "garbage"])
        elements = await extraction.extract_elements(session, ["button", "div"])
        assert len(elements) == 1

    @pytest.mark.asyncio
    async def test_page_exception_raises(self, client, session, extraction):
        evaluate_throws(client)
        with pytest.raises(PageScriptError):
            await extraction.extract_elements(session, ["button"])


class TestScroll:
    @pytest.mark.asyncio
    async def test_success(self, client, session, extraction):
        evaluate_returns(client, {"success": True, "scrollX": 0, "scrollY": 1200})
        result = await extraction.scroll(session, ScrollOptions(scroll_type="bottom"))
        assert result.scroll_type == "bottom"
        assert result.scroll_y == 1200
        assert result.selector is None

    @pytest.mark.asyncio
    async def test_awaits_the_settle_promise(self, client, session, extraction):
        evaluate_returns(client, {"success": True, "scrollX": 0, "scrollY": 1200})
        await extraction.scroll(session, ScrollOptions(scroll_type="bottom"))
        assert client.send.Runtime.evaluate.await_args.kwargs["params"]["awaitPromise"] is True

    @pytest.mark.asyncio
    async def test_element_result_echoes_selector(self, client, session, extraction):
        evaluate_returns(client, {"success": True, "scrollX": 0, "scrollY": 300})
        result = await extraction.scroll(session, ScrollOptions(scroll_type="element", selector="#footer"))
        assert result.selector == "#footer"

    @pytest.mark.asyncio
    async def test_reported_failure(self, client, session, extraction):
        evaluate_returns(client, {"success": False, "error": "No element found for selector: #nope"})
        with pytest.raises(PageScriptError, match="No element found"):
            await extraction.scroll(session, ScrollOptions(scroll_type="element", selector="#nope"))
