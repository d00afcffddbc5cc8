"""Submits extraction payloads to a tab session and parses the results."""

import logging
import re
from typing import Any

from cdp_use.cdp.page import CaptureScreenshotParameters
from pydantic import ValidationError

from browserlens.browser import scripts
from browserlens.browser.connection import TabSession
from browserlens.browser.views import (
    CaptureOptions,
    CSSCaptureOptions,
    ElementInfo,
    HTMLCaptureOptions,
    ScrollOptions,
    ScrollResult,
)
from browserlens.exceptions import PageScriptError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 80


def prettify_html(html: str) -> str:
    """Break lines between adjacent tags and trim each line. Best effort."""
    try:
        broken = re.sub(r'>\s*<', '>\n<', html)
        return '\n'.join(line.strip() for line in broken.splitlines() if line.strip())
    except Exception as e:
        logger.debug(f'HTML formatting failed, returning unformatted: {e}')
        return html


def prettify_css(css: str) -> str:
    """Normalize whitespace around braces and declarations. Best effort."""
    try:
        css = re.sub(r'\{\s+', ' {\n  ', css)
        css = re.sub(r';\s+', ';\n  ', css)
        css = re.sub(r'\s+\}', '\n}', css)
        return re.sub(r'\}\s+', '}\n\n', css)
    except Exception as e:
        logger.debug(f'CSS formatting failed, returning unformatted: {e}')
        return css


def build_screenshot_params(options: CaptureOptions) -> CaptureScreenshotParameters:
    """Map capture options onto ``Page.captureScreenshot`` parameters.

    ``full_page`` becomes ``captureBeyondViewport``; the clip is scaled by the
    device pixel ratio. Quality only applies to lossy formats.
    """
    params = CaptureScreenshotParameters(
        format=options.format,
        captureBeyondViewport=options.full_page,
    )
    if options.format != 'png':
        if options.quality is not None:
            params['quality'] = options.quality
        elif options.format == 'jpeg':
            params['quality'] = DEFAULT_JPEG_QUALITY

    if options.clip:
        params['clip'] = {
            'x': options.clip.x,
            'y': options.clip.y,
            'width': options.clip.width,
            'height': options.clip.height,
            'scale': options.device_pixel_ratio or 1,
        }
    return params


def _exception_text(details: dict[str, Any]) -> str:
    exception = details.get('exception') or {}
    return exception.get('description') or details.get('text') or 'Uncaught exception'


class ExtractionProtocol:
    """Runs extraction payloads inside a tab and turns the results into models.

    A page-script exception is raised as ``PageScriptError``; anything the
    transport raises propagates unchanged, so the two stay distinguishable.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger('browserlens.extraction')

    async def evaluate(self, session: TabSession, expression: str, await_promise: bool = False) -> Any:
        """Evaluate ``expression`` and return its JSON value."""
        result = await session.evaluate(expression, await_promise=await_promise)
        if result.get('exceptionDetails'):
            raise PageScriptError(_exception_text(result['exceptionDetails']))
        return (result.get('result') or {}).get('value')

    async def capture_screenshot(self, session: TabSession, options: CaptureOptions) -> str:
        params = build_screenshot_params(options)
        self.logger.debug(f'Taking screenshot with params: {params}')
        return await session.capture_screenshot(params)

    async def capture_html(self, session: TabSession, options: HTMLCaptureOptions) -> str:
        self.logger.debug('Evaluating HTML extraction expression...')
        html = await self.evaluate(session, scripts.build_html_script(options)) or ''
        if options.prettify and html:
            html = prettify_html(html)
        return html

    async def capture_css(self, session: TabSession, options: CSSCaptureOptions) -> str:
        self.logger.debug('Evaluating CSS extraction expression...')
        css = await self.evaluate(session, scripts.build_css_script(options)) or ''
        if options.prettify and css:
            css = prettify_css(css)
        return css

    async def extract_elements(self, session: TabSession, selectors: list[str]) -> list[ElementInfo]:
        """Extract up to ten matches per selector.

        Entries the page script marked as failed are logged and dropped; only a
        failure of the evaluation itself raises.
        """
        self.logger.debug('Evaluating element extraction expression...')
        raw = await self.evaluate(session, scripts.build_elements_script(selectors)) or []

        elements: list[ElementInfo] = []
        for entry in raw:
            if not isinstance(entry, dict) or 'error' in entry:
                error = entry.get('error') if isinstance(entry, dict) else entry
                self.logger.debug(f'Element extraction warning: {error}')
                continue
            try:
                elements.append(ElementInfo.model_validate(entry))
            except ValidationError as e:
                self.logger.debug(f'Skipping malformed element entry for {entry.get("selector")}: {e}')

        skipped = len(raw) - len(elements)
        self.logger.debug(f'Extracted {len(elements)} elements ({skipped} had errors)')
        return elements

    async def scroll(self, session: TabSession, options: ScrollOptions) -> ScrollResult:
        """Run a scroll and read back the window offsets.

        Raises:
            PageScriptError: If the script reports failure, e.g. no element
                matched the selector.
        """
        result = await self.evaluate(session, scripts.build_scroll_script(options), await_promise=True) or {}
        if not result.get('success'):
            raise PageScriptError(result.get('error') or 'Scroll failed')
        return ScrollResult(
            scroll_type=options.scroll_type,
            scroll_x=result.get('scrollX', 0),
            scroll_y=result.get('scrollY', 0),
            selector=options.selector if options.scroll_type == 'element' else None,
        )
