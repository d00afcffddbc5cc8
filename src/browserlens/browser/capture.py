"""Compound capture: several sub-captures of one tab aggregated into one result."""

import logging
import time
from typing import TYPE_CHECKING

from browserlens.browser.views import CaptureResult, TabCaptureOptions
from browserlens.exceptions import CaptureError, TabNotFoundError

if TYPE_CHECKING:
    from browserlens.browser.provider import BrowserProvider

logger = logging.getLogger(__name__)


async def capture_tab(
    provider: 'BrowserProvider',
    tab_id: str,
    options: TabCaptureOptions | None = None,
) -> CaptureResult:
    """Capture the requested parts of a tab, all or nothing.

    The tab is resolved once from a fresh listing. Only the sub-captures set on
    ``options`` run, in the order screenshot, html, css, elements. The first
    failure aborts the whole call; partial results are never returned.

    Args:
        provider: A connected provider.
        tab_id: Tab to capture.
        options: Sub-captures to run. ``None`` captures the tab info only.

    Raises:
        TabNotFoundError: If ``tab_id`` is not in the current listing.
        CaptureError: With ``capture_type='complete'`` wrapping the failing
            sub-capture's error.
    """
    options = options or TabCaptureOptions()

    tabs = await provider.list_tabs()
    tab_info = next((tab for tab in tabs if tab.id == tab_id), None)
    if tab_info is None:
        raise TabNotFoundError(f'Tab with ID {tab_id} not found', tab_id)

    result = CaptureResult(timestamp=int(time.time() * 1000), tab_info=tab_info)
    logger.debug(f'Starting complete capture of tab {tab_id}')

    try:
        if options.screenshot is not None:
            result.screenshot = await provider.capture_screenshot(tab_id, options.screenshot)
        if options.html is not None:
            result.html = await provider.capture_html(tab_id, options.html)
        if options.css is not None:
            result.css = await provider.capture_css(tab_id, options.css)
        if options.elements is not None:
            result.elements = await provider.extract_elements(tab_id, options.elements)
    except Exception as e:
        logger.error(f'Complete capture of tab {tab_id} failed: {type(e).__name__}: {e}')
        raise CaptureError(f'Failed to capture tab: {e}', tab_id, 'complete', cause=e) from e

    logger.info(f'Complete capture of tab {tab_id} finished')
    return result
