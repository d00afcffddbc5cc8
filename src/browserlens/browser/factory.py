"""Factory functions for creating browser providers.

``use_browser_tools`` is the usual entry point: it resolves ``'auto'`` to a
detected browser, checks availability and returns a connected provider.
"""

import logging

import httpx
from bubus import EventBus

from browserlens.browser.probe import detect_browser
from browserlens.browser.provider import ChromeProvider
from browserlens.config import BrowserLensSettings, load_settings
from browserlens.exceptions import BrowserConnectionError, OptionsValidationError

logger = logging.getLogger(__name__)

SUPPORTED_BROWSER_TYPES: tuple[str, ...] = ('chrome',)


def _launch_guidance(port: int) -> str:
    return (
        f'Manual launch: chrome --remote-debugging-port={port}\n'
        f'macOS manual: open -a "Google Chrome" --args --remote-debugging-port={port}'
    )


def get_supported_browser_types() -> list[str]:
    return list(SUPPORTED_BROWSER_TYPES)


def is_browser_type_supported(browser_type: str) -> bool:
    return browser_type in SUPPORTED_BROWSER_TYPES


def create_provider(
    browser_type: str = 'chrome',
    settings: BrowserLensSettings | None = None,
    *,
    logger: logging.Logger | None = None,
    event_bus: EventBus | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChromeProvider:
    """Create a disconnected provider for ``browser_type``.

    Raises:
        OptionsValidationError: If the browser type is not supported.
    """
    if browser_type == 'chrome':
        return ChromeProvider(settings, logger=logger, event_bus=event_bus, transport=transport)
    raise OptionsValidationError(
        f'Browser type "{browser_type}" is not currently supported',
        details={'supported': get_supported_browser_types()},
    )


async def use_browser_tools(
    browser_type: str | None = None,
    settings: BrowserLensSettings | None = None,
    *,
    logger: logging.Logger | None = None,
    event_bus: EventBus | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChromeProvider:
    """Create, check and connect a provider.

    Args:
        browser_type: ``'chrome'`` or ``'auto'``. Defaults to ``settings.browser_type``.
        settings: Endpoint and timeouts. Defaults to the environment.

    Raises:
        BrowserConnectionError: If no browser is reachable, with launch guidance.
        OptionsValidationError: If the browser type is not supported.
    """
    settings = settings or load_settings()
    target = browser_type or settings.browser_type
    log = logging.getLogger(__name__)
    log.debug(f'Creating browser tools for: {target}')

    if target == 'auto':
        log.debug('Auto-detecting best available browser...')
        detection = await detect_browser(settings, transport=transport)
        if detection is None:
            message = f'Chrome not found with debugging enabled.\n{_launch_guidance(settings.port)}'
            log.error(message)
            raise BrowserConnectionError(message, 'chrome')
        target = detection.type
        log.info(f'Detected browser: {target}')

    provider = create_provider(target, settings, logger=logger, event_bus=event_bus, transport=transport)

    if not await provider.is_available():
        message = (
            f'{target} is not available. Please ensure the browser is running with debugging enabled.\n'
            f'{_launch_guidance(settings.port)}'
        )
        log.error(message)
        raise BrowserConnectionError(message, target)

    await provider.connect()
    log.info(f'Successfully created and connected {target} provider')
    return provider


async def create_connected_provider(
    browser_type: str,
    settings: BrowserLensSettings | None = None,
    *,
    logger: logging.Logger | None = None,
    event_bus: EventBus | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ChromeProvider:
    """Create and connect a provider, disconnecting it again if connecting fails."""
    provider = create_provider(browser_type, settings, logger=logger, event_bus=event_bus, transport=transport)
    try:
        if not await provider.is_available():
            raise BrowserConnectionError(
                f'{browser_type} is not available or not properly configured', browser_type
            )
        await provider.connect()
    except Exception:
        await provider.disconnect()
        raise
    return provider


async def test_browser_availability(
    browser_type: str,
    settings: BrowserLensSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Probe the endpoint for ``browser_type`` without connecting. Never raises."""
    try:
        provider = create_provider(browser_type, settings, transport=transport)
    except OptionsValidationError as e:
        logger.debug(f'Availability test skipped: {e.message}')
        return False
    return await provider.is_available()


# Not a pytest test despite the name
test_browser_availability.__test__ = False
