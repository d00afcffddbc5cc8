"""Provider façade: the public contract of the browser control layer.

Key Components:
    BrowserProvider: Structural interface every provider satisfies.
    ChromeProvider: Chrome DevTools Protocol implementation.

Every operation requires a successful ``connect()``. Lower-level failures
are wrapped into the ``browserlens.exceptions`` taxonomy here, so nothing
from the transport crosses this boundary unwrapped.

Example:
    >>> async with ChromeProvider(load_settings()) as provider:
    ...     tabs = await provider.list_tabs()
    ...     png = await provider.capture_screenshot(tabs[0].id)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeVar, runtime_checkable

import httpx
from bubus import EventBus
from cdp_use import CDPClient

from browserlens.browser.capabilities import BrowserCapabilities, CapabilityTier, capabilities_for
from browserlens.browser.capture import capture_tab
from browserlens.browser.connection import ConnectionManager, ConnectionState, TabSession
from browserlens.browser.extraction import ExtractionProtocol
from browserlens.browser.probe import is_available
from browserlens.browser.scripts import is_safe_selector, sanitize_selectors
from browserlens.browser.tabs import TabRegistry
from browserlens.browser.views import (
    CaptureOptions,
    CaptureResult,
    CSSCaptureOptions,
    ElementInfo,
    HTMLCaptureOptions,
    ScrollOptions,
    ScrollResult,
    TabCaptureOptions,
    TabInfo,
)
from browserlens.config import BrowserLensSettings, load_settings
from browserlens.exceptions import (
    BrowserConnectionError,
    CaptureError,
    CaptureType,
    OptionsValidationError,
    TabNotFoundError,
)
from browserlens.utils.timeouts import with_timeout

T = TypeVar('T')


@runtime_checkable
class BrowserProvider(Protocol):
    """Operations a browser provider offers to the orchestration layer."""

    def get_browser_type(self) -> str: ...

    def get_capabilities(self) -> BrowserCapabilities: ...

    async def is_available(self) -> bool: ...

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def list_tabs(self) -> list[TabInfo]: ...

    async def capture_screenshot(self, tab_id: str, options: CaptureOptions | None = None) -> str: ...

    async def capture_html(self, tab_id: str, options: HTMLCaptureOptions | None = None) -> str: ...

    async def capture_css(self, tab_id: str, options: CSSCaptureOptions) -> str: ...

    async def extract_elements(self, tab_id: str, selectors: list[str]) -> list[ElementInfo]: ...

    async def set_active_tab(self, tab_id: str) -> None: ...

    async def scroll_page(self, tab_id: str, options: ScrollOptions) -> ScrollResult: ...

    async def capture_tab(self, tab_id: str, options: TabCaptureOptions | None = None) -> CaptureResult: ...


class ChromeProvider:
    """Chrome provider over the DevTools Protocol.

    Tab existence is checked against a fresh listing before every tab
    operation. Each operation that talks to a tab opens its own session and
    releases it when done.
    """

    def __init__(
        self,
        settings: BrowserLensSettings | None = None,
        *,
        tier: CapabilityTier | str | None = None,
        logger: logging.Logger | None = None,
        event_bus: EventBus | None = None,
        client_factory: Callable[[str], Any] = CDPClient,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Create a disconnected provider.

        Args:
            settings: Endpoint and timeouts. Defaults to the environment.
            tier: Capability tier to report. Defaults to ``settings.capability_tier``.
            logger: Logger for this provider. Defaults to ``browserlens.chrome``.
            event_bus: Optional bus for lifecycle events and shutdown requests.
            client_factory: Builds the root CDP client from a WebSocket URL.
            transport: httpx transport for the HTTP endpoint, for tests.
        """
        self._settings = settings or load_settings()
        self._logger = logger
        self._tier = CapabilityTier(tier or self._settings.capability_tier)
        self._capabilities = capabilities_for(self._tier)
        self._transport = transport

        self._connection = ConnectionManager(
            self._settings,
            browser_type=self.get_browser_type(),
            logger=self.logger,
            event_bus=event_bus,
            client_factory=client_factory,
            transport=transport,
        )
        self._tabs = TabRegistry(
            self._settings.endpoint,
            timeout=self._settings.tab_request_timeout,
            browser_type=self.get_browser_type(),
            transport=transport,
        )
        self._extraction = ExtractionProtocol(logger=self.logger)

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger('browserlens.chrome')
        return self._logger

    @property
    def settings(self) -> BrowserLensSettings:
        return self._settings

    @property
    def connection(self) -> ConnectionManager:
        return self._connection

    @property
    def is_connected(self) -> bool:
        return self._connection.state is ConnectionState.CONNECTED

    def get_browser_type(self) -> str:
        return 'chrome'

    def get_capabilities(self) -> BrowserCapabilities:
        return self._capabilities

    async def is_available(self) -> bool:
        return await is_available(
            self._settings.endpoint, timeout=self._settings.probe_timeout, transport=self._transport
        )

    async def connect(self) -> None:
        await self._connection.connect()

    async def disconnect(self) -> None:
        await self._connection.disconnect(reason='Disconnected by request')

    async def __aenter__(self) -> 'ChromeProvider':
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def _assert_connected(self) -> None:
        if not self.is_connected:
            raise BrowserConnectionError('Browser not connected. Call connect() first.', self.get_browser_type())

    def _require(self, supported: bool, feature: str) -> None:
        if not supported:
            raise OptionsValidationError(
                f'{feature} is not supported by the {self._tier.value} capability tier',
                details={'limitations': list(self._capabilities.limitations)},
            )

    async def _resolve_tab(self, tab_id: str) -> TabInfo:
        try:
            return await self._tabs.find_tab(tab_id)
        except TabNotFoundError:
            raise
        except Exception as e:
            self.logger.error(f'Failed to resolve tab {tab_id}: {e}')
            raise BrowserConnectionError(
                f'Failed to list {self.get_browser_type()} tabs: {e}', self.get_browser_type(), cause=e
            ) from e

    async def _run_in_tab(
        self,
        tab_id: str,
        capture_type: CaptureType,
        operation: Callable[[TabSession], Awaitable[T]],
    ) -> T:
        """Run ``operation`` inside a fresh tab session under the operation timeout.

        Failures other than a vanished tab or a dropped connection become a
        ``CaptureError`` of ``capture_type``.
        """

        async def run() -> T:
            async with self._connection.tab_session(tab_id) as session:
                return await operation(session)

        try:
            return await with_timeout(run(), self._settings.operation_timeout, f'{capture_type} capture')
        except (TabNotFoundError, BrowserConnectionError):
            raise
        except Exception as e:
            self.logger.error(f'{capture_type} capture failed for tab {tab_id}: {type(e).__name__}: {e}')
            raise CaptureError(
                f'Failed to capture {capture_type}: {e}', tab_id, capture_type, cause=e
            ) from e

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def list_tabs(self) -> list[TabInfo]:
        self._assert_connected()
        self._require(self._capabilities.can_list_tabs, 'Tab listing')
        self.logger.debug('Fetching tab list...')
        try:
            tabs = await self._tabs.list_tabs()
        except Exception as e:
            self.logger.error(f'Failed to list tabs: {e}')
            raise BrowserConnectionError(
                f'Failed to list {self.get_browser_type()} tabs: {e}', self.get_browser_type(), cause=e
            ) from e
        self.logger.debug(f'Listed {len(tabs)} tabs')
        return tabs

    async def capture_screenshot(self, tab_id: str, options: CaptureOptions | None = None) -> str:
        options = options or CaptureOptions()
        self._assert_connected()
        self._require(self._capabilities.can_capture_screenshots, 'Screenshot capture')
        if options.format not in self._capabilities.supported_image_formats:
            raise OptionsValidationError(
                f'Image format {options.format!r} is not supported; '
                f'use one of {list(self._capabilities.supported_image_formats)}'
            )
        if options.full_page:
            self._require(self._capabilities.can_capture_full_page, 'Full page capture')

        await self._resolve_tab(tab_id)
        self.logger.debug(f'Capturing screenshot of tab {tab_id}')
        data = await self._run_in_tab(
            tab_id, 'screenshot', lambda session: self._extraction.capture_screenshot(session, options)
        )
        self.logger.info(f'Screenshot captured for tab {tab_id}, data length: {len(data)}')
        return data

    async def capture_html(self, tab_id: str, options: HTMLCaptureOptions | None = None) -> str:
        options = options or HTMLCaptureOptions()
        self._assert_connected()
        self._require(self._capabilities.can_capture_html, 'HTML capture')
        if options.selectors and not sanitize_selectors(options.selectors):
            raise OptionsValidationError('No valid selectors provided')

        await self._resolve_tab(tab_id)
        self.logger.debug(f'Capturing HTML from tab {tab_id}')
        html = await self._run_in_tab(tab_id, 'html', lambda session: self._extraction.capture_html(session, options))
        self.logger.info(f'HTML captured from tab {tab_id}, length: {len(html)}')
        return html

    async def capture_css(self, tab_id: str, options: CSSCaptureOptions) -> str:
        self._assert_connected()
        self._require(self._capabilities.can_capture_css, 'CSS capture')
        if not options.selectors:
            raise OptionsValidationError('CSS capture requires at least one selector')
        if not sanitize_selectors(options.selectors):
            raise OptionsValidationError('No valid selectors provided')

        await self._resolve_tab(tab_id)
        self.logger.debug(f'Capturing CSS from tab {tab_id} for selectors: {options.selectors}')
        css = await self._run_in_tab(tab_id, 'css', lambda session: self._extraction.capture_css(session, options))
        self.logger.info(f'CSS captured from tab {tab_id}, length: {len(css)}')
        return css

    async def extract_elements(self, tab_id: str, selectors: list[str]) -> list[ElementInfo]:
        self._assert_connected()
        self._require(self._capabilities.can_extract_elements, 'Element extraction')
        sanitized = sanitize_selectors(selectors)
        if not sanitized:
            raise OptionsValidationError('No valid selectors provided')

        await self._resolve_tab(tab_id)
        self.logger.debug(f'Extracting elements from tab {tab_id} for selectors: {sanitized}')
        elements = await self._run_in_tab(
            tab_id, 'elements', lambda session: self._extraction.extract_elements(session, sanitized)
        )
        self.logger.info(f'Extracted {len(elements)} elements from tab {tab_id}')
        return elements

    async def set_active_tab(self, tab_id: str) -> None:
        """Bring an existing tab to the foreground.

        This only switches between open tabs; it never navigates and accepts
        no URL.
        """
        self._assert_connected()
        self._require(self._capabilities.can_list_tabs, 'Tab activation')
        await self._resolve_tab(tab_id)

        self.logger.debug(f'Setting tab {tab_id} as active...')
        try:
            response = await self._tabs.activate(tab_id)
        except Exception as e:
            self.logger.error(f'Failed to set active tab {tab_id}: {e}')
            raise BrowserConnectionError(
                f'Failed to set active tab: {e}', self.get_browser_type(), cause=e
            ) from e
        self.logger.info(f'Tab {tab_id} set as active. Response: {response}')

    async def scroll_page(self, tab_id: str, options: ScrollOptions) -> ScrollResult:
        self._assert_connected()
        self._require(self._capabilities.can_inject_javascript, 'Page scrolling')
        if options.scroll_type == 'element':
            if not options.selector:
                raise OptionsValidationError('Element scrolling requires a selector')
            if not is_safe_selector(options.selector):
                raise OptionsValidationError(f'Invalid selector: {options.selector!r}')

        await self._resolve_tab(tab_id)
        self.logger.debug(f'Scrolling tab {tab_id}: {options.scroll_type}')
        result = await self._run_in_tab(tab_id, 'scroll', lambda session: self._extraction.scroll(session, options))
        self.logger.info(f'Scrolled tab {tab_id} to ({result.scroll_x}, {result.scroll_y})')
        return result

    async def capture_tab(self, tab_id: str, options: TabCaptureOptions | None = None) -> CaptureResult:
        return await capture_tab(self, tab_id, options)
