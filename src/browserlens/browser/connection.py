"""Root debugging connection and per-tab sessions over Chrome DevTools Protocol.

Key Components:
    TabSession: One flattened CDP session attached to a single tab. Exposes
        only the commands the extraction layer needs: script evaluation and
        screenshot capture.
    ConnectionManager: Owns the single long-lived root WebSocket for a
        provider, the set of domains enabled on it, and the
        ``disconnected -> connecting -> connected`` state machine.

Tab sessions ride on the root WebSocket (``Target.attachToTarget`` with
``flatten``), so operations against different tabs run concurrently over one
connection. A session is never shared between operations and is always
detached when its operation finishes, including on error.

Example:
    >>> manager = ConnectionManager(load_settings())
    >>> await manager.connect()
    >>> async with manager.tab_session(tab_id) as session:
    ...     result = await session.evaluate('document.title')
    >>> await manager.disconnect()
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

from bubus import EventBus
from cdp_use import CDPClient
from cdp_use.cdp.page import CaptureScreenshotParameters

from browserlens.browser.events import BrowserConnectedEvent, BrowserDisconnectedEvent, ShutdownRequestedEvent
from browserlens.browser.probe import fetch_version_info
from browserlens.config import BrowserLensSettings
from browserlens.exceptions import BrowserConnectionError, TabNotFoundError
from browserlens.utils.timeouts import with_timeout

# Domains enabled once on the root browser connection
ROOT_DOMAINS: tuple[str, ...] = ('Target',)

# Domains enabled on every tab attachment; enablement is not inherited from the root
TAB_DOMAINS: tuple[str, ...] = ('Page', 'Runtime', 'DOM')


class ConnectionState(str, Enum):
    DISCONNECTED = 'disconnected'
    CONNECTING = 'connecting'
    CONNECTED = 'connected'


class TabSession:
    """A CDP session attached to one tab for the duration of one operation."""

    def __init__(self, cdp_client: Any, target_id: str, logger: logging.Logger | None = None):
        self.cdp_client = cdp_client
        self.target_id = target_id
        self.session_id: str | None = None
        self.enabled_domains: set[str] = set()
        self._logger = logger or logging.getLogger('browserlens.tab_session')

    @property
    def is_attached(self) -> bool:
        return self.session_id is not None

    async def attach(self) -> 'TabSession':
        """Attach to the target.

        Raises:
            TabNotFoundError: If the browser refuses the attachment, which
                means the tab is gone.
        """
        try:
            result = await self.cdp_client.send.Target.attachToTarget(
                params={'targetId': self.target_id, 'flatten': True}
            )
        except Exception as e:
            raise TabNotFoundError(f'Failed to connect to tab {self.target_id}: {e}', self.target_id) from e
        self.session_id = result['sessionId']
        self._logger.debug(f'Attached to tab {self.target_id} (session={self.session_id})')
        return self

    async def enable_domains(self, domains: tuple[str, ...] = TAB_DOMAINS) -> None:
        """Enable each domain on this attachment, skipping ones already enabled."""
        pending = [domain for domain in domains if domain not in self.enabled_domains]
        if not pending:
            return
        results = await asyncio.gather(
            *(getattr(self.cdp_client.send, domain).enable(session_id=self.session_id) for domain in pending),
            return_exceptions=True,
        )
        for domain, result in zip(pending, results):
            if isinstance(result, BaseException):
                raise RuntimeError(f'Failed to enable {domain} domain on tab {self.target_id}: {result}') from result
            self.enabled_domains.add(domain)

    async def evaluate(self, expression: str, await_promise: bool = False) -> dict[str, Any]:
        """Run ``Runtime.evaluate`` and return the raw protocol result."""
        return await self.cdp_client.send.Runtime.evaluate(
            params={'expression': expression, 'returnByValue': True, 'awaitPromise': await_promise},
            session_id=self.session_id,
        )

    async def capture_screenshot(self, params: CaptureScreenshotParameters) -> str:
        """Run ``Page.captureScreenshot`` and return the base64 image data."""
        result = await self.cdp_client.send.Page.captureScreenshot(params=params, session_id=self.session_id)
        if not result or 'data' not in result:
            raise RuntimeError('Screenshot result missing data')
        return result['data']

    async def detach(self) -> None:
        if self.session_id is None:
            return
        session_id, self.session_id = self.session_id, None
        self.enabled_domains.clear()
        await self.cdp_client.send.Target.detachFromTarget(params={'sessionId': session_id})


class ConnectionManager:
    """Owns one root debugging connection and opens tab sessions on demand.

    ``connect()`` and ``disconnect()`` are serialized by a lock, so two
    simultaneous first operations neither open two root connections nor
    enable domains twice.

    Attributes:
        settings: Endpoint and timeout configuration.
        browser_type: Identifier carried by connection errors.
    """

    def __init__(
        self,
        settings: BrowserLensSettings,
        *,
        browser_type: str = 'chrome',
        logger: logging.Logger | None = None,
        event_bus: EventBus | None = None,
        client_factory: Callable[[str], Any] = CDPClient,
        transport: Any = None,
    ):
        self.settings = settings
        self.browser_type = browser_type
        self._logger = logger
        self._event_bus = event_bus
        self._client_factory = client_factory
        self._transport = transport

        self._state = ConnectionState.DISCONNECTED
        self._client: Any = None
        self._cdp_url: str | None = None
        self._enabled_domains: set[str] = set()
        self._lock = asyncio.Lock()

        if self._event_bus is not None:
            self._event_bus.on(ShutdownRequestedEvent, self.on_ShutdownRequestedEvent)

    @property
    def logger(self) -> logging.Logger:
        if self._logger is None:
            self._logger = logging.getLogger('browserlens.connection')
        return self._logger

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def enabled_domains(self) -> frozenset[str]:
        return frozenset(self._enabled_domains)

    @property
    def cdp_url(self) -> str | None:
        return self._cdp_url

    @property
    def cdp_client(self) -> Any:
        """The root CDP client.

        Raises:
            BrowserConnectionError: If the manager is not connected.
        """
        if self._state is not ConnectionState.CONNECTED or self._client is None:
            raise BrowserConnectionError('Browser not connected. Call connect() first.', self.browser_type)
        return self._client

    async def connect(self) -> None:
        """Open the root connection. A no-op when already connected.

        Raises:
            BrowserConnectionError: If the probe fails or the WebSocket cannot
                be opened. The manager stays disconnected.
        """
        async with self._lock:
            if self._state is ConnectionState.CONNECTED:
                self.logger.debug('Already connected, skipping connection')
                return

            endpoint = self.settings.endpoint
            self.logger.debug(f'Attempting to connect to {self.browser_type} DevTools Protocol at {endpoint}...')
            self._state = ConnectionState.CONNECTING
            try:
                try:
                    version_info = await fetch_version_info(
                        endpoint, timeout=self.settings.probe_timeout, transport=self._transport
                    )
                except Exception as e:
                    raise BrowserConnectionError(
                        f'{self.browser_type} not available on debug port {self.settings.port}: {e}. '
                        f'Please start it with --remote-debugging-port={self.settings.port}',
                        self.browser_type,
                        cause=e,
                    ) from e

                cdp_url = version_info['webSocketDebuggerUrl']

                client = self._client_factory(cdp_url)
                self._client = client
                await with_timeout(client.start(), self.settings.operation_timeout, 'CDP connect')

                for domain in ROOT_DOMAINS:
                    await with_timeout(
                        self._enable_root_domain(domain), self.settings.operation_timeout, f'enable {domain}'
                    )

                self._cdp_url = cdp_url
                self._state = ConnectionState.CONNECTED
            except BrowserConnectionError as e:
                self.logger.error(f'Connection failed: {e.message}')
                await self._abandon_client()
                raise
            except Exception as e:
                self.logger.error(f'Failed to connect to {self.browser_type}: {type(e).__name__}: {e}')
                await self._abandon_client()
                raise BrowserConnectionError(
                    f'Failed to connect to {self.browser_type}: {e}', self.browser_type, cause=e
                ) from e

        self.logger.info(f'Connected to {self.browser_type} DevTools Protocol at {self._cdp_url}')
        if self._event_bus is not None:
            self._event_bus.dispatch(BrowserConnectedEvent(cdp_url=cdp_url, browser_type=self.browser_type))

    async def _enable_root_domain(self, domain: str) -> None:
        if domain in self._enabled_domains:
            return
        self.logger.debug(f'Enabling {domain} domain...')
        if domain == 'Target':
            # Target has no enable(); discovery is its handshake
            await self._client.send.Target.setDiscoverTargets(params={'discover': True})
        else:
            await getattr(self._client.send, domain).enable()
        self._enabled_domains.add(domain)

    async def _abandon_client(self) -> None:
        client, self._client = self._client, None
        self._enabled_domains.clear()
        self._cdp_url = None
        self._state = ConnectionState.DISCONNECTED
        if client is not None:
            try:
                await client.stop()
            except Exception as e:
                self.logger.debug(f'Error closing half-open CDP connection: {e}')

    async def disconnect(self, reason: str | None = None) -> None:
        """Close the root connection. Best-effort and idempotent; never raises."""
        async with self._lock:
            if self._state is ConnectionState.DISCONNECTED:
                return

            client, self._client = self._client, None
            self._enabled_domains.clear()
            self._cdp_url = None
            self._state = ConnectionState.DISCONNECTED

            if client is not None:
                self.logger.debug('Closing CDP connection...')
                try:
                    await with_timeout(client.stop(), self.settings.operation_timeout, 'CDP disconnect')
                except Exception as e:
                    self.logger.warning(f'Error during disconnect: {type(e).__name__}: {e}')

        self.logger.info(f'Disconnected from {self.browser_type} DevTools Protocol')
        if self._event_bus is not None:
            self._event_bus.dispatch(BrowserDisconnectedEvent(reason=reason))

    async def on_ShutdownRequestedEvent(self, event: ShutdownRequestedEvent) -> None:
        await self.disconnect(reason=event.reason or 'Shutdown requested')

    async def open_tab_session(self, tab_id: str) -> TabSession:
        """Attach to ``tab_id`` and enable the tab domains on the attachment.

        Raises:
            BrowserConnectionError: If the manager is not connected.
            TabNotFoundError: If the tab no longer exists at attach time.
        """
        session = TabSession(self.cdp_client, tab_id, logger=self.logger)
        await session.attach()
        try:
            await session.enable_domains(TAB_DOMAINS)
        except BaseException:
            await self.close_tab_session(session)
            raise
        return session

    async def close_tab_session(self, session: TabSession) -> None:
        """Detach a tab session. Failures are logged and swallowed."""
        try:
            await session.detach()
        except Exception as e:
            self.logger.debug(f'Error closing tab session for {session.target_id}: {e}')

    @asynccontextmanager
    async def tab_session(self, tab_id: str) -> AsyncIterator[TabSession]:
        """Open a tab session for one operation and always release it."""
        session = await self.open_tab_session(tab_id)
        try:
            yield session
        finally:
            await self.close_tab_session(session)
