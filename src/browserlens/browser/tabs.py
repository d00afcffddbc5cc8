"""Tab listing and activation over the debugging endpoint's HTTP interface."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from browserlens.browser.views import TabInfo
from browserlens.exceptions import TabNotFoundError
from browserlens.utils.timeouts import with_timeout

logger = logging.getLogger(__name__)


class TabRegistry:
    """Resolves tab identifiers to live tab metadata.

    Nothing is cached: every call queries ``/json/list`` because pages
    navigate and close independently of this process.

    Only the first page target is marked active. This is an approximation
    (the HTTP listing exposes no focus signal), not a focus query.
    """

    def __init__(
        self,
        endpoint: str,
        timeout: float = 5.0,
        browser_type: str = 'chrome',
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._endpoint = endpoint.rstrip('/')
        self._timeout = timeout
        self._browser_type = browser_type
        self._transport = transport

    async def _request(self, method: str, path: str) -> httpx.Response:
        url = f'{self._endpoint}{path}'
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await with_timeout(client.request(method, url), self._timeout, f'{method} {url}')
        response.raise_for_status()
        return response

    async def list_tabs(self) -> list[TabInfo]:
        """Fetch the live tab list, keeping page-type targets only.

        Raises:
            httpx.HTTPError: On network failure or a non-success status.
            TimeoutError: If the listing does not arrive in time.
        """
        response = await self._request('GET', '/json/list')
        targets: list[dict[str, Any]] = response.json()
        pages = [target for target in targets if target.get('type') == 'page']
        logger.debug(f'Filtered {len(pages)} page tabs from {len(targets)} total targets')

        return [
            TabInfo(
                id=target['id'],
                url=target.get('url', ''),
                title=target.get('title', ''),
                active=index == 0,
                fav_icon_url=target.get('faviconUrl'),
                window_id=str(target['windowId']) if target.get('windowId') is not None else None,
                browser_type=self._browser_type,
            )
            for index, target in enumerate(pages)
        ]

    async def find_tab(self, tab_id: str) -> TabInfo:
        """Return the tab with ``tab_id`` from a fresh listing, or raise TabNotFoundError."""
        for tab in await self.list_tabs():
            if tab.id == tab_id:
                return tab
        raise TabNotFoundError(f'Tab with ID {tab_id} not found', tab_id)

    async def activate(self, tab_id: str) -> str:
        """Bring an existing tab to the foreground. Never navigates."""
        response = await self._request('POST', f'/json/activate/{quote(tab_id, safe="")}')
        return response.text
