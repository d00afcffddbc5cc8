"""Pytest configuration and fixtures for the browserlens test suite.

No test talks to a real browser. Two fakes stand in for it:

Shared Fakes:
    FakeDevToolsEndpoint serves the HTTP side of the debugging endpoint
    (``/json/version``, ``/json/list``, ``/json/activate/<id>``) through an
    ``httpx.MockTransport`` and records every request it sees.

    make_mock_cdp_client builds a MagicMock shaped like a ``cdp_use.CDPClient``
    whose ``send.<Domain>.<method>`` commands are AsyncMocks.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio

# Make ``import browserlens`` work without an editable install
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from browserlens.browser.provider import ChromeProvider  # noqa: E402
from browserlens.config import BrowserLensSettings  # noqa: E402

WS_URL = "ws://localhost:9222/devtools/browser/0b1c2d3e"

# 1x1 transparent PNG
PNG_DATA = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="


def make_target(target_id, url="https://example.com", title="Example", target_type="page", **extra):
    """Create a ``/json/list`` entry."""
    target = {
        "id": target_id,
        "type": target_type,
        "url": url,
        "title": title,
        "webSocketDebuggerUrl": f"ws://localhost:9222/devtools/page/{target_id}",
    }
    target.update(extra)
    return target


def default_targets():
    return [
        make_target("A", url="https://example.com/a", title="Tab A", faviconUrl="https://example.com/favicon.ico"),
        make_target("sw-1", url="https://example.com/sw.js", title="Service Worker", target_type="service_worker"),
        make_target("B", url="https://example.com/b", title="Tab B"),
    ]


class FakeDevToolsEndpoint:
    """In-memory stand-in for Chrome's HTTP debugging interface."""

    def __init__(self, targets=None):
        self.targets = targets if targets is not None else default_targets()
        self.available = True
        self.version_status = 200
        self.requests: list[httpx.Request] = []
        self.activated: list[str] = []

    @property
    def paths(self):
        return [request.url.path for request in self.requests]

    def count(self, path_prefix):
        return sum(1 for path in self.paths if path.startswith(path_prefix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.available:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        if path == "/json/version":
            return httpx.Response(
                self.version_status,
                json={
                    "Browser": "Chrome/126.0.6478.127",
                    "Protocol-Version": "1.3",
                    "webSocketDebuggerUrl": WS_URL,
                },
            )
        if path == "/json/list":
            return httpx.Response(200, json=self.targets)
        if path.startswith("/json/activate/"):
            tab_id = path.rsplit("/", 1)[1]
            if any(target["id"] == tab_id for target in self.targets):
                self.activated.append(tab_id)
                return httpx.Response(200, text="Target activated")
            return httpx.Response(404, text=f"No such target id: {tab_id}")
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_mock_cdp_client(evaluate_value=None):
    """Create a mock CDPClient with the commands the control layer sends."""
    client = MagicMock()
    client.start = AsyncMock()
    client.stop = AsyncMock()

    client.send.Target.setDiscoverTargets = AsyncMock(return_value={})
    client.send.Target.attachToTarget = AsyncMock(
        side_effect=lambda params=None, **kwargs: {"sessionId": f"session-{params['targetId']}"}
    )
    client.send.Target.detachFromTarget = AsyncMock(return_value={})

    client.send.Page.enable = AsyncMock(return_value={})
    client.send.Runtime.enable = AsyncMock(return_value={})
    client.send.DOM.enable = AsyncMock(return_value={})

    client.send.Runtime.evaluate = AsyncMock(return_value={"result": {"type": "object", "value": evaluate_value}})
    client.send.Page.captureScreenshot = AsyncMock(return_value={"data": PNG_DATA})
    return client


def evaluate_returns(client, value):
    """Make ``Runtime.evaluate`` on ``client`` return ``value``."""
    client.send.Runtime.evaluate.return_value = {"result": {"type": "object", "value": value}}


def evaluate_throws(client, description="ReferenceError: foo is not defined"):
    """Make ``Runtime.evaluate`` on ``client`` report a page-script exception."""
    client.send.Runtime.evaluate.return_value = {
        "result": {"type": "object", "subtype": "error"},
        "exceptionDetails": {
            "text": "Uncaught",
            "exception": {"type": "object", "description": description},
        },
    }


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings():
    """Settings isolated from the environment and any .env file."""
    return BrowserLensSettings(
        _env_file=None,
        host="localhost",
        port=9222,
        operation_timeout=5.0,
        probe_timeout=1.0,
        tab_request_timeout=1.0,
    )


@pytest.fixture()
def devtools():
    return FakeDevToolsEndpoint()


@pytest.fixture()
def cdp_client():
    return make_mock_cdp_client()


@pytest.fixture()
def client_factory(cdp_client):
    """A CDPClient factory that records the WebSocket URLs it was given."""
    factory = MagicMock(side_effect=lambda url: cdp_client)
    return factory


@pytest.fixture()
def provider(settings, devtools, client_factory):
    """A disconnected ChromeProvider wired to the fakes."""
    return ChromeProvider(settings, client_factory=client_factory, transport=devtools.transport)


@pytest_asyncio.fixture()
async def connected_provider(provider):
    await provider.connect()
    yield provider
    await provider.disconnect()
