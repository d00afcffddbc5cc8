"""Liveness probing and detection of a browser debugging endpoint.

The probe issues one lightweight ``/json/version`` request. It creates no
protocol state: no session, no domain enablement.
"""

import logging
from typing import Any

import httpx

from browserlens.browser.views import BrowserDetectionResult, CapabilityScore, FeatureScores
from browserlens.config import BrowserLensSettings
from browserlens.utils.timeouts import with_timeout

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 3.0


def _version_url(endpoint: str) -> str:
    url = endpoint.rstrip('/')
    if not url.endswith('/json/version'):
        url = url + '/json/version'
    return url


async def fetch_version_info(
    endpoint: str,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """Fetch the ``/json/version`` metadata document.

    Raises:
        httpx.HTTPError: On network failure or a non-success status.
        TimeoutError: If the request does not finish within ``timeout``.
        ValueError: If the body is not a DevTools version document.
    """
    url = _version_url(endpoint)
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await with_timeout(client.get(url), timeout, f'GET {url}')
        response.raise_for_status()
        data = response.json()

    # Anything else listening on the port is not a debugging endpoint
    if not isinstance(data, dict) or not data.get('webSocketDebuggerUrl'):
        raise ValueError(f'{url} did not return a DevTools version document')
    return data


async def is_available(
    endpoint: str,
    timeout: float = DEFAULT_PROBE_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> bool:
    """Return True if the endpoint answers the version request. Never raises."""
    logger.debug(f'Checking availability at {_version_url(endpoint)}...')
    try:
        data = await fetch_version_info(endpoint, timeout=timeout, transport=transport)
    except Exception as e:
        logger.debug(f'Availability check failed: {type(e).__name__}: {e}')
        return False
    logger.debug(f'Browser is available: {data.get("Browser", "unknown")}')
    return True


def parse_browser_version(version_info: dict[str, Any]) -> str:
    """``{'Browser': 'Chrome/126.0.6478.127'}`` -> ``'126.0.6478.127'``."""
    browser = version_info.get('Browser') or ''
    _, _, version = browser.partition('/')
    return version or 'Unknown'


async def detect_browser(
    settings: BrowserLensSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BrowserDetectionResult | None:
    """Detect Chrome with remote debugging enabled on the configured endpoint."""
    logger.debug(f'Testing Chrome DevTools Protocol on port {settings.port}...')
    try:
        version_info = await fetch_version_info(
            settings.endpoint, timeout=settings.probe_timeout, transport=transport
        )
    except Exception as e:
        logger.debug(f'Chrome detection failed: {e}')
        return None

    result = BrowserDetectionResult(
        type='chrome',
        name='Google Chrome',
        version=parse_browser_version(version_info),
        is_running=True,
        debug_port=settings.port,
        web_socket_debugger_url=version_info.get('webSocketDebuggerUrl'),
    )
    logger.info(f'Chrome detected: {result.name} v{result.version}')
    return result


async def detect_all_browsers(
    settings: BrowserLensSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[BrowserDetectionResult]:
    result = await detect_browser(settings, transport=transport)
    return [result] if result else []


def score_capabilities(detection: BrowserDetectionResult | None, port: int = 9222) -> CapabilityScore:
    """Score how well a detected browser supports inspection.

    Navigation scores zero: tabs are activated, never navigated.
    """
    if detection is None:
        return CapabilityScore(
            score=0,
            reasoning=[
                'Chrome not detected',
                f'Please start Chrome with: chrome --remote-debugging-port={port}',
                f'Or on macOS: open -a "Google Chrome" --args --remote-debugging-port={port}',
            ],
        )

    features = FeatureScores(
        tab_management=100,
        screenshot_capture=100,
        content_extraction=100,
        navigation=0,
        performance=90,
    )
    values = list(features.model_dump().values())
    return CapabilityScore(
        score=round(sum(values) / len(values)),
        features=features,
        reasoning=[
            f'{detection.name} {detection.version} reachable on port {detection.debug_port}',
            'Tab listing and activation over the HTTP endpoint',
            'Screenshots, HTML, CSS and element extraction over the DevTools Protocol',
            'Navigation is replaced by tab activation',
        ],
    )
