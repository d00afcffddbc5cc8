"""Browser control layer over the Chrome DevTools Protocol."""

from browserlens.browser.capabilities import (
    FALLBACK_CAPABILITIES,
    TIER_1_CAPABILITIES,
    TIER_2_CAPABILITIES,
    BrowserCapabilities,
    CapabilityTier,
    capabilities_for,
)
from browserlens.browser.capture import capture_tab
from browserlens.browser.connection import ConnectionManager, ConnectionState, TabSession
from browserlens.browser.events import BrowserConnectedEvent, BrowserDisconnectedEvent, ShutdownRequestedEvent
from browserlens.browser.factory import (
    create_connected_provider,
    create_provider,
    get_supported_browser_types,
    is_browser_type_supported,
    use_browser_tools,
)
from browserlens.browser.probe import detect_all_browsers, detect_browser, is_available, score_capabilities
from browserlens.browser.provider import BrowserProvider, ChromeProvider
from browserlens.browser.tabs import TabRegistry
from browserlens.browser.views import (
    BrowserDetectionResult,
    CapabilityScore,
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

__all__ = [
    'BrowserCapabilities',
    'CapabilityTier',
    'TIER_1_CAPABILITIES',
    'TIER_2_CAPABILITIES',
    'FALLBACK_CAPABILITIES',
    'capabilities_for',
    'capture_tab',
    'ConnectionManager',
    'ConnectionState',
    'TabSession',
    'BrowserConnectedEvent',
    'BrowserDisconnectedEvent',
    'ShutdownRequestedEvent',
    'create_provider',
    'create_connected_provider',
    'get_supported_browser_types',
    'is_browser_type_supported',
    'use_browser_tools',
    'detect_browser',
    'detect_all_browsers',
    'is_available',
    'score_capabilities',
    'BrowserProvider',
    'ChromeProvider',
    'TabRegistry',
    'BrowserDetectionResult',
    'CapabilityScore',
    'CaptureOptions',
    'CaptureResult',
    'CSSCaptureOptions',
    'ElementInfo',
    'HTMLCaptureOptions',
    'ScrollOptions',
    'ScrollResult',
    'TabCaptureOptions',
    'TabInfo',
]
