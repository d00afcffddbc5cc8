"""browserlens - inspect and control pages in a running Chrome over the DevTools Protocol."""

__version__ = '0.1.0'

from browserlens.browser import (
    BrowserCapabilities,
    BrowserProvider,
    CaptureOptions,
    CaptureResult,
    ChromeProvider,
    CSSCaptureOptions,
    ElementInfo,
    HTMLCaptureOptions,
    ScrollOptions,
    ScrollResult,
    TabCaptureOptions,
    TabInfo,
    create_provider,
    use_browser_tools,
)
from browserlens.config import BrowserLensSettings, load_settings
from browserlens.exceptions import (
    BrowserConnectionError,
    BrowserLensError,
    CaptureError,
    OptionsValidationError,
    PageScriptError,
    TabNotFoundError,
)
from browserlens.logging_config import setup_logging

__all__ = [
    '__version__',
    'BrowserCapabilities',
    'BrowserProvider',
    'ChromeProvider',
    'CaptureOptions',
    'CaptureResult',
    'CSSCaptureOptions',
    'ElementInfo',
    'HTMLCaptureOptions',
    'ScrollOptions',
    'ScrollResult',
    'TabCaptureOptions',
    'TabInfo',
    'create_provider',
    'use_browser_tools',
    'BrowserLensSettings',
    'load_settings',
    'BrowserConnectionError',
    'BrowserLensError',
    'CaptureError',
    'OptionsValidationError',
    'PageScriptError',
    'TabNotFoundError',
    'setup_logging',
]
