"""Error taxonomy for the browser control layer.

Every failure that crosses the provider boundary is one of these kinds, so a
caller can render an actionable message without inspecting transport
internals.
"""

from typing import Any, Literal

CaptureType = Literal['screenshot', 'html', 'css', 'elements', 'scroll', 'complete']


class BrowserLensError(Exception):
    """Base error with an optional structured details mapping."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f'{self.message} ({self.details})'
        return self.message


class BrowserConnectionError(BrowserLensError):
    """The debugging endpoint is unreachable, the probe failed or the transport dropped.

    Never retried automatically.
    """

    def __init__(self, message: str, browser_type: str = 'chrome', cause: BaseException | None = None):
        self.browser_type = browser_type
        self.cause = cause
        super().__init__(message, details={'browser_type': browser_type})


class TabNotFoundError(BrowserLensError):
    """The tab identifier did not resolve in the latest listing or attach attempt."""

    def __init__(self, message: str, tab_id: str):
        self.tab_id = tab_id
        super().__init__(message, details={'tab_id': tab_id})


class CaptureError(BrowserLensError):
    """A capture or extraction step failed after the tab was confirmed to exist."""

    def __init__(
        self,
        message: str,
        tab_id: str,
        capture_type: CaptureType,
        cause: BaseException | None = None,
    ):
        self.tab_id = tab_id
        self.capture_type = capture_type
        self.cause = cause
        super().__init__(message, details={'tab_id': tab_id, 'capture_type': capture_type})


class OptionsValidationError(BrowserLensError):
    """Caller-supplied options violate a precondition. Raised before any I/O."""


class PageScriptError(BrowserLensError):
    """An injected script threw inside the page (as opposed to a transport failure)."""

    def __init__(self, exception_text: str):
        self.exception_text = exception_text
        super().__init__(f'JavaScript execution failed: {exception_text}')
