"""Lifecycle events for the connection manager.

A caller that owns a bubus ``EventBus`` dispatches ``ShutdownRequestedEvent``
on it to tear the connection down; the core never installs OS signal handlers.
"""

import os

from bubus import BaseEvent


def _get_timeout(env_var: str, default: float) -> float | None:
    """Parse a timeout override from the environment, falling back to ``default``."""
    env_value = os.getenv(env_var)
    if env_value:
        try:
            parsed = float(env_value)
            if parsed >= 0:
                return parsed
        except ValueError:
            pass
    return default


class BrowserConnectedEvent(BaseEvent[None]):
    """The root debugging connection is up."""

    cdp_url: str
    browser_type: str = 'chrome'

    event_timeout: float | None = _get_timeout('TIMEOUT_BrowserConnectedEvent', 30.0)


class BrowserDisconnectedEvent(BaseEvent[None]):
    """The root debugging connection was torn down."""

    reason: str | None = None

    event_timeout: float | None = _get_timeout('TIMEOUT_BrowserDisconnectedEvent', 30.0)


class ShutdownRequestedEvent(BaseEvent[None]):
    """Ask every listening connection manager to disconnect."""

    reason: str | None = None

    event_timeout: float | None = _get_timeout('TIMEOUT_ShutdownRequestedEvent', 45.0)
