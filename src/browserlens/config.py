"""Configuration for browserlens, read from environment variables and ``.env``."""

import logging
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class BrowserLensSettings(BaseSettings):
    """Environment variable configuration using pydantic-settings.

    Every field can be set with a ``BROWSERLENS_`` prefixed variable, e.g.
    ``BROWSERLENS_PORT=9333``.
    """

    model_config = SettingsConfigDict(
        env_prefix='BROWSERLENS_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    # Debugging endpoint
    host: str = Field(default='localhost')
    port: int = Field(default=9222, ge=1, le=65535)
    browser_type: Literal['chrome', 'auto'] = Field(default='auto')
    capability_tier: Literal['tier_1', 'tier_2', 'fallback'] = Field(default='tier_1')

    # Timeouts in seconds
    operation_timeout: float = Field(default=30.0, gt=0)
    probe_timeout: float = Field(default=3.0, gt=0)
    tab_request_timeout: float = Field(default=5.0, gt=0)

    # Logging
    logging_level: str = Field(default='info')
    cdp_logging_level: str = Field(default='WARNING')

    @property
    def endpoint(self) -> str:
        """HTTP base URL of the debugging endpoint."""
        return f'http://{self.host}:{self.port}'


def load_settings(**overrides: Any) -> BrowserLensSettings:
    """Build a fresh settings object, applying explicit overrides on top of the environment."""
    settings = BrowserLensSettings(**overrides)
    logger.debug(f'Loaded settings for endpoint {settings.endpoint}')
    return settings
