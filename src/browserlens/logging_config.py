"""Logging setup for browserlens.

Log output goes to stderr because stdout belongs to whatever protocol layer
embeds this package.
"""

import logging
import sys
from typing import TextIO

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are chatty at DEBUG
NOISY_LOGGERS = ('httpx', 'httpcore', 'websockets', 'cdp_use')

_HANDLER_NAME = 'browserlens-stderr'


def setup_logging(
    level: str | int = 'info',
    stream: TextIO | None = None,
    cdp_level: str | int = 'WARNING',
) -> logging.Logger:
    """Configure the ``browserlens`` logger hierarchy.

    Calling it again replaces the handler installed by a previous call instead
    of stacking a second one.

    Args:
        level: Level for browserlens loggers, name or number.
        stream: Destination stream. Defaults to stderr.
        cdp_level: Level applied to the transport libraries' loggers.

    Returns:
        The configured ``browserlens`` logger.
    """
    root = logging.getLogger('browserlens')
    root.setLevel(_to_level(level))

    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(_to_level(cdp_level))

    return root


def _to_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f'Unknown logging level: {level}')
    return resolved
