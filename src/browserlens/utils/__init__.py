"""Utility modules for browserlens."""

from browserlens.utils.timeouts import with_timeout

__all__ = ['with_timeout']
