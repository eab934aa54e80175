"""
Utilities package for the movie catalog core.

Exports the shared logging helpers. Caller-side retry lives in
``moviecatalog.utils.retry``.
Keep this package lightweight and free of domain-specific logic.
"""

from moviecatalog.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
