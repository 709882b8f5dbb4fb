"""Middleware package for the hex tactics engine."""

from hextactics.middleware.error_handler import setup_error_handlers

__all__ = [
    "setup_error_handlers",
]
