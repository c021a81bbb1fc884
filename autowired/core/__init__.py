"""Core infrastructure shared by the autowiring modules."""

from .logging import configure_logging

__all__ = ["configure_logging"]
