"""Utility functions for roombot."""

from roombot.utils.logging import configure_logging

__all__ = ["configure_logging"]
