"""Messaging platform transports."""

from roombot.platform.base import BasePlatform, Button, PlatformError

__all__ = ["BasePlatform", "Button", "PlatformError"]
