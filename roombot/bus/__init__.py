"""Message bus module for decoupled platform-bot communication."""

from roombot.bus.events import InboundMessage
from roombot.bus.queue import MessageBus

__all__ = ["MessageBus", "InboundMessage"]
