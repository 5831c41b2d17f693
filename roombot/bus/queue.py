"""Async message queue decoupling the platform from the bot."""

import asyncio

from roombot.bus.events import InboundMessage


class MessageBus:
    """
    Async message bus between a platform transport and the bot.

    The transport pushes received messages to the inbound queue and the bot
    consumes them one at a time. Replies go straight back through the
    transport.
    """

    def __init__(self):
        self.inbound: asyncio.Queue[InboundMessage] = asyncio.Queue()

    async def publish_inbound(self, msg: InboundMessage) -> None:
        """Publish a message from the platform to the bot."""
        await self.inbound.put(msg)

    async def consume_inbound(self) -> InboundMessage:
        """Consume the next inbound message (blocks until available)."""
        return await self.inbound.get()

    @property
    def inbound_size(self) -> int:
        """Number of pending inbound messages."""
        return self.inbound.qsize()
