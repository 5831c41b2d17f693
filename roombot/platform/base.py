"""Base platform interface for the messaging service the bot runs on."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from loguru import logger

from roombot.bus.events import InboundMessage
from roombot.bus.queue import MessageBus


class PlatformError(Exception):
    """A platform call failed or returned data that could not be used."""
    pass


@dataclass(frozen=True)
class Button:
    """A quick-reply action: clicking it sends ``message`` as the user."""

    text: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"type": "message", "text": self.text, "message": self.message}


class BasePlatform(ABC):
    """
    Abstract base class for messaging platform transports.

    A transport does two things:
    1. Delivers inbound messages to the bus via _handle_message()
    2. Performs room and message operations on behalf of the bot

    Room payloads follow the platform's own shapes:
    - create_room() returns a dict with the new room's ``vgroupid``
    - get_rooms() returns ``{"rooms": [{"vgroupid", "title", "description",
      "members": [{"name"}], "masters": [{"name"}]}, ...]}``

    Every operation raises PlatformError on failure.
    """

    name: str = "base"

    def __init__(self, config: Any, bus: MessageBus):
        """
        Initialize the platform.

        Args:
            config: Platform-specific configuration.
            bus: The message bus inbound messages are published to.
        """
        self.config = config
        self.bus = bus
        self._running = False

    @abstractmethod
    async def start(self) -> None:
        """Connect and begin delivering inbound messages to the bus."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop delivering messages and release resources."""
        pass

    @abstractmethod
    async def create_room(self, owner: str, moderator: str, title: str) -> dict[str, Any]:
        """Create a room with ``owner`` as member and ``moderator`` as moderator."""
        pass

    @abstractmethod
    async def get_room(self, group_id: str) -> dict[str, Any]:
        """Fetch one room's details (members and masters)."""
        pass

    @abstractmethod
    async def get_rooms(self) -> dict[str, Any]:
        """Fetch every room the bot belongs to."""
        pass

    @abstractmethod
    async def update_room_members(self, group_id: str, members: Sequence[str]) -> None:
        """Add users to a room. No removal semantics."""
        pass

    @abstractmethod
    async def leave_room(self, group_id: str) -> None:
        """Leave a room on the platform."""
        pass

    @abstractmethod
    async def send_to_room(
        self, group_id: str, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        """Post a message into a room or conversation."""
        pass

    @abstractmethod
    async def send_to_user(
        self, user: str, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        """Send a one-to-one message to a user."""
        pass

    async def _handle_message(
        self,
        sender: str,
        group_id: str,
        content: str,
        receiver: Optional[str] = None,
        message_id: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Forward a message received from the platform to the bus.

        Args:
            sender: The sender's user id.
            group_id: Conversation the message arrived in.
            content: Message text.
            receiver: Set for one-to-one messages.
            message_id: Platform message id, if any.
            metadata: Optional platform-specific data.
        """
        if not sender or not content:
            logger.debug(f"[{self.name}] Ignoring message without sender or text in {group_id}")
            return

        msg = InboundMessage(
            sender=str(sender),
            group_id=str(group_id),
            content=content,
            receiver=receiver,
            message_id=message_id,
            metadata=metadata or {},
        )
        await self.bus.publish_inbound(msg)

    @property
    def is_running(self) -> bool:
        """Check if the platform is delivering messages."""
        return self._running
