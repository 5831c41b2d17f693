"""Message types carried on the bus."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class InboundMessage:
    """A message received from the chat platform."""

    sender: str  # User who sent the message
    group_id: str  # Conversation the message arrived in (vgroupid)
    content: str  # Raw message text
    receiver: str | None = None  # Set for one-to-one messages
    timestamp: datetime = field(default_factory=datetime.now)
    message_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_direct(self) -> bool:
        """True for one-to-one messages, False for room messages."""
        return bool(self.receiver)

    def parse_command(self, prefix: str = "/") -> tuple[str, list[str]] | None:
        """Split ``/name arg1 arg2`` into the command name and arguments.

        Returns:
            (name, args) with a lowercased name, or None if the message is
            not a command
        """
        text = self.content.strip()
        if not text.startswith(prefix):
            return None
        tokens = text[len(prefix):].split()
        if not tokens:
            return None
        return tokens[0].lower(), tokens[1:]
