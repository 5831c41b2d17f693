"""Command registration and dispatch."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from loguru import logger

from roombot.bus.events import InboundMessage
from roombot.platform.base import BasePlatform, Button, PlatformError
from roombot.storage.store import RoomStore

Handler = Callable[[InboundMessage, List[str]], Awaitable[None]]

TRANSPORT_ERROR_REPLY = "Error: The messaging service could not complete that request. Please try again later."
INTERNAL_ERROR_REPLY = "Error: Something went wrong while handling that command."


@dataclass
class Command:
    """A registered slash command."""

    name: str
    handler: Handler
    description: str = ""
    hidden: bool = False  # Left out of /help
    mutates: bool = False  # Runs inside the store transaction


class CommandRouter:
    """
    Dispatches slash commands to handlers.

    Responsibilities:
    - Parse ``/name arg ...`` messages
    - Serialize mutating commands through the store lock
    - Turn platform failures and unexpected errors into replies so one bad
      command never stops the bot
    """

    def __init__(
        self,
        platform: BasePlatform,
        store: RoomStore,
        bot_username: str = "",
        prefix: str = "/",
        help_text: str = "",
    ):
        self.platform = platform
        self.store = store
        self.bot_username = bot_username
        self.prefix = prefix
        self.help_text = help_text
        self.commands: Dict[str, Command] = {}

        self.register("help", self._help, description="Show this message.")

    def register(
        self,
        name: str,
        handler: Handler,
        *,
        description: str = "",
        hidden: bool = False,
        mutates: bool = False,
    ) -> None:
        """Register a handler for ``/name``."""
        key = name.lower()
        if key in self.commands and key != "help":
            raise ValueError(f"Command '{name}' already registered")
        self.commands[key] = Command(key, handler, description, hidden, mutates)

    async def reply(
        self, msg: InboundMessage, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        """Answer in the conversation the message came from."""
        if msg.is_direct:
            await self.platform.send_to_user(msg.sender, text, buttons)
        else:
            await self.platform.send_to_room(msg.group_id, text, buttons)

    async def dispatch(self, msg: InboundMessage) -> bool:
        """Run the command contained in ``msg``.

        Returns:
            True if a registered command was run (successfully or not)
        """
        if self.bot_username and msg.sender == self.bot_username:
            return False

        parsed = msg.parse_command(self.prefix)
        if parsed is None:
            return False

        name, args = parsed
        command = self.commands.get(name)
        if command is None:
            await self._safe_reply(
                msg,
                f"Unknown command `{self.prefix}{name}`.",
                [Button("Help", f"{self.prefix}help")],
            )
            return False

        logger.debug(f"{msg.sender} ran {self.prefix}{name} {args} in {msg.group_id}")
        try:
            if command.mutates:
                async with self.store.transaction():
                    await command.handler(msg, args)
            else:
                await command.handler(msg, args)
        except PlatformError as e:
            logger.error(f"Platform error handling {self.prefix}{name} from {msg.sender}: {e}")
            await self._safe_reply(msg, TRANSPORT_ERROR_REPLY)
        except Exception:
            logger.exception(f"Unhandled error in {self.prefix}{name} from {msg.sender}")
            await self._safe_reply(msg, INTERNAL_ERROR_REPLY)
        return True

    async def _safe_reply(
        self, msg: InboundMessage, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        try:
            await self.reply(msg, text, buttons)
        except PlatformError as e:
            logger.error(f"Could not reply to {msg.sender}: {e}")

    def help_message(self) -> str:
        lines = [self.help_text] if self.help_text else []
        lines.append("*Commands*")
        for command in self.commands.values():
            if command.hidden:
                continue
            line = f"{self.prefix}{command.name}"
            if command.description:
                line += f" - {command.description}"
            lines.append(line)
        return "\n".join(lines)

    async def _help(self, msg: InboundMessage, args: List[str]) -> None:
        await self.platform.send_to_user(msg.sender, self.help_message())
