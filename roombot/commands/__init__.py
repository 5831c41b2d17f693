"""Slash command routing and the room commands."""

from roombot.commands.rooms import HELP_TEXT, RoomCommands
from roombot.commands.router import Command, CommandRouter

__all__ = ["Command", "CommandRouter", "RoomCommands", "HELP_TEXT"]
