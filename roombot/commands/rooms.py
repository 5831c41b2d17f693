"""Room commands: create, list, join, visibility, describe, delist, add.

Every handler follows the same shape: resolve the room (by title or by the
group id the command arrived in), check the sender's relationship to it,
and only then mutate. A rejection is a reply and nothing else.
"""

import dataclasses
import difflib
from typing import List, Optional

from loguru import logger

from roombot.bus.events import InboundMessage
from roombot.commands.router import CommandRouter
from roombot.models.outcome import Failure, validate_title
from roombot.models.room import Room
from roombot.models.visibility import Visibility
from roombot.platform.base import Button, PlatformError

HELP_TEXT = (
    "Hi! I'm a bot for creating and joining shared rooms.\n\n"
    "Rooms managed by this bot have a visibility which controls how other users "
    "can find and join them.\n\n"
    " - public: Any user can list or join the room. If the bot is not a moderator "
    "of the room, an invite request is sent instead.\n"
    " - private: The room is listed, but users must be invited\n"
    " - hidden: The room is unlisted and invite-only\n\n"
    "You can create a new managed room with `/create` or give this bot moderator "
    "rights in an existing room."
)

NOT_FOUND_REPLY = "Error: 404 Room Not Found"
ROOM_DETAILS_NOT_FOUND = "Error: Unable to find details for room"


class RoomCommands:
    """Handlers for the room commands, bound to one router."""

    def __init__(
        self,
        router: CommandRouter,
        bot_username: str = "",
        max_title_length: int = 64,
        suggestion_cutoff: float = 0.6,
    ):
        self.router = router
        self.store = router.store
        self.platform = router.platform
        self.bot_username = bot_username
        self.max_title_length = max_title_length
        self.suggestion_cutoff = suggestion_cutoff

    def register(self) -> None:
        """Register every room command on the router."""
        r = self.router
        r.register(
            "create", self.create, mutates=True,
            description="Creates a new managed room. e.g. `/create Zombie Incident Room`",
        )
        r.register("list", self.list, description="List public and private rooms.")
        r.register(
            "join", self.join, mutates=True,
            description="Join a room by name. e.g. `/join Zombie Incident Room`",
        )
        r.register(
            "visibility", self.visibility, mutates=True,
            description="Displays or adjusts the visibility of the current room.",
        )
        r.register("describe", self.describe, hidden=True)
        r.register(
            "delist", self.delist, mutates=True,
            description="Removes a room from the Room Bot. e.g. `/delist Zombie Incident Room`",
        )
        r.register(
            "add", self.add, mutates=True,
            description="Add a user to the current room. e.g. `/add bob@example.com`",
        )

    def suggest(self, title: str) -> Optional[str]:
        """Best fuzzy match for ``title`` among stored titles, if close enough."""
        if not title:
            return None
        matches = difflib.get_close_matches(
            title, self.store.titles(), n=1, cutoff=self.suggestion_cutoff
        )
        return matches[0] if matches else None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def create(self, msg: InboundMessage, args: List[str]) -> None:
        sender = msg.sender
        checked = validate_title(" ".join(args), self.max_title_length)

        if not checked.ok:
            if checked.detail == "empty":
                await self.router.reply(
                    msg,
                    "To create a room, provide the room name with the create command, "
                    "e.g. `/create Casual Meme Room`",
                )
            else:
                await self.router.reply(msg, "Error: Room name is too long")
            return

        title = checked.value
        if title in self.store:
            await self.router.reply(msg, "Error: A room with this name already exists")
            return

        logger.info(f"Creating room {title} owned by {sender}")

        response = None
        try:
            response = await self.platform.create_room(sender, sender, title)
        except PlatformError as e:
            logger.error(f"Error creating room {title!r}: {e}")
            await self.platform.send_to_user(sender, "Error: Failed to create room")
            return

        group_id = response.get("vgroupid") if isinstance(response, dict) else None
        if not group_id:
            logger.error(f"Missing vgroupid in createRoom response: {response!r}")
            await self.platform.send_to_user(sender, "Error: Missing room id in response from server")
            return

        room = Room(title=title, group_id=group_id, owner=sender)
        self.store.insert(room)
        self.store.save()

        await self.platform.send_to_user(
            sender, f'Room created successfully! You are now the moderator of "{title}".'
        )
        await self.platform.send_to_room(
            group_id,
            "🥳 You have started a new room!\n\n"
            f"The visibility of this room is currently set to '{room.visibility.value}'. "
            "To change the visibility, use the `/visibility` command.",
        )

    async def list(self, msg: InboundMessage, args: List[str]) -> None:
        lines = [
            f"• {room.title}{room.visibility.label}"
            for room in self.store.rooms()
            if room.visibility.listed
        ]

        if lines:
            response = "*Room List*\n" + "\n".join(lines)
        else:
            response = "No rooms found 🙁 Start the movement with `/create`"

        await self.platform.send_to_user(msg.sender, response)

    async def join(self, msg: InboundMessage, args: List[str]) -> None:
        title = " ".join(args)
        user = msg.sender

        if not title:
            await self.platform.send_to_user(
                user, "To join a room, provide its name, e.g. `/join Zombie Incident Room`"
            )
            return

        found = self.store.lookup_title(title)
        if not found.ok:
            suggestion = self.suggest(title)
            if suggestion:
                buttons = [
                    Button(f"Join {suggestion}", f"/join {suggestion}"),
                    Button("List Rooms", "/list"),
                ]
                await self.platform.send_to_user(
                    user, f"Room not found. Did you mean '{suggestion}'?", buttons
                )
            else:
                await self.platform.send_to_user(user, NOT_FOUND_REPLY)
            return

        room = found.value
        if room.is_member(user):
            await self.platform.send_to_user(user, "You are already a member of that room")
            return

        # Direct add needs both a public room and moderator rights for the bot
        if room.visibility.allows_direct_join and room.is_moderator(self.bot_username):
            await self.platform.update_room_members(room.group_id, [user])
            room.add_member(user)
            self.store.save()
            await self.platform.send_to_user(user, f'You have been successfully added to "{title}"')
        else:
            await self.platform.send_to_room(
                room.group_id,
                f"📨 Invite request: user {user} has requested to be added to this room",
            )
            await self.platform.send_to_user(user, f'An invite request has been sent to "{title}"')

    async def visibility(self, msg: InboundMessage, args: List[str]) -> None:
        if msg.is_direct:
            await self.platform.send_to_user(
                msg.sender, "Error: This command is only valid in managed rooms"
            )
            return

        group_id = msg.group_id
        found = self.store.lookup_group(group_id)
        if not found.ok:
            await self.platform.send_to_room(group_id, ROOM_DETAILS_NOT_FOUND)
            return
        room = found.value

        if not args:
            await self.platform.send_to_room(
                group_id,
                f"The visibility of this room is currently '{room.visibility.value}'. "
                "To change the visibility pass an argument to this command, "
                "e.g. `/visibility public`.",
            )
            return

        parsed = Visibility.parse(args[0])
        if not parsed.ok:
            await self.platform.send_to_room(group_id, "Error: Invalid visibility setting")
            return

        if not room.is_moderator(msg.sender):
            await self.platform.send_to_room(
                group_id, "Error: You must be a moderator of this room to change the visibility."
            )
            return

        visibility = parsed.value
        logger.info(f'Updating visibility for "{room.title}" to {visibility.value}')
        room.visibility = visibility
        self.store.save()
        await self.platform.send_to_room(
            group_id, f"Visibility successfully updated to '{visibility.value}'"
        )

    async def describe(self, msg: InboundMessage, args: List[str]) -> None:
        user = msg.sender
        found = self.store.lookup_title(" ".join(args))

        if not found.ok:
            await self.platform.send_to_user(user, NOT_FOUND_REPLY)
            return

        room = found.value
        if not (room.is_member(user) or room.is_owner(user)):
            await self.platform.send_to_user(user, "You must be a member of a room to describe it")
            return

        await self.platform.send_to_user(user, (await self._live_view(room)).describe())

    async def _live_view(self, room: Room) -> Room:
        """Copy of ``room`` with membership as the platform reports it right now.

        Falls back to the stored room when the platform cannot answer.
        """
        try:
            details = await self.platform.get_room(room.group_id)
            return dataclasses.replace(
                room,
                members=[m["name"] for m in details["members"]],
                moderators=[m["name"] for m in details["masters"]],
            )
        except (PlatformError, KeyError, TypeError) as e:
            logger.warning(f"Could not fetch live details for {room.group_id}: {e!r}")
            return room

    async def delist(self, msg: InboundMessage, args: List[str]) -> None:
        title = " ".join(args)
        user = msg.sender

        found = self.store.lookup_title(title)
        if not found.ok:
            await self.platform.send_to_user(user, NOT_FOUND_REPLY)
            return

        room = found.value
        if not room.is_moderator(user):
            await self.platform.send_to_user(user, "You must be a moderator of the room to delist it")
            return

        logger.info(f"Delisting room {title} for {user}")

        # Leave first so a failed platform call leaves the room listed
        await self.platform.leave_room(room.group_id)
        self.store.remove(title)
        self.store.save()

        await self.platform.send_to_user(user, f"Successfully delisted room {title}")

    async def add(self, msg: InboundMessage, args: List[str]) -> None:
        sender = msg.sender
        group_id = msg.group_id

        if msg.is_direct:
            await self.platform.send_to_user(sender, "Error: This command only works in rooms")
            return

        if not args:
            await self.platform.send_to_room(
                group_id,
                "You must supply a username to add to the room, e.g. `/add bob@example.com`",
            )
            return
        username = args[0]

        found = self.store.lookup_group(group_id)
        if found.failure is Failure.NOT_FOUND:
            await self.platform.send_to_room(group_id, ROOM_DETAILS_NOT_FOUND)
            return
        room = found.value

        if not room.is_moderator(sender):
            await self.platform.send_to_room(group_id, "You must be a moderator of this room to add a user")
            return

        if room.is_member(username):
            await self.platform.send_to_room(group_id, f"{username} is already a member of this room")
            return

        logger.info(f"Adding {username} to {room.title} at the request of {sender}")
        await self.platform.update_room_members(group_id, [username])
        # Local view only; the next sync brings the platform's list back in
        room.add_member(username)
        self.store.save()
        await self.platform.send_to_room(group_id, f"Added {username} to this room")
