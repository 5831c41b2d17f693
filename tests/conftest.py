"""Shared fixtures: a recording fake platform and a bot with one room."""

import pytest

from roombot.bot import RoomBot
from roombot.bus.events import InboundMessage
from roombot.bus.queue import MessageBus
from roombot.config.schema import BotConfig
from roombot.models.room import Room
from roombot.models.visibility import Visibility
from roombot.platform.base import BasePlatform, PlatformError
from roombot.storage.brain import MemoryBrain

BOT_USERNAME = "rbot"
FAKE_GROUP_ID = "Sfakevgroupid"


class FakePlatform(BasePlatform):
    """Platform that records every call instead of talking to a server.

    Set ``create_response``, ``rooms_response`` or ``room_response`` to
    control what the read calls return, and add method names to ``fail``
    to make them raise PlatformError.
    """

    name = "fake"

    def __init__(self, bus=None):
        super().__init__(None, bus or MessageBus())
        self.calls = []
        self.fail = set()
        self.create_response = {"vgroupid": "Snewvgroupid"}
        self.rooms_response = {"rooms": []}
        self.room_response = {"members": [], "masters": []}

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail:
            raise PlatformError(f"{name} failed")

    def calls_to(self, name):
        return [args for call, args in self.calls if call == name]

    async def start(self):
        self._running = True

    async def stop(self):
        self._running = False

    async def create_room(self, owner, moderator, title):
        self._record("create_room", owner, moderator, title)
        return self.create_response

    async def get_room(self, group_id):
        self._record("get_room", group_id)
        return self.room_response

    async def get_rooms(self):
        self._record("get_rooms")
        return self.rooms_response

    async def update_room_members(self, group_id, members):
        self._record("update_room_members", group_id, list(members))

    async def leave_room(self, group_id):
        self._record("leave_room", group_id)

    async def send_to_room(self, group_id, text, buttons=None):
        self._record("send_to_room", group_id, text, buttons)

    async def send_to_user(self, user, text, buttons=None):
        self._record("send_to_user", user, text, buttons)


def make_room(title="Fake Room", group_id=FAKE_GROUP_ID, owner="alice", visibility=Visibility.PUBLIC):
    room = Room(title=title, group_id=group_id, owner=owner, visibility=visibility)
    room.moderators = ["alice"]
    room.members = ["alice"]
    return room


@pytest.fixture
def platform():
    return FakePlatform()


@pytest.fixture
def brain():
    return MemoryBrain()


@pytest.fixture
def bot(platform, brain):
    """Bot named rbot with a public 'Fake Room' moderated by alice."""
    bot = RoomBot(BotConfig(username=BOT_USERNAME), platform, brain, platform.bus)
    bot.store.insert(make_room())
    return bot


@pytest.fixture
def store(bot):
    return bot.store


@pytest.fixture
def room_msg():
    """Build a message sent inside a room."""
    def _make(sender, content, group_id=FAKE_GROUP_ID):
        return InboundMessage(sender=sender, group_id=group_id, content=content)
    return _make


@pytest.fixture
def direct_msg():
    """Build a one-to-one message to the bot."""
    def _make(sender, content, group_id="S1to1vgroupid"):
        return InboundMessage(sender=sender, group_id=group_id, content=content, receiver=BOT_USERNAME)
    return _make


@pytest.fixture
def room_factory():
    return make_room
