"""Tests for command dispatch and the bot context."""

import asyncio

import pytest

from roombot.bus.events import InboundMessage
from roombot.commands.router import INTERNAL_ERROR_REPLY, TRANSPORT_ERROR_REPLY
from roombot.platform.base import Button, PlatformError


class TestParseCommand:
    """Test splitting message text into a command."""

    def test_command_with_arguments(self):
        msg = InboundMessage(sender="alice", group_id="S1", content="  /JOIN  Fake   Room ")

        assert msg.parse_command() == ("join", ["Fake", "Room"])

    @pytest.mark.parametrize("content", ["hello", "/", "  ", "join Fake Room"])
    def test_not_a_command(self, content):
        msg = InboundMessage(sender="alice", group_id="S1", content=content)

        assert msg.parse_command() is None

    def test_custom_prefix(self):
        msg = InboundMessage(sender="alice", group_id="S1", content="!list")

        assert msg.parse_command("!") == ("list", [])
        assert msg.parse_command() is None

    def test_direct(self):
        assert InboundMessage(sender="a", group_id="S1", content="x", receiver="rbot").is_direct
        assert not InboundMessage(sender="a", group_id="S1", content="x").is_direct


class TestDispatch:
    """Test CommandRouter.dispatch."""

    def test_registers_handlers(self, bot):
        assert list(bot.router.commands) == [
            "help", "create", "list", "join", "visibility", "describe", "delist", "add",
        ]

    def test_duplicate_registration_fails(self, bot):
        async def handler(msg, args):
            pass

        with pytest.raises(ValueError):
            bot.router.register("join", handler)

    @pytest.mark.asyncio
    async def test_ignores_plain_messages(self, bot, platform, room_msg):
        assert await bot.router.dispatch(room_msg("alice", "good morning")) is False
        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_ignores_own_messages(self, bot, platform, room_msg):
        assert await bot.router.dispatch(room_msg("rbot", "/list")) is False
        assert platform.calls == []

    @pytest.mark.asyncio
    async def test_command_names_are_case_insensitive(self, bot, platform, direct_msg):
        assert await bot.router.dispatch(direct_msg("bob", "/LIST")) is True
        assert platform.calls_to("send_to_user")[0][1].startswith("*Room List*")

    @pytest.mark.asyncio
    async def test_unknown_command(self, bot, platform, room_msg):
        assert await bot.router.dispatch(room_msg("alice", "/frobnicate now")) is False

        assert platform.calls_to("send_to_room") == [
            ("Sfakevgroupid", "Unknown command `/frobnicate`.", [Button("Help", "/help")])
        ]

    @pytest.mark.asyncio
    async def test_help_lists_visible_commands(self, bot, platform, room_msg):
        await bot.router.dispatch(room_msg("bob", "/help"))

        (user, text, _), = platform.calls_to("send_to_user")
        assert user == "bob"
        assert text.startswith("Hi! I'm a bot for creating and joining shared rooms.")
        for name in ["help", "create", "list", "join", "visibility", "delist", "add"]:
            assert f"/{name}" in text
        assert "/describe" not in text

    @pytest.mark.asyncio
    async def test_platform_error_becomes_reply(self, bot, platform, room_msg):
        async def broken(msg, args):
            raise PlatformError("connection refused")

        bot.router.register("broken", broken)

        assert await bot.router.dispatch(room_msg("alice", "/broken")) is True
        assert platform.calls_to("send_to_room") == [("Sfakevgroupid", TRANSPORT_ERROR_REPLY, None)]

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_reply(self, bot, platform, direct_msg):
        async def broken(msg, args):
            raise RuntimeError("boom")

        bot.router.register("broken", broken, mutates=True)

        assert await bot.router.dispatch(direct_msg("alice", "/broken")) is True
        assert platform.calls_to("send_to_user") == [("alice", INTERNAL_ERROR_REPLY, None)]
        assert not bot.store.lock.locked()

    @pytest.mark.asyncio
    async def test_failed_error_reply_is_swallowed(self, bot, platform, room_msg):
        async def broken(msg, args):
            raise PlatformError("down")

        bot.router.register("broken", broken)
        platform.fail.add("send_to_room")

        assert await bot.router.dispatch(room_msg("alice", "/broken")) is True

    @pytest.mark.asyncio
    async def test_mutating_commands_hold_the_lock(self, bot, room_msg):
        seen = {}

        async def mutating(msg, args):
            seen["mutating"] = bot.store.lock.locked()

        async def reading(msg, args):
            seen["reading"] = bot.store.lock.locked()

        bot.router.register("mutating", mutating, mutates=True)
        bot.router.register("reading", reading)

        await bot.router.dispatch(room_msg("alice", "/mutating"))
        await bot.router.dispatch(room_msg("alice", "/reading"))

        assert seen == {"mutating": True, "reading": False}

    @pytest.mark.asyncio
    async def test_concurrent_creates_keep_titles_unique(self, bot, platform, direct_msg):
        await asyncio.gather(
            bot.router.dispatch(direct_msg("alice", "/create Race Room")),
            bot.router.dispatch(direct_msg("bob", "/create Race Room")),
        )

        assert len(platform.calls_to("create_room")) == 1
        assert bot.store.get("Race Room") is not None


class TestRoomBot:
    """Test the bot context."""

    @pytest.mark.asyncio
    async def test_handle_never_raises(self, bot, room_msg):
        async def explode(msg):
            raise RuntimeError("boom")

        bot.router.dispatch = explode

        await bot.handle(room_msg("alice", "/list"))

    @pytest.mark.asyncio
    async def test_start_loads_state_and_stop_saves(self, bot, platform, brain):
        await bot.start()
        await asyncio.sleep(0.01)

        assert bot.is_running
        assert platform.is_running
        assert platform.calls_to("get_rooms") == [()]

        await bot.stop()

        assert not bot.is_running
        assert not platform.is_running
        assert brain.get("roombot/state") is not None

    @pytest.mark.asyncio
    async def test_run_dispatches_bus_messages(self, bot, platform, direct_msg):
        await platform.bus.publish_inbound(direct_msg("bob", "/list"))

        task = asyncio.create_task(bot.run())
        await asyncio.sleep(0.05)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        await bot.stop()

        assert platform.calls_to("send_to_user")[0][0] == "bob"
