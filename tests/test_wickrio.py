"""Tests for the WickrIO transport against a mocked HTTP server."""

import base64
import json

import httpx
import pytest

from roombot.bus.queue import MessageBus
from roombot.config.schema import WickrIOConfig
from roombot.platform.base import Button, PlatformError
from roombot.platform.wickrio import WickrIOPlatform


class FakeServer:
    """Records requests and answers from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def route(self, method, path, status=200, body=None, text=None):
        self.routes[(method, path)] = (status, body, text)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.split("/Apps/test-key", 1)[1]
        status, body, text = self.routes.get((request.method, path), (200, None, ""))
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=body)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
def wickrio(server):
    config = WickrIOConfig(base_url="http://wickr.test:4001/", api_key="test-key", auth_token="s3cret")
    return WickrIOPlatform(config, MessageBus(), transport=httpx.MockTransport(server))


class TestRooms:
    """Test room operations."""

    @pytest.mark.asyncio
    async def test_create_room(self, wickrio, server):
        server.route("POST", "/Rooms", body={"vgroupid": "Snew"})

        result = await wickrio.create_room("alice", "alice", "Ops")

        assert result == {"vgroupid": "Snew"}
        request = server.requests[-1]
        assert str(request.url) == "http://wickr.test:4001/WickrIO/V1/Apps/test-key/Rooms"
        token = base64.b64encode(b"s3cret").decode()
        assert request.headers["Authorization"] == f"Basic {token}"
        assert server.last_json() == {"room": {
            "title": "Ops",
            "description": "",
            "members": [{"name": "alice"}],
            "masters": [{"name": "alice"}],
        }}

    @pytest.mark.asyncio
    async def test_create_room_rejects_non_object(self, wickrio, server):
        server.route("POST", "/Rooms", body=["nope"])

        with pytest.raises(PlatformError):
            await wickrio.create_room("alice", "alice", "Ops")

    @pytest.mark.asyncio
    async def test_get_room_unwraps_room_list(self, wickrio, server):
        server.route("GET", "/Rooms/S1", body={"rooms": [{"vgroupid": "S1", "members": [], "masters": []}]})

        assert (await wickrio.get_room("S1"))["vgroupid"] == "S1"

    @pytest.mark.asyncio
    async def test_get_rooms(self, wickrio, server):
        server.route("GET", "/Rooms", body={"rooms": []})

        assert await wickrio.get_rooms() == {"rooms": []}

    @pytest.mark.asyncio
    async def test_update_room_members(self, wickrio, server):
        await wickrio.update_room_members("S1", ["bob"])

        request = server.requests[-1]
        assert request.method == "POST"
        assert request.url.path.endswith("/Rooms/S1")
        assert server.last_json() == {"room": {"members": [{"name": "bob"}]}}

    @pytest.mark.asyncio
    async def test_leave_room(self, wickrio, server):
        await wickrio.leave_room("S1")

        request = server.requests[-1]
        assert request.method == "DELETE"
        assert request.url.path.endswith("/Rooms/S1")
        assert request.url.params["reason"] == "leave"


class TestMessages:
    """Test sending and receiving messages."""

    @pytest.mark.asyncio
    async def test_send_to_room(self, wickrio, server):
        await wickrio.send_to_room("S1", "hello")

        assert server.last_json() == {"message": "hello", "vgroupid": "S1"}

    @pytest.mark.asyncio
    async def test_send_to_user_with_buttons(self, wickrio, server):
        await wickrio.send_to_user("bob", "pick one", [Button("List Rooms", "/list")])

        assert server.last_json() == {
            "message": "pick one",
            "users": [{"name": "bob"}],
            "meta": {"buttons": [{"type": "message", "text": "List Rooms", "message": "/list"}]},
        }

    @pytest.mark.asyncio
    async def test_poll_once_publishes_messages(self, wickrio, server):
        server.route("GET", "/Messages", body=[
            {"sender": "alice", "vgroupid": "S1", "message": "/list", "message_id": "m1"},
            {"sender": "bob", "vgroupid": "S2", "message": "/help", "receiver": "rbot"},
            {"sender": "carol", "vgroupid": "S1"},
        ])

        assert await wickrio.poll_once() == 3

        assert wickrio.bus.inbound_size == 2
        first = await wickrio.bus.consume_inbound()
        second = await wickrio.bus.consume_inbound()
        assert (first.sender, first.group_id, first.content, first.is_direct) == ("alice", "S1", "/list", False)
        assert second.is_direct
        assert server.requests[-1].url.params["count"] == "20"

    @pytest.mark.asyncio
    async def test_fetch_messages_accepts_wrapped_list(self, wickrio, server):
        server.route("GET", "/Messages", body={"messages": [{"sender": "a", "vgroupid": "S1", "message": "hi"}]})

        assert len(await wickrio.fetch_messages()) == 1

    @pytest.mark.asyncio
    async def test_empty_body_means_no_messages(self, wickrio, server):
        server.route("GET", "/Messages", text="")

        assert await wickrio.fetch_messages() == []


class TestErrors:
    """Test failure mapping."""

    @pytest.mark.asyncio
    async def test_http_error_status(self, wickrio, server):
        server.route("GET", "/Rooms", status=500, text="internal error")

        with pytest.raises(PlatformError, match="500"):
            await wickrio.get_rooms()

    @pytest.mark.asyncio
    async def test_invalid_json(self, wickrio, server):
        server.route("GET", "/Rooms", text="<html>")

        with pytest.raises(PlatformError, match="invalid JSON"):
            await wickrio.get_rooms()

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        config = WickrIOConfig(api_key="test-key")
        wickrio = WickrIOPlatform(config, MessageBus(), transport=httpx.MockTransport(refuse))

        with pytest.raises(PlatformError, match="connection refused"):
            await wickrio.leave_room("S1")

    @pytest.mark.asyncio
    async def test_stop_closes_client(self, wickrio):
        await wickrio.stop()

        assert not wickrio.is_running
        assert wickrio._client.is_closed
