"""WickrIO web interface transport.

Talks to the REST API exposed by the WickrIO web interface integration:
``<base_url>/WickrIO/V1/Apps/<api_key>/{Rooms,Messages}``.
"""

import asyncio
import base64
from typing import Any, Optional, Sequence

import httpx
from loguru import logger

from roombot.bus.queue import MessageBus
from roombot.config.schema import WickrIOConfig
from roombot.platform.base import BasePlatform, Button, PlatformError


class WickrIOPlatform(BasePlatform):
    """Platform transport backed by the WickrIO web interface."""

    name = "wickrio"

    def __init__(
        self,
        config: WickrIOConfig,
        bus: MessageBus,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, bus)
        token = base64.b64encode(config.auth_token.encode()).decode()
        self._client = httpx.AsyncClient(
            base_url=f"{config.base_url.rstrip('/')}/WickrIO/V1/Apps/{config.api_key}",
            headers={"Authorization": f"Basic {token}", "Content-Type": "application/json"},
            timeout=config.timeout_s,
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Send a request and decode the JSON reply.

        Returns:
            Decoded JSON, or None for an empty body

        Raises:
            PlatformError: On transport errors, non-2xx status or bad JSON
        """
        try:
            response = await self._client.request(method, path, json=body, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise PlatformError(
                f"{method} {path} failed with {e.response.status_code}: {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise PlatformError(f"{method} {path} failed: {e}") from e

        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as e:
            raise PlatformError(f"{method} {path} returned invalid JSON: {response.text[:200]}") from e

    @staticmethod
    def _expect_dict(value: Any, what: str) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise PlatformError(f"Unexpected {what} response: {value!r}")
        return value

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    async def create_room(self, owner: str, moderator: str, title: str) -> dict[str, Any]:
        body = {
            "room": {
                "title": title,
                "description": "",
                "members": [{"name": owner}],
                "masters": [{"name": moderator}],
            }
        }
        result = await self._request("POST", "/Rooms", body=body)
        return self._expect_dict(result, "create room")

    async def get_room(self, group_id: str) -> dict[str, Any]:
        result = self._expect_dict(await self._request("GET", f"/Rooms/{group_id}"), "get room")
        # Single-room lookups come back wrapped in a one-element room list
        rooms = result.get("rooms")
        if isinstance(rooms, list) and rooms:
            return self._expect_dict(rooms[0], "get room")
        return result

    async def get_rooms(self) -> dict[str, Any]:
        return self._expect_dict(await self._request("GET", "/Rooms"), "get rooms")

    async def update_room_members(self, group_id: str, members: Sequence[str]) -> None:
        body = {"room": {"members": [{"name": m} for m in members]}}
        await self._request("POST", f"/Rooms/{group_id}", body=body)

    async def leave_room(self, group_id: str) -> None:
        await self._request("DELETE", f"/Rooms/{group_id}", params={"reason": "leave"})

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @staticmethod
    def _message_body(text: str, buttons: Optional[Sequence[Button]]) -> dict[str, Any]:
        body: dict[str, Any] = {"message": text}
        if buttons:
            body["meta"] = {"buttons": [b.to_dict() for b in buttons]}
        return body

    async def send_to_room(
        self, group_id: str, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        body = self._message_body(text, buttons)
        body["vgroupid"] = group_id
        await self._request("POST", "/Messages", body=body)

    async def send_to_user(
        self, user: str, text: str, buttons: Optional[Sequence[Button]] = None
    ) -> None:
        body = self._message_body(text, buttons)
        body["users"] = [{"name": user}]
        await self._request("POST", "/Messages", body=body)

    async def fetch_messages(self) -> list[dict[str, Any]]:
        """Fetch the next batch of received messages."""
        result = await self._request(
            "GET", "/Messages", params={"start": 0, "count": self.config.batch_size}
        )
        if result is None:
            return []
        if isinstance(result, dict):
            result = result.get("messages", [])
        if not isinstance(result, list):
            raise PlatformError(f"Unexpected messages response: {result!r}")
        return [m for m in result if isinstance(m, dict)]

    async def poll_once(self) -> int:
        """Fetch one batch and publish it to the bus.

        Returns:
            Number of messages published
        """
        messages = await self.fetch_messages()
        for raw in messages:
            await self._handle_message(
                sender=raw.get("sender", ""),
                group_id=raw.get("vgroupid", ""),
                content=raw.get("message", ""),
                receiver=raw.get("receiver") or None,
                message_id=raw.get("message_id"),
                metadata={"msg_ts": raw.get("msg_ts")},
            )
        return len(messages)

    async def start(self) -> None:
        """Poll for messages until stopped."""
        self._running = True
        logger.info(f"Polling WickrIO messages every {self.config.poll_interval_s}s")

        while self._running:
            try:
                received = await self.poll_once()
            except PlatformError as e:
                logger.warning(f"Failed to fetch messages: {e}")
                received = 0
            if not received:
                await asyncio.sleep(self.config.poll_interval_s)

    async def stop(self) -> None:
        self._running = False
        await self._client.aclose()
        logger.info("WickrIO transport stopped")
