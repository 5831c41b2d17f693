"""The room bot: owns room state, the sync loop and command routing."""

import asyncio
from typing import Optional

from loguru import logger

from roombot.bus.queue import MessageBus
from roombot.commands.rooms import HELP_TEXT, RoomCommands
from roombot.commands.router import CommandRouter
from roombot.config.schema import BotConfig
from roombot.platform.base import BasePlatform
from roombot.storage.brain import Brain
from roombot.storage.store import RoomStore
from roombot.sync.reconciler import RoomReconciler


class RoomBot:
    """
    Explicit context for one running bot.

    Lifecycle:
    - start(): load state (or start empty), run the first sync and keep
      syncing on an interval, start the platform transport
    - run(): consume inbound messages and dispatch commands forever
    - stop(): stop syncing and the transport, then save a final time
    """

    def __init__(
        self,
        config: BotConfig,
        platform: BasePlatform,
        brain: Brain,
        bus: MessageBus,
    ):
        self.config = config
        self.platform = platform
        self.bus = bus

        self.store = RoomStore(brain, key=config.state_key)
        self.router = CommandRouter(
            platform,
            self.store,
            bot_username=config.username,
            prefix=config.command_prefix,
            help_text=HELP_TEXT,
        )
        self.commands = RoomCommands(
            self.router,
            bot_username=config.username,
            max_title_length=config.max_title_length,
            suggestion_cutoff=config.suggestion_cutoff,
        )
        self.commands.register()
        self.reconciler = RoomReconciler(
            self.store, platform, interval_s=config.refresh_interval_s
        )

        self._platform_task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Load state and start background work."""
        if self._running:
            return
        self.store.load()
        await self.reconciler.start()
        self._platform_task = asyncio.create_task(self._run_platform())
        self._running = True
        logger.info(f"Room bot started as {self.config.username or '<unnamed>'}")

    async def _run_platform(self) -> None:
        try:
            await self.platform.start()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Platform {self.platform.name} stopped unexpectedly")

    async def run(self) -> None:
        """Dispatch inbound messages until cancelled."""
        await self.start()
        while True:
            msg = await self.bus.consume_inbound()
            await self.handle(msg)

    async def handle(self, msg) -> None:
        """Dispatch one message, never letting an error escape."""
        try:
            await self.router.dispatch(msg)
        except Exception:
            logger.exception(f"Error handling message from {msg.sender} in {msg.group_id}")

    async def stop(self) -> None:
        """Stop background work and persist state."""
        self.reconciler.stop()
        if self._platform_task:
            self._platform_task.cancel()
            try:
                await self._platform_task
            except asyncio.CancelledError:
                pass
            self._platform_task = None
        try:
            await self.platform.stop()
        except Exception as e:
            logger.error(f"Error stopping platform {self.platform.name}: {e}")
        async with self.store.transaction():
            self.store.save()
        self._running = False
        logger.info("Room bot stopped")
