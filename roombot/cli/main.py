"""roombot command line.

Commands:
- roombot init      write a default config file
- roombot run       run the bot against the WickrIO web interface
- roombot rooms     show the stored rooms, hidden ones included
- roombot sync      run one room sync pass and print what changed
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from roombot import __logo__, __version__
from roombot.config.loader import get_config_path, get_data_dir, load_config, save_config
from roombot.config.schema import Config
from roombot.storage.brain import FileBrain
from roombot.storage.store import RoomStore
from roombot.utils.logging import configure_logging

app = typer.Typer(
    name="roombot",
    help=f"{__logo__} roombot - create, find and join shared rooms",
    no_args_is_help=True,
)
console = Console()


def _setup(config_path: Optional[Path], verbose: bool) -> Config:
    """Load config and configure logging for a command."""
    config = load_config(config_path)
    configure_logging(config.logging.level, config.log_path, verbose=verbose)
    return config


def _open_store(config: Config) -> RoomStore:
    brain = FileBrain(get_data_dir(config) / "brain")
    store = RoomStore(brain, key=config.bot.state_key)
    store.load()
    return store


def _build_platform(config: Config):
    from roombot.bus.queue import MessageBus
    from roombot.platform.wickrio import WickrIOPlatform

    if not config.wickrio.api_key:
        console.print("[red]❌ wickrio.apiKey is not configured[/red]")
        console.print(f"[dim]Edit {get_config_path()} or set ROOMBOT_WICKRIO__API_KEY[/dim]")
        raise typer.Exit(1)
    bus = MessageBus()
    return WickrIOPlatform(config.wickrio, bus), bus


@app.command("version")
def version():
    """Show the version."""
    console.print(f"{__logo__} roombot v{__version__}")


@app.command("init")
def init(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
):
    """Write a default configuration file."""
    path = config_path or get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]⚠️ Config already exists at {path}[/yellow]")
        console.print("[dim]Use --force to overwrite[/dim]")
        raise typer.Exit(1)
    save_config(Config(), path)
    console.print(f"[green]✓[/green] Wrote default config to {path}")


@app.command("run")
def run(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    """Run the bot until interrupted."""
    from roombot.bot import RoomBot

    config = _setup(config_path, verbose)
    platform, bus = _build_platform(config)
    brain = FileBrain(get_data_dir(config) / "brain")
    bot = RoomBot(config.bot, platform, brain, bus)

    async def _main() -> None:
        try:
            await bot.run()
        finally:
            await bot.stop()

    console.print(f"{__logo__} Starting roombot as [cyan]{config.bot.username or '<unnamed>'}[/cyan]")
    try:
        asyncio.run(_main())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


@app.command("rooms")
def rooms(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    """Show every stored room."""
    config = _setup(config_path, verbose)
    store = _open_store(config)

    if not len(store):
        console.print("[dim]No rooms stored yet[/dim]")
        return

    table = Table(title="Rooms")
    table.add_column("Title", style="cyan")
    table.add_column("Group ID", style="dim")
    table.add_column("Visibility")
    table.add_column("Owner")
    table.add_column("Members", justify="right")
    table.add_column("Moderators", justify="right")
    table.add_column("Last Updated", style="dim")

    for room in store.rooms():
        table.add_row(
            room.title,
            room.group_id,
            room.visibility.value,
            room.owner or "-",
            str(len(room.members)),
            str(len(room.moderators)),
            room.last_updated.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


@app.command("sync")
def sync(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config.json"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
):
    """Run one room sync pass against the platform."""
    from roombot.sync.reconciler import RoomReconciler

    config = _setup(config_path, verbose)
    platform, _ = _build_platform(config)
    store = _open_store(config)
    reconciler = RoomReconciler(store, platform, interval_s=config.bot.refresh_interval_s)

    async def _once():
        try:
            return await reconciler.reconcile_once()
        finally:
            await platform.stop()

    with console.status("[cyan]Syncing rooms...[/cyan]", spinner="dots"):
        report = asyncio.run(_once())

    if report.aborted:
        console.print(f"[red]✗[/red] Sync aborted: {report.error}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Sync finished: {report.summary()}")
    for title in report.added:
        console.print(f"  [green]+[/green] {title} (hidden)")
    for title in report.conflicts:
        console.print(f"  [yellow]![/yellow] {title}: title already used by another room")


if __name__ == "__main__":
    app()
