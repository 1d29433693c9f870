"""CLI commands for relaybot."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from relaybot import __version__, __logo__

app = typer.Typer(
    name="relaybot",
    help=f"{__logo__} relaybot - prefixed command chat bot",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} relaybot v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """relaybot - prefixed command chat bot."""
    pass


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


# ============================================================================
# Setup
# ============================================================================


@app.command()
def onboard(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Write a default config and seed the store."""
    from relaybot.config.loader import get_config_path, save_config
    from relaybot.config.schema import Config
    from relaybot.store.json_store import JsonStore

    path = config_path or get_config_path()
    if path.exists():
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    config = Config()
    save_config(config, path)
    console.print(f"[green]✓[/green] Created config at {path}")

    store_path = config.store_path
    if not store_path.exists():
        store = JsonStore(store_path, history_limit=config.store.history_limit)
        store.flush()
        console.print(f"[green]✓[/green] Created store at {store_path}")

    console.print(f"\n{__logo__} relaybot is ready!")
    console.print("\nNext steps:")
    console.print(f"  1. Add Helix credentials to [cyan]{path}[/cyan] to enable join and uid")
    console.print("  2. Try it locally: [cyan]relaybot console[/cyan]")


@app.command()
def commands(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """List the command catalog."""
    from relaybot.config.loader import load_config
    from relaybot.store.json_store import JsonStore

    config = load_config(config_path)
    store = JsonStore(
        config.store_path,
        history_limit=config.store.history_limit,
        history_flush_every=config.store.history_flush_every,
    )
    specs = asyncio.run(store.get_command_registry())

    table = Table(title="Commands")
    table.add_column("Name", style="cyan")
    table.add_column("Permission")
    table.add_column("Cooldown")
    table.add_column("Description")

    for spec in sorted(specs, key=lambda s: s.name):
        table.add_row(
            f"{config.bot.prefix}{spec.name}",
            str(spec.permission),
            f"{spec.cooldown:g}s",
            spec.description,
        )

    console.print(table)


# ============================================================================
# Run
# ============================================================================


@app.command("console")
def console_cmd(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    verbose: bool = typer.Option(False, "--verbose", help="Verbose output"),
):
    """Run the bot against stdin/stdout."""
    from relaybot.api.banphrase import BanphraseClient
    from relaybot.api.helix import HelixClient
    from relaybot.api.supinic import SupinicClient
    from relaybot.bot import RelayBot
    from relaybot.channels.console import ConsoleChannel
    from relaybot.config.loader import load_config
    from relaybot.security.permissions import PermissionLevel
    from relaybot.store.json_store import JsonStore

    _configure_logging(verbose)
    config = load_config(config_path)

    store = JsonStore(
        config.store_path,
        history_limit=config.store.history_limit,
        history_flush_every=config.store.history_flush_every,
    )

    identity_lookup = None
    if config.helix_enabled:
        identity_lookup = HelixClient(config.helix)
    else:
        console.print("[yellow]Warning: Helix not configured, join and uid lookups will fail[/yellow]")

    if config.moderation.enabled:
        moderation = BanphraseClient(config.moderation)
    else:
        moderation = None
        console.print("[yellow]Warning: moderation disabled, replies that echo user text will be withheld[/yellow]")

    activity = SupinicClient(config.supinic) if config.supinic_enabled else None

    channel = ConsoleChannel(config.console, console=console)
    bot = RelayBot(
        config=config,
        store=store,
        history=store,
        channel=channel,
        identity_lookup=identity_lookup,
        moderation=moderation,
        activity=activity,
    )

    console.print(
        f"{__logo__} Type commands as [cyan]{config.console.user_login}[/cyan] "
        f"(prefix [cyan]{config.bot.prefix}[/cyan]), Ctrl-D to quit"
    )

    async def run():
        if await store.get_identity(config.console.user_id) is None:
            await store.add_identity(
                config.console.user_id,
                config.console.user_login,
                PermissionLevel.from_value(config.console.permission),
            )
        await bot.setup()
        await bot.run()

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("\nGoodbye!")


if __name__ == "__main__":
    app()
