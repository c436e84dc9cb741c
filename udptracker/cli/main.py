"""Diagnostic command line for talking to UDP trackers."""

from __future__ import annotations

import logging
import secrets

import click
from rich.console import Console
from rich.table import Table

from udptracker import __version__
from udptracker.config.config import init_config
from udptracker.models import LogLevel
from udptracker.tracker import AnnounceEvent, AnnounceRequest, ClientRegistry, register_default_clients
from udptracker.utils.exceptions import UDPTrackerError
from udptracker.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

PEER_ID_PREFIX = b"-UT0100-"

_EVENTS = {
    "none": AnnounceEvent.NONE,
    "completed": AnnounceEvent.COMPLETED,
    "started": AnnounceEvent.STARTED,
    "stopped": AnnounceEvent.STOPPED,
}


def _default_peer_id() -> bytes:
    return PEER_ID_PREFIX + secrets.token_bytes(20 - len(PEER_ID_PREFIX))


def _parse_hex(value: str, name: str) -> bytes:
    try:
        raw = bytes.fromhex(value)
    except ValueError as e:
        msg = f"{name} must be hex encoded"
        raise click.BadParameter(msg) from e
    if len(raw) != 20:
        msg = f"{name} must be 40 hex characters"
        raise click.BadParameter(msg)
    return raw


@click.group()
@click.version_option(__version__, prog_name="udptracker")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path",
)
@click.option("--verbose", "-v", count=True, help="Increase verbosity (-v: info, -vv: debug)")
@click.pass_context
def cli(ctx, config, verbose):
    """Talk to BitTorrent UDP trackers."""
    ctx.ensure_object(dict)
    try:
        config_manager = init_config(config)
    except UDPTrackerError as e:
        raise click.ClickException(str(e)) from e

    cfg = config_manager.config
    if verbose:
        cfg.observability.log_level = LogLevel.DEBUG if verbose > 1 else LogLevel.INFO
        setup_logging(cfg.observability)

    registry = register_default_clients(ClientRegistry())
    ctx.obj["config_manager"] = config_manager
    ctx.obj["config"] = cfg
    ctx.obj["registry"] = registry
    ctx.obj["console"] = Console()


@cli.command()
@click.argument("url")
@click.pass_context
def connect(ctx, url: str):
    """Perform the connect handshake and print the connection id."""
    console: Console = ctx.obj["console"]
    try:
        client = ctx.obj["registry"].client_for_url(url)
        with client:
            connection_id = client.connect()
    except UDPTrackerError as e:
        logger.debug("Connect to %s failed", url, exc_info=True)
        raise click.ClickException(e.message) from e
    console.print(f"[green]Connected[/green] {url} connection id [bold]{connection_id:016x}[/bold]")


@cli.command()
@click.argument("url")
@click.option("--info-hash", required=True, help="Torrent info hash (40 hex characters)")
@click.option("--peer-id", default=None, help="Peer id (40 hex characters); random if omitted")
@click.option("--port", type=click.IntRange(0, 65535), default=6881, show_default=True)
@click.option("--left", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--downloaded", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--uploaded", type=click.IntRange(min=0), default=0, show_default=True)
@click.option("--num-want", type=click.IntRange(min=-1), default=-1, show_default=True)
@click.option(
    "--event",
    type=click.Choice(sorted(_EVENTS)),
    default="started",
    show_default=True,
)
@click.pass_context
def announce(
    ctx,
    url: str,
    info_hash: str,
    peer_id: str | None,
    port: int,
    left: int,
    downloaded: int,
    uploaded: int,
    num_want: int,
    event: str,
):
    """Announce to a tracker and list the returned peers."""
    console: Console = ctx.obj["console"]
    request = AnnounceRequest(
        info_hash=_parse_hex(info_hash, "info hash"),
        peer_id=_parse_hex(peer_id, "peer id") if peer_id else _default_peer_id(),
        downloaded=downloaded,
        left=left,
        uploaded=uploaded,
        event=_EVENTS[event],
        key=secrets.randbits(32),
        num_want=num_want,
        port=port,
    )
    try:
        client = ctx.obj["registry"].client_for_url(url)
        with client:
            response = client.announce(request)
    except UDPTrackerError as e:
        logger.debug("Announce to %s failed", url, exc_info=True)
        raise click.ClickException(e.message) from e

    console.print(
        f"interval [bold]{response.interval}s[/bold]  "
        f"seeders [bold]{response.seeders}[/bold]  "
        f"leechers [bold]{response.leechers}[/bold]"
    )
    if not response.peers:
        console.print("[yellow]No peers returned[/yellow]")
        return

    table = Table(title=f"Peers ({len(response.peers)})")
    table.add_column("IP", style="cyan")
    table.add_column("Port", justify="right")
    for peer in response.peers:
        table.add_row(peer.ip, str(peer.port))
    console.print(table)


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration as TOML."""
    click.echo(ctx.obj["config_manager"].export())


def main() -> None:
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
