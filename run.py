#!/usr/bin/env python3
"""
KPlayer Launcher
Starts the state store, the library scanner and both control surfaces:
the local one for the host UI and the remote one for LAN clients.
"""
import logging
import signal
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from shared import config
from shared.constants import APP_NAME, APP_VERSION, LOCAL_PORT, REMOTE_PORT
from shared.errors import PersistenceError

console = Console()
logger = logging.getLogger("kplayer")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    # Werkzeug logs every poll from remote clients.
    logging.getLogger("werkzeug").setLevel(logging.DEBUG if debug else logging.WARNING)


def print_access_summary(station) -> None:
    console.print(Panel.fit(
        f"[bold cyan]{APP_NAME} {APP_VERSION} ONLINE[/bold cyan]\n\n"
        f"Local:  http://127.0.0.1:{station.local_port}/\n"
        f"Remote: http://{station.network.address}:{station.remote_port}/\n"
        f"Data:   {station.store.data_dir}\n"
        f"Remote access: {'[green]allowed[/green]' if station.store.settings.allowRemote else '[red]disabled[/red]'}",
        border_style="cyan",
    ))


@click.command()
@click.version_option(version=APP_VERSION)
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path), default=None,
              help='Directory holding settings.json and playlists.json.')
@click.option('--local-port', type=int, default=LOCAL_PORT, show_default=True,
              help='Port of the host UI channel (localhost only).')
@click.option('--remote-port', type=int, default=REMOTE_PORT, show_default=True,
              help='Port of the LAN remote control.')
@click.option('--workers', type=click.IntRange(min=1), default=None,
              help='Metadata extraction threads per scan pool.')
@click.option('--debug', is_flag=True, help='Verbose logging.')
def main(data_dir, local_port, remote_port, workers, debug):
    """Run the KPlayer host with its remote control surface."""
    configure_logging(debug)

    from host.station import Station

    try:
        station = Station(
            data_dir=data_dir or config.DATA_DIR,
            local_port=local_port,
            remote_port=remote_port,
            workers=workers or config.SCAN_WORKERS,
        )
    except PersistenceError as e:
        logger.critical("FATAL: %s", e.message)
        sys.exit(1)

    signal.signal(signal.SIGTERM, lambda s, f: station.request_shutdown())
    print_access_summary(station)
    try:
        station.serve_forever(debug=debug)
    except KeyboardInterrupt:
        station.shutdown()


if __name__ == "__main__":
    main()
