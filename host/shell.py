"""
Host shell: window and desktop actions the core asks the host to perform.

The window itself belongs to the UI process; this default shell covers what
can be done from Python and logs the rest. A desktop wrapper can subclass it.
"""
import logging
from typing import Callable, Optional

import click

logger = logging.getLogger(__name__)


class HostShell:
    def __init__(self, on_quit: Optional[Callable[[], None]] = None):
        self.on_quit = on_quit

    def choose_directory(self) -> Optional[str]:
        """Interactive directory picker. The browser UI sends the directory instead."""
        return None

    def show_item_in_folder(self, path: str) -> None:
        click.launch(path, locate=True)

    def minimize(self) -> None:
        logger.info("Shell: minimize requested")

    def toggle_maximize(self) -> None:
        logger.info("Shell: maximize requested")

    def quit(self) -> None:
        logger.info("Shell: quit requested")
        if self.on_quit:
            self.on_quit()
