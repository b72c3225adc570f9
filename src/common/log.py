# ABOUTME: Routes the engines' standard-library loggers through Rich for CLI use.
# ABOUTME: Library modules only call logging.getLogger(__name__); hosts decide output.

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(level: str = "INFO", console: Console = None) -> None:
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=level.upper(),
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
