# pyright: standard

"""dailyborg: dailyborg/__logger__.py
A common logger rendered through rich, optionally mirrored to a log file.
"""

import logging
import logging.handlers
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

# Initialize basic console and handler
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
logger = logging.getLogger("dailyborg")
logger.setLevel(logging.INFO)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_logger(level="INFO", log_file=None) -> None:
    """Helper function to setup logging for a single invocation."""
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False)

    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(level)
    logger.addHandler(rich_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=1024 * 1024, backupCount=3
        )
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=logging.WARNING,
        handlers=[rich_handler],
        force=True,
    )
