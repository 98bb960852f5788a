"""Run command: back up now unless today's backup already completed."""

import argparse
import logging
import time

from .. import __util__
from ..core import Orchestrator
from .common import load_cli_config

logger = logging.getLogger(__name__)


def execute_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success or a deferred run, 1 for failure)
    """
    config = load_cli_config(args)
    if config is None:
        return 1

    logger.info(__util__.log_heading(f"Started at {time.ctime()}"))
    orchestrator = Orchestrator.from_config(config)
    exit_code = orchestrator.run(force_new=getattr(args, "new", False))
    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    return exit_code
