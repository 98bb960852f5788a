"""Shared CLI utilities and argument parsers."""

import argparse
import logging

from ..__logger__ import create_logger
from ..config import Config, ConfigError, find_config_file, load_config

logger = logging.getLogger(__name__)


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING, ERROR)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_cli_config(args: argparse.Namespace) -> Config | None:
    """Find and load the configuration, then set up logging from it.

    Returns:
        The configuration, or None after reporting why it is unusable
    """
    log_level = get_log_level(args)
    create_logger(log_level)

    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: dailyborg config init")
            return None

        logger.debug("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path)

    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    if config.global_config.log_file:
        create_logger(log_level, log_file=config.global_config.log_file)

    for warning in warnings:
        logger.warning("Config: %s", warning)

    return config
