"""CLI dispatcher.

Without a subcommand the backup runs right away, so the scheduler entry is
just ``dailyborg`` (or ``dailyborg --new`` to start over).
"""

import argparse
import sys
from typing import Callable

from .common import add_verbosity_args


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="dailyborg",
        description="Run a borg backup at most once per day",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    parser.add_argument(
        "--new",
        action="store_true",
        help="Forget today's progress and all markers before running",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (default: run)",
    )

    subparsers.add_parser(
        "run",
        help="Run the backup now unless it already completed today",
    )

    subparsers.add_parser(
        "mount",
        help="Mount a read-only view of the repository",
    )

    subparsers.add_parser(
        "umount",
        help="Unmount the read-only view of the repository",
    )

    subparsers.add_parser(
        "status",
        help="Show the last successful backup and pending state",
    )

    # config command with subcommands
    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def cmd_run(args: argparse.Namespace) -> int:
    """Execute run command."""
    from .run import execute_run

    return execute_run(args)


def cmd_mount(args: argparse.Namespace) -> int:
    """Execute mount command."""
    from .mount_cmd import execute_mount

    return execute_mount(args)


def cmd_umount(args: argparse.Namespace) -> int:
    """Execute umount command."""
    from .mount_cmd import execute_umount

    return execute_umount(args)


def cmd_status(args: argparse.Namespace) -> int:
    """Execute status command."""
    from .status import execute_status

    return execute_status(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


HANDLERS: dict[str, Callable[[argparse.Namespace], int]] = {
    "run": cmd_run,
    "mount": cmd_mount,
    "umount": cmd_umount,
    "status": cmd_status,
    "config": cmd_config,
}


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand, the backup if there is none.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"dailyborg {__version__}")
        return 0

    handler = HANDLERS.get(args.command or "run")
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the dailyborg CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
