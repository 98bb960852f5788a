"""Mount commands: expose or hide a read-only view of the repository."""

import argparse
import logging

from ..__util__ import AbortError
from ..core import BorgEngine, MountManager
from .common import load_cli_config

logger = logging.getLogger(__name__)


def execute_mount(args: argparse.Namespace) -> int:
    """Mount the repository read-only at the configured view directory."""
    config = load_cli_config(args)
    if config is None:
        return 1

    try:
        MountManager(config.mount).ensure_mounted()
        return BorgEngine(config.repository).mount_view(config.repository.view_dir)
    except (AbortError, OSError) as e:
        logger.error("Cannot mount repository view: %s", e)
        return 1


def execute_umount(args: argparse.Namespace) -> int:
    """Unmount the read-only repository view."""
    config = load_cli_config(args)
    if config is None:
        return 1

    try:
        return BorgEngine(config.repository).umount_view(config.repository.view_dir)
    except AbortError as e:
        logger.error("Cannot unmount repository view: %s", e)
        return 1
