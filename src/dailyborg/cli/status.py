"""Status command: Show the persisted backup state."""

import argparse
from datetime import date

from ..core import BorgEngine, MarkerStore, StaleLockReconciler
from .common import load_cli_config


def execute_status(args: argparse.Namespace) -> int:
    """Execute the status command.

    Shows the markers of the last runs and whether a backup is in progress.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    config = load_cli_config(args)
    if config is None:
        return 1

    store = MarkerStore(config.global_config.state_path)
    state = store.load()
    engine = BorgEngine(config.repository, pid_file=store.pid_path)
    running = StaleLockReconciler(engine).engine_alive()

    last_success = (
        state.last_success_date.isoformat() if state.last_success_date else "never"
    )

    print("dailyborg Status")
    print("=" * 60)
    print(f"Repository: {config.repository.path}")
    print(f"State dir: {store.state_dir}")
    if config.mount:
        print(f"Mount: {config.mount.remote} -> {config.mount.mount_point}")
    print("")
    print(f"Last success: {last_success}")
    print(f"Done today: {'yes' if state.completed_on(date.today()) else 'no'}")
    print(f"Pending snapshot: {state.snapshot_id or '(none)'}")
    print(f"Already-running notice sent: {'yes' if state.running_notified else 'no'}")
    print(f"Engine running: {'yes' if running else 'no'}")

    return 0
