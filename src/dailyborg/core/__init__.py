"""Core backup job for dailyborg.

The pieces an invocation is made of, leaf first: notifier, marker store,
mount precondition, stale lock recovery, engine runner, outcome classifier
and the orchestrator sequencing them.
"""

from .classifier import Outcome, classify
from .engine import BorgEngine, EngineResult
from .locks import StaleLockReconciler
from .mount import MountManager
from .notify import Notifier
from .orchestrator import BackupJob, JobStatus, Orchestrator
from .state import MarkerStore, State

__all__ = [
    "Outcome",
    "classify",
    "BorgEngine",
    "EngineResult",
    "StaleLockReconciler",
    "MountManager",
    "Notifier",
    "BackupJob",
    "JobStatus",
    "Orchestrator",
    "MarkerStore",
    "State",
]
