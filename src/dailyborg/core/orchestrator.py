"""Once-per-day backup orchestration.

Sequences the marker store, mount precondition, stale lock recovery, the
engine run and its classification, and notifies the user once per outcome.
"""

import logging
import time
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable

from .. import __util__, snapshot_name
from ..__util__ import AbortError, MountError, RepositoryInitError
from .classifier import Outcome, classify, engine_error
from .engine import BorgEngine
from .locks import StaleLockReconciler
from .mount import MountManager
from .notify import Notifier
from .state import MarkerStore, State

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class JobStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class BackupJob:
    """One attempt at today's backup."""

    date: date
    snapshot_id: str
    status: JobStatus = JobStatus.PENDING
    duration_seconds: int = 0

    @property
    def duration_minutes(self) -> int:
        return self.duration_seconds // 60


class Orchestrator:
    """Run the daily backup at most once per calendar day."""

    def __init__(
        self,
        config,
        store: MarkerStore,
        mounter: MountManager,
        reconciler: StaleLockReconciler,
        engine: BorgEngine,
        notifier: Notifier,
        today: Callable[[], date] = date.today,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.store = store
        self.mounter = mounter
        self.reconciler = reconciler
        self.engine = engine
        self.notifier = notifier
        self.today = today
        self.clock = clock

    @classmethod
    def from_config(cls, config) -> "Orchestrator":
        store = MarkerStore(config.global_config.state_path)
        engine = BorgEngine(config.repository, pid_file=store.pid_path)
        return cls(
            config,
            store=store,
            mounter=MountManager(config.mount),
            reconciler=StaleLockReconciler(engine),
            engine=engine,
            notifier=Notifier(config.notify),
        )

    def _resolve_job(self, state: State, today: date) -> BackupJob:
        """Reuse the snapshot id of an unfinished run, or start today's."""
        if state.snapshot_id:
            logger.info("Resuming snapshot %s", state.snapshot_id)
        else:
            state.snapshot_id = snapshot_name(
                self.config.repository.archive_prefix, today
            )
            self.store.save(state)
        return BackupJob(date=today, snapshot_id=state.snapshot_id)

    def run(self, force_new: bool = False) -> int:
        """Back up once for today. Returns the process exit code."""
        if force_new:
            self.store.reset()

        state = self.store.load()
        today = self.today()
        if state.completed_on(today):
            logger.info("Backup for %s already completed", today.isoformat())
            return EXIT_SUCCESS

        try:
            self.mounter.ensure_mounted()
        except MountError as e:
            logger.error("Mount failed: %s", e)
            self.notifier.notify("Backup Failed", f"Mount error: {e}")
            return EXIT_FAILURE

        try:
            self.engine.ensure_repository()
        except RepositoryInitError as e:
            logger.error("Repository initialization failed: %s", e)
            self.notifier.notify("Backup Failed", f"Repository init error: {e}")
            return EXIT_FAILURE

        job = self._resolve_job(state, today)
        try:
            self.reconciler.reconcile()
        except (AbortError, OSError) as e:
            logger.error("Cannot clear stale locks: %s", e)
            self.notifier.notify("Backup Failed", f"Stale lock error: {e}")
            return EXIT_FAILURE

        logger.info(__util__.log_heading(f"Snapshot {job.snapshot_id}"))
        job.status = JobStatus.RUNNING
        started = self.clock()
        result = self.engine.create(job.snapshot_id)
        job.duration_seconds = int(self.clock() - started)

        outcome = classify(result.returncode, result.output)
        logger.info(
            "Engine exited with %d after %d minute(s): %s",
            result.returncode,
            job.duration_minutes,
            outcome.value,
        )

        if outcome.succeeded:
            return self._succeeded(job, state, outcome, result)
        if outcome is Outcome.ALREADY_RUNNING:
            return self._already_running(job, state, result)
        return self._failed(job, result)

    def _succeeded(
        self, job: BackupJob, state: State, outcome: Outcome, result
    ) -> int:
        error = engine_error(outcome, result.returncode, result.output)
        if error is not None:
            logger.warning("%s", error)
        job.status = JobStatus.SUCCEEDED
        state.record_success(job.date)
        self.store.save(state)

        message = (
            f"Snapshot {job.snapshot_id} completed in "
            f"{job.duration_minutes} minute(s)"
        )
        if outcome is Outcome.IGNORABLE_ERROR_SUCCESS:
            message += ", some files could not be read"
        self.notifier.notify("Backup Successful", message)
        return EXIT_SUCCESS

    def _already_running(self, job: BackupJob, state: State, result) -> int:
        logger.warning(
            "%s", engine_error(Outcome.ALREADY_RUNNING, result.returncode, result.output)
        )
        job.status = JobStatus.PENDING
        if state.running_notified:
            logger.info("Another backup is still running")
            return EXIT_SUCCESS

        state.running_notified = True
        self.store.save(state)
        self.notifier.notify(
            "Backup Already Running",
            "Another backup holds the repository lock, "
            "retrying at the next scheduled run",
        )
        return EXIT_SUCCESS

    def _failed(self, job: BackupJob, result) -> int:
        # The lock marker stays so the next run resumes this snapshot
        job.status = JobStatus.FAILED
        error = engine_error(Outcome.HARD_FAILURE, result.returncode, result.output)
        logger.error("%s", error)
        self.notifier.notify(
            "Backup Failed",
            f"Snapshot {job.snapshot_id} failed after {job.duration_minutes} "
            f"minute(s):\n{result.output.strip()}",
        )
        return EXIT_FAILURE
