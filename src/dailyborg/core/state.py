"""Persisted markers coordinating successive invocations.

Each marker lives in its own small file under the state directory, so a
corrupt or half-written marker never affects the others:

- ``last_success``: ISO date of the last successful backup (RunMarker)
- ``snapshot_lock``: snapshot id of the run in progress (LockMarker)
- ``running_notified``: present while the "already running" notice was sent
"""

import logging
import os
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from filelock import FileLock

logger = logging.getLogger(__name__)

RUN_MARKER = "last_success"
LOCK_MARKER = "snapshot_lock"
NOTICE_MARKER = "running_notified"
PID_FILE = "engine.pid"


@dataclass
class State:
    """Snapshot of all markers; ``None`` means the marker is absent."""

    last_success_date: Optional[date] = None
    snapshot_id: Optional[str] = None
    running_notified: bool = False

    def completed_on(self, day: date) -> bool:
        return self.last_success_date == day

    def record_success(self, day: date) -> None:
        """Mark ``day`` as done and release the lock and notice markers."""
        if self.last_success_date is None or day > self.last_success_date:
            self.last_success_date = day
        self.snapshot_id = None
        self.running_notified = False


class MarkerStore:
    """Whole-file reads and writes of the markers in ``state_dir``."""

    def __init__(self, state_dir) -> None:
        self.state_dir = Path(state_dir).expanduser()
        self._lock = FileLock(str(self.state_dir / ".markers.lock"))

    @property
    def pid_path(self) -> Path:
        return self.state_dir / PID_FILE

    def _path(self, name: str) -> Path:
        return self.state_dir / name

    def _read(self, name: str) -> Optional[str]:
        try:
            return self._path(name).read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None

    def _write(self, name: str, value: str) -> None:
        path = self._path(name)
        tmp_path = path.with_name(f".{name}.tmp")
        tmp_path.write_text(value + "\n", encoding="utf-8")
        os.replace(tmp_path, path)

    def _remove(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def load(self) -> State:
        """Read every marker. Unparseable markers are treated as absent."""
        state = State()

        raw_date = self._read(RUN_MARKER)
        if raw_date:
            try:
                state.last_success_date = date.fromisoformat(raw_date)
            except ValueError:
                logger.warning(
                    "Ignoring corrupt marker %s: %r", self._path(RUN_MARKER), raw_date
                )

        state.snapshot_id = self._read(LOCK_MARKER) or None
        state.running_notified = self._read(NOTICE_MARKER) is not None
        return state

    def save(self, state: State) -> None:
        """Write present markers and delete absent ones."""
        self.state_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
        with self._lock:
            if state.last_success_date is not None:
                self._write(RUN_MARKER, state.last_success_date.isoformat())
            else:
                self._remove(RUN_MARKER)

            if state.snapshot_id:
                self._write(LOCK_MARKER, state.snapshot_id)
            else:
                self._remove(LOCK_MARKER)

            if state.running_notified:
                self._write(NOTICE_MARKER, "1")
            else:
                self._remove(NOTICE_MARKER)

    def reset(self) -> None:
        """Forget all markers, as if no backup had ever run."""
        if not self.state_dir.exists():
            return
        with self._lock:
            for name in (RUN_MARKER, LOCK_MARKER, NOTICE_MARKER):
                self._remove(name)
        logger.info("Cleared backup state in %s", self.state_dir)
