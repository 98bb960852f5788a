"""Interpretation of a finished backup engine run.

The exit status and the captured output are matched against an ordered
rule table; the first matching rule decides the outcome:

1. exit status 0                              -> SUCCESS
2. only "Permission denied" lines (or nothing) -> IGNORABLE_ERROR_SUCCESS
3. "Failed to create/acquire the lock"        -> ALREADY_RUNNING
4. anything else                              -> HARD_FAILURE

Rule 2 looks at the output with the permission lines removed, so a lock
failure is still seen even when unreadable files were reported earlier.
Rule 2 does not look for other errors on the permission lines themselves.
"""

from __future__ import annotations

from enum import Enum

from ..__util__ import (
    BackupEngineError,
    IgnorablePermissionError,
    LockConflictError,
    OtherEngineError,
)

PERMISSION_DENIED = "Permission denied"
LOCK_FAILED = "Failed to create/acquire the lock"


class Outcome(Enum):
    """Classification of an engine run."""

    SUCCESS = "success"
    IGNORABLE_ERROR_SUCCESS = "ignorable-error-success"
    ALREADY_RUNNING = "already-running"
    HARD_FAILURE = "hard-failure"

    @property
    def succeeded(self) -> bool:
        return self in (Outcome.SUCCESS, Outcome.IGNORABLE_ERROR_SUCCESS)


def strip_permission_denied(output: str) -> str:
    """Return ``output`` without the lines reporting unreadable files."""
    return "\n".join(
        line for line in output.splitlines() if PERMISSION_DENIED not in line
    )


def _exited_cleanly(exit_status: int, output: str) -> bool:
    return exit_status == 0


def _only_permission_denied(exit_status: int, output: str) -> bool:
    return not strip_permission_denied(output).strip()


def _lock_conflict(exit_status: int, output: str) -> bool:
    return LOCK_FAILED in output


RULES = (
    (_exited_cleanly, Outcome.SUCCESS),
    (_only_permission_denied, Outcome.IGNORABLE_ERROR_SUCCESS),
    (_lock_conflict, Outcome.ALREADY_RUNNING),
)


def classify(exit_status: int, output: str | None) -> Outcome:
    """Classify an engine run by its exit status and captured output."""
    output = output or ""
    for matches, outcome in RULES:
        if matches(exit_status, output):
            return outcome
    return Outcome.HARD_FAILURE


_ERRORS = {
    Outcome.IGNORABLE_ERROR_SUCCESS: (
        IgnorablePermissionError,
        "Some files could not be read",
    ),
    Outcome.ALREADY_RUNNING: (
        LockConflictError,
        "Another backup holds the repository lock",
    ),
    Outcome.HARD_FAILURE: (OtherEngineError, "Backup engine failed"),
}


def engine_error(
    outcome: Outcome, exit_status: int, output: str | None
) -> BackupEngineError | None:
    """Return the error describing a non-zero run, or None for a clean one."""
    if outcome not in _ERRORS:
        return None
    error_cls, message = _ERRORS[outcome]
    return error_cls(
        f"{message} (exit status {exit_status})",
        returncode=exit_status,
        output=output or "",
    )
