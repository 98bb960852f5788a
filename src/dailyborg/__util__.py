# pyright: standard

"""dailyborg: dailyborg/__util__.py
Shared helpers and the error hierarchy.
"""

import shlex
import subprocess

from .__logger__ import logger


class AbortError(Exception):
    """Base class for conditions that abort the current operation."""


class MountError(AbortError):
    """The backup storage could not be mounted."""


class RepositoryInitError(AbortError):
    """The backup repository could not be created."""


class BackupEngineError(AbortError):
    """The backup engine exited with a non-zero status.

    Carries the raw captured output so it can be surfaced to the user.
    """

    def __init__(self, message, returncode=None, output=""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output


class IgnorablePermissionError(BackupEngineError):
    """Only unreadable files were reported; the rest was backed up."""


class LockConflictError(BackupEngineError):
    """Another engine process holds the repository lock."""


class OtherEngineError(BackupEngineError):
    """Any other engine failure."""


def log_heading(caption: str) -> str:
    """Return a heading line for the log."""
    return f"--[ {caption} ]--"


def format_command(command) -> str:
    return " ".join(shlex.quote(str(part)) for part in command)


def exec_subprocess(command, check=False, capture=True, **kwargs):
    """Run a command and return the CompletedProcess.

    stdout and stderr are merged into ``stdout`` when ``capture`` is set.
    A missing binary is reported as ``AbortError``, and so is a non-zero exit
    status when ``check`` is set.
    """
    command = [str(part) for part in command]
    logger.debug("Executing: %s", format_command(command))
    if capture:
        kwargs.setdefault("stdout", subprocess.PIPE)
        kwargs.setdefault("stderr", subprocess.STDOUT)
    try:
        result = subprocess.run(command, text=True, check=False, **kwargs)
    except OSError as e:
        raise AbortError(f"Cannot execute {command[0]}: {e}") from e

    if check and result.returncode != 0:
        output = (result.stdout or "").strip()
        raise AbortError(
            f"Command {format_command(command)} failed with status "
            f"{result.returncode}: {output}"
        )
    return result
