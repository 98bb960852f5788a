# pyright: standard

"""dailyborg: dailyborg/core/engine.py
Thin wrapper around the borg binary.
"""

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from ..__logger__ import logger
from ..__util__ import AbortError, RepositoryInitError, exec_subprocess, format_command

# Lock artifacts borg leaves in a local repository after an unclean exit
LOCK_ARTIFACTS = ("lock.exclusive", "lock.roster")

# Exit status reported when the engine could not be started at all
EXIT_NOT_STARTED = 127


@dataclass
class EngineResult:
    """Exit status and merged stdout/stderr of an engine run."""

    returncode: int
    output: str = ""


class BorgEngine:
    """Repository bootstrap, snapshot creation and lock handling."""

    def __init__(self, config, pid_file=None) -> None:
        self.config = config
        self.pid_file = Path(pid_file) if pid_file else None

    @property
    def binary_name(self) -> str:
        return Path(self.config.borg_binary).name

    @property
    def repository(self) -> str:
        if self.config.is_remote:
            return self.config.path
        return str(self.config.local_path)

    def _env(self) -> dict:
        env = os.environ.copy()
        # Never prompt when started from a scheduler
        env.setdefault("BORG_UNKNOWN_UNENCRYPTED_REPO_ACCESS_IS_OK", "yes")
        env.setdefault("BORG_RELOCATED_REPO_ACCESS_IS_OK", "yes")
        return env

    def _run(self, *args, **kwargs):
        command = [self.config.borg_binary, *args]
        return exec_subprocess(command, env=self._env(), **kwargs)

    def needs_bootstrap(self) -> bool:
        """True if the repository location is empty."""
        if self.config.is_remote:
            try:
                return self._run("info", self.repository).returncode != 0
            except AbortError:
                return False
        path = self.config.local_path
        return not path.exists() or (path.is_dir() and not any(path.iterdir()))

    def init(self) -> None:
        """Create the repository. Raises RepositoryInitError."""
        logger.info(
            "Creating repository %s (encryption: %s)",
            self.repository,
            self.config.encryption,
        )
        try:
            result = self._run(
                "init", f"--encryption={self.config.encryption}", self.repository
            )
        except AbortError as e:
            raise RepositoryInitError(str(e)) from e
        if result.returncode != 0:
            raise RepositoryInitError(
                f"borg init failed with status {result.returncode}: "
                f"{(result.stdout or '').strip()}"
            )

    def ensure_repository(self) -> None:
        if self.needs_bootstrap():
            self.init()

    def archive(self, snapshot_id) -> str:
        return f"{self.repository}::{snapshot_id}"

    def build_create_command(self, snapshot_id) -> list:
        command = [self.config.borg_binary, "create", *self.config.extra_args]
        exclude_file = self.config.exclude_file
        if exclude_file:
            exclude_path = Path(exclude_file).expanduser()
            if exclude_path.is_file():
                command += ["--exclude-from", str(exclude_path)]
            else:
                logger.warning("Exclusion file %s not found, ignoring", exclude_path)
        command.append(self.archive(snapshot_id))
        command += [str(Path(source).expanduser()) for source in self.config.sources]
        return command

    def create(self, snapshot_id) -> EngineResult:
        """Create snapshot ``snapshot_id`` and wait for it to finish.

        The process id is kept in the pid file for as long as the engine
        runs, so another invocation can tell the engine is alive.
        """
        command = self.build_create_command(snapshot_id)
        logger.debug("Executing: %s", format_command(command))
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                env=self._env(),
            )
        except OSError as e:
            return EngineResult(EXIT_NOT_STARTED, f"Cannot execute {command[0]}: {e}")

        owns_pid = self._write_pid(process.pid)
        try:
            output, _ = process.communicate()
        finally:
            if owns_pid:
                self.clear_pid(process.pid)
        return EngineResult(process.returncode, output or "")

    def _write_pid(self, pid) -> bool:
        """Claim the pid file for ``pid``. False if another run holds it."""
        if self.pid_file is None:
            return False
        try:
            self.pid_file.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.pid_file, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            logger.debug("Pid file %s held by another run", self.pid_file)
            return False
        except OSError as e:
            logger.warning("Cannot write pid file %s: %s", self.pid_file, e)
            return False
        with os.fdopen(fd, "w") as f:
            f.write(f"{pid}\n")
        return True

    def read_pid(self):
        if self.pid_file is None:
            return None
        try:
            return int(self.pid_file.read_text().strip())
        except (OSError, ValueError):
            return None

    def clear_pid(self, pid=None) -> None:
        """Remove the pid file; with ``pid``, only if it still holds it."""
        if self.pid_file is None:
            return
        if pid is not None and self.read_pid() != pid:
            return
        self.pid_file.unlink(missing_ok=True)

    def matches_process(self, name, cmdline) -> bool:
        """True if a process with this name and command line is the engine."""
        if name == self.binary_name:
            return True
        # borg is often started through its python interpreter
        return any(Path(arg).name == self.binary_name for arg in (cmdline or [])[:2])

    def lock_paths(self) -> list:
        if self.config.is_remote:
            return []
        return [self.config.local_path / name for name in LOCK_ARTIFACTS]

    def break_lock(self) -> None:
        result = self._run("break-lock", self.repository)
        if result.returncode != 0:
            logger.warning(
                "borg break-lock failed: %s", (result.stdout or "").strip()
            )

    def mount_view(self, view_dir) -> int:
        """Expose the repository read-only at ``view_dir``."""
        view_path = Path(view_dir).expanduser()
        view_path.mkdir(parents=True, exist_ok=True)
        logger.info("Mounting %s at %s", self.repository, view_path)
        result = self._run("mount", self.repository, str(view_path))
        if result.returncode != 0:
            logger.error("borg mount failed: %s", (result.stdout or "").strip())
        return result.returncode

    def umount_view(self, view_dir) -> int:
        view_path = Path(view_dir).expanduser()
        logger.info("Unmounting %s", view_path)
        result = self._run("umount", str(view_path))
        if result.returncode != 0:
            logger.error("borg umount failed: %s", (result.stdout or "").strip())
        return result.returncode
