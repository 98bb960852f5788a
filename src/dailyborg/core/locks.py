"""Recovery from locks left behind by a crashed backup engine.

borg keeps advisory lock artifacts in the repository which survive SIGKILL,
OOM kills or power loss. As long as no engine process is alive, those
artifacts are stale and are removed before the next run.

Liveness is decided from the pid file written by the engine wrapper first,
then by enumerating all processes. The check and the removal are not atomic;
two engines started in that window are arbitrated by borg's own lock.
"""

import logging
import os
import shutil

import psutil

logger = logging.getLogger(__name__)


class StaleLockReconciler:
    """Clear repository locks when no engine process is running."""

    def __init__(self, engine, process_iter=psutil.process_iter, own_pid=None):
        self.engine = engine
        self._process_iter = process_iter
        self.own_pid = own_pid if own_pid is not None else os.getpid()

    def _pid_file_alive(self) -> bool:
        pid = self.engine.read_pid()
        if pid is None or pid == self.own_pid:
            return False
        try:
            process = psutil.Process(pid)
            return self.engine.matches_process(process.name(), process.cmdline())
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            return False

    def _enumerated_alive(self) -> bool:
        for process in self._process_iter(["pid", "name", "cmdline"]):
            info = process.info
            if info.get("pid") == self.own_pid:
                continue
            if self.engine.matches_process(info.get("name"), info.get("cmdline")):
                logger.debug("Engine process %s is running", info.get("pid"))
                return True
        return False

    def engine_alive(self) -> bool:
        return self._pid_file_alive() or self._enumerated_alive()

    def reconcile(self) -> bool:
        """Remove stale lock artifacts. Returns True if anything was cleared."""
        if self.engine_alive():
            logger.info("Backup engine is running, leaving repository locks alone")
            return False

        self.engine.clear_pid()

        if self.engine.config.is_remote:
            logger.info("Breaking stale locks of %s", self.engine.repository)
            self.engine.break_lock()
            return True

        cleared = False
        for path in self.engine.lock_paths():
            if path.is_dir():
                shutil.rmtree(path)
            elif path.exists():
                path.unlink()
            else:
                continue
            logger.warning("Removed stale lock %s", path)
            cleared = True
        return cleared
