"""Tests for stale lock recovery."""

from unittest.mock import MagicMock

import psutil
import pytest

from dailyborg.config import RepositoryConfig
from dailyborg.core import BorgEngine, StaleLockReconciler

OWN_PID = 1000


class FakeProcess:
    """Stand-in for a psutil.Process as yielded by process_iter."""

    def __init__(self, pid, name, cmdline=None):
        self.info = {"pid": pid, "name": name, "cmdline": cmdline or [name]}


def processes(*procs):
    return lambda attrs: list(procs)


@pytest.fixture
def engine(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()
    return BorgEngine(
        RepositoryConfig(path=str(repo), sources=["/home"]),
        pid_file=tmp_path / "state" / "engine.pid",
    )


@pytest.fixture
def stale_locks(engine):
    """Lock artifacts as borg leaves them after being killed."""
    exclusive = engine.config.local_path / "lock.exclusive"
    exclusive.mkdir()
    (exclusive / "host@1234.5678-0").write_text("")
    roster = engine.config.local_path / "lock.roster"
    roster.write_text('{"exclusive": [["host@1234", 5678, 0]]}')
    return exclusive, roster


class TestReconcile:
    """Tests for StaleLockReconciler.reconcile."""

    def test_removes_stale_locks(self, engine, stale_locks):
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(FakeProcess(1, "systemd")), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is True
        for path in stale_locks:
            assert not path.exists()
        assert (engine.config.local_path).exists()

    def test_live_engine_keeps_locks(self, engine, stale_locks):
        reconciler = StaleLockReconciler(
            engine,
            process_iter=processes(FakeProcess(4242, "borg", ["borg", "create"])),
            own_pid=OWN_PID,
        )
        assert reconciler.reconcile() is False
        for path in stale_locks:
            assert path.exists()

    def test_engine_started_by_interpreter(self, engine, stale_locks):
        proc = FakeProcess(
            4242, "python3", ["/usr/bin/python3", "/usr/bin/borg", "create"]
        )
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(proc), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is False
        for path in stale_locks:
            assert path.exists()

    def test_own_process_ignored(self, engine, stale_locks):
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(FakeProcess(OWN_PID, "borg")), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is True
        for path in stale_locks:
            assert not path.exists()

    def test_orchestrator_not_mistaken_for_engine(self, engine, stale_locks):
        proc = FakeProcess(77, "dailyborg", ["/usr/bin/python3", "/usr/bin/dailyborg"])
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(proc), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is True

    def test_nothing_to_clear(self, engine):
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is False

    def test_remote_repository_breaks_lock(self, tmp_path):
        engine = MagicMock()
        engine.config = RepositoryConfig(path="backup@nas:borg")
        engine.read_pid.return_value = None
        engine.matches_process.return_value = False
        reconciler = StaleLockReconciler(
            engine, process_iter=processes(FakeProcess(1, "sshd")), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is True
        engine.break_lock.assert_called_once_with()


class TestPidFile:
    """Tests for the pid file liveness check."""

    def test_live_pid_keeps_locks(self, engine, stale_locks, monkeypatch):
        engine.pid_file.parent.mkdir(parents=True)
        engine.pid_file.write_text("4242\n")

        live = MagicMock()
        live.name.return_value = "borg"
        live.cmdline.return_value = ["borg", "create"]
        monkeypatch.setattr(psutil, "Process", MagicMock(return_value=live))

        reconciler = StaleLockReconciler(
            engine, process_iter=processes(), own_pid=OWN_PID
        )
        assert reconciler.engine_alive() is True
        assert reconciler.reconcile() is False
        assert engine.pid_file.exists()
        for path in stale_locks:
            assert path.exists()

    def test_dead_pid_is_cleared(self, engine, stale_locks, monkeypatch):
        engine.pid_file.parent.mkdir(parents=True)
        engine.pid_file.write_text("4242\n")
        monkeypatch.setattr(
            psutil, "Process", MagicMock(side_effect=psutil.NoSuchProcess(4242))
        )

        reconciler = StaleLockReconciler(
            engine, process_iter=processes(), own_pid=OWN_PID
        )
        assert reconciler.reconcile() is True
        assert not engine.pid_file.exists()
        for path in stale_locks:
            assert not path.exists()

    def test_reused_pid_is_not_engine(self, engine, monkeypatch):
        engine.pid_file.parent.mkdir(parents=True)
        engine.pid_file.write_text("4242\n")

        other = MagicMock()
        other.name.return_value = "firefox"
        other.cmdline.return_value = ["/usr/lib/firefox/firefox"]
        monkeypatch.setattr(psutil, "Process", MagicMock(return_value=other))

        reconciler = StaleLockReconciler(
            engine, process_iter=processes(), own_pid=OWN_PID
        )
        assert reconciler.engine_alive() is False
