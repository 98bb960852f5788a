"""Tests for the mount precondition."""

import subprocess
from unittest.mock import MagicMock

import pytest

from dailyborg.__util__ import AbortError, MountError
from dailyborg.config import MountConfig
from dailyborg.core import MountManager


class FakeCommands:
    """Answer external commands by program name."""

    def __init__(self, mounted=False, mount_status=0, ssid="HomeSSID"):
        self.mounted = mounted
        self.mount_status = mount_status
        self.ssid = ssid
        self.calls = []

    def __call__(self, command, **kwargs):
        command = [str(part) for part in command]
        self.calls.append(command)
        program = command[0]
        if program == "mountpoint":
            return self._result(0 if self.mounted else 1)
        if program == "iwgetid":
            return self._result(0, f"{self.ssid}\n")
        if program == "rclone":
            if self.mount_status == 0:
                self.mounted = True
            return self._result(self.mount_status)
        raise AssertionError(f"unexpected command {command}")

    @staticmethod
    def _result(returncode, stdout=""):
        return subprocess.CompletedProcess([], returncode, stdout=stdout)

    def programs(self):
        return [c[0] for c in self.calls]


@pytest.fixture
def mount_config(tmp_path):
    return MountConfig(
        mount_point=str(tmp_path / "mnt"),
        remote="gdrive:backups",
        cache_dir=str(tmp_path / "cache"),
        settle_seconds=0,
    )


def manager_with(monkeypatch, config, commands):
    monkeypatch.setattr("dailyborg.core.mount.exec_subprocess", commands)
    return MountManager(config, sleep=MagicMock())


class TestEnsureMounted:
    """Tests for MountManager.ensure_mounted."""

    def test_no_mount_configured(self):
        MountManager(None).ensure_mounted()

    def test_already_mounted(self, monkeypatch, mount_config):
        commands = FakeCommands(mounted=True)
        manager_with(monkeypatch, mount_config, commands).ensure_mounted()
        assert commands.programs() == ["mountpoint"]

    def test_mounts(self, monkeypatch, mount_config, tmp_path):
        commands = FakeCommands()
        manager_with(monkeypatch, mount_config, commands).ensure_mounted()

        assert commands.programs() == ["mountpoint", "rclone", "mountpoint"]
        assert commands.calls[1] == [
            "rclone",
            "mount",
            "gdrive:backups",
            str(tmp_path / "mnt"),
            "--cache-dir",
            str(tmp_path / "cache"),
            "--vfs-cache-mode",
            "full",
            "--daemon",
        ]
        assert (tmp_path / "mnt").is_dir()
        assert (tmp_path / "cache").is_dir()

    def test_mount_command_fails(self, monkeypatch, mount_config):
        commands = FakeCommands(mount_status=1)
        with pytest.raises(MountError, match="status 1"):
            manager_with(monkeypatch, mount_config, commands).ensure_mounted()

    def test_rclone_missing(self, monkeypatch, mount_config):
        def commands(command, **kwargs):
            if command[0] == "mountpoint":
                return subprocess.CompletedProcess([], 1)
            raise AbortError("Cannot execute rclone")

        monkeypatch.setattr("dailyborg.core.mount.exec_subprocess", commands)
        with pytest.raises(MountError, match="rclone"):
            MountManager(mount_config).ensure_mounted()

    def test_mount_never_appears(self, monkeypatch, mount_config):
        commands = FakeCommands()
        manager = manager_with(monkeypatch, mount_config, commands)
        monkeypatch.setattr(manager, "is_mounted", MagicMock(return_value=False))

        with pytest.raises(MountError, match="did not become"):
            manager.ensure_mounted()

    def test_waits_for_mount(self, monkeypatch, mount_config):
        mount_config.settle_seconds = 30
        commands = FakeCommands()
        manager = manager_with(monkeypatch, mount_config, commands)
        monkeypatch.setattr(
            manager, "is_mounted", MagicMock(side_effect=[False, False, True])
        )

        manager.ensure_mounted()
        assert manager._sleep.call_count == 1


class TestNetworkCheck:
    """Tests for the allowed network precondition."""

    def test_allowed_network(self, monkeypatch, mount_config):
        mount_config.allowed_networks = ["HomeSSID"]
        commands = FakeCommands(ssid="HomeSSID")
        manager_with(monkeypatch, mount_config, commands).ensure_mounted()
        assert "rclone" in commands.programs()

    def test_disallowed_network(self, monkeypatch, mount_config):
        mount_config.allowed_networks = ["HomeSSID"]
        commands = FakeCommands(ssid="CoffeeShop")
        with pytest.raises(MountError, match="CoffeeShop"):
            manager_with(monkeypatch, mount_config, commands).ensure_mounted()
        assert "rclone" not in commands.programs()

    def test_no_wireless(self, monkeypatch, mount_config):
        def commands(command, **kwargs):
            raise AbortError("Cannot execute iwgetid")

        monkeypatch.setattr("dailyborg.core.mount.exec_subprocess", commands)
        assert MountManager(mount_config).current_network() == "none"


class TestIsMounted:
    def test_falls_back_to_ismount(self, monkeypatch, mount_config):
        def commands(command, **kwargs):
            raise AbortError("Cannot execute mountpoint")

        monkeypatch.setattr("dailyborg.core.mount.exec_subprocess", commands)
        monkeypatch.setattr("dailyborg.core.mount.os.path.ismount", lambda p: True)
        assert MountManager(mount_config).is_mounted() is True
