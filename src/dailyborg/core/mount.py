# pyright: standard

"""dailyborg: dailyborg/core/mount.py
Make sure the network storage is mounted before a backup starts.
"""

import os
import time
from pathlib import Path

from ..__logger__ import logger
from ..__util__ import AbortError, MountError, exec_subprocess

POLL_INTERVAL = 1


class MountManager:
    """Query and mount an rclone remote at a local mount point.

    A ``None`` config means there is nothing to mount and every check passes.
    """

    def __init__(self, config=None, sleep=time.sleep) -> None:
        self.config = config
        self._sleep = sleep

    def is_mounted(self) -> bool:
        """Return True if the mount point is an active mount."""
        path = self.config.mount_path
        try:
            result = exec_subprocess(["mountpoint", "-q", path], capture=False)
        except AbortError:
            # mountpoint(1) not installed
            return os.path.ismount(path)
        return result.returncode == 0

    def current_network(self) -> str:
        """Return the SSID of the current wireless network, or "none"."""
        try:
            result = exec_subprocess(["iwgetid", "-r"])
        except AbortError:
            return "none"
        ssid = (result.stdout or "").strip()
        if result.returncode != 0 or not ssid:
            return "none"
        return ssid

    def check_network(self) -> None:
        """Raise MountError unless connected to an allowed network."""
        allowed = self.config.allowed_networks
        if not allowed:
            return
        ssid = self.current_network()
        if ssid not in allowed:
            raise MountError(
                f"Not connected to an allowed network (current SSID: {ssid})"
            )
        logger.info("Connected to allowed network: %s", ssid)

    def _build_mount_command(self) -> list:
        command = ["rclone", "mount", self.config.remote, str(self.config.mount_path)]
        if self.config.cache_dir:
            command += ["--cache-dir", str(Path(self.config.cache_dir).expanduser())]
        return command + list(self.config.options)

    def mount(self) -> None:
        """Issue the mount command; a failing command raises MountError."""
        mount_path = self.config.mount_path
        logger.info("Mounting %s at %s ...", self.config.remote, mount_path)
        try:
            mount_path.mkdir(parents=True, exist_ok=True)
            if self.config.cache_dir:
                Path(self.config.cache_dir).expanduser().mkdir(
                    parents=True, exist_ok=True
                )
            result = exec_subprocess(self._build_mount_command(), capture=False)
        except (OSError, AbortError) as e:
            raise MountError(f"Cannot mount {self.config.remote}: {e}") from e
        if result.returncode != 0:
            raise MountError(
                f"rclone mount of {self.config.remote} failed with status "
                f"{result.returncode}"
            )

    def _wait_for_mount(self) -> bool:
        deadline = time.monotonic() + max(self.config.settle_seconds, 0)
        while True:
            if self.is_mounted():
                return True
            if time.monotonic() >= deadline:
                return False
            self._sleep(POLL_INTERVAL)

    def ensure_mounted(self) -> None:
        """Mount the storage unless it already is. Raises MountError."""
        if self.config is None:
            return
        if self.is_mounted():
            logger.debug("%s already mounted", self.config.mount_path)
            return

        self.check_network()
        self.mount()
        if not self._wait_for_mount():
            raise MountError(f"{self.config.mount_path} did not become a mount point")
        logger.info("Mounted %s", self.config.mount_path)

    def unmount(self) -> None:
        """Lazily unmount the storage."""
        if self.config is None:
            return
        result = exec_subprocess(["fusermount", "-uz", self.config.mount_path])
        if result.returncode != 0:
            logger.warning(
                "Unmount of %s may have failed: %s",
                self.config.mount_path,
                (result.stdout or "").strip(),
            )
