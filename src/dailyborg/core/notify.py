# pyright: standard

"""dailyborg: dailyborg/core/notify.py
Fire-and-forget desktop notifications.
"""

import getpass
import pwd
import subprocess

from ..__logger__ import logger
from ..__util__ import AbortError, exec_subprocess
from ..config import NotifyConfig

NOTIFY_TIMEOUT = 10


class Notifier:
    """Send one-shot notifications with notify-send.

    Delivery is best effort: any failure is logged at debug level and
    otherwise ignored, a notification never changes the backup result.
    """

    def __init__(self, config=None) -> None:
        self.config = config or NotifyConfig()

    def _command(self, title, message) -> list:
        command = [
            "notify-send",
            "--app-name",
            self.config.app_name,
            title,
            message,
        ]
        user = self.config.user
        if user and user != getpass.getuser():
            # Reach the desktop session of another user (cron runs as root)
            uid = pwd.getpwnam(user).pw_uid
            command = [
                "sudo",
                "-u",
                user,
                "env",
                f"DBUS_SESSION_BUS_ADDRESS=unix:path=/run/user/{uid}/bus",
            ] + command
        return command

    def notify(self, title, message) -> None:
        logger.info("%s: %s", title, message)
        if not self.config.enabled:
            return
        try:
            result = exec_subprocess(
                self._command(title, message), timeout=NOTIFY_TIMEOUT
            )
        except (AbortError, KeyError, OSError, subprocess.SubprocessError) as e:
            logger.debug("Notification not delivered: %s", e)
            return
        if result.returncode != 0:
            logger.debug(
                "notify-send exited with %d: %s",
                result.returncode,
                (result.stdout or "").strip(),
            )
