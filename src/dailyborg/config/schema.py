"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

DEFAULT_STATE_DIR = "~/.local/state/dailyborg"
DEFAULT_RCLONE_OPTIONS = ["--vfs-cache-mode", "full", "--daemon"]


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        state_dir: Directory holding the run, lock and notice markers
        log_file: Path to log file (None for no file logging)
    """

    state_dir: str = DEFAULT_STATE_DIR
    log_file: Optional[str] = None

    @property
    def state_path(self) -> Path:
        return Path(self.state_dir).expanduser()


@dataclass
class RepositoryConfig:
    """Backup repository configuration.

    Attributes:
        path: Repository location (local path, user@host:path or ssh:// URL)
        sources: Paths to include in every snapshot
        exclude_file: File of exclusion patterns, passed to the engine as-is
        archive_prefix: Prefix of the per-day snapshot name
        borg_binary: Backup engine executable
        encryption: Encryption mode used when the repository is bootstrapped
        extra_args: Additional arguments for the create command
        view_dir: Where the read-only repository view is mounted
    """

    path: str
    sources: list[str] = field(default_factory=list)
    exclude_file: Optional[str] = None
    archive_prefix: str = "backup"
    borg_binary: str = "borg"
    encryption: str = "none"
    extra_args: list[str] = field(default_factory=list)
    view_dir: str = "~/mnt/backup-view"

    @property
    def is_remote(self) -> bool:
        """True if the repository is reached over ssh."""
        if self.path.startswith("ssh://"):
            return True
        head = self.path.split("/", 1)[0]
        return ":" in head

    @property
    def local_path(self) -> Path:
        return Path(self.path).expanduser()


@dataclass
class MountConfig:
    """Network storage that must be mounted before a run.

    Attributes:
        mount_point: Local mount point
        remote: rclone remote path (e.g. "gdrive:backups")
        cache_dir: rclone VFS cache directory
        options: Additional rclone mount options
        allowed_networks: SSIDs on which mounting is allowed (empty: any)
        settle_seconds: How long to wait for the mount to appear
    """

    mount_point: str
    remote: str
    cache_dir: Optional[str] = None
    options: list[str] = field(default_factory=lambda: list(DEFAULT_RCLONE_OPTIONS))
    allowed_networks: list[str] = field(default_factory=list)
    settle_seconds: int = 5

    @property
    def mount_path(self) -> Path:
        return Path(self.mount_point).expanduser()


@dataclass
class NotifyConfig:
    """Desktop notification settings.

    Attributes:
        enabled: Whether notifications are sent at all
        user: Desktop user to address (None: the invoking user)
        app_name: Application name shown by the notification daemon
    """

    enabled: bool = True
    user: Optional[str] = None
    app_name: str = "dailyborg"


@dataclass
class Config:
    """Root configuration object."""

    repository: RepositoryConfig
    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    mount: Optional[MountConfig] = None
    notify: NotifyConfig = field(default_factory=NotifyConfig)
