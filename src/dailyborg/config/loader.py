"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    DEFAULT_RCLONE_OPTIONS,
    DEFAULT_STATE_DIR,
    Config,
    GlobalConfig,
    MountConfig,
    NotifyConfig,
    RepositoryConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "dailyborg" / "config.toml",
    Path("/etc/dailyborg/config.toml"),
]


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _string_list(data: dict[str, Any], key: str, section: str) -> list[str]:
    value = data.get(key, [])
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"[{section}] '{key}' must be a list of strings")
    return list(value)


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    return GlobalConfig(
        state_dir=data.get("state_dir", DEFAULT_STATE_DIR),
        log_file=data.get("log_file"),
    )


def _parse_repository(data: dict[str, Any]) -> RepositoryConfig:
    """Parse repository configuration from dict."""
    if "path" not in data:
        raise ConfigError("Repository missing required 'path' field")

    return RepositoryConfig(
        path=data["path"],
        sources=_string_list(data, "sources", "repository"),
        exclude_file=data.get("exclude_file"),
        archive_prefix=data.get("archive_prefix", "backup"),
        borg_binary=data.get("borg_binary", "borg"),
        encryption=data.get("encryption", "none"),
        extra_args=_string_list(data, "extra_args", "repository"),
        view_dir=data.get("view_dir", "~/mnt/backup-view"),
    )


def _parse_mount(data: dict[str, Any]) -> MountConfig:
    """Parse mount configuration from dict."""
    for key in ("mount_point", "remote"):
        if key not in data:
            raise ConfigError(f"Mount missing required '{key}' field")

    options = DEFAULT_RCLONE_OPTIONS
    if "options" in data:
        options = _string_list(data, "options", "mount")

    return MountConfig(
        mount_point=data["mount_point"],
        remote=data["remote"],
        cache_dir=data.get("cache_dir"),
        options=list(options),
        allowed_networks=_string_list(data, "allowed_networks", "mount"),
        settle_seconds=data.get("settle_seconds", 5),
    )


def _parse_notify(data: dict[str, Any]) -> NotifyConfig:
    """Parse notification configuration from dict."""
    return NotifyConfig(
        enabled=data.get("enabled", True),
        user=data.get("user"),
        app_name=data.get("app_name", "dailyborg"),
    )


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []
    repository = config.repository

    if not repository.sources:
        warnings.append("No sources configured")

    if len(repository.sources) != len(set(repository.sources)):
        warnings.append("Duplicate source paths detected")

    if repository.exclude_file:
        if not Path(repository.exclude_file).expanduser().exists():
            warnings.append(
                f"Exclusion file '{repository.exclude_file}' does not exist"
            )

    if not repository.is_remote and not repository.local_path.is_absolute():
        warnings.append(f"Repository path '{repository.path}' is relative")

    if not repository.archive_prefix:
        warnings.append("Empty archive_prefix, snapshot names start with '_'")

    if config.mount and config.mount.settle_seconds < 0:
        warnings.append("Negative settle_seconds, mount is not waited for")

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    if "repository" not in data:
        raise ConfigError("Missing required [repository] section")

    mount = None
    if "mount" in data:
        mount = _parse_mount(data["mount"])

    config = Config(
        repository=_parse_repository(data["repository"]),
        global_config=_parse_global(data.get("global", {})),
        mount=mount,
        notify=_parse_notify(data.get("notify", {})),
    )

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# dailyborg configuration
# See documentation for full options

[global]
state_dir = "~/.local/state/dailyborg"
# log_file = "~/.local/state/dailyborg/dailyborg.log"

[repository]
path = "/mnt/gdrive/borg"
sources = ["/home/user"]
exclude_file = "~/.config/dailyborg/excludes.txt"
archive_prefix = "backup"
# borg_binary = "borg"
# encryption = "none"     # only used when the repository is created
# extra_args = ["--compression", "lz4"]
view_dir = "~/mnt/backup-view"

# Network storage holding the repository, mounted before each run
[mount]
mount_point = "/mnt/gdrive"
remote = "gdrive:backups"
cache_dir = "~/.cache/dailyborg/rclone"
options = ["--vfs-cache-mode", "full", "--daemon"]
# allowed_networks = ["HomeSSID", "OfficeSSID"]
settle_seconds = 5

[notify]
enabled = true
# user = "alice"          # desktop user when running from root's crontab
app_name = "dailyborg"
"""
