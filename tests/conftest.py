"""Pytest configuration and shared fixtures."""

from datetime import date
from unittest.mock import MagicMock

import pytest

from dailyborg.config import Config, GlobalConfig, RepositoryConfig
from dailyborg.core import EngineResult, MarkerStore, Orchestrator

TODAY = date(2026, 10, 19)


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
state_dir = "/var/lib/dailyborg"
log_file = "/var/log/dailyborg.log"

[repository]
path = "/mnt/gdrive/borg"
sources = ["/home/alice", "/etc"]
exclude_file = "/nonexistent/excludes.txt"
archive_prefix = "laptop"
extra_args = ["--compression", "lz4"]
view_dir = "/mnt/borg-view"

[mount]
mount_point = "/mnt/gdrive"
remote = "gdrive:backups"
cache_dir = "/var/cache/dailyborg"
options = ["--vfs-cache-mode", "writes", "--daemon"]
allowed_networks = ["HomeSSID", "OfficeSSID"]
settle_seconds = 10

[notify]
enabled = true
user = "alice"
app_name = "backup"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[repository]
path = "/srv/borg"
sources = ["/home"]
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture
def config(tmp_path):
    """Configuration pointing at a local repository under tmp_path."""
    source = tmp_path / "source"
    source.mkdir()
    return Config(
        repository=RepositoryConfig(
            path=str(tmp_path / "repo"),
            sources=[str(source)],
        ),
        global_config=GlobalConfig(state_dir=str(tmp_path / "state")),
    )


@pytest.fixture
def store(config):
    return MarkerStore(config.global_config.state_path)


class Harness:
    """An orchestrator with mocked collaborators and a real marker store."""

    def __init__(self, config, store):
        self.day = TODAY
        self.store = store
        self.mounter = MagicMock()
        self.reconciler = MagicMock()
        self.engine = MagicMock()
        self.engine.create.return_value = EngineResult(0, "")
        self.notifier = MagicMock()
        self.clock = MagicMock(return_value=0.0)
        self.orchestrator = Orchestrator(
            config,
            store=store,
            mounter=self.mounter,
            reconciler=self.reconciler,
            engine=self.engine,
            notifier=self.notifier,
            today=lambda: self.day,
            clock=self.clock,
        )

    def run(self, force_new=False):
        return self.orchestrator.run(force_new=force_new)

    def engine_returns(self, returncode, output=""):
        self.engine.create.return_value = EngineResult(returncode, output)

    def titles(self):
        return [c.args[0] for c in self.notifier.notify.call_args_list]


@pytest.fixture
def make_harness(store):
    """Build a Harness for a given configuration."""
    return lambda config: Harness(config, store)


@pytest.fixture
def harness(config, make_harness):
    return make_harness(config)
