# ABOUTME: Shared fixtures for mcpsync tests
# ABOUTME: Two plain mcpServers targets (Alpha, Beta) and a service over them
from pathlib import Path

import pytest

from mcpsync.config import Settings
from mcpsync.platforms.standard import McpServersAdapter
from mcpsync.sync import SyncService


@pytest.fixture
def alpha_path(tmp_path: Path) -> Path:
    return tmp_path / "alpha" / "config.json"


@pytest.fixture
def beta_path(tmp_path: Path) -> Path:
    return tmp_path / "beta" / "config.json"


@pytest.fixture
def alpha(alpha_path: Path) -> McpServersAdapter:
    return McpServersAdapter(name="Alpha", paths=[alpha_path])


@pytest.fixture
def beta(beta_path: Path) -> McpServersAdapter:
    return McpServersAdapter(name="Beta", paths=[beta_path])


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "data")


@pytest.fixture
def service(settings: Settings, alpha: McpServersAdapter, beta: McpServersAdapter) -> SyncService:
    return SyncService.from_settings(settings, adapters=[beta, alpha])


@pytest.fixture(autouse=True)
def commands_on_path(monkeypatch):
    """Treat every command as installed so validation stays quiet."""
    monkeypatch.setattr("mcpsync.utils.validation.shutil.which", lambda cmd: f"/usr/bin/{cmd}")
