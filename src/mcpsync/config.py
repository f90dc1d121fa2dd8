# Paths and runtime settings for mcpsync
import logging
import os
from dataclasses import dataclass
from pathlib import Path

# ABOUTME: Environment overrides for the data directory and log level
HOME_ENV_VAR = "MCPSYNC_HOME"
LOG_LEVEL_ENV_VAR = "MCPSYNC_LOG_LEVEL"

# ABOUTME: Default data directory in user's home
DEFAULT_DATA_DIR = Path.home() / ".mcpsync"

# ABOUTME: File names inside the data directory
REGISTRY_FILENAME = "mcp_servers.json"
TARGET_STATE_FILENAME = "targets.json"
BACKUP_DIRNAME = "backups"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    """Resolved locations of everything mcpsync persists.

    ABOUTME: Built by load_settings() from the environment
    ABOUTME: Tests construct it directly around tmp_path
    """
    data_dir: Path
    log_level: str = "INFO"

    @property
    def registry_path(self) -> Path:
        return self.data_dir / REGISTRY_FILENAME

    @property
    def target_state_path(self) -> Path:
        return self.data_dir / TARGET_STATE_FILENAME

    @property
    def backup_dir(self) -> Path:
        return self.data_dir / BACKUP_DIRNAME


def get_data_dir() -> Path:
    """Return the mcpsync data directory.

    ABOUTME: Returns $MCPSYNC_HOME if set, else ~/.mcpsync
    ABOUTME: Directory may not exist yet - use ensure_config_dir() first
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return DEFAULT_DATA_DIR


def get_registry_path() -> Path:
    """Return the path to the canonical registry file."""
    return get_data_dir() / REGISTRY_FILENAME


def ensure_config_dir() -> Path:
    """Create the data directory if it doesn't exist.

    Returns:
        Path to data directory (guaranteed to exist)
    """
    data_dir = get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def load_settings() -> Settings:
    """Build Settings from the environment.

    ABOUTME: Unknown log level names fall back to INFO
    """
    level = os.environ.get(LOG_LEVEL_ENV_VAR, "INFO").upper()
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    return Settings(data_dir=get_data_dir(), log_level=level)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
