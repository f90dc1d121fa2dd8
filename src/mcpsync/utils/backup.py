# ABOUTME: Per-target snapshots of managed server sets.
# ABOUTME: One slot per target; capturing again overwrites, restoring never deletes.
import json
import logging
import re
import time
from pathlib import Path
from typing import Any

from mcpsync.config import get_data_dir
from mcpsync.models import ServerDefinition
from mcpsync.utils.files import write_json_file

logger = logging.getLogger(__name__)

# ABOUTME: Characters allowed verbatim in backup file names
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def get_backup_dir() -> Path:
    """Get the default backup directory path.

    ABOUTME: Returns <data dir>/backups
    ABOUTME: Does not create the directory
    """
    return get_data_dir() / "backups"


def backup_filename(target: str) -> str:
    """File name for a target's snapshot, e.g. 'Claude Desktop' -> 'Claude_Desktop.json'."""
    return UNSAFE_FILENAME_CHARS.sub("_", target) + ".json"


class BackupService:
    """Snapshot store keyed by target name.

    ABOUTME: Stores {target, config, timestamp} per target as JSON
    ABOUTME: Logs failures and reports them as False/None, never raises
    """

    def __init__(self, backup_dir: Path | None = None) -> None:
        self.backup_dir = backup_dir if backup_dir else get_backup_dir()

    def _path(self, target: str) -> Path:
        return self.backup_dir / backup_filename(target)

    def create_backup(self, target: str, servers: dict[str, ServerDefinition]) -> bool:
        """Capture a target's server set, overwriting any previous snapshot.

        Returns:
            True if the snapshot was written
        """
        data: dict[str, Any] = {
            "target": target,
            "config": {name: server.to_dict() for name, server in servers.items()},
            "timestamp": int(time.time() * 1000),
        }
        try:
            write_json_file(self._path(target), data)
        except OSError as e:
            logger.error(f"Failed to create backup for {target}: {e}")
            return False

        logger.info(f"Backed up {len(servers)} server(s) for {target}")
        return True

    def get_backup(self, target: str) -> dict[str, ServerDefinition] | None:
        """Return the captured server set, or None if there is no usable snapshot."""
        path = self._path(target)
        if not path.exists():
            return None

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            config = data["config"]
            return {
                name: ServerDefinition.from_dict(name, server_data)
                for name, server_data in config.items()
            }
        except (OSError, json.JSONDecodeError, KeyError, TypeError, AttributeError, ValueError) as e:
            logger.error(f"Failed to read backup for {target}: {e}")
            return None

    def get_backup_timestamp(self, target: str) -> int | None:
        """Capture time of the target's snapshot in epoch milliseconds."""
        path = self._path(target)
        try:
            return int(json.loads(path.read_text(encoding="utf-8"))["timestamp"])
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None

    def has_backup(self, target: str) -> bool:
        return self._path(target).is_file()

    def delete_backup(self, target: str) -> bool:
        """Remove a target's snapshot.

        Returns:
            True if a snapshot was deleted
        """
        try:
            self._path(target).unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Failed to delete backup for {target}: {e}")
            return False
        return True
