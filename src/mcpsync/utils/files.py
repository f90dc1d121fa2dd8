# ABOUTME: File helpers shared by adapters, the master store and backups.
# ABOUTME: Lenient JSON reads, atomic JSON writes, home-relative path expansion.
import json
import logging
import os
from pathlib import Path
from typing import Any

from mcpsync.utils import jsonc

logger = logging.getLogger(__name__)


class ConfigParseError(ValueError):
    """A config file exists but its content cannot be parsed."""


def expand_path(path: str | Path) -> Path:
    """Expand a leading ~ to the current user's home directory."""
    return Path(path).expanduser()


def read_json_file(path: Path) -> dict[str, Any]:
    """Read a JSON (or JSONC) object from disk.

    ABOUTME: Returns empty dict if file doesn't exist or is blank
    ABOUTME: Raises ConfigParseError for invalid content or a non-object root
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigParseError(f"Cannot read {path}: {e}") from e

    if not content.strip():
        return {}

    try:
        data = jsonc.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(f"Expected a JSON object at the top of {path}")
    return data


def write_text_atomic(path: Path, content: str) -> None:
    """Replace a file's content via a temp file in the same directory.

    ABOUTME: Creates parent directories if needed
    ABOUTME: Removes the temp file if the replace didn't happen

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.{os.getpid()}.tmp")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
        temp_path.replace(path)
    finally:
        if temp_path.exists():
            temp_path.unlink()


def write_json_file(path: Path, data: dict[str, Any]) -> None:
    """Write a JSON object with 2-space indentation and a trailing newline.

    ABOUTME: Key order is preserved so untouched sections round-trip unchanged

    Raises:
        OSError: If the file cannot be written
    """
    write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")
    logger.debug(f"Wrote {path}")
