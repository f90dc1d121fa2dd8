# Platform adapter base utilities
import copy
import logging
import os
import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from mcpsync.models import ServerDefinition
from mcpsync.utils.files import expand_path, write_json_file

logger = logging.getLogger(__name__)

# ABOUTME: Keys of a standard mcpServers entry that mcpsync owns and rewrites
OWNED_ENTRY_KEYS = ("command", "args", "env", "settings", "source", "enabled")

PathLike = str | Path


def app_support_dir() -> str:
    """Per-user application data directory for the current OS.

    ABOUTME: Kept home-relative (~) so locate() does the expansion
    """
    if sys.platform == "darwin":
        return "~/Library/Application Support"
    elif sys.platform == "win32":
        return os.environ.get("APPDATA", "~/AppData/Roaming")
    else:  # Linux and others
        return "~/.config"


def first_existing(candidates: Iterable[PathLike]) -> Path:
    """Return the first candidate path that exists, else the first candidate.

    ABOUTME: Handles hosts with several installation variants
    ABOUTME: (Code, Cursor, VSCodium, ...) where any one may hold the file
    """
    expanded = [expand_path(candidate) for candidate in candidates]
    if not expanded:
        raise ValueError("At least one candidate path is required")
    for path in expanded:
        if path.exists():
            return path
    return expanded[0]


def any_exists(markers: Iterable[PathLike]) -> bool:
    """True if any marker path (app bundle, directory or file) exists."""
    return any(expand_path(marker).exists() for marker in markers)


def has_command(entry: Any) -> bool:
    """True for entries describing a local command (not a remote URL server)."""
    return isinstance(entry, dict) and isinstance(entry.get("command"), str)


def merge_section(
    existing: dict[str, Any],
    servers: dict[str, ServerDefinition],
    is_managed: Callable[[Any], bool],
    to_entry: Callable[[ServerDefinition, dict[str, Any] | None], dict[str, Any]],
) -> dict[str, Any]:
    """Rebuild a host's server map from the managed set plus foreign entries.

    ABOUTME: Keeps existing key order; new servers are appended
    ABOUTME: Managed entries missing from servers are dropped
    ABOUTME: Foreign entries survive unless a written server takes their key

    Args:
        existing: Server map currently in the host file
        servers: Managed servers to write
        is_managed: Predicate telling managed entries from foreign ones
        to_entry: Converts a definition into native shape, given the
            existing managed entry (or None) to carry host-only fields over

    Returns:
        New server map for the host file
    """
    section: dict[str, Any] = {}

    for name, entry in existing.items():
        if name in servers:
            previous = entry if is_managed(entry) else None
            section[name] = to_entry(servers[name], previous)
        elif not is_managed(entry):
            section[name] = entry

    for name, definition in servers.items():
        if name not in section:
            section[name] = to_entry(definition, None)

    return section


def entry_to_definition(
    name: str,
    entry: dict[str, Any],
    disabled_flag: bool = False,
) -> ServerDefinition:
    """Convert a standard mcpServers entry to a ServerDefinition.

    ABOUTME: Hosts with disabled_flag store 'disabled' instead of 'enabled'
    """
    definition = ServerDefinition.from_dict(name, entry)
    if disabled_flag and isinstance(entry.get("disabled"), bool):
        return ServerDefinition(
            command=definition.command,
            args=definition.args,
            env=definition.env,
            settings=definition.settings,
            source=definition.source,
            enabled=not entry["disabled"],
        )
    return definition


def definition_to_entry(
    definition: ServerDefinition,
    previous: dict[str, Any] | None,
    disabled_flag: bool = False,
    new_entry_defaults: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Convert a ServerDefinition to a standard mcpServers entry.

    ABOUTME: Host-only fields of the previous entry (alwaysAllow, timeout, ...) are kept
    ABOUTME: Optional fields are written only when the definition carries them
    """
    owned = OWNED_ENTRY_KEYS + (("disabled",) if disabled_flag else ())

    if previous is not None:
        entry = {key: value for key, value in previous.items() if key not in owned}
    else:
        entry = copy.deepcopy(new_entry_defaults or {})

    entry.update(definition.to_dict())
    if definition.enabled is None and previous is not None and "enabled" in previous:
        entry["enabled"] = previous["enabled"]
    if disabled_flag:
        enabled = entry.pop("enabled", None)
        if enabled is not None:
            entry["disabled"] = not enabled
        elif previous is None or "disabled" in previous:
            entry["disabled"] = bool(previous and previous["disabled"])
    return entry


def save_document(path: Path, data: dict[str, Any], target: str) -> bool:
    """Write a host JSON document, reporting I/O failure as False."""
    try:
        write_json_file(path, data)
    except OSError as e:
        logger.error(f"{target}: error writing {path}: {e}")
        return False
    return True
