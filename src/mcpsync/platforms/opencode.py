# opencode CLI platform adapter
import logging
from pathlib import Path
from typing import Any

from mcpsync.models import ServerDefinition, string_map
from mcpsync.platforms.base import any_exists, first_existing, merge_section, save_document
from mcpsync.utils.files import ConfigParseError, read_json_file

logger = logging.getLogger(__name__)

# ABOUTME: Written at the top of a config file mcpsync creates from scratch
SCHEMA_URL = "https://opencode.ai/config.json"


def is_managed_entry(entry: Any) -> bool:
    """Only local servers with a non-empty argv array are managed.

    ABOUTME: 'remote' entries (type discriminator) stay foreign
    """
    return (
        isinstance(entry, dict)
        and entry.get("type") == "local"
        and isinstance(entry.get("command"), list)
        and len(entry["command"]) > 0
    )


def entry_to_definition(name: str, entry: dict[str, Any]) -> ServerDefinition:
    """Split opencode's combined argv array into command plus args."""
    argv = [str(part) for part in entry["command"]]
    enabled = entry.get("enabled")
    return ServerDefinition(
        command=argv[0],
        args=argv[1:],
        env=string_map(name, "environment", entry.get("environment")),
        enabled=enabled if isinstance(enabled, bool) else None,
    )


def definition_to_entry(
    definition: ServerDefinition,
    previous: dict[str, Any] | None,
) -> dict[str, Any]:
    """Join command and args into one argv array under type 'local'.

    ABOUTME: Host-only fields such as timeout survive from the previous entry
    """
    owned = ("type", "command", "environment", "enabled")
    entry = {k: v for k, v in (previous or {}).items() if k not in owned}

    entry["type"] = "local"
    entry["command"] = [definition.command, *definition.args]
    if definition.enabled is not None:
        entry["enabled"] = definition.enabled
    elif previous is None:
        entry["enabled"] = True
    elif "enabled" in previous:
        entry["enabled"] = previous["enabled"]
    if definition.env is not None:
        entry["environment"] = dict(definition.env)
    return entry


class OpencodeAdapter:
    """Adapter for opencode CLI (~/.config/opencode/opencode.json).

    ABOUTME: Implements TargetAdapter protocol for opencode's 'mcp' map
    ABOUTME: Present when the opencode config directory exists
    """

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = config_path if config_path else Path("~/.config/opencode/opencode.json")

    @property
    def name(self) -> str:
        return "opencode CLI"

    def locate(self) -> Path:
        return first_existing([self._config_path])

    def is_present(self) -> bool:
        return any_exists([self.locate().parent])

    def read(self) -> dict[str, ServerDefinition]:
        data = read_json_file(self.locate())
        mcp = data.get("mcp")
        if not isinstance(mcp, dict):
            return {}

        return {
            name: entry_to_definition(name, entry)
            for name, entry in mcp.items()
            if is_managed_entry(entry)
        }

    def write(self, servers: dict[str, ServerDefinition]) -> bool:
        path = self.locate()
        try:
            data = read_json_file(path)
        except ConfigParseError as e:
            logger.error(f"opencode CLI: not writing unreadable config: {e}")
            return False

        if not path.exists():
            data = {"$schema": SCHEMA_URL}

        existing = data.get("mcp")
        data["mcp"] = merge_section(
            existing if isinstance(existing, dict) else {},
            servers,
            is_managed_entry,
            definition_to_entry,
        )
        return save_document(path, data, self.name)
