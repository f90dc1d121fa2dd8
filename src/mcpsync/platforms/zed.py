# Zed platform adapter
import logging
from pathlib import Path
from typing import Any

from mcpsync.models import ServerDefinition, string_list, string_map
from mcpsync.platforms.base import any_exists, first_existing, merge_section, save_document
from mcpsync.utils.files import ConfigParseError, read_json_file

logger = logging.getLogger(__name__)

# ABOUTME: source tag Zed gives to servers the user added by hand
FOREIGN_SOURCE = "custom"


def is_managed_entry(entry: Any) -> bool:
    """Managed entries are local commands not tagged source: custom.

    ABOUTME: command may be a string or the legacy {path, args, env} object
    """
    if not isinstance(entry, dict) or entry.get("source") == FOREIGN_SOURCE:
        return False
    command = entry.get("command")
    return isinstance(command, str) or (
        isinstance(command, dict) and isinstance(command.get("path"), str)
    )


def entry_to_definition(name: str, entry: dict[str, Any]) -> ServerDefinition:
    """Translate a context_servers entry, flattening the legacy nested form."""
    command = entry["command"]
    if isinstance(command, dict):
        path = command["path"]
        args = command.get("args")
        env = command.get("env")
    else:
        path = command
        args = entry.get("args")
        env = entry.get("env")

    enabled = entry.get("enabled")
    settings = entry.get("settings")
    return ServerDefinition(
        command=path,
        args=string_list(name, "args", args),
        env=string_map(name, "env", env),
        settings=settings if isinstance(settings, dict) else None,
        source=entry.get("source"),
        enabled=enabled if isinstance(enabled, bool) else None,
    )


def definition_to_entry(
    definition: ServerDefinition,
    previous: dict[str, Any] | None,
) -> dict[str, Any]:
    """Translate a definition into Zed's flat context_servers shape.

    ABOUTME: env is written as null when absent, new entries default to enabled
    ABOUTME: A 'custom' source tag is never written, it would hide the entry
    """
    owned = ("command", "args", "env", "settings", "enabled", "source")
    entry = {k: v for k, v in (previous or {}).items() if k not in owned}

    if definition.source and definition.source != FOREIGN_SOURCE:
        entry["source"] = definition.source
    entry["command"] = definition.command
    entry["args"] = list(definition.args)
    entry["env"] = dict(definition.env) if definition.env is not None else None
    if definition.settings is not None:
        entry["settings"] = definition.settings
    if definition.enabled is not None:
        entry["enabled"] = definition.enabled
    elif previous is None:
        entry["enabled"] = True
    elif "enabled" in previous:
        entry["enabled"] = previous["enabled"]
    return entry


class ZedAdapter:
    """Adapter for Zed (~/.config/zed/settings.json).

    ABOUTME: Implements TargetAdapter protocol for Zed's context_servers map
    ABOUTME: Entries with source 'custom' belong to the user and are left alone
    ABOUTME: settings.json is JSONC; comments are not preserved on write
    """

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = config_path if config_path else Path("~/.config/zed/settings.json")
        if config_path:
            self._markers: list[str | Path] = [config_path]
        else:
            self._markers = ["/Applications/Zed.app", "/Applications/Zed Preview.app", "~/.config/zed"]

    @property
    def name(self) -> str:
        return "Zed"

    def locate(self) -> Path:
        return first_existing([self._config_path])

    def is_present(self) -> bool:
        return any_exists(self._markers)

    def read(self) -> dict[str, ServerDefinition]:
        data = read_json_file(self.locate())
        context_servers = data.get("context_servers")
        if not isinstance(context_servers, dict):
            return {}

        return {
            name: entry_to_definition(name, entry)
            for name, entry in context_servers.items()
            if is_managed_entry(entry)
        }

    def write(self, servers: dict[str, ServerDefinition]) -> bool:
        path = self.locate()
        try:
            data = read_json_file(path)
        except ConfigParseError as e:
            logger.error(f"Zed: not writing unreadable config: {e}")
            return False

        existing = data.get("context_servers")
        data["context_servers"] = merge_section(
            existing if isinstance(existing, dict) else {},
            servers,
            is_managed_entry,
            definition_to_entry,
        )
        return save_document(path, data, self.name)
