# Codex CLI platform adapter
import logging
from pathlib import Path
from typing import Any

import tomli
import tomli_w

from mcpsync.models import ServerDefinition, string_list, string_map
from mcpsync.platforms.base import any_exists, first_existing, has_command, merge_section
from mcpsync.utils.files import ConfigParseError, write_text_atomic

logger = logging.getLogger(__name__)


def entry_to_definition(name: str, entry: dict[str, Any]) -> ServerDefinition:
    enabled = entry.get("enabled")
    return ServerDefinition(
        command=entry["command"],
        args=string_list(name, "args", entry.get("args")),
        env=string_map(name, "env", entry.get("env")),
        enabled=enabled if isinstance(enabled, bool) else None,
    )


def definition_to_entry(
    definition: ServerDefinition,
    previous: dict[str, Any] | None,
) -> dict[str, Any]:
    """Translate a definition into a [mcp_servers.<id>] table.

    ABOUTME: TOML has no null, so absent optionals are simply left out
    ABOUTME: settings and source have no Codex equivalent and are dropped
    """
    owned = ("command", "args", "env", "enabled")
    entry = {k: v for k, v in (previous or {}).items() if k not in owned}

    entry["command"] = definition.command
    entry["args"] = list(definition.args)
    if definition.env is not None:
        entry["env"] = dict(definition.env)
    if definition.enabled is not None:
        entry["enabled"] = definition.enabled
    elif previous is not None and "enabled" in previous:
        entry["enabled"] = previous["enabled"]
    return entry


class CodexAdapter:
    """Adapter for Codex CLI (~/.codex/config.toml).

    ABOUTME: Implements TargetAdapter protocol for Codex CLI
    ABOUTME: Uses snake_case mcp_servers key (not mcpServers)
    ABOUTME: url-only (streamable HTTP) servers are foreign and preserved
    ABOUTME: Other tables (model, profiles, ...) are preserved; comments are not
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize adapter with optional custom config path.

        ABOUTME: Defaults to ~/.codex/config.toml if not provided
        """
        self._config_path = config_path if config_path else Path("~/.codex/config.toml")

    @property
    def name(self) -> str:
        return "Codex CLI"

    def locate(self) -> Path:
        return first_existing([self._config_path])

    def is_present(self) -> bool:
        return any_exists([self.locate().parent])

    def _load(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}

        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigParseError(f"Invalid TOML in {path}: {e}") from e
        except OSError as e:
            raise ConfigParseError(f"Cannot read {path}: {e}") from e

    def read(self) -> dict[str, ServerDefinition]:
        """Load managed servers from the 'mcp_servers' table.

        ABOUTME: Returns empty dict if config doesn't exist
        """
        mcp_servers = self._load(self.locate()).get("mcp_servers")
        if not isinstance(mcp_servers, dict):
            return {}

        return {
            name: entry_to_definition(name, entry)
            for name, entry in mcp_servers.items()
            if has_command(entry)
        }

    def write(self, servers: dict[str, ServerDefinition]) -> bool:
        path = self.locate()
        try:
            data = self._load(path)
        except ConfigParseError as e:
            logger.error(f"Codex CLI: not writing unreadable config: {e}")
            return False

        existing = data.get("mcp_servers")
        data["mcp_servers"] = merge_section(
            existing if isinstance(existing, dict) else {},
            servers,
            has_command,
            definition_to_entry,
        )

        try:
            write_text_atomic(path, tomli_w.dumps(data))
        except OSError as e:
            logger.error(f"Codex CLI: error writing {path}: {e}")
            return False
        return True
