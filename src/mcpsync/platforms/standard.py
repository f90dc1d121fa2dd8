# Adapter for hosts storing servers in a top-level mcpServers map
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from mcpsync.models import ServerDefinition
from mcpsync.platforms.base import (
    PathLike,
    any_exists,
    definition_to_entry,
    entry_to_definition,
    first_existing,
    has_command,
    merge_section,
    save_document,
)
from mcpsync.utils.files import ConfigParseError, read_json_file

logger = logging.getLogger(__name__)


class McpServersAdapter:
    """Configurable adapter for the common {"mcpServers": {id: entry}} layout.

    ABOUTME: Implements TargetAdapter protocol; one instance per host
    ABOUTME: Entries without a command (remote URL servers) are foreign
    ABOUTME: Other top-level keys and host-only entry fields are preserved
    """

    def __init__(
        self,
        name: str,
        paths: Sequence[PathLike],
        markers: Sequence[PathLike] | None = None,
        servers_key: str = "mcpServers",
        disabled_flag: bool = False,
        new_entry_defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize adapter for one host.

        Args:
            name: Target name shown to the operator and stored in memberships
            paths: Candidate config paths, canonical default first
            markers: Paths whose existence means the host is installed;
                defaults to the candidate config paths themselves
            servers_key: Top-level key holding the server map
            disabled_flag: Host stores 'disabled' rather than 'enabled'
            new_entry_defaults: Host fields added to newly created entries
        """
        if not paths:
            raise ValueError(f"{name}: at least one config path is required")
        self._name = name
        self._paths = list(paths)
        self._markers = list(markers) if markers is not None else list(paths)
        self.servers_key = servers_key
        self.disabled_flag = disabled_flag
        self.new_entry_defaults = new_entry_defaults or {}

    def __repr__(self) -> str:
        return f"McpServersAdapter(name={self._name!r}, path={str(self.locate())!r})"

    @property
    def name(self) -> str:
        return self._name

    def locate(self) -> Path:
        return first_existing(self._paths)

    def is_present(self) -> bool:
        return any_exists(self._markers)

    def _section(self, data: dict[str, Any]) -> dict[str, Any]:
        section = data.get(self.servers_key)
        return section if isinstance(section, dict) else {}

    def read(self) -> dict[str, ServerDefinition]:
        """Load managed servers from the host file.

        ABOUTME: Returns empty dict if config doesn't exist
        ABOUTME: Raises ConfigParseError for malformed content
        """
        data = read_json_file(self.locate())
        return {
            name: entry_to_definition(name, entry, self.disabled_flag)
            for name, entry in self._section(data).items()
            if has_command(entry)
        }

    def write(self, servers: dict[str, ServerDefinition]) -> bool:
        """Replace the managed servers in the host file.

        ABOUTME: Refuses to touch a file it cannot parse
        """
        path = self.locate()
        try:
            data = read_json_file(path)
        except ConfigParseError as e:
            logger.error(f"{self._name}: not writing unreadable config: {e}")
            return False

        data[self.servers_key] = merge_section(
            self._section(data),
            servers,
            has_command,
            lambda definition, previous: definition_to_entry(
                definition, previous, self.disabled_flag, self.new_entry_defaults
            ),
        )
        return save_document(path, data, self._name)
