# Core data models for mcpsync
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

# ABOUTME: Permission policy stored on every canonical server
PermissionLevel = Literal["always_ask", "allow"]

PERMISSION_LEVELS: tuple[str, ...] = ("always_ask", "allow")


class ServerNotFoundError(KeyError):
    """Raised by orchestration intents that target an unknown server id."""


def string_list(server: str, field_name: str, value: Any) -> list[str]:
    """Coerce a host entry's list field to strings.

    Raises:
        ValueError: If the value is present but not a list
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(
            f"Server '{server}' has invalid '{field_name}': expected a list, "
            f"got {type(value).__name__}"
        )
    return [str(item) for item in value]


def string_map(server: str, field_name: str, value: Any) -> dict[str, str] | None:
    """Coerce a host entry's mapping field to strings; None stays None.

    Raises:
        ValueError: If the value is present but not an object
    """
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(
            f"Server '{server}' has invalid '{field_name}': expected an object, "
            f"got {type(value).__name__}"
        )
    return {str(k): str(v) for k, v in value.items()}


@dataclass(frozen=True)
class ServerDefinition:
    """Immutable server definition as held inside a target's file.

    ABOUTME: Unit of translation between adapters and the rest of mcpsync
    ABOUTME: Optional fields are None when the host file doesn't carry them
    """
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] | None = None
    settings: dict[str, Any] | None = None
    source: str | None = None
    enabled: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to canonical JSON shape, omitting absent optionals."""
        result: dict[str, Any] = {
            "command": self.command,
            "args": list(self.args),
        }
        if self.env is not None:
            result["env"] = dict(self.env)
        if self.settings is not None:
            result["settings"] = self.settings
        if self.source is not None:
            result["source"] = self.source
        if self.enabled is not None:
            result["enabled"] = self.enabled
        return result

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ServerDefinition":
        """Build a definition from canonical JSON shape.

        ABOUTME: Validates required command field and the args/env shapes
        ABOUTME: Coerces args and env values to strings
        """
        command = data.get("command")
        if not isinstance(command, str):
            raise ValueError(f"Server '{name}' missing required 'command' field")

        enabled = data.get("enabled")
        return cls(
            command=command,
            args=string_list(name, "args", data.get("args")),
            env=string_map(name, "env", data.get("env")),
            settings=data.get("settings") if isinstance(data.get("settings"), dict) else None,
            source=data.get("source"),
            enabled=enabled if isinstance(enabled, bool) else None,
        )


@dataclass(frozen=True)
class ParsedCommand:
    """Executable plus argument list split from a command line."""
    command: str
    args: list[str]


@dataclass
class ObservedServer:
    """A definition seen in one or more target files.

    ABOUTME: Element type of ConfigManager.get_all_servers()
    ABOUTME: apps accumulates every target the id was found in
    """
    definition: ServerDefinition
    apps: set[str] = field(default_factory=set)


@dataclass
class CanonicalServer:
    """Master-store record for one server.

    ABOUTME: id is the merge key and never changes after creation
    ABOUTME: apps is the membership set of targets the server is synced to
    ABOUTME: Timestamps are epoch milliseconds
    """
    id: str
    name: str
    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)
    settings: dict[str, Any] | None = None
    source: str | None = None
    enabled: bool = True
    permissions: PermissionLevel = "always_ask"
    apps: set[str] = field(default_factory=set)
    description: str | None = None
    icon_url: str | None = None
    created_at: int = 0
    updated_at: int = 0

    def to_definition(self) -> ServerDefinition:
        """Definition handed to adapters when writing this server.

        ABOUTME: enabled is left unset so each target keeps its own flag
        """
        return ServerDefinition(
            command=self.command,
            args=list(self.args),
            env=dict(self.env) if self.env else None,
            settings=self.settings,
            source=self.source,
            enabled=None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the registry file shape (camelCase keys, sorted apps)."""
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "command": self.command,
            "args": list(self.args),
            "env": dict(self.env),
            "enabled": self.enabled,
            "permissions": self.permissions,
            "apps": sorted(self.apps),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.settings is not None:
            result["settings"] = self.settings
        if self.source is not None:
            result["source"] = self.source
        if self.description is not None:
            result["description"] = self.description
        if self.icon_url is not None:
            result["iconUrl"] = self.icon_url
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalServer":
        """Parse one entry of the registry's servers array.

        Raises:
            ValueError: If id or command is missing, or permissions is unknown
        """
        server_id = data.get("id")
        if not isinstance(server_id, str) or not server_id:
            raise ValueError(f"Registry entry missing 'id': {data!r}")
        if not isinstance(data.get("command"), str):
            raise ValueError(f"Registry entry '{server_id}' missing 'command'")

        permissions = data.get("permissions", "always_ask")
        if permissions not in PERMISSION_LEVELS:
            raise ValueError(
                f"Registry entry '{server_id}' has invalid permissions '{permissions}'"
            )

        return cls(
            id=server_id,
            name=data.get("name") or server_id,
            command=data["command"],
            args=string_list(server_id, "args", data.get("args")),
            env=string_map(server_id, "env", data.get("env")) or {},
            settings=data.get("settings"),
            source=data.get("source"),
            enabled=bool(data.get("enabled", True)),
            permissions=permissions,
            apps=set(string_list(server_id, "apps", data.get("apps"))),
            description=data.get("description"),
            icon_url=data.get("iconUrl"),
            created_at=int(data.get("createdAt") or 0),
            updated_at=int(data.get("updatedAt") or 0),
        )


@runtime_checkable
class TargetAdapter(Protocol):
    """Protocol for host-specific config adapters.

    ABOUTME: Defines interface all target adapters must implement
    ABOUTME: Uses @runtime_checkable for isinstance() support
    """

    @property
    def name(self) -> str:
        """Unique target name, used as the membership value."""
        ...

    def locate(self) -> Path:
        """Resolve the target's config file path."""
        ...

    def is_present(self) -> bool:
        """Report whether the host application appears installed."""
        ...

    def read(self) -> dict[str, ServerDefinition]:
        """Load the servers this system manages from the target's file."""
        ...

    def write(self, servers: dict[str, ServerDefinition]) -> bool:
        """Replace the managed servers in the target's file."""
        ...
