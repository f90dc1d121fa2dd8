# Canonical registry of server definitions
import copy
import dataclasses
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mcpsync.models import PERMISSION_LEVELS, CanonicalServer, ObservedServer
from mcpsync.utils.files import ConfigParseError, read_json_file, write_json_file

logger = logging.getLogger(__name__)

# ABOUTME: Fields update_server() refuses to touch
IMMUTABLE_FIELDS = frozenset({"id", "created_at"})


def now_ms() -> int:
    return int(time.time() * 1000)


def display_name(server_id: str) -> str:
    """Synthesize a display name from an id, e.g. 'github' -> 'Github'."""
    return server_id[:1].upper() + server_id[1:]


@dataclass
class ReconcileReport:
    """Result of merging observed target state into the registry.

    ABOUTME: created holds new ids, extended holds ids whose membership grew
    """
    created: list[str] = field(default_factory=list)
    extended: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.created or self.extended)


class MasterStore:
    """In-memory registry backed by one JSON document.

    ABOUTME: Every operation waits on the initial load (initialization barrier)
    ABOUTME: Every mutation rewrites the whole file atomically
    ABOUTME: Not-found is reported as False; persistence errors raise OSError
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._servers: dict[str, CanonicalServer] = {}
        self._loaded = False

    def load(self) -> None:
        """Read the registry file into memory.

        ABOUTME: Missing or blank file is an empty registry

        Raises:
            ConfigParseError: If the file or one of its entries is malformed
        """
        data = read_json_file(self.path)
        entries = data.get("servers", [])
        if not isinstance(entries, list):
            raise ConfigParseError(f"'servers' must be a list in {self.path}")

        servers: dict[str, CanonicalServer] = {}
        for entry in entries:
            try:
                server = CanonicalServer.from_dict(entry)
            except (ValueError, TypeError, AttributeError) as e:
                raise ConfigParseError(f"Invalid registry entry in {self.path}: {e}") from e
            servers[server.id] = server

        self._servers = servers
        self._loaded = True
        logger.debug(f"Loaded {len(servers)} server(s) from {self.path}")

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def _commit(self, servers: dict[str, CanonicalServer]) -> None:
        """Persist a candidate state, then make it the in-memory state.

        ABOUTME: If the write raises, memory keeps matching the file on disk
        """
        data = {
            "servers": [server.to_dict() for server in servers.values()],
            "lastUpdated": now_ms(),
        }
        write_json_file(self.path, data)
        self._servers = servers

    @staticmethod
    def _touch(server: CanonicalServer) -> None:
        # Timestamps never move backwards, even if the wall clock does
        server.updated_at = max(now_ms(), server.updated_at)

    def get_all_servers(self) -> list[CanonicalServer]:
        """Snapshot of every record; mutating the copies has no effect."""
        self._ensure_loaded()
        return [copy.deepcopy(server) for server in self._servers.values()]

    def get_server(self, server_id: str) -> CanonicalServer | None:
        self._ensure_loaded()
        server = self._servers.get(server_id)
        return copy.deepcopy(server) if server else None

    def add_server(self, server: CanonicalServer) -> bool:
        """Insert (or replace) a record, stamping both timestamps."""
        self._ensure_loaded()
        record = copy.deepcopy(server)
        record.apps = set(record.apps)
        record.created_at = record.updated_at = now_ms()
        self._commit({**self._servers, record.id: record})
        return True

    def update_server(self, server_id: str, updates: dict[str, Any]) -> bool:
        """Shallow-merge fields into an existing record.

        ABOUTME: Nested maps (env, settings) are replaced, not deep-merged
        ABOUTME: id and created_at are ignored; apps is coerced to a set

        Returns:
            False if no record has this id

        Raises:
            ValueError: For unknown field names or an invalid permission level
        """
        self._ensure_loaded()
        existing = self._servers.get(server_id)
        if existing is None:
            return False

        known = {f.name for f in dataclasses.fields(CanonicalServer)}
        unknown = set(updates) - known
        if unknown:
            raise ValueError(f"Unknown server field(s): {', '.join(sorted(unknown))}")

        changes = {k: v for k, v in updates.items() if k not in IMMUTABLE_FIELDS}
        if "permissions" in changes and changes["permissions"] not in PERMISSION_LEVELS:
            raise ValueError(f"Invalid permission level: {changes['permissions']}")
        if "apps" in changes:
            changes["apps"] = set(changes["apps"])

        updated = dataclasses.replace(existing, **copy.deepcopy(changes))
        self._touch(updated)
        self._commit({**self._servers, server_id: updated})
        return True

    def remove_server(self, server_id: str) -> bool:
        self._ensure_loaded()
        if server_id not in self._servers:
            return False
        servers = dict(self._servers)
        del servers[server_id]
        self._commit(servers)
        return True

    def toggle_server(self, server_id: str, enabled: bool) -> bool:
        return self.update_server(server_id, {"enabled": enabled})

    def add_app_to_server(self, server_id: str, target: str) -> bool:
        """Add one target to a record's membership.

        Returns:
            False if no record has this id
        """
        self._ensure_loaded()
        server = self._servers.get(server_id)
        if server is None:
            return False

        if target not in server.apps:
            updated = dataclasses.replace(server, apps=server.apps | {target})
            self._touch(updated)
            self._commit({**self._servers, server_id: updated})
        return True

    def remove_app_from_server(self, server_id: str, target: str) -> bool:
        """Remove one target from a record's membership.

        ABOUTME: An emptied membership is left for the caller to act on

        Returns:
            False if no record has this id
        """
        self._ensure_loaded()
        server = self._servers.get(server_id)
        if server is None:
            return False

        if target in server.apps:
            updated = dataclasses.replace(server, apps=server.apps - {target})
            self._touch(updated)
            self._commit({**self._servers, server_id: updated})
        return True

    def sync_from_target_configs(self, observed: dict[str, ObservedServer]) -> ReconcileReport:
        """Merge what the targets hold into the registry.

        ABOUTME: Unknown ids become new records (permissions always_ask)
        ABOUTME: Known ids get membership = existing | observed; fields untouched
        ABOUTME: Membership never shrinks here; repeated calls are no-ops
        ABOUTME: Persists once, and only when something changed
        """
        self._ensure_loaded()
        report = ReconcileReport()
        servers = dict(self._servers)

        for server_id, seen in observed.items():
            existing = servers.get(server_id)

            if existing is None:
                definition = seen.definition
                stamp = now_ms()
                servers[server_id] = CanonicalServer(
                    id=server_id,
                    name=display_name(server_id),
                    command=definition.command,
                    args=list(definition.args),
                    env=dict(definition.env or {}),
                    settings=copy.deepcopy(definition.settings),
                    source=definition.source,
                    enabled=True if definition.enabled is None else definition.enabled,
                    permissions="always_ask",
                    apps=set(seen.apps),
                    created_at=stamp,
                    updated_at=stamp,
                )
                report.created.append(server_id)
                continue

            merged = existing.apps | seen.apps
            if merged != existing.apps:
                extended = dataclasses.replace(existing, apps=merged)
                self._touch(extended)
                servers[server_id] = extended
                report.extended.append(server_id)

        if report.changed:
            self._commit(servers)
            logger.info(
                f"Reconciled registry: {len(report.created)} new, "
                f"{len(report.extended)} with new targets"
            )
        return report
