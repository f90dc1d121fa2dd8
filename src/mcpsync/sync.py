# Sync orchestration for mcpsync
import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path

from mcpsync.config import Settings
from mcpsync.manager import ConfigManager, WriteResult
from mcpsync.models import CanonicalServer, ServerDefinition, ServerNotFoundError, TargetAdapter
from mcpsync.platforms import get_available_platforms
from mcpsync.store import MasterStore, ReconcileReport, display_name
from mcpsync.utils import (
    BackupService,
    ConfigParseError,
    expand_definition,
    has_errors,
    read_json_file,
    validate_definition,
    write_json_file,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TargetStatus:
    """What the operator sees for one detected target."""
    name: str
    path: Path
    present: bool
    synced: bool
    has_backup: bool


class SyncService:
    """Applies operator intents to target files first, then to the registry.

    ABOUTME: Only targets with sync enabled are written or reconciled
    ABOUTME: Registry membership follows the per-target write outcome, so it
    ABOUTME: never claims a target that wasn't actually written
    ABOUTME: Opting a target out restores its file from the backup snapshot
    """

    def __init__(
        self,
        manager: ConfigManager,
        store: MasterStore,
        backups: BackupService,
        state_path: Path | None = None,
    ) -> None:
        self.manager = manager
        self.store = store
        self.backups = backups
        self.state_path = state_path
        self._sync_states: dict[str, bool] = self._load_states()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        adapters: list[TargetAdapter] | None = None,
    ) -> "SyncService":
        """Build the service over detected targets (or the given adapters)."""
        if adapters is None:
            adapters = get_available_platforms()
        return cls(
            manager=ConfigManager(adapters),
            store=MasterStore(settings.registry_path),
            backups=BackupService(settings.backup_dir),
            state_path=settings.target_state_path,
        )

    # -- target sync state -------------------------------------------------

    def _load_states(self) -> dict[str, bool]:
        if self.state_path is None:
            return {}
        try:
            data = read_json_file(self.state_path)
        except ConfigParseError as e:
            logger.warning(f"Ignoring unreadable target state: {e}")
            return {}
        states = data.get("syncEnabled", {})
        if not isinstance(states, dict):
            return {}
        return {str(name): bool(value) for name, value in states.items()}

    def _save_states(self) -> None:
        if self.state_path is not None:
            write_json_file(self.state_path, {"syncEnabled": dict(sorted(self._sync_states.items()))})

    def is_target_synced(self, target: str) -> bool:
        return self._sync_states.get(target, True)

    def synced_targets(self) -> list[str]:
        return [
            adapter.name
            for adapter in self.manager.get_adapters()
            if self.is_target_synced(adapter.name)
        ]

    def _resolve_targets(self, targets: list[str] | None) -> list[str]:
        """Default to every synced target; reject unknown or opted-out ones."""
        if targets is None:
            return self.synced_targets()

        selected = list(dict.fromkeys(targets))
        for target in selected:
            self.manager.get_adapter(target)
            if not self.is_target_synced(target):
                raise ValueError(f"Sync is disabled for target: {target}")
        return selected

    def list_targets(self) -> list[TargetStatus]:
        return [
            TargetStatus(
                name=adapter.name,
                path=adapter.locate(),
                present=adapter.is_present(),
                synced=self.is_target_synced(adapter.name),
                has_backup=self.backups.has_backup(adapter.name),
            )
            for adapter in self.manager.get_adapters()
        ]

    def set_target_sync(self, target: str, enabled: bool) -> bool:
        """Opt a target in or out of synchronization.

        ABOUTME: Off: the target's file is restored from its backup snapshot
        ABOUTME: On: the target's current state is captured as the new snapshot

        Returns:
            False if the restore or the capture failed (state left unchanged)

        Raises:
            ValueError: If the target is unknown
        """
        adapter = self.manager.get_adapter(target)

        if enabled:
            try:
                current = adapter.read()
            except ValueError as e:
                logger.error(f"{target}: cannot capture backup, {e}")
                return False
            if not self.backups.create_backup(target, current):
                return False
        else:
            backup = self.backups.get_backup(target)
            if backup is None:
                logger.warning(f"{target}: no backup to restore, leaving file as is")
            elif not adapter.write(backup):
                return False
            else:
                logger.info(f"{target}: restored {len(backup)} server(s) from backup")

        self._sync_states[target] = enabled
        self._save_states()
        return True

    # -- reconciliation ----------------------------------------------------

    def start(self) -> ReconcileReport:
        """Seed first-detection backups, then reconcile.

        ABOUTME: A target that already has a snapshot keeps it, so the
        ABOUTME: pre-management state stays recoverable
        """
        for adapter in self.manager.get_adapters():
            if self.backups.has_backup(adapter.name):
                continue
            try:
                servers = adapter.read()
            except ValueError as e:
                logger.error(f"{adapter.name}: cannot capture first backup, {e}")
                continue
            self.backups.create_backup(adapter.name, servers)

        return self.sync()

    def sync(self) -> ReconcileReport:
        """Absorb the synced targets' current servers into the registry."""
        observed = self.manager.get_all_servers(self.synced_targets())
        return self.store.sync_from_target_configs(observed)

    # -- queries -----------------------------------------------------------

    def get_all(self) -> list[CanonicalServer]:
        return self.store.get_all_servers()

    def get_server(self, server_id: str) -> CanonicalServer:
        server = self.store.get_server(server_id)
        if server is None:
            raise ServerNotFoundError(server_id)
        return server

    def get_for_target(self, target: str) -> dict[str, ServerDefinition]:
        """Servers currently in a target's own file."""
        return self.manager.read_target(target)

    def get_applied_servers(self, target: str) -> list[CanonicalServer]:
        """Registry records whose membership includes the target."""
        return [server for server in self.store.get_all_servers() if target in server.apps]

    def resolve_server(self, server_id: str) -> ServerDefinition:
        """Fully resolved definition for launching the server.

        ABOUTME: ${VAR} references are expanded from the process environment
        """
        return expand_definition(self.get_server(server_id).to_definition())

    # -- intents -----------------------------------------------------------

    def _parse(
        self,
        server_id: str,
        command_line: str,
        env: dict[str, str] | None,
    ) -> ServerDefinition:
        parsed = self.manager.parse_command(command_line)
        definition = ServerDefinition(
            command=parsed.command,
            args=parsed.args,
            env=dict(env) if env else None,
        )

        problems = validate_definition(server_id, definition)
        if has_errors(problems):
            raise ValueError("; ".join(p.message for p in problems if p.severity == "error"))
        for problem in problems:
            logger.warning(f"{server_id}: {problem.message}")
        return definition

    def add_server(
        self,
        server_id: str,
        command_line: str,
        env: dict[str, str] | None = None,
        targets: list[str] | None = None,
    ) -> WriteResult:
        """Write a server to the selected targets and record it.

        ABOUTME: Creates the record, or updates it and extends its membership
        ABOUTME: with the targets that were written
        ABOUTME: Re-adding a known id keeps its settings and source in the files

        Raises:
            ValueError: Empty command line, invalid id, unknown or opted-out target
        """
        definition = self._parse(server_id, command_line, env)
        selected = self._resolve_targets(targets)

        existing = self.store.get_server(server_id)
        written = definition
        if existing is not None:
            written = dataclasses.replace(definition, settings=existing.settings, source=existing.source)

        result = self.manager.add_server(server_id, written, selected)
        if not result.succeeded:
            return result

        if existing is None:
            self.store.add_server(CanonicalServer(
                id=server_id,
                name=display_name(server_id),
                command=definition.command,
                args=list(definition.args),
                env=dict(env or {}),
                enabled=True,
                permissions="always_ask",
                apps=set(result.succeeded),
            ))
        else:
            self.store.update_server(server_id, {
                "command": definition.command,
                "args": list(definition.args),
                "env": dict(env or {}),
                "enabled": True,
                "apps": existing.apps | set(result.succeeded),
            })
        return result

    def update_server(
        self,
        server_id: str,
        command_line: str,
        env: dict[str, str] | None = None,
        targets: list[str] | None = None,
    ) -> WriteResult:
        """Change a server's command and env everywhere it is synced.

        ABOUTME: Default targets are the record's synced members; a globally
        ABOUTME: disabled server is only updated in the registry
        ABOUTME: If every selected target fails the registry is left as is;
        ABOUTME: one committed write is enough to record the new fields

        Raises:
            ServerNotFoundError: If the id is not in the registry
        """
        existing = self.get_server(server_id)
        definition = self._parse(server_id, command_line, env)

        if targets is not None:
            selected = self._resolve_targets(targets)
        elif existing.enabled:
            selected = [t for t in self.synced_targets() if t in existing.apps]
        else:
            selected = []

        written = dataclasses.replace(definition, settings=existing.settings, source=existing.source)
        result = self.manager.update_server(server_id, written, selected)
        if selected and not result.succeeded:
            return result

        self.store.update_server(server_id, {
            "command": definition.command,
            "args": list(definition.args),
            "env": dict(env or {}),
            "apps": existing.apps | set(result.succeeded),
        })
        return result

    def remove_server(self, server_id: str, targets: list[str] | None = None) -> WriteResult:
        """Remove a server from the selected targets (default: all synced).

        ABOUTME: Without targets and with every write succeeding the record is
        ABOUTME: deleted; otherwise membership shrinks by the targets written
        ABOUTME: and the record is deleted once membership is empty
        """
        result = self.manager.remove_server(server_id, self._resolve_targets(targets))

        existing = self.store.get_server(server_id)
        if existing is None:
            return result

        if targets is None and result.ok:
            self.store.remove_server(server_id)
            return result

        remaining = existing.apps - set(result.succeeded)
        if not remaining:
            self.store.remove_server(server_id)
        elif remaining != existing.apps:
            self.store.update_server(server_id, {"apps": remaining})
        return result

    def toggle_server(
        self,
        server_id: str,
        enabled: bool,
        targets: list[str] | None = None,
    ) -> WriteResult:
        """Enable or disable a server, globally or for some targets.

        ABOUTME: Disabled for a target means absent from that target's file
        ABOUTME: Without targets: writes to the record's synced members and
        ABOUTME: flips the record's enabled flag, keeping its membership
        ABOUTME: With targets: membership grows or shrinks instead

        Raises:
            ServerNotFoundError: If the id is not in the registry
        """
        existing = self.get_server(server_id)
        if targets is None:
            selected = [t for t in self.synced_targets() if t in existing.apps]
        else:
            selected = self._resolve_targets(targets)

        definition = existing.to_definition()
        if enabled:
            definition = dataclasses.replace(definition, enabled=True)
        result = self.manager.toggle_server(server_id, enabled, definition, selected)

        if targets is None:
            if result.ok:
                self.store.toggle_server(server_id, enabled)
            return result

        written = set(result.succeeded)
        if enabled:
            apps = existing.apps | written
            still_enabled = existing.enabled or bool(written)
        else:
            apps = existing.apps - written
            still_enabled = existing.enabled and bool(apps)
        self.store.update_server(server_id, {"apps": apps, "enabled": still_enabled})
        return result
