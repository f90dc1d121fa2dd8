# Aggregation and write fan-out across target adapters
import logging
from dataclasses import dataclass, field

from mcpsync.models import ObservedServer, ParsedCommand, ServerDefinition, TargetAdapter

logger = logging.getLogger(__name__)


@dataclass
class WriteResult:
    """Per-target outcome of a fan-out write.

    ABOUTME: Truthy only when every selected target was written
    ABOUTME: Targets already written are not rolled back on failure elsewhere
    """
    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def __bool__(self) -> bool:
        return not self.failed

    @property
    def ok(self) -> bool:
        return not self.failed

    def add_success(self, target: str) -> None:
        self.succeeded.append(target)

    def add_failure(self, target: str, reason: str) -> None:
        self.failed[target] = reason


class ConfigManager:
    """Reads and writes server definitions through the registered adapters.

    ABOUTME: Holds no state of its own; each adapter's file is the source of truth
    ABOUTME: Adapters are visited alphabetically by target name
    """

    def __init__(self, adapters: list[TargetAdapter]) -> None:
        names = [adapter.name for adapter in adapters]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(f"Duplicate target names: {', '.join(sorted(duplicates))}")

        self._adapters = sorted(adapters, key=lambda adapter: adapter.name)
        # Filled by get_all_servers(): targets skipped because they couldn't be read
        self.read_errors: dict[str, str] = {}

    def get_adapters(self) -> list[TargetAdapter]:
        return list(self._adapters)

    def get_adapter(self, name: str) -> TargetAdapter:
        for adapter in self._adapters:
            if adapter.name == name:
                return adapter
        raise ValueError(f"Unknown target: {name}")

    def _select(self, target_names: list[str] | None) -> list[TargetAdapter]:
        if target_names is None:
            return list(self._adapters)
        wanted = set(target_names)
        unknown = wanted - {adapter.name for adapter in self._adapters}
        if unknown:
            raise ValueError(f"Unknown target(s): {', '.join(sorted(unknown))}")
        return [adapter for adapter in self._adapters if adapter.name in wanted]

    @staticmethod
    def parse_command(command_line: str) -> ParsedCommand:
        """Split a whitespace-delimited command line into executable and args.

        Raises:
            ValueError: If the command line is empty

        Examples:
            >>> ConfigManager.parse_command("npx -y server-web")
            ParsedCommand(command='npx', args=['-y', 'server-web'])
        """
        parts = command_line.split()
        if not parts:
            raise ValueError("Empty command")
        return ParsedCommand(command=parts[0], args=parts[1:])

    def read_target(self, name: str) -> dict[str, ServerDefinition]:
        """Read one target's managed servers.

        Raises:
            ValueError: If the target is unknown
            ConfigParseError: If the target's file is malformed
        """
        return self.get_adapter(name).read()

    def write_target(self, name: str, servers: dict[str, ServerDefinition]) -> bool:
        """Replace one target's managed servers wholesale."""
        return self.get_adapter(name).write(servers)

    def get_all_servers(
        self,
        target_names: list[str] | None = None,
    ) -> dict[str, ObservedServer]:
        """Union the servers of every (or the named) target.

        ABOUTME: Membership accumulates across targets sharing an id
        ABOUTME: Fields are last-write-wins, so the alphabetically last target wins
        ABOUTME: Unreadable targets are logged, skipped and listed in read_errors

        Returns:
            Map of server id to definition plus the set of targets holding it
        """
        self.read_errors = {}
        union: dict[str, ObservedServer] = {}

        for adapter in self._select(target_names):
            try:
                servers = adapter.read()
            except ValueError as e:
                logger.error(f"{adapter.name}: skipped, {e}")
                self.read_errors[adapter.name] = str(e)
                continue

            for server_id, definition in servers.items():
                observed = union.get(server_id)
                if observed is None:
                    union[server_id] = ObservedServer(definition=definition, apps={adapter.name})
                else:
                    observed.definition = definition
                    observed.apps.add(adapter.name)

        return union

    def add_server(
        self,
        server_id: str,
        definition: ServerDefinition,
        target_names: list[str] | None = None,
    ) -> WriteResult:
        """Upsert one server into every (or the named) target.

        ABOUTME: Read-modify-write per target; a target that can't be read is
        ABOUTME: reported as failed rather than overwritten
        """
        result = WriteResult()
        for adapter in self._select(target_names):
            try:
                servers = adapter.read()
            except ValueError as e:
                result.add_failure(adapter.name, str(e))
                continue

            servers[server_id] = definition
            if adapter.write(servers):
                result.add_success(adapter.name)
            else:
                result.add_failure(adapter.name, f"could not write {adapter.locate()}")

        logger.debug(f"add {server_id}: ok={result.succeeded} failed={list(result.failed)}")
        return result

    def update_server(
        self,
        server_id: str,
        definition: ServerDefinition,
        target_names: list[str] | None = None,
    ) -> WriteResult:
        return self.add_server(server_id, definition, target_names)

    def remove_server(
        self,
        server_id: str,
        target_names: list[str] | None = None,
    ) -> WriteResult:
        """Delete one server from every (or the named) target.

        ABOUTME: Targets that don't hold the server are rewritten unchanged
        """
        result = WriteResult()
        for adapter in self._select(target_names):
            try:
                servers = adapter.read()
            except ValueError as e:
                result.add_failure(adapter.name, str(e))
                continue

            servers.pop(server_id, None)
            if adapter.write(servers):
                result.add_success(adapter.name)
            else:
                result.add_failure(adapter.name, f"could not write {adapter.locate()}")

        logger.debug(f"remove {server_id}: ok={result.succeeded} failed={list(result.failed)}")
        return result

    def toggle_server(
        self,
        server_id: str,
        enabled: bool,
        definition: ServerDefinition,
        target_names: list[str] | None = None,
    ) -> WriteResult:
        """Enabled means present in a target's file, disabled means absent."""
        if enabled:
            return self.add_server(server_id, definition, target_names)
        return self.remove_server(server_id, target_names)
