# CLI interface for mcpsync
import argparse
import json
import sys

from mcpsync import __version__
from mcpsync.config import Settings, configure_logging, load_settings
from mcpsync.manager import WriteResult
from mcpsync.models import ServerNotFoundError
from mcpsync.sync import SyncService

# ABOUTME: Exit codes
# 0 = success, 1 = partial success, 2 = config error, 3 = fatal
EXIT_SUCCESS = 0
EXIT_PARTIAL = 1
EXIT_CONFIG_ERROR = 2
EXIT_FATAL = 3


def _build_service(settings: Settings) -> SyncService:
    """Create the service over the detected targets.

    ABOUTME: Tests replace this to point the CLI at fixture targets
    """
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    return SyncService.from_settings(settings)


def _parse_env(text: str | None) -> dict[str, str]:
    """Parse comma-separated KEY=VALUE pairs; pairs without '=' are ignored."""
    env_vars: dict[str, str] = {}
    if text:
        for env_pair in text.split(","):
            if "=" in env_pair:
                key, value = env_pair.split("=", 1)
                env_vars[key.strip()] = value.strip()
    return env_vars


def _report(result: WriteResult, verb: str, name: str) -> int:
    """Print per-target outcome and map it to an exit code."""
    for target in result.succeeded:
        print(f"  {target} - {verb}")
    for target, reason in result.failed.items():
        print(f"  {target} - failed: {reason}")

    if not result.succeeded and not result.failed:
        print(f"No synced targets to write '{name}' to.")
        return EXIT_CONFIG_ERROR

    print()
    if result.failed:
        total = len(result.succeeded) + len(result.failed)
        print(f"'{name}': {len(result.succeeded)}/{total} targets updated, {len(result.failed)} failed")
        return EXIT_PARTIAL

    print(f"'{name}': {len(result.succeeded)} target(s) updated")
    return EXIT_SUCCESS


def cmd_targets(service: SyncService, args: argparse.Namespace) -> int:
    """List detected targets with their sync and backup state."""
    statuses = service.list_targets()
    if not statuses:
        print("No supported applications detected.")
        return EXIT_SUCCESS

    for status in statuses:
        flags = [
            "sync on" if status.synced else "sync off",
            "backup" if status.has_backup else "no backup",
        ]
        print(f"  {status.name}")
        print(f"    path: {status.path}")
        print(f"    {', '.join(flags)}")

    print()
    print(f"Total: {len(statuses)} target(s)")
    return EXIT_SUCCESS


def cmd_list(service: SyncService, args: argparse.Namespace) -> int:
    """List registry servers, or the servers in one target's file.

    ABOUTME: With --target reads the target's file directly
    """
    if args.target:
        servers = service.get_for_target(args.target)
        print(f"MCP Servers in {args.target}:")
        print()
        for server_id, definition in servers.items():
            print(f"  {server_id}")
            print(f"    command: {' '.join([definition.command, *definition.args])}")
            if definition.env:
                env_str = ", ".join(f"{k}={v}" for k, v in definition.env.items())
                print(f"    env: {env_str}")
            print()
        print(f"Total: {len(servers)} server(s)")
        return EXIT_SUCCESS

    servers = service.get_all()
    print("MCP Servers in registry:")
    print()
    for server in servers:
        state = "enabled" if server.enabled else "disabled"
        print(f"  {server.id} ({state})")
        print(f"    command: {' '.join([server.command, *server.args])}")
        if server.env:
            env_str = ", ".join(f"{k}={v}" for k, v in server.env.items())
            print(f"    env: {env_str}")
        print(f"    targets: {', '.join(sorted(server.apps)) or '-'}")
        print()
    print(f"Total: {len(servers)} server(s)")
    return EXIT_SUCCESS


def cmd_sync(service: SyncService, args: argparse.Namespace) -> int:
    """Back up newly detected targets and absorb their servers.

    ABOUTME: Unreadable targets are reported and make the run partial
    """
    print(f"mcpsync sync v{__version__}")
    print()

    synced = service.synced_targets()
    print(f"Reading {len(synced)} synced target(s)...")
    report = service.start()

    for server_id in report.created:
        print(f"  + {server_id}")
    for server_id in report.extended:
        print(f"  ~ {server_id} (new targets)")

    errors = service.manager.read_errors
    if errors:
        print()
        for target, message in errors.items():
            print(f"  Error: {target}: {message}")

    print()
    print(
        f"Sync complete: {len(report.created)} new, "
        f"{len(report.extended)} extended, {len(service.get_all())} total"
    )
    return EXIT_PARTIAL if errors else EXIT_SUCCESS


def cmd_add(service: SyncService, args: argparse.Namespace) -> int:
    """Add a server to every synced target (or the --target ones)."""
    print(f"Adding '{args.name}'...")
    result = service.add_server(args.name, args.command_line, _parse_env(args.env), args.targets)
    return _report(result, "added", args.name)


def cmd_update(service: SyncService, args: argparse.Namespace) -> int:
    """Change a server's command line and env where it is synced."""
    print(f"Updating '{args.name}'...")
    result = service.update_server(args.name, args.command_line, _parse_env(args.env), args.targets)
    if not result.succeeded and not result.failed:
        print(f"'{args.name}' updated in registry only.")
        return EXIT_SUCCESS
    return _report(result, "updated", args.name)


def cmd_remove(service: SyncService, args: argparse.Namespace) -> int:
    print(f"Removing '{args.name}'...")
    result = service.remove_server(args.name, args.targets)
    return _report(result, "removed", args.name)


def cmd_toggle(service: SyncService, args: argparse.Namespace, enabled: bool) -> int:
    """Enable or disable a server globally or for the --target ones."""
    verb = "enabled" if enabled else "disabled"
    result = service.toggle_server(args.name, enabled, args.targets)
    if not result.succeeded and not result.failed:
        print(f"'{args.name}' {verb} in registry only.")
        return EXIT_SUCCESS
    return _report(result, verb, args.name)


def cmd_target_sync(service: SyncService, args: argparse.Namespace) -> int:
    """Opt a target in or out; opting out restores its backup."""
    enabled = args.state == "on"
    if not service.set_target_sync(args.target, enabled):
        print(f"Error: could not turn sync {args.state} for {args.target}")
        return EXIT_FATAL

    if enabled:
        print(f"Sync enabled for {args.target}; current state captured as backup.")
    else:
        print(f"Sync disabled for {args.target}; original configuration restored.")
    return EXIT_SUCCESS


def cmd_backup(service: SyncService, args: argparse.Namespace) -> int:
    """Show the backup snapshot held for a target."""
    service.manager.get_adapter(args.target)
    servers = service.backups.get_backup(args.target)
    if servers is None:
        print(f"No backup for {args.target}.")
        return EXIT_CONFIG_ERROR

    timestamp = service.backups.get_backup_timestamp(args.target)
    print(f"Backup of {args.target} (timestamp {timestamp}):")
    for server_id, definition in servers.items():
        print(f"  {server_id}: {' '.join([definition.command, *definition.args])}")
    print(f"Total: {len(servers)} server(s)")
    return EXIT_SUCCESS


def cmd_resolve(service: SyncService, args: argparse.Namespace) -> int:
    """Print the launch-ready definition with ${VAR} references expanded."""
    definition = service.resolve_server(args.name)
    print(json.dumps(definition.to_dict(), indent=2))
    return EXIT_SUCCESS


def _add_target_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--target", "-t",
        action="append",
        dest="targets",
        metavar="TARGET",
        help="Limit to this target (repeatable; default: all synced targets)"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpsync",
        description="Keep MCP server definitions in sync across AI applications"
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"mcpsync v{__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "targets",
        help="List detected target applications"
    )

    list_parser = subparsers.add_parser(
        "list",
        help="List servers in the registry or in one target"
    )
    list_parser.add_argument(
        "--target", "-t",
        help="Show the servers in this target's own file"
    )

    subparsers.add_parser(
        "sync",
        help="Absorb servers from all synced targets into the registry"
    )

    for name, help_text in (("add", "Add an MCP server"), ("update", "Update an MCP server")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("name", help="Server id")
        sub.add_argument("command_line", help="Command line, e.g. \"npx -y @mcp/github\"")
        sub.add_argument("--env", help="Comma-separated KEY=VALUE environment variables")
        _add_target_option(sub)

    for name, help_text in (
        ("remove", "Remove an MCP server"),
        ("enable", "Enable an MCP server"),
        ("disable", "Disable an MCP server"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("name", help="Server id")
        _add_target_option(sub)

    target_sync_parser = subparsers.add_parser(
        "target-sync",
        help="Turn synchronization for a target on or off"
    )
    target_sync_parser.add_argument("target", help="Target name")
    target_sync_parser.add_argument("state", choices=["on", "off"])

    backup_parser = subparsers.add_parser(
        "backup",
        help="Show the backup snapshot of a target"
    )
    backup_parser.add_argument("target", help="Target name")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Print a server definition with environment variables expanded"
    )
    resolve_parser.add_argument("name", help="Server id")

    return parser


def dispatch(service: SyncService, args: argparse.Namespace) -> int:
    if args.command == "targets":
        return cmd_targets(service, args)
    elif args.command == "list":
        return cmd_list(service, args)
    elif args.command == "sync":
        return cmd_sync(service, args)
    elif args.command == "add":
        return cmd_add(service, args)
    elif args.command == "update":
        return cmd_update(service, args)
    elif args.command == "remove":
        return cmd_remove(service, args)
    elif args.command == "enable":
        return cmd_toggle(service, args, True)
    elif args.command == "disable":
        return cmd_toggle(service, args, False)
    elif args.command == "target-sync":
        return cmd_target_sync(service, args)
    elif args.command == "backup":
        return cmd_backup(service, args)
    elif args.command == "resolve":
        return cmd_resolve(service, args)
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    ABOUTME: Parses args and dispatches to appropriate command
    ABOUTME: Maps errors to messages and exit codes, never tracebacks
    ABOUTME: Returns exit code for sys.exit()
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        # No command specified, show help
        parser.print_help()
        return EXIT_SUCCESS

    settings = load_settings()
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        service = _build_service(settings)
        return dispatch(service, args)
    except ServerNotFoundError as e:
        print(f"Error: Server '{e.args[0]}' not found in registry")
        return EXIT_CONFIG_ERROR
    except ValueError as e:
        # Includes ConfigParseError for malformed registry or target files
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except Exception as e:
        print(f"Fatal error: {e}")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
