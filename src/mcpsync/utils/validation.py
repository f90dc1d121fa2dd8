# ABOUTME: Validation utilities for server definitions
# ABOUTME: Blocking errors for unusable definitions, warnings for environment problems
import os
import shutil
from dataclasses import dataclass

from mcpsync.models import ServerDefinition
from mcpsync.utils.env import find_env_references


@dataclass(frozen=True)
class ValidationError:
    """Represents a validation error or warning.

    ABOUTME: Uses frozen dataclass for immutability
    ABOUTME: Severity level distinguishes between blocking errors and warnings
    """
    server_name: str
    message: str
    severity: str  # 'error' or 'warning'


def validate_command_exists(command: str) -> ValidationError | None:
    """Validate that a command exists on the system.

    ABOUTME: Uses shutil.which() for cross-platform command lookup
    ABOUTME: Returns None if command found, ValidationError otherwise

    Examples:
        >>> validate_command_exists("npx")
        None
        >>> validate_command_exists("nonexistent_cmd")
        ValidationError(server_name='', message='Command not found: nonexistent_cmd', severity='warning')
    """
    if shutil.which(command) is None:
        return ValidationError(
            server_name="",
            message=f"Command not found: {command}",
            severity="warning"
        )
    return None


def validate_definition(name: str, definition: ServerDefinition) -> list[ValidationError]:
    """Validate a server definition before it is written to targets.

    ABOUTME: Empty server id or command is an error
    ABOUTME: Missing executables and unset ${VAR} references are warnings,
    ABOUTME: since the host may run with a different PATH or environment

    Args:
        name: Server id the definition will be stored under
        definition: Definition to validate

    Returns:
        List of ValidationError instances (empty if valid)
    """
    errors: list[ValidationError] = []

    if not name.strip():
        errors.append(ValidationError(
            server_name=name,
            message="Server id must not be empty",
            severity="error"
        ))

    if not definition.command.strip():
        errors.append(ValidationError(
            server_name=name,
            message="Command must not be empty",
            severity="error"
        ))
        return errors

    cmd_error = validate_command_exists(definition.command)
    if cmd_error:
        errors.append(ValidationError(
            server_name=name,
            message=cmd_error.message,
            severity=cmd_error.severity
        ))

    locations: list[tuple[str, str]] = [("command", definition.command)]
    locations.extend(("args", arg) for arg in definition.args)
    locations.extend((f"env.{key}", value) for key, value in (definition.env or {}).items())

    for where, value in locations:
        for var_name in find_env_references(value):
            if var_name not in os.environ:
                errors.append(ValidationError(
                    server_name=name,
                    message=f"Environment variable '${var_name}' not set (referenced in {where})",
                    severity="warning"
                ))

    return errors


def has_errors(errors: list[ValidationError]) -> bool:
    """True if any entry is blocking."""
    return any(err.severity == "error" for err in errors)
