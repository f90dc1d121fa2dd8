# ABOUTME: Utility modules for mcpsync
# ABOUTME: Exports file IO, env expansion, backup, and validation helpers

from mcpsync.utils.backup import BackupService, get_backup_dir
from mcpsync.utils.env import expand_definition, expand_env_vars
from mcpsync.utils.files import ConfigParseError, read_json_file, write_json_file
from mcpsync.utils.validation import (
    ValidationError,
    has_errors,
    validate_command_exists,
    validate_definition,
)

__all__ = [
    "BackupService",
    "get_backup_dir",
    "expand_definition",
    "expand_env_vars",
    "ConfigParseError",
    "read_json_file",
    "write_json_file",
    "ValidationError",
    "has_errors",
    "validate_command_exists",
    "validate_definition",
]
