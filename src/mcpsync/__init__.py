# mcpsync - Keep MCP server definitions in sync across AI applications
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models
# ABOUTME: Export settings loading functions
from mcpsync.config import Settings, ensure_config_dir, get_data_dir, get_registry_path, load_settings
from mcpsync.models import (
    CanonicalServer,
    ObservedServer,
    ParsedCommand,
    ServerDefinition,
    ServerNotFoundError,
    TargetAdapter,
)

# ABOUTME: Export utility functions
from mcpsync.utils import (
    BackupService,
    ConfigParseError,
    ValidationError,
    expand_env_vars,
    get_backup_dir,
    validate_command_exists,
    validate_definition,
)

__all__ = [
    "__version__",
    "Settings",
    "ensure_config_dir",
    "get_data_dir",
    "get_registry_path",
    "load_settings",
    "CanonicalServer",
    "ObservedServer",
    "ParsedCommand",
    "ServerDefinition",
    "ServerNotFoundError",
    "TargetAdapter",
    "BackupService",
    "ConfigParseError",
    "ValidationError",
    "expand_env_vars",
    "get_backup_dir",
    "validate_command_exists",
    "validate_definition",
]
