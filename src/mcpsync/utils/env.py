# Environment variable expansion utilities
import os
import re
import warnings
from collections.abc import Mapping

from mcpsync.models import ServerDefinition

# ABOUTME: Pattern matches ${VAR_NAME} where VAR_NAME is uppercase with underscores
ENV_VAR_PATTERN = re.compile(r'\$\{([A-Z_][A-Z0-9_]*)\}')


def expand_env_vars(value: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand environment variables in ${VAR} format.

    ABOUTME: Supports ${VAR_NAME} syntax for environment variable expansion
    ABOUTME: Returns original reference if variable not found (with warning)

    Args:
        value: String potentially containing ${VAR} references
        environ: Variables to expand from (defaults to os.environ)

    Returns:
        String with environment variables expanded

    Examples:
        >>> expand_env_vars("${HOME}/projects")
        '/Users/user/projects'
        >>> expand_env_vars("npx -y ${UNSET_VAR}")
        'npx -y ${UNSET_VAR}'  # with warning
    """
    source = os.environ if environ is None else environ

    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        if var_name in source:
            return source[var_name]
        warnings.warn(
            f"Environment variable '{var_name}' not found, keeping original",
            UserWarning,
            stacklevel=3
        )
        return match.group(0)

    return ENV_VAR_PATTERN.sub(replace_var, value)


def find_env_references(value: str) -> list[str]:
    """Return the variable names referenced as ${VAR} in a string."""
    return ENV_VAR_PATTERN.findall(value)


def expand_definition(
    definition: ServerDefinition,
    environ: Mapping[str, str] | None = None,
) -> ServerDefinition:
    """Expand ${VAR} references in command, args and env values.

    ABOUTME: Produces the fully resolved definition handed to a server launcher
    ABOUTME: Settings, source and enabled pass through untouched
    """
    env = definition.env
    return ServerDefinition(
        command=expand_env_vars(definition.command, environ),
        args=[expand_env_vars(arg, environ) for arg in definition.args],
        env={key: expand_env_vars(val, environ) for key, val in env.items()} if env else env,
        settings=definition.settings,
        source=definition.source,
        enabled=definition.enabled,
    )
