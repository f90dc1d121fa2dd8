# Cline and Kilo Code (VS Code extension) platform adapters
from pathlib import Path

from mcpsync.platforms.base import app_support_dir
from mcpsync.platforms.standard import McpServersAdapter

# ABOUTME: Editors whose globalStorage may host the extensions
EDITOR_VARIANTS = ["Code", "Code - Insiders", "Cursor", "VSCodium"]

# ABOUTME: Extension defaults every new entry needs to be accepted
EXTENSION_ENTRY_DEFAULTS = {"disabled": False, "alwaysAllow": []}


def extension_settings_paths(extension_id: str, filename: str) -> list[str]:
    """Candidate settings paths for a VS Code extension, one per editor variant.

    ABOUTME: Canonical default (plain Code) first
    """
    base = app_support_dir()
    return [
        f"{base}/{variant}/User/globalStorage/{extension_id}/settings/{filename}"
        for variant in EDITOR_VARIANTS
    ]


def cline(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Cline (saoudrizwan.claude-dev).

    ABOUTME: Uses 'disabled' flag and 'alwaysAllow' list per entry
    ABOUTME: Present when any editor variant holds its settings file
    """
    return McpServersAdapter(
        name="Cline",
        paths=[config_path] if config_path else extension_settings_paths(
            "saoudrizwan.claude-dev", "cline_mcp_settings.json"
        ),
        disabled_flag=True,
        new_entry_defaults=EXTENSION_ENTRY_DEFAULTS,
    )


def kilo_code(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Kilo Code (kilocode.kilo-code).

    ABOUTME: Uses mcp_settings.json in globalStorage (different filename!)
    """
    return McpServersAdapter(
        name="Kilo Code",
        paths=[config_path] if config_path else extension_settings_paths(
            "kilocode.kilo-code", "mcp_settings.json"
        ),
        disabled_flag=True,
        new_entry_defaults=EXTENSION_ENTRY_DEFAULTS,
    )
