# Gemini CLI and Qwen Code CLI platform adapters
from pathlib import Path

from mcpsync.platforms.standard import McpServersAdapter


def gemini_cli(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Gemini CLI (~/.gemini/settings.json).

    ABOUTME: Preserves other settings like selectedAuthType, theme
    ABOUTME: Present only when the settings file itself exists
    """
    return McpServersAdapter(
        name="Gemini CLI",
        paths=[config_path or "~/.gemini/settings.json"],
    )


def qwen_code(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Qwen Code CLI (~/.qwen/settings.json), a Gemini CLI fork."""
    return McpServersAdapter(
        name="Qwen Code CLI",
        paths=[config_path or "~/.qwen/settings.json"],
    )
