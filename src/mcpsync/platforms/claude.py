# Claude Desktop and Claude Code platform adapters
from pathlib import Path

from mcpsync.platforms.base import app_support_dir
from mcpsync.platforms.standard import McpServersAdapter


def claude_desktop(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Claude Desktop (claude_desktop_config.json).

    ABOUTME: Config lives in the per-user app support directory
    ABOUTME: Detected by app bundle or by its app support directory
    """
    support = f"{app_support_dir()}/Claude"
    return McpServersAdapter(
        name="Claude Desktop",
        paths=[config_path or f"{support}/claude_desktop_config.json"],
        markers=[config_path] if config_path else ["/Applications/Claude.app", support],
    )


def claude_code(config_path: Path | None = None) -> McpServersAdapter:
    """Adapter for Claude Code (~/.claude.json).

    ABOUTME: Only the user-level mcpServers map is managed;
    ABOUTME: per-project sections of ~/.claude.json pass through untouched
    """
    return McpServersAdapter(
        name="Claude Code",
        paths=[config_path or "~/.claude.json"],
        markers=[config_path] if config_path else ["~/.claude.json", "~/.claude"],
    )
