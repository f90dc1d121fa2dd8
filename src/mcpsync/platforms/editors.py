# Cursor, VSCode and Windsurf platform adapters
from pathlib import Path

from mcpsync.platforms.base import app_support_dir
from mcpsync.platforms.standard import McpServersAdapter


def _editor(
    name: str,
    bundle: str,
    support_subdir: str,
    config_file: str,
    config_path: Path | None,
) -> McpServersAdapter:
    support = f"{app_support_dir()}/{support_subdir}"
    return McpServersAdapter(
        name=name,
        paths=[config_path or f"{support}/{config_file}"],
        markers=[config_path] if config_path else [f"/Applications/{bundle}", support],
    )


def cursor(config_path: Path | None = None) -> McpServersAdapter:
    return _editor("Cursor", "Cursor.app", "Cursor", "User/globalStorage/mcp.json", config_path)


def vscode(config_path: Path | None = None) -> McpServersAdapter:
    return _editor(
        "VSCode", "Visual Studio Code.app", "Code", "User/globalStorage/mcp.json", config_path
    )


def windsurf(config_path: Path | None = None) -> McpServersAdapter:
    return _editor("Windsurf", "Windsurf.app", "Windsurf", "mcp_server_config.json", config_path)
