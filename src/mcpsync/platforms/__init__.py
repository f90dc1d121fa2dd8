# Platform adapter registry
import logging
from collections.abc import Callable

from mcpsync.models import TargetAdapter
from mcpsync.platforms.claude import claude_code, claude_desktop
from mcpsync.platforms.codex import CodexAdapter
from mcpsync.platforms.editors import cursor, vscode, windsurf
from mcpsync.platforms.gemini import gemini_cli, qwen_code
from mcpsync.platforms.kilo import cline, kilo_code
from mcpsync.platforms.opencode import OpencodeAdapter
from mcpsync.platforms.standard import McpServersAdapter
from mcpsync.platforms.zed import ZedAdapter

logger = logging.getLogger(__name__)

# Registry of all known target adapters; adding a host means adding one entry
ALL_PLATFORMS: list[Callable[[], TargetAdapter]] = [
    claude_desktop,
    claude_code,
    cursor,
    vscode,
    windsurf,
    gemini_cli,
    qwen_code,
    cline,
    kilo_code,
    ZedAdapter,
    OpencodeAdapter,
    CodexAdapter,
]

__all__ = [
    "TargetAdapter",
    "McpServersAdapter",
    "ZedAdapter",
    "OpencodeAdapter",
    "CodexAdapter",
    "ALL_PLATFORMS",
    "get_all_platforms",
    "get_available_platforms",
]


def get_all_platforms() -> list[TargetAdapter]:
    """Instantiate and return all platform adapters.

    ABOUTME: Creates instances of all registered adapters
    ABOUTME: Returns list for easy iteration
    """
    return [platform_factory() for platform_factory in ALL_PLATFORMS]


def get_available_platforms(
    platforms: list[TargetAdapter] | None = None,
) -> list[TargetAdapter]:
    """Return the adapters whose host application is detected.

    ABOUTME: Logs one detection line per adapter
    """
    candidates = platforms if platforms is not None else get_all_platforms()
    available: list[TargetAdapter] = []

    for platform in candidates:
        present = platform.is_present()
        logger.info(f"[Detection] {platform.name}: {'found' if present else 'missing'} ({platform.locate()})")
        if present:
            available.append(platform)

    logger.info(f"[Detection] Total targets detected: {len(available)}/{len(candidates)}")
    return available
