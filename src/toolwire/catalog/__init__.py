"""Default capability catalog served by ``toolwire serve``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from toolwire.catalog.ai import AITools, register_ai_tools
from toolwire.catalog.builtin import register_builtin_tools
from toolwire.catalog.prompts import register_default_prompts
from toolwire.catalog.resources import register_default_resources

if TYPE_CHECKING:
    from toolwire.providers.factory import ModelProviderFactory
    from toolwire.server.server import McpServer

__all__ = [
    "AITools",
    "register_ai_tools",
    "register_builtin_tools",
    "register_default_catalog",
    "register_default_prompts",
    "register_default_resources",
]


def register_default_catalog(
    server: McpServer,
    *,
    builtin: bool = True,
    ai: bool = True,
    factory: ModelProviderFactory | None = None,
) -> McpServer:
    """Register the default tools, resources and prompts on *server*."""
    if builtin:
        register_builtin_tools(server)
    if ai:
        register_ai_tools(server, factory)
    register_default_resources(server)
    register_default_prompts(server)
    return server
