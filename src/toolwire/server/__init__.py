"""Server core — registries, dispatcher, configuration and lifecycle."""

from toolwire.server.config import ServerConfig, ServerConfigLoader
from toolwire.server.lifecycle import LifecycleController, serve_stdio
from toolwire.server.registry import (
    PromptDefinition,
    PromptRegistry,
    ResourceDefinition,
    ResourceRegistry,
    ToolDefinition,
    ToolRegistry,
)
from toolwire.server.server import McpServer, ServerState

__all__ = [
    "LifecycleController",
    "McpServer",
    "PromptDefinition",
    "PromptRegistry",
    "ResourceDefinition",
    "ResourceRegistry",
    "ServerConfig",
    "ServerConfigLoader",
    "ServerState",
    "ToolDefinition",
    "ToolRegistry",
    "serve_stdio",
]
