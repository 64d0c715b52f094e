"""AI tools — chat with any catalog provider and inspect the catalog."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from toolwire.protocol.errors import InvalidArgumentError
from toolwire.providers.factory import PROVIDERS, ModelProviderFactory

if TYPE_CHECKING:
    from toolwire.server.server import McpServer

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER = "qwen"


class AITools:
    """Tool handlers bound to one :class:`ModelProviderFactory`."""

    def __init__(self, factory: ModelProviderFactory | None = None) -> None:
        self.factory = factory or ModelProviderFactory()

    async def ai_chat(self, args: dict[str, Any]) -> str:
        provider_id = args.get("provider") or DEFAULT_PROVIDER
        config: dict[str, Any] = {"api_key": args["api_key"], "model": args.get("model") or None}
        if args.get("secret_key"):
            config["secret_key"] = args["secret_key"]

        provider = self.factory.create(provider_id, config)
        response = await provider.complete(args["message"])
        logger.info(
            "ai_chat via %s/%s used %d tokens",
            provider_id,
            provider.model,
            response.total_tokens,
        )
        return response.content

    def ai_model_info(self, args: dict[str, Any]) -> dict[str, Any]:
        provider_id = args.get("provider")
        if not provider_id:
            return {
                "available_providers": self.factory.supported_providers(),
                "provider_info": self.factory.all_providers_info(),
            }
        if not self.factory.is_supported(provider_id):
            raise InvalidArgumentError(
                f"Unsupported provider: {provider_id}",
                data={"provider": provider_id, "supported": self.factory.supported_providers()},
            )
        return {
            "provider": provider_id,
            "info": self.factory.provider_info(provider_id),
            "models": self.factory.provider_models(provider_id),
        }


def register_ai_tools(server: McpServer, factory: ModelProviderFactory | None = None) -> AITools:
    """Register ``ai_chat`` and ``ai_model_info`` on *server*."""
    tools = AITools(factory)
    server.register_tool(
        "ai_chat",
        tools.ai_chat,
        {
            "properties": {
                "provider": {
                    "type": "string",
                    "enum": list(PROVIDERS),
                    "description": "AI provider to use",
                    "default": DEFAULT_PROVIDER,
                },
                "model": {"type": "string", "description": "Model name (optional, uses provider default)"},
                "message": {"type": "string", "description": "Message to send to the AI"},
                "api_key": {"type": "string", "description": "API key for the provider"},
                "secret_key": {"type": "string", "description": "Secret key (required for ERNIE)"},
            },
            "required": ["message", "api_key"],
        },
        "Chat with AI models (QWEN, DeepSeek, Doubao, ERNIE, OpenAI, Claude)",
    )
    server.register_tool(
        "ai_model_info",
        tools.ai_model_info,
        {
            "properties": {
                "provider": {
                    "type": "string",
                    "description": "Provider name (optional, returns all if not specified)",
                },
            },
        },
        "Get information about available AI models and providers",
    )
    return tools
