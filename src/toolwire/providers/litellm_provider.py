"""Providers routed through LiteLLM.

Every OpenAI-compatible vendor in the catalog goes through
``litellm.acompletion`` under the vendor's LiteLLM prefix, so request shaping
and auth headers are LiteLLM's concern.
"""

from __future__ import annotations

from typing import Any

import litellm

from toolwire.providers.base import BaseProvider, CompletionResponse, ProviderConfig

# Provider id -> LiteLLM model prefix.
LITELLM_PREFIXES: dict[str, str] = {
    "qwen": "dashscope",
    "deepseek": "deepseek",
    "doubao": "volcengine",
    "openai": "openai",
    "claude": "anthropic",
}


class LiteLLMProvider(BaseProvider):
    """Async chat completion for one vendor via LiteLLM.

    Usage::

        provider = LiteLLMProvider("deepseek", ProviderConfig(api_key="sk-..."), info)
        response = await provider.complete("Hello")
        print(response.content)
    """

    def __init__(self, provider_id: str, config: ProviderConfig, info: dict[str, Any]) -> None:
        super().__init__(provider_id, config, info)
        self.prefix = LITELLM_PREFIXES[provider_id]

    def litellm_model(self, model: str | None = None) -> str:
        return f"{self.prefix}/{model or self.model}"

    async def _chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any],
    ) -> CompletionResponse:
        call_kwargs: dict[str, Any] = {
            "model": self.litellm_model(model),
            "messages": messages,
            "timeout": self.config.timeout,
            **self._generation_options(options),
        }
        if self.config.api_key is not None:
            call_kwargs["api_key"] = self.config.api_key.get_secret_value()
        # Only an explicit override; LiteLLM knows each vendor's endpoint.
        if self.config.base_url:
            call_kwargs["api_base"] = self.config.base_url

        response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
        return self._parse_response(response, model)

    def _parse_response(self, response: Any, model: str) -> CompletionResponse:
        """Convert a LiteLLM (OpenAI-shaped) response."""
        choice = response.choices[0]
        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": int(response.usage.prompt_tokens or 0),
                "completion_tokens": int(response.usage.completion_tokens or 0),
                "total_tokens": int(response.usage.total_tokens or 0),
            }
        return CompletionResponse(
            id=str(getattr(response, "id", "") or ""),
            model=str(getattr(response, "model", "") or model),
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            usage=usage,
            metadata={"provider": self.provider_id},
        )
