"""ModelProviderFactory — provider catalog, credential rules and construction.

Metadata queries read only the static :data:`PROVIDERS` table, so they work
without credentials or network access.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from toolwire.protocol.errors import ConfigurationError, InvalidArgumentError
from toolwire.providers.base import BaseProvider, ProviderConfig
from toolwire.providers.ernie import ErnieProvider
from toolwire.providers.litellm_provider import LiteLLMProvider

logger = logging.getLogger(__name__)

# auth_type -> config keys that must be non-empty.
CREDENTIAL_RULES: dict[str, tuple[str, ...]] = {
    "api_key": ("api_key",),
    "api_key_secret": ("api_key", "secret_key"),
}

PROVIDERS: dict[str, dict[str, Any]] = {
    "qwen": {
        "name": "Alibaba QWEN",
        "description": "Alibaba Qianwen large language model series",
        "base_url": "https://dashscope.aliyuncs.com/api/v1",
        "auth_type": "api_key",
        "default_model": "qwen-turbo",
        "models": {
            "qwen-turbo": {"context": 8192, "max_tokens": 1500},
            "qwen-plus": {"context": 32768, "max_tokens": 2000},
            "qwen-max": {"context": 8192, "max_tokens": 2000},
            "qwen-max-longcontext": {"context": 30000, "max_tokens": 2000},
        },
    },
    "deepseek": {
        "name": "DeepSeek",
        "description": "DeepSeek Chat and Code models",
        "base_url": "https://api.deepseek.com",
        "auth_type": "api_key",
        "default_model": "deepseek-chat",
        "models": {
            "deepseek-chat": {"context": 32768, "max_tokens": 4096},
            "deepseek-coder": {"context": 16384, "max_tokens": 4096},
        },
    },
    "doubao": {
        "name": "ByteDance Doubao",
        "description": "ByteDance Doubao (Volcano Engine) models",
        "base_url": "https://ark.cn-beijing.volces.com/api/v3",
        "auth_type": "api_key",
        "default_model": "doubao-lite-4k",
        "models": {
            "doubao-lite-4k": {"context": 4096, "max_tokens": 4096},
            "doubao-lite-32k": {"context": 32768, "max_tokens": 4096},
            "doubao-pro-4k": {"context": 4096, "max_tokens": 4096},
            "doubao-pro-32k": {"context": 32768, "max_tokens": 4096},
        },
    },
    "ernie": {
        "name": "Baidu ERNIE",
        "description": "Baidu ERNIE (Wenxin Yiyan) models",
        "base_url": "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat",
        "auth_type": "api_key_secret",
        "default_model": "ernie-bot-turbo",
        "models": {
            "ernie-bot-turbo": {"context": 8192, "max_tokens": 1024},
            "ernie-bot": {"context": 8192, "max_tokens": 1024},
            "ernie-bot-4": {"context": 8192, "max_tokens": 1024},
        },
    },
    "openai": {
        "name": "OpenAI",
        "description": "OpenAI GPT models",
        "base_url": "https://api.openai.com/v1",
        "auth_type": "api_key",
        "default_model": "gpt-3.5-turbo",
        "models": {
            "gpt-3.5-turbo": {"context": 16385, "max_tokens": 4096},
            "gpt-4": {"context": 8192, "max_tokens": 4096},
            "gpt-4-turbo-preview": {"context": 128000, "max_tokens": 4096},
            "gpt-4o": {"context": 128000, "max_tokens": 4096},
        },
    },
    "claude": {
        "name": "Anthropic Claude",
        "description": "Anthropic Claude models",
        "base_url": "https://api.anthropic.com",
        "auth_type": "api_key",
        "default_model": "claude-3-haiku-20240307",
        "models": {
            "claude-3-haiku-20240307": {"context": 200000, "max_tokens": 4096},
            "claude-3-sonnet-20240229": {"context": 200000, "max_tokens": 4096},
            "claude-3-opus-20240229": {"context": 200000, "max_tokens": 4096},
        },
    },
}


class ModelProviderFactory:
    """Builds providers by id and answers catalog questions.

    Usage::

        factory = ModelProviderFactory()
        factory.supported_providers()          # ['qwen', 'deepseek', ...]
        provider = factory.create("ernie", {"api_key": "...", "secret_key": "..."})
        response = await provider.complete("Hello")

    *http_transport* is handed to providers that talk HTTP directly.
    """

    def __init__(self, *, http_transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._http_transport = http_transport

    def create(
        self,
        provider_id: str,
        config: ProviderConfig | dict[str, Any] | None = None,
    ) -> BaseProvider:
        """Return a ready provider for *provider_id*.

        Raises:
            InvalidArgumentError: *provider_id* is not supported.
            ConfigurationError: The config is malformed or lacks a required credential.
        """
        info = self._entry(provider_id)
        cfg = _coerce_config(config)
        missing = self.missing_credentials(provider_id, cfg)
        if missing:
            msg = f"Provider '{provider_id}' requires: {', '.join(missing)}"
            raise ConfigurationError(msg, data={"provider": provider_id, "missing": missing})

        entry = {**copy.deepcopy(info), "id": provider_id}
        provider: BaseProvider
        if provider_id == "ernie":
            provider = ErnieProvider(provider_id, cfg, entry, transport=self._http_transport)
        else:
            provider = LiteLLMProvider(provider_id, cfg, entry)

        logger.info(
            "Created model provider %s (%s) with %s",
            provider_id,
            type(provider).__name__,
            cfg.masked(),
        )
        return provider

    # ------------------------------------------------------------------
    # Metadata (no credentials, no network)
    # ------------------------------------------------------------------

    def supported_providers(self) -> list[str]:
        return list(PROVIDERS)

    def is_supported(self, provider_id: str) -> bool:
        return provider_id in PROVIDERS

    def provider_info(self, provider_id: str) -> dict[str, Any]:
        """Name, description, base URL, auth type, default model and models."""
        return {"id": provider_id, **copy.deepcopy(self._entry(provider_id))}

    def all_providers_info(self) -> dict[str, dict[str, Any]]:
        return {provider_id: self.provider_info(provider_id) for provider_id in PROVIDERS}

    def provider_models(self, provider_id: str) -> dict[str, dict[str, int]]:
        return copy.deepcopy(self._entry(provider_id)["models"])

    def default_model(self, provider_id: str) -> str:
        return str(self._entry(provider_id)["default_model"])

    def find_provider_by_model(self, model: str) -> str | None:
        for provider_id, info in PROVIDERS.items():
            if model in info["models"]:
                return provider_id
        return None

    def model_info(self, model: str) -> dict[str, Any] | None:
        """Limits for *model* plus the owning provider, or ``None``."""
        provider_id = self.find_provider_by_model(model)
        if provider_id is None:
            return None
        return {**PROVIDERS[provider_id]["models"][model], "provider": provider_id}

    def required_credentials(self, provider_id: str) -> tuple[str, ...]:
        return CREDENTIAL_RULES[self._entry(provider_id)["auth_type"]]

    def missing_credentials(self, provider_id: str, config: ProviderConfig) -> list[str]:
        missing: list[str] = []
        for key in self.required_credentials(provider_id):
            secret = getattr(config, key)
            if secret is None or not secret.get_secret_value():
                missing.append(key)
        return missing

    def validate_config(
        self,
        provider_id: str,
        config: ProviderConfig | dict[str, Any] | None = None,
    ) -> list[str]:
        """Return human-readable problems with *config*; empty when valid."""
        if provider_id not in PROVIDERS:
            return [f"Unsupported provider: {provider_id}"]
        try:
            cfg = _coerce_config(config)
        except ConfigurationError as exc:
            return [exc.message]

        errors = [f"{key} is required" for key in self.missing_credentials(provider_id, cfg)]
        models = PROVIDERS[provider_id]["models"]
        if cfg.model and cfg.model not in models:
            errors.append(f"Unsupported model: {cfg.model}. Available: {', '.join(models)}")
        return errors

    def _entry(self, provider_id: str) -> dict[str, Any]:
        info = PROVIDERS.get(provider_id)
        if info is None:
            msg = f"Unsupported model provider: {provider_id}"
            raise InvalidArgumentError(
                msg,
                data={"provider": provider_id, "supported": list(PROVIDERS)},
            )
        return info


def _coerce_config(config: ProviderConfig | dict[str, Any] | None) -> ProviderConfig:
    if isinstance(config, ProviderConfig):
        return config
    try:
        return ProviderConfig.model_validate(config or {})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid provider config: {exc.error_count()} error(s)") from exc
