"""Provider contract — config bag, completion response, shared call wrapper."""

from __future__ import annotations

import logging
import time
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from toolwire.protocol.errors import ProviderError
from toolwire.utils.telemetry import ATTR_MODEL, ATTR_PROVIDER, ATTR_TOKENS_TOTAL, get_tracer

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

_TRUNCATED_REASONS = frozenset({"length", "max_tokens", "truncated"})


def mask_secret(value: SecretStr | str | None) -> str:
    """Render a secret for logs: ``sk-1…cdef`` for long values, ``****`` otherwise."""
    if value is None:
        return "<unset>"
    raw = value.get_secret_value() if isinstance(value, SecretStr) else value
    if len(raw) <= 8:
        return "****"
    return f"{raw[:4]}…{raw[-4:]}"


class ProviderConfig(BaseModel):
    """Per-invocation credentials and overrides for one provider.

    ``secret_key`` is only consulted by providers whose auth rule needs it.
    """

    model_config = ConfigDict(frozen=True)

    api_key: SecretStr | None = None
    secret_key: SecretStr | None = None
    model: str | None = None
    base_url: str | None = None
    timeout: float = Field(default=30.0, gt=0)
    temperature: float | None = None
    max_tokens: int | None = Field(default=None, gt=0)

    def masked(self) -> dict[str, Any]:
        """Loggable view with secrets masked."""
        return {
            "api_key": mask_secret(self.api_key),
            "secret_key": mask_secret(self.secret_key),
            "model": self.model,
            "base_url": self.base_url,
            "timeout": self.timeout,
        }


class CompletionResponse(BaseModel):
    """Provider-neutral completion result."""

    id: str = ""
    model: str = ""
    content: str = ""
    role: str = "assistant"
    finish_reason: str | None = None
    usage: dict[str, int] = Field(default_factory=lambda: dict[str, int]())
    created: int = Field(default_factory=lambda: int(time.time()))
    metadata: dict[str, Any] = Field(default_factory=lambda: dict[str, Any]())

    @property
    def truncated(self) -> bool:
        return self.finish_reason in _TRUNCATED_REASONS

    @property
    def total_tokens(self) -> int:
        return int(self.usage.get("total_tokens", 0))


@runtime_checkable
class ModelProvider(Protocol):
    """What the rest of the system may rely on from any provider."""

    provider_id: str
    model: str

    async def complete(self, message: str, **options: Any) -> CompletionResponse: ...

    async def chat(self, messages: list[dict[str, Any]], **options: Any) -> CompletionResponse: ...

    def stats(self) -> dict[str, Any]: ...


class BaseProvider:
    """Shared plumbing: model defaulting, stats, tracing and error wrapping.

    Subclasses implement :meth:`_chat`; anything it raises reaches callers
    as :class:`ProviderError`.
    """

    def __init__(self, provider_id: str, config: ProviderConfig, info: dict[str, Any]) -> None:
        self.provider_id = provider_id
        self.config = config
        self.info = info
        self.model: str = config.model or info["default_model"]
        self.base_url: str = config.base_url or info["base_url"]
        self._stats: dict[str, Any] = {
            "requests_sent": 0,
            "errors": 0,
            "tokens_used": 0,
            "last_request": None,
        }

    async def complete(self, message: str, **options: Any) -> CompletionResponse:
        """Complete a single user *message*."""
        return await self.chat([{"role": "user", "content": message}], **options)

    async def chat(self, messages: list[dict[str, Any]], **options: Any) -> CompletionResponse:
        """Complete a chat *messages* sequence.

        Raises:
            ProviderError: The backend call failed for any reason.
        """
        model = options.pop("model", None) or self.model
        with _tracer.start_as_current_span("provider.complete") as span:
            span.set_attribute(ATTR_PROVIDER, self.provider_id)
            span.set_attribute(ATTR_MODEL, model)
            self._stats["requests_sent"] += 1
            self._stats["last_request"] = int(time.time())
            try:
                response = await self._chat(model, messages, options)
            except ProviderError:
                self._stats["errors"] += 1
                raise
            except Exception as exc:
                self._stats["errors"] += 1
                logger.warning("Provider %s (%s) failed: %s", self.provider_id, model, exc)
                raise ProviderError(self.provider_id, str(exc) or type(exc).__name__) from exc

            self._stats["tokens_used"] += response.total_tokens
            span.set_attribute(ATTR_TOKENS_TOTAL, response.total_tokens)
            return response

    async def _chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any],
    ) -> CompletionResponse:
        raise NotImplementedError

    def model_info(self, model: str | None = None) -> dict[str, Any]:
        """Context and output limits for *model* (default: the configured one)."""
        return dict(self.info["models"].get(model or self.model, {}))

    def stats(self) -> dict[str, Any]:
        return dict(self._stats)

    def _generation_options(self, options: dict[str, Any]) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        if self.config.temperature is not None:
            merged["temperature"] = self.config.temperature
        if self.config.max_tokens is not None:
            merged["max_tokens"] = self.config.max_tokens
        merged.update({k: v for k, v in options.items() if v is not None})
        return merged

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider={self.provider_id!r}, model={self.model!r})"
