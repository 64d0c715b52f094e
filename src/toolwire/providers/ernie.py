"""Baidu ERNIE provider — OAuth client-credentials token plus Wenxin chat API.

ERNIE needs both ``api_key`` and ``secret_key``: they are exchanged for an
access token, which is cached until five minutes before it expires.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from toolwire.protocol.errors import ProviderError
from toolwire.providers.base import BaseProvider, CompletionResponse, ProviderConfig

logger = logging.getLogger(__name__)

TOKEN_URL = "https://aip.baidubce.com/oauth/2.0/token"
TOKEN_REFRESH_MARGIN = 300
DEFAULT_TOKEN_TTL = 30 * 24 * 3600

MODEL_ENDPOINTS: dict[str, str] = {
    "ernie-bot-turbo": "eb-instant",
    "ernie-bot": "completions",
    "ernie-bot-4": "completions_pro",
    "ernie-3.5": "completions",
}


class ErnieProvider(BaseProvider):
    """Chat completion against Baidu's Wenxin workshop endpoints.

    *transport* replaces the HTTP transport (e.g. ``httpx.MockTransport``).
    """

    def __init__(
        self,
        provider_id: str,
        config: ProviderConfig,
        info: dict[str, Any],
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(provider_id, config, info)
        self._transport = transport
        self._access_token: str | None = None
        self._token_expiry = 0.0
        self._token_lock = asyncio.Lock()
        self._stats["token_refreshes"] = 0

    def endpoint(self, model: str | None = None) -> str:
        return MODEL_ENDPOINTS.get(model or self.model, MODEL_ENDPOINTS["ernie-bot-turbo"])

    async def _chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        options: dict[str, Any],
    ) -> CompletionResponse:
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
            token = await self._ensure_token(client)
            url = f"{self.base_url.rstrip('/')}/{self.endpoint(model)}"
            payload = self._build_request(messages, options)
            try:
                response = await client.post(url, params={"access_token": token}, json=payload)
            except httpx.HTTPError as exc:
                raise ProviderError(self.provider_id, f"HTTP request failed: {exc}") from exc

        if response.status_code != 200:
            raise ProviderError(self.provider_id, f"HTTP {response.status_code}: {response.text[:200]}")
        data = response.json()
        if "error_code" in data:
            raise ProviderError(
                self.provider_id,
                f"ERNIE API error {data['error_code']}: {data.get('error_msg', 'unknown error')}",
            )
        return self._parse_response(data, model)

    async def _ensure_token(self, client: httpx.AsyncClient) -> str:
        async with self._token_lock:
            if self._access_token and time.time() < self._token_expiry - TOKEN_REFRESH_MARGIN:
                return self._access_token
            return await self._refresh_token(client)

    async def _refresh_token(self, client: httpx.AsyncClient) -> str:
        api_key = self.config.api_key.get_secret_value() if self.config.api_key else ""
        secret_key = self.config.secret_key.get_secret_value() if self.config.secret_key else ""
        try:
            response = await client.post(
                TOKEN_URL,
                data={
                    "grant_type": "client_credentials",
                    "client_id": api_key,
                    "client_secret": secret_key,
                },
            )
        except httpx.HTTPError as exc:
            raise ProviderError(self.provider_id, f"Token refresh failed: {exc}") from exc

        if response.status_code != 200:
            raise ProviderError(self.provider_id, f"Token refresh failed with HTTP {response.status_code}")
        token_data = response.json()
        token = token_data.get("access_token")
        if not token:
            reason = token_data.get("error_description", "unknown error")
            raise ProviderError(self.provider_id, f"No access token in response: {reason}")

        self._access_token = str(token)
        self._token_expiry = time.time() + float(token_data.get("expires_in", DEFAULT_TOKEN_TTL))
        self._stats["token_refreshes"] += 1
        logger.info("ERNIE access token refreshed (expires_in=%s)", token_data.get("expires_in", "unknown"))
        return self._access_token

    def _build_request(self, messages: list[dict[str, Any]], options: dict[str, Any]) -> dict[str, Any]:
        # System text goes in its own field; the message list is user/assistant only.
        system = "\n".join(str(m.get("content", "")) for m in messages if m.get("role") == "system")
        payload: dict[str, Any] = {
            "messages": [m for m in messages if m.get("role") != "system"],
            "stream": False,
        }
        if system:
            payload["system"] = system
        generation = self._generation_options(options)
        if "max_tokens" in generation:
            payload["max_output_tokens"] = generation.pop("max_tokens")
        payload.update(generation)
        return payload

    def _parse_response(self, data: dict[str, Any], model: str) -> CompletionResponse:
        raw_usage = data.get("usage") or {}
        usage = {
            "prompt_tokens": int(raw_usage.get("prompt_tokens", 0)),
            "completion_tokens": int(raw_usage.get("completion_tokens", 0)),
            "total_tokens": int(raw_usage.get("total_tokens", 0)),
        }
        return CompletionResponse(
            id=str(data.get("id") or f"ernie_{int(time.time() * 1000)}"),
            model=model,
            content=str(data.get("result", "")),
            finish_reason="length" if data.get("is_truncated") else "stop",
            usage=usage,
            created=int(data.get("created") or time.time()),
            metadata={"provider": self.provider_id},
        )
