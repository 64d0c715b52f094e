"""Tests for ErnieProvider against a mocked HTTP transport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from toolwire.protocol.errors import ProviderError
from toolwire.providers.base import ProviderConfig
from toolwire.providers.ernie import TOKEN_URL, ErnieProvider
from toolwire.providers.factory import PROVIDERS


class FakeErnie:
    """Records requests and answers the token and chat endpoints."""

    def __init__(
        self,
        *,
        token_body: dict[str, Any] | None = None,
        chat_body: dict[str, Any] | None = None,
        chat_status: int = 200,
    ) -> None:
        self.token_body = token_body or {"access_token": "tok-1", "expires_in": 2592000}
        self.chat_body = chat_body or {
            "id": "as-1",
            "result": "你好",
            "is_truncated": False,
            "usage": {"prompt_tokens": 3, "completion_tokens": 5, "total_tokens": 8},
        }
        self.chat_status = chat_status
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url).startswith(TOKEN_URL):
            return httpx.Response(200, json=self.token_body)
        return httpx.Response(self.chat_status, json=self.chat_body)

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url).startswith(TOKEN_URL)]

    @property
    def chat_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if not str(r.url).startswith(TOKEN_URL)]


def _provider(fake: FakeErnie, **config: Any) -> ErnieProvider:
    return ErnieProvider(
        "ernie",
        ProviderConfig.model_validate({"api_key": "ak-123456789", "secret_key": "sk-987654321", **config}),
        PROVIDERS["ernie"],
        transport=httpx.MockTransport(fake),
    )


class TestErnieComplete:
    async def test_token_then_chat(self) -> None:
        fake = FakeErnie()
        response = await _provider(fake).complete("Hi")

        assert response.content == "你好"
        assert response.finish_reason == "stop"
        assert response.total_tokens == 8

        [token_request] = fake.token_requests
        form = dict(httpx.QueryParams(token_request.content.decode()))
        assert form == {
            "grant_type": "client_credentials",
            "client_id": "ak-123456789",
            "client_secret": "sk-987654321",
        }

        [chat_request] = fake.chat_requests
        assert chat_request.url.path.endswith("/wenxinworkshop/chat/eb-instant")
        assert chat_request.url.params["access_token"] == "tok-1"
        assert json.loads(chat_request.content)["messages"] == [{"role": "user", "content": "Hi"}]

    async def test_token_cached_between_calls(self) -> None:
        fake = FakeErnie()
        provider = _provider(fake)
        await provider.complete("one")
        await provider.complete("two")
        assert len(fake.token_requests) == 1
        assert len(fake.chat_requests) == 2
        assert provider.stats()["token_refreshes"] == 1

    async def test_token_near_expiry_refreshed(self) -> None:
        fake = FakeErnie(token_body={"access_token": "short", "expires_in": 200})
        provider = _provider(fake)
        await provider.complete("one")
        await provider.complete("two")
        assert len(fake.token_requests) == 2

    async def test_model_selects_endpoint(self) -> None:
        fake = FakeErnie()
        await _provider(fake, model="ernie-bot-4").complete("Hi")
        assert fake.chat_requests[0].url.path.endswith("/completions_pro")

    async def test_system_message_and_limits(self) -> None:
        fake = FakeErnie()
        await _provider(fake, max_tokens=100).chat(
            [
                {"role": "system", "content": "Be brief."},
                {"role": "user", "content": "Hi"},
            ]
        )
        payload = json.loads(fake.chat_requests[0].content)
        assert payload["system"] == "Be brief."
        assert payload["messages"] == [{"role": "user", "content": "Hi"}]
        assert payload["max_output_tokens"] == 100
        assert "max_tokens" not in payload

    async def test_truncated_result(self) -> None:
        fake = FakeErnie(chat_body={"result": "partial", "is_truncated": True})
        response = await _provider(fake).complete("Hi")
        assert response.truncated


class TestErnieFailures:
    async def test_api_error_code(self) -> None:
        fake = FakeErnie(chat_body={"error_code": 17, "error_msg": "Open api daily request limit reached"})
        with pytest.raises(ProviderError, match="daily request limit"):
            await _provider(fake).complete("Hi")

    async def test_http_status(self) -> None:
        fake = FakeErnie(chat_status=500, chat_body={"oops": True})
        with pytest.raises(ProviderError, match="HTTP 500"):
            await _provider(fake).complete("Hi")

    async def test_missing_access_token(self) -> None:
        fake = FakeErnie(token_body={"error": "invalid_client", "error_description": "unknown client id"})
        with pytest.raises(ProviderError, match="unknown client id"):
            await _provider(fake).complete("Hi")
        assert fake.chat_requests == []

    async def test_network_failure(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = ErnieProvider(
            "ernie",
            ProviderConfig(api_key="ak-123456789", secret_key="sk-987654321"),
            PROVIDERS["ernie"],
            transport=httpx.MockTransport(refuse),
        )
        with pytest.raises(ProviderError, match="Token refresh failed"):
            await provider.complete("Hi")
        assert provider.stats()["errors"] == 1
