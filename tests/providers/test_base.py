"""Tests for the provider config, response model and secret masking."""

from __future__ import annotations

import pytest
from pydantic import SecretStr, ValidationError

from toolwire.providers.base import CompletionResponse, ProviderConfig, mask_secret


class TestMaskSecret:
    def test_unset(self) -> None:
        assert mask_secret(None) == "<unset>"

    def test_short_secret_fully_hidden(self) -> None:
        assert mask_secret("abc") == "****"

    def test_long_secret_keeps_edges(self) -> None:
        assert mask_secret(SecretStr("sk-1234567890abcdef")) == "sk-1…cdef"


class TestProviderConfig:
    def test_secrets_hidden_in_repr(self) -> None:
        config = ProviderConfig(api_key="sk-verysecretvalue")
        assert "verysecret" not in repr(config)
        assert config.masked()["api_key"] == "sk-v…alue"
        assert config.masked()["secret_key"] == "<unset>"

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ProviderConfig(timeout=0)


class TestCompletionResponse:
    def test_truncated(self) -> None:
        assert CompletionResponse(finish_reason="length").truncated
        assert not CompletionResponse(finish_reason="stop").truncated

    def test_total_tokens_defaults_to_zero(self) -> None:
        assert CompletionResponse().total_tokens == 0
        assert CompletionResponse(usage={"total_tokens": 12}).total_tokens == 12
