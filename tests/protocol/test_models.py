"""Tests for wire models and the error taxonomy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from toolwire.protocol.errors import (
    ArgumentValidationError,
    ConfigurationError,
    HandlerError,
    HandlerTimeoutError,
    InvalidArgumentError,
    MessageTooLargeError,
    MethodNotFoundError,
    PromptNotFoundError,
    ProviderError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from toolwire.protocol.models import JsonRpcError, JsonRpcResponse, ToolInfo


class TestJsonRpcResponse:
    def test_rejects_result_and_error(self) -> None:
        with pytest.raises(ValidationError):
            JsonRpcResponse(id=1, result={}, error=JsonRpcError(code=-1, message="x"))

    def test_error_wire_omits_result(self) -> None:
        wire = JsonRpcResponse(id=1, error=JsonRpcError(code=-32601, message="m")).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": "m"}}


class TestToolInfo:
    def test_alias_dump(self) -> None:
        info = ToolInfo(name="t", input_schema={"type": "object"})
        assert info.model_dump(by_alias=True)["inputSchema"] == {"type": "object"}

    def test_populate_by_alias(self) -> None:
        assert ToolInfo.model_validate({"name": "t", "inputSchema": {"a": 1}}).input_schema == {"a": 1}


class TestErrorTaxonomy:
    @pytest.mark.parametrize(
        ("exc", "code", "retryable"),
        [
            (MethodNotFoundError("x"), -32601, False),
            (ArgumentValidationError("bad"), -32602, False),
            (InvalidArgumentError("bad"), -32602, False),
            (ToolNotFoundError("t"), -32004, False),
            (ConfigurationError("dup"), -32003, False),
            (HandlerTimeoutError("Tool 't'", 1.0), -32001, True),
            (ProviderError("qwen", "boom"), -32002, True),
            (HandlerError("Tool 't'", "boom"), -32000, False),
            (MessageTooLargeError(10), -32600, False),
        ],
    )
    def test_codes(self, exc: Exception, code: int, retryable: bool) -> None:
        assert exc.code == code  # type: ignore[attr-defined]
        assert exc.error_data()["retryable"] is retryable  # type: ignore[attr-defined]

    def test_not_found_context_keys(self) -> None:
        assert ToolNotFoundError("a").error_data()["tool"] == "a"
        assert ResourceNotFoundError("x://y").uri == "x://y"
        assert PromptNotFoundError("p").error_data()["prompt"] == "p"

    def test_timeout_message(self) -> None:
        exc = HandlerTimeoutError("Tool 'slow'", 0.5)
        assert str(exc) == "Tool 'slow' timed out after 0.5s"
        assert exc.error_data()["timeout"] == 0.5

    def test_provider_error_keeps_reason(self) -> None:
        exc = ProviderError("ernie", "HTTP 500")
        assert "Completion failed for provider ernie" in exc.message
        assert exc.error_data() == {"provider": "ernie", "reason": "HTTP 500", "retryable": True}

    def test_argument_validation_field(self) -> None:
        exc = ArgumentValidationError("missing required field 'text'", field="text")
        assert exc.message.startswith("Invalid arguments:")
        assert exc.error_data()["field"] == "text"
