"""Message codec — raw bytes to JSON-RPC envelopes and back.

Decoding is lenient about a missing ``jsonrpc`` member but strict about
everything else; failures are raised as :class:`CodecError` subclasses that
carry whatever ``id`` could be recovered so the dispatcher can still answer.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from toolwire.protocol.errors import (
    CodecError,
    InvalidRequestError,
    ParseError,
    ToolwireError,
)
from toolwire.protocol.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    RequestId,
)


def decode(raw: bytes | str) -> JsonRpcRequest:
    """Parse one framed message into a :class:`JsonRpcRequest`.

    Raises:
        ParseError: The payload is not valid UTF-8 JSON.
        InvalidRequestError: The payload is JSON but not a request envelope.
    """
    try:
        data: Any = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ParseError("Parse error", data={"reason": str(exc)}) from exc

    if not isinstance(data, dict):
        raise InvalidRequestError("Request must be a JSON object")

    request_id = _recover_id(data)
    notification = "id" not in data

    def invalid(reason: str) -> InvalidRequestError:
        return InvalidRequestError(
            f"Invalid request: {reason}",
            request_id=request_id,
            notification=notification,
        )

    if data.get("jsonrpc", "2.0") != "2.0":
        raise invalid("jsonrpc must be '2.0'")
    if "id" in data and request_id is None and data["id"] is not None:
        raise invalid("id must be a string or an integer")

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise invalid("method must be a non-empty string")

    params = data.get("params")
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise invalid("params must be an object")

    fields: dict[str, Any] = {"jsonrpc": "2.0", "method": method, "params": params}
    if not notification:
        fields["id"] = request_id
    try:
        return JsonRpcRequest.model_validate(fields)
    except ValidationError as exc:
        raise invalid(str(exc)) from exc


def encode(message: JsonRpcResponse | JsonRpcNotification) -> bytes:
    """Serialise a response or notification as compact single-line UTF-8 JSON."""
    return json.dumps(
        message.to_wire(),
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    ).encode("utf-8")


def error_response(request_id: RequestId | None, exc: ToolwireError) -> JsonRpcResponse:
    """Build the error response for *exc*, correlated to *request_id*."""
    return JsonRpcResponse(
        id=request_id,
        error=JsonRpcError(code=exc.code, message=exc.message, data=exc.error_data()),
    )


def codec_error_response(exc: CodecError) -> JsonRpcResponse | None:
    """Return the response owed for a decode failure, or ``None`` to drop it.

    Messages that were recognisably notifications are never answered.
    """
    if exc.notification and not isinstance(exc, ParseError):
        return None
    return error_response(exc.request_id, exc)


def _recover_id(data: dict[str, Any]) -> RequestId | None:
    raw_id = data.get("id")
    if isinstance(raw_id, bool):
        return None
    if isinstance(raw_id, (int, str)):
        return raw_id
    return None
