"""Error taxonomy shared by the codec, registries, dispatcher and providers.

Every error that can reach the peer carries a stable JSON-RPC ``code`` and a
``retryable`` flag, so clients can tell transient failures (timeouts, provider
outages) from permanent ones (unknown names, bad arguments, bad setup).
"""

from __future__ import annotations

from typing import Any

# JSON-RPC 2.0 standard codes.
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Server-defined codes (reserved range -32000..-32099).
HANDLER_ERROR = -32000
HANDLER_TIMEOUT = -32001
PROVIDER_ERROR = -32002
CONFIGURATION_ERROR = -32003
NOT_FOUND = -32004


class ToolwireError(Exception):
    """Base error for everything the server reports back to the peer."""

    code: int = INTERNAL_ERROR
    retryable: bool = False

    def __init__(self, message: str, *, data: dict[str, Any] | None = None) -> None:
        self.message = message
        self.data: dict[str, Any] = dict(data or {})
        super().__init__(message)

    def error_data(self) -> dict[str, Any]:
        """Return the ``error.data`` payload sent on the wire."""
        return {**self.data, "retryable": self.retryable}


class InternalError(ToolwireError):
    """An unexpected failure inside the server itself."""

    code = INTERNAL_ERROR


# ---------------------------------------------------------------------------
# Codec errors
# ---------------------------------------------------------------------------


class CodecError(ToolwireError):
    """An inbound message could not be turned into a request.

    ``request_id`` is the correlator recovered from the raw message, if any.
    ``notification`` is true when the raw message had no ``id`` member, in
    which case no response may be written.
    """

    def __init__(
        self,
        message: str,
        *,
        request_id: int | str | None = None,
        notification: bool = False,
        data: dict[str, Any] | None = None,
    ) -> None:
        self.request_id = request_id
        self.notification = notification
        super().__init__(message, data=data)


class ParseError(CodecError):
    """The message is not valid JSON."""

    code = PARSE_ERROR


class InvalidRequestError(CodecError):
    """The message is JSON but not a valid JSON-RPC request."""

    code = INVALID_REQUEST


class MessageTooLargeError(InvalidRequestError):
    """A framed message exceeded the configured size limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Message exceeds {limit} bytes", data={"limit": limit})


# ---------------------------------------------------------------------------
# Dispatch errors
# ---------------------------------------------------------------------------


class MethodNotFoundError(ToolwireError):
    """The request named a protocol method the server does not implement."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}", data={"method": method})


class ArgumentValidationError(ToolwireError):
    """Supplied arguments do not satisfy the declared schema."""

    code = INVALID_PARAMS

    def __init__(self, detail: str, *, field: str | None = None) -> None:
        self.detail = detail
        self.field = field
        data: dict[str, Any] = {"reason": detail}
        if field is not None:
            data["field"] = field
        super().__init__(f"Invalid arguments: {detail}", data=data)


class InvalidArgumentError(ToolwireError):
    """An argument value is outside the accepted set (e.g. unknown provider)."""

    code = INVALID_PARAMS


class NotFoundError(ToolwireError):
    """A named capability does not exist in its registry."""

    code = NOT_FOUND

    kind: str = "Capability"
    data_key: str = "key"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"{self.kind} not found: {key}", data={self.data_key: key})


class ToolNotFoundError(NotFoundError):
    """Requested tool does not exist in the tool registry."""

    kind = "Tool"
    data_key = "tool"

    @property
    def name(self) -> str:
        return self.key


class ResourceNotFoundError(NotFoundError):
    """No resource URI or template matches the requested URI."""

    kind = "Resource"
    data_key = "uri"

    @property
    def uri(self) -> str:
        return self.key


class PromptNotFoundError(NotFoundError):
    """Requested prompt does not exist in the prompt registry."""

    kind = "Prompt"
    data_key = "prompt"

    @property
    def name(self) -> str:
        return self.key


class ConfigurationError(ToolwireError):
    """Bad or missing setup: duplicate registration, missing credentials, bad config file."""

    code = CONFIGURATION_ERROR


class HandlerTimeoutError(ToolwireError):
    """A handler exceeded the configured per-call timeout and was abandoned."""

    code = HANDLER_TIMEOUT
    retryable = True

    def __init__(self, target: str, timeout: float) -> None:
        self.target = target
        self.timeout = timeout
        super().__init__(
            f"{target} timed out after {timeout}s",
            data={"target": target, "timeout": timeout},
        )


class HandlerError(ToolwireError):
    """A handler raised a domain failure."""

    code = HANDLER_ERROR

    def __init__(self, target: str, detail: str = "", *, exc_type: str | None = None) -> None:
        self.target = target
        self.detail = detail
        data: dict[str, Any] = {"target": target, "reason": detail}
        if exc_type is not None:
            data["exc_type"] = exc_type
        super().__init__(f"{target} failed" + (f": {detail}" if detail else ""), data=data)


class ProviderError(ToolwireError):
    """A model backend call failed; the underlying reason is kept as context."""

    code = PROVIDER_ERROR
    retryable = True

    def __init__(self, provider: str, reason: str = "") -> None:
        self.provider = provider
        self.reason = reason
        super().__init__(
            f"Completion failed for provider {provider}" + (f": {reason}" if reason else ""),
            data={"provider": provider, "reason": reason},
        )


class TransportError(ToolwireError):
    """The byte stream is broken. Fatal: ends the receive loop."""
