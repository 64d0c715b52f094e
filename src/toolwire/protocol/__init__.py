"""Protocol layer — JSON-RPC envelopes, codec, transports and errors."""

from toolwire.protocol.errors import (
    ArgumentValidationError,
    CodecError,
    ConfigurationError,
    HandlerError,
    HandlerTimeoutError,
    InvalidArgumentError,
    InvalidRequestError,
    MethodNotFoundError,
    NotFoundError,
    ParseError,
    PromptNotFoundError,
    ProviderError,
    ResourceNotFoundError,
    ToolNotFoundError,
    ToolwireError,
    TransportError,
)
from toolwire.protocol.models import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)
from toolwire.protocol.transport import StdioTransport, Transport

__all__ = [
    "ArgumentValidationError",
    "CodecError",
    "ConfigurationError",
    "HandlerError",
    "HandlerTimeoutError",
    "InvalidArgumentError",
    "InvalidRequestError",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MethodNotFoundError",
    "NotFoundError",
    "ParseError",
    "PromptNotFoundError",
    "ProviderError",
    "ResourceNotFoundError",
    "StdioTransport",
    "ToolNotFoundError",
    "ToolwireError",
    "Transport",
    "TransportError",
]
