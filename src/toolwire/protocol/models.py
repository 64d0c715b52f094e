"""Wire models — JSON-RPC 2.0 envelopes and MCP capability payloads.

Implements the message format used by the Model Context Protocol for the
``tools/*``, ``resources/*`` and ``prompts/*`` method families.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------

RequestId = int | str


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request, or a notification when ``id`` was not supplied."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    id: RequestId | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        """True when the message carried no ``id`` member at all."""
        return "id" not in self.model_fields_set


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response carrying exactly one of ``result`` / ``error``."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId | None = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        if self.result is not None and self.error is not None:
            msg = "response cannot carry both result and error"
            raise ValueError(msg)
        return self

    def to_wire(self) -> dict[str, Any]:
        """Dump for encoding, omitting whichever of result/error is unused."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload


class JsonRpcNotification(BaseModel):
    """A server-to-peer notification (no ``id``, never answered)."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class TextContent(BaseModel):
    """A text content part, as used by ``tools/call`` and ``prompts/get``."""

    type: Literal["text"] = "text"
    text: str


class ToolInfo(BaseModel):
    """A tool as listed by ``tools/list``."""

    model_config = {"populate_by_name": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


class ResourceInfo(BaseModel):
    """A resource as listed by ``resources/list``."""

    model_config = {"populate_by_name": True}

    uri: str
    name: str
    description: str = ""
    mime_type: str = Field(default="text/plain", alias="mimeType")


class PromptArgument(BaseModel):
    """One declared argument of a prompt template."""

    name: str
    description: str = ""
    required: bool = False


class PromptInfo(BaseModel):
    """A prompt as listed by ``prompts/list``."""

    name: str
    description: str = ""
    arguments: list[PromptArgument] = Field(default_factory=list)


class PromptMessage(BaseModel):
    """One message produced by a prompt handler."""

    role: Literal["user", "assistant", "system"]
    content: TextContent | list[TextContent] | dict[str, Any] | list[dict[str, Any]]
