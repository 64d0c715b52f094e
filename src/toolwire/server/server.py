"""McpServer — owns the registries and the transport, runs the receive loop.

One request is decoded, validated, dispatched and answered before the next is
read.  Handlers run under the per-call timeout: synchronous ones each on
their own daemon thread, coroutine functions as tasks.  A handler that overruns
is abandoned rather than cancelled; whatever it eventually produces is logged
and dropped.

Usage::

    server = McpServer(ServerConfig(name="demo", timeout=10))
    server.register_tool(
        "echo",
        lambda args: args["text"],
        {"properties": {"text": {"type": "string"}}, "required": ["text"]},
    )
    await server.start()  # serves stdio until EOF or stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import json
import logging
import threading
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum
from typing import Any

from opentelemetry import trace
from pydantic import ValidationError

from toolwire.protocol import codec
from toolwire.protocol.errors import (
    ArgumentValidationError,
    CodecError,
    ConfigurationError,
    HandlerError,
    HandlerTimeoutError,
    InternalError,
    MessageTooLargeError,
    MethodNotFoundError,
    ToolwireError,
    TransportError,
)
from toolwire.protocol.models import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    PromptArgument,
    PromptMessage,
    TextContent,
)
from toolwire.protocol.transport import StdioTransport, Transport
from toolwire.server.config import ServerConfig
from toolwire.server.registry import (
    PromptDefinition,
    PromptRegistry,
    ResourceDefinition,
    ResourceRegistry,
    ToolDefinition,
    ToolRegistry,
)
from toolwire.server.schema import validate_arguments
from toolwire.utils.telemetry import (
    ATTR_ERROR_CODE,
    ATTR_METHOD,
    ATTR_PROMPT_NAME,
    ATTR_REQUEST_ID,
    ATTR_RESOURCE_URI,
    ATTR_TIMED_OUT,
    ATTR_TOOL_NAME,
    get_tracer,
)

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

CAPABILITIES: dict[str, Any] = {
    "tools": {"listChanged": False},
    "resources": {"subscribe": False, "listChanged": False},
    "prompts": {"listChanged": False},
    "logging": {},
}


class ServerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


MethodHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class McpServer:
    """JSON-RPC 2.0 / MCP server over a line-framed transport.

    Register capabilities first, then ``await start()``.  Registration is
    refused once the server is running.  ``stop()`` may be called from any
    thread and any number of times.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        transport: Transport | None = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.tools = ToolRegistry()
        self.resources = ResourceRegistry()
        self.prompts = PromptRegistry()

        self._transport = transport
        self._state = ServerState.IDLE
        self._state_lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._abandoned: set[asyncio.Future[Any]] = set()
        self._client_info: dict[str, Any] = {}
        self._initialized = False
        self._counters: dict[str, int] = {
            "requests": 0,
            "notifications": 0,
            "errors": 0,
            "timeouts": 0,
        }
        self._methods: dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "resources/list": self._resources_list,
            "resources/read": self._resources_read,
            "prompts/list": self._prompts_list,
            "prompts/get": self._prompts_get,
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_tool(
        self,
        name: str,
        handler: Callable[[dict[str, Any]], Any],
        input_schema: dict[str, Any] | None = None,
        description: str = "",
    ) -> McpServer:
        """Register a tool; returns ``self`` so calls can be chained."""
        definition = _build(
            ToolDefinition,
            name=name,
            handler=handler,
            input_schema=input_schema or {},
            description=description,
        )
        self.tools.register(definition)
        return self

    def register_resource(
        self,
        uri: str,
        handler: Callable[[str], Any],
        *,
        name: str = "",
        description: str = "",
        mime_type: str = "text/plain",
    ) -> McpServer:
        """Register a resource under an exact URI or a ``{var}`` template."""
        definition = _build(
            ResourceDefinition,
            uri=uri,
            handler=handler,
            name=name,
            description=description,
            mime_type=mime_type,
        )
        self.resources.register(definition)
        return self

    def register_prompt(
        self,
        name: str,
        handler: Callable[[dict[str, Any]], Any],
        arguments: Sequence[PromptArgument | dict[str, Any]] = (),
        description: str = "",
    ) -> McpServer:
        """Register a prompt template with its ordered argument spec."""
        definition = _build(
            PromptDefinition,
            name=name,
            handler=handler,
            arguments=list(arguments),
            description=description,
        )
        self.prompts.register(definition)
        return self

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> ServerState:
        return self._state

    async def start(self) -> None:
        """Serve until end-of-stream, ``stop()``, or a fatal transport error.

        Raises:
            ConfigurationError: The server is not idle.
            TransportError: The byte stream broke.
        """
        with self._state_lock:
            if self._state is not ServerState.IDLE:
                msg = f"Cannot start server in state '{self._state.value}'"
                raise ConfigurationError(msg)
            self._loop = asyncio.get_running_loop()
            self._stop_event = asyncio.Event()
            self._state = ServerState.RUNNING

        self.tools.freeze()
        self.resources.freeze()
        self.prompts.freeze()

        if self._transport is None:
            self._transport = StdioTransport(max_message_size=self.config.max_request_size)
        transport = self._transport

        logger.info(
            "Server '%s' %s running (%d tools, %d resources, %d prompts, timeout=%ss)",
            self.config.name,
            self.config.version,
            len(self.tools),
            len(self.resources),
            len(self.prompts),
            self.config.timeout,
        )
        try:
            await self._serve(transport)
        finally:
            with self._state_lock:
                self._state = ServerState.STOPPED
            await transport.close()
            logger.info("Server '%s' stopped: %s", self.config.name, self._counters)

    def stop(self) -> None:
        """Request shutdown; safe from any thread, idempotent.

        No new request begins after this call.  The in-flight one, if any,
        still gets its response.
        """
        with self._state_lock:
            if self._state is not ServerState.RUNNING:
                return
            self._state = ServerState.STOPPING
            loop, event = self._loop, self._stop_event

        logger.info("Stop requested for server '%s'", self.config.name)
        if loop is None or event is None:
            msg = "Server is running without an event loop"
            raise ConfigurationError(msg)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            event.set()
        else:
            loop.call_soon_threadsafe(event.set)

    async def _serve(self, transport: Transport) -> None:
        if self._stop_event is None:
            msg = "Receive loop entered outside start()"
            raise ConfigurationError(msg)
        stop_event = self._stop_event
        stop_wait = asyncio.ensure_future(stop_event.wait())
        try:
            while not stop_event.is_set():
                receive = asyncio.ensure_future(transport.receive())
                done, _ = await asyncio.wait({receive, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
                if receive not in done:
                    receive.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await receive
                    break

                try:
                    raw = receive.result()
                except MessageTooLargeError as exc:
                    logger.warning("Rejected inbound message: %s", exc.message)
                    await self._send(codec.error_response(None, exc))
                    continue

                if raw is None:
                    logger.info("End of input stream")
                    break
                if stop_event.is_set():
                    logger.info("Dropping message received after stop was requested")
                    break

                response = await self.handle_message(raw)
                if response is not None:
                    await self._send(response)
        finally:
            stop_wait.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_wait

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle_message(self, raw: bytes | str) -> JsonRpcResponse | None:
        """Decode one framed message and return the response owed, if any."""
        try:
            request = codec.decode(raw)
        except CodecError as exc:
            self._counters["errors"] += 1
            logger.warning("Rejected inbound message: %s", exc.message)
            return codec.codec_error_response(exc)

        if request.is_notification:
            self._handle_notification(request)
            return None
        return await self.handle_request(request)

    async def handle_request(self, request: JsonRpcRequest) -> JsonRpcResponse:
        """Route *request* to its protocol method; failures become error responses."""
        self._counters["requests"] += 1
        with _tracer.start_as_current_span("mcp.request") as span:
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_REQUEST_ID, str(request.id))
            try:
                method = self._methods.get(request.method)
                if method is None:
                    raise MethodNotFoundError(request.method)
                result = await method(request.params)
            except ToolwireError as exc:
                self._counters["errors"] += 1
                span.set_attribute(ATTR_ERROR_CODE, exc.code)
                logger.warning("%s (id=%s) failed: [%d] %s", request.method, request.id, exc.code, exc.message)
                return codec.error_response(request.id, exc)
            except Exception as exc:
                self._counters["errors"] += 1
                logger.exception("Unexpected error while handling %s (id=%s)", request.method, request.id)
                internal = InternalError("Internal error", data={"exc_type": type(exc).__name__})
                span.set_attribute(ATTR_ERROR_CODE, internal.code)
                return codec.error_response(request.id, internal)
        return JsonRpcResponse(id=request.id, result=result)

    def _handle_notification(self, request: JsonRpcRequest) -> None:
        self._counters["notifications"] += 1
        if request.method == "notifications/initialized":
            self._initialized = True
            logger.info("Client initialized")
        elif request.method == "notifications/cancelled":
            logger.info(
                "Client cancelled request %s; ignored, requests are serialised",
                request.params.get("requestId"),
            )
        else:
            logger.debug("Ignoring notification %s", request.method)

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo")
        self._client_info = client_info if isinstance(client_info, dict) else {}
        requested = params.get("protocolVersion")
        if requested and requested != self.config.protocol_version:
            logger.info(
                "Client requested protocol %s; answering with %s",
                requested,
                self.config.protocol_version,
            )
        logger.info("Initialize from client %s", self._client_info.get("name", "<unknown>"))
        return {
            "protocolVersion": self.config.protocol_version,
            "serverInfo": {"name": self.config.name, "version": self.config.version},
            "capabilities": CAPABILITIES,
        }

    async def _ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [info.model_dump(by_alias=True) for info in self.tools.list()]}

    async def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = _require_str(params, "name")
        trace.get_current_span().set_attribute(ATTR_TOOL_NAME, name)
        definition = self.tools.get(name)
        arguments = validate_arguments(definition.input_schema, params.get("arguments"))
        result = await self._invoke(f"Tool '{name}'", definition.handler, arguments)
        return {"content": [TextContent(text=to_text(result)).model_dump()]}

    async def _resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [info.model_dump(by_alias=True) for info in self.resources.list()]}

    async def _resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = _require_str(params, "uri")
        trace.get_current_span().set_attribute(ATTR_RESOURCE_URI, uri)
        definition = self.resources.get(uri)
        payload = await self._invoke(f"Resource '{uri}'", definition.handler, uri)
        text = to_text(payload)
        return {
            "contents": [
                {
                    "uri": uri,
                    "mimeType": definition.mime_type,
                    "payload": text if isinstance(payload, bytes) else payload,
                    "text": text,
                }
            ]
        }

    async def _prompts_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"prompts": [info.model_dump() for info in self.prompts.list()]}

    async def _prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        name = _require_str(params, "name")
        trace.get_current_span().set_attribute(ATTR_PROMPT_NAME, name)
        definition = self.prompts.get(name)
        arguments = validate_arguments(definition.input_schema, params.get("arguments"))
        target = f"Prompt '{name}'"
        result = await self._invoke(target, definition.handler, arguments)
        return {"description": definition.description, "messages": _prompt_messages(target, result)}

    # ------------------------------------------------------------------
    # Handler invocation
    # ------------------------------------------------------------------

    async def _invoke(self, target: str, handler: Callable[[Any], Any], argument: Any) -> Any:
        """Run *handler* under the configured timeout.

        Raises:
            HandlerTimeoutError: The handler overran; it keeps running, abandoned.
            HandlerError: The handler raised a non-toolwire exception.
        """
        future: asyncio.Future[Any]
        if _is_async(handler):
            future = asyncio.ensure_future(handler(argument))
        else:
            future = _start_thread(target, handler, argument)

        done, _ = await asyncio.wait({future}, timeout=self.config.timeout)
        if not done:
            self._counters["timeouts"] += 1
            trace.get_current_span().set_attribute(ATTR_TIMED_OUT, True)
            self._abandon(target, future)
            raise HandlerTimeoutError(target, self.config.timeout)

        try:
            return future.result()
        except ToolwireError:
            raise
        except Exception as exc:
            logger.warning("%s raised %s: %s", target, type(exc).__name__, exc)
            raise HandlerError(target, str(exc), exc_type=type(exc).__name__) from exc

    def _abandon(self, target: str, future: asyncio.Future[Any]) -> None:
        logger.warning("%s exceeded %ss; abandoning it", target, self.config.timeout)
        self._abandoned.add(future)

        def _discard(done: asyncio.Future[Any]) -> None:
            self._abandoned.discard(done)
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                logger.warning("Discarded late failure from %s: %s", target, exc)
            else:
                logger.warning("Discarded late result from %s", target)

        future.add_done_callback(_discard)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def log(self, level: str, data: Any, *, logger_name: str | None = None) -> None:
        """Send a ``notifications/message`` log entry to the peer.

        Dropped when the server is not serving.
        """
        if self._state not in (ServerState.RUNNING, ServerState.STOPPING):
            logger.debug("Dropping peer log notification; server is %s", self._state.value)
            return
        params: dict[str, Any] = {"level": level, "data": data}
        if logger_name:
            params["logger"] = logger_name
        await self._send(JsonRpcNotification(method="notifications/message", params=params))

    async def _send(self, message: JsonRpcResponse | JsonRpcNotification) -> None:
        if self._transport is None:
            msg = "No transport attached"
            raise TransportError(msg)
        await self._transport.send(codec.encode(message))

    def stats(self) -> dict[str, Any]:
        """Return counters and registry sizes."""
        return {
            "name": self.config.name,
            "state": self._state.value,
            "initialized": self._initialized,
            "tools": len(self.tools),
            "resources": len(self.resources),
            "prompts": len(self.prompts),
            "abandoned": len(self._abandoned),
            **self._counters,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_text(value: Any) -> str:
    """Render a handler result as the text carried in a content part."""
    if isinstance(value, str):
        return value
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def _build(model: type[Any], **fields: Any) -> Any:
    try:
        return model(**fields)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid {model.__name__}: {exc}") from exc


def _require_str(params: dict[str, Any], key: str) -> str:
    value = params.get(key)
    if not isinstance(value, str) or not value:
        raise ArgumentValidationError(f"missing required field '{key}'", field=key)
    return value


def _start_thread(target: str, handler: Callable[[Any], Any], argument: Any) -> asyncio.Future[Any]:
    """Run a synchronous *handler* on its own daemon thread.

    Each call starts immediately, so abandoned handlers never hold back later
    ones.  The result is handed back through the running loop.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()

    def _settle(result: Any, exc: Exception | None) -> None:
        if future.done():
            return
        if exc is not None:
            future.set_exception(exc)
        else:
            future.set_result(result)

    def _worker() -> None:
        try:
            outcome: tuple[Any, Exception | None] = (handler(argument), None)
        except Exception as exc:
            outcome = (None, exc)
        try:
            loop.call_soon_threadsafe(_settle, *outcome)
        except RuntimeError:
            logger.warning("Discarded late result from %s; event loop is closed", target)

    threading.Thread(target=_worker, name="toolwire-handler", daemon=True).start()
    return future


def _is_async(handler: Callable[..., Any]) -> bool:
    return inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
        getattr(handler, "__call__", None)
    )


def _prompt_messages(target: str, result: Any) -> list[dict[str, Any]]:
    if isinstance(result, str):
        result = [{"role": "user", "content": {"type": "text", "text": result}}]
    if not isinstance(result, list):
        raise HandlerError(target, "prompt handler must return a string or a list of messages")
    try:
        return [PromptMessage.model_validate(m).model_dump(exclude_none=True) for m in result]
    except ValidationError as exc:
        raise HandlerError(target, f"invalid prompt messages: {exc.error_count()} error(s)") from exc
