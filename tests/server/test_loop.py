"""End-to-end tests for the receive loop over an in-memory stdio transport."""

from __future__ import annotations

import asyncio
import io
import json
import threading
from typing import Any

import pytest

from toolwire.protocol.errors import ConfigurationError
from toolwire.protocol.transport import StdioTransport
from toolwire.server.config import ServerConfig
from toolwire.server.server import McpServer, ServerState

ECHO_SCHEMA = {"properties": {"text": {"type": "string"}}, "required": ["text"]}


def _lines(*messages: dict[str, Any] | str) -> bytes:
    return b"".join(
        (m if isinstance(m, str) else json.dumps(m)).encode() + b"\n" for m in messages
    )


def _responses(out: io.BytesIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in out.getvalue().splitlines()]


def _server(data: bytes, *, eof: bool = True, timeout: float = 1.0) -> tuple[McpServer, io.BytesIO]:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    out = io.BytesIO()
    server = McpServer(ServerConfig(timeout=timeout), transport=StdioTransport(reader, out))
    server.register_tool("echo", lambda args: args["text"], ECHO_SCHEMA)
    return server, out


class TestServeLoop:
    async def test_echo_round_trip(self) -> None:
        server, out = _server(
            _lines({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "echo", "arguments": {"text": "hi"}}})
        )
        await server.start()
        assert out.getvalue() == (
            b'{"jsonrpc":"2.0","id":1,"result":{"content":[{"type":"text","text":"hi"}]}}\n'
        )
        assert server.state is ServerState.STOPPED

    async def test_responses_in_request_order(self) -> None:
        server, out = _server(
            _lines(
                {"jsonrpc": "2.0", "id": "a", "method": "initialize", "params": {}},
                {"jsonrpc": "2.0", "method": "notifications/initialized"},
                {"jsonrpc": "2.0", "id": "b", "method": "tools/list"},
                {"jsonrpc": "2.0", "id": "c", "method": "tools/call", "params": {"name": "nope", "arguments": {}}},
                {"jsonrpc": "2.0", "id": "d", "method": "ping"},
            )
        )
        await server.start()
        responses = _responses(out)
        assert [r["id"] for r in responses] == ["a", "b", "c", "d"]
        assert responses[2]["error"]["code"] == -32004
        assert "result" not in responses[2]

    async def test_parse_error_answered_with_null_id(self) -> None:
        server, out = _server(_lines("{not json", {"jsonrpc": "2.0", "id": 2, "method": "ping"}))
        await server.start()
        first, second = _responses(out)
        assert first["id"] is None
        assert first["error"]["code"] == -32700
        assert second == {"jsonrpc": "2.0", "id": 2, "result": {}}

    async def test_invalid_notification_is_dropped(self) -> None:
        server, out = _server(_lines({"jsonrpc": "2.0", "method": 5}, {"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        await server.start()
        assert [r["id"] for r in _responses(out)] == [1]

    async def test_oversized_message_rejected_then_served(self) -> None:
        reader = asyncio.StreamReader()
        reader.feed_data(b'{"pad":"' + b"x" * 200 + b'"}\n' + _lines({"jsonrpc": "2.0", "id": 1, "method": "ping"}))
        reader.feed_eof()
        out = io.BytesIO()
        server = McpServer(transport=StdioTransport(reader, out, max_message_size=100))
        await server.start()
        first, second = _responses(out)
        assert first["id"] is None
        assert first["error"]["code"] == -32600
        assert second["result"] == {}

    async def test_empty_input_stops_cleanly(self) -> None:
        server, out = _server(b"")
        await server.start()
        assert out.getvalue() == b""
        assert server.state is ServerState.STOPPED

    async def test_timeout_does_not_block_next_request(self) -> None:
        async def slow(args: dict[str, Any]) -> str:
            await asyncio.sleep(0.3)
            return "late"

        server, out = _server(
            _lines(
                {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "slow"}},
                {"jsonrpc": "2.0", "id": 2, "method": "ping"},
            ),
            timeout=0.05,
        )
        server.register_tool("slow", slow)
        await server.start()
        await asyncio.sleep(0.4)

        responses = _responses(out)
        assert len(responses) == 2
        assert responses[0]["error"]["code"] == -32001
        assert responses[1]["result"] == {}


class TestStop:
    async def test_stop_from_another_thread(self) -> None:
        server, _ = _server(b"", eof=False)
        timer = threading.Timer(0.05, server.stop)
        timer.start()
        await asyncio.wait_for(server.start(), timeout=2)
        timer.join()
        assert server.state is ServerState.STOPPED

    async def test_stop_is_idempotent(self) -> None:
        server, _ = _server(b"", eof=False)
        task = asyncio.ensure_future(server.start())
        await asyncio.sleep(0.01)
        server.stop()
        server.stop()
        await asyncio.wait_for(task, timeout=2)
        server.stop()
        assert server.state is ServerState.STOPPED

    async def test_in_flight_request_completes_then_loop_exits(self) -> None:
        server, out = _server(
            _lines(
                {"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "halt"}},
                {"jsonrpc": "2.0", "id": 2, "method": "ping"},
            )
        )

        async def halt(args: dict[str, Any]) -> str:
            server.stop()
            return "bye"

        server.register_tool("halt", halt)
        await server.start()
        assert _responses(out) == [
            {"jsonrpc": "2.0", "id": 1, "result": {"content": [{"type": "text", "text": "bye"}]}}
        ]

    async def test_cannot_start_twice(self) -> None:
        server, _ = _server(b"")
        await server.start()
        with pytest.raises(ConfigurationError):
            await server.start()


class TestWhileRunning:
    async def test_registration_refused(self) -> None:
        server, out = _server(
            _lines({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "grow"}})
        )

        def grow(args: dict[str, Any]) -> str:
            server.register_tool("late", print)
            return "unreachable"

        server.register_tool("grow", grow)
        await server.start()
        [response] = _responses(out)
        assert response["error"]["code"] == -32003
        assert "late" not in server.tools

    async def test_log_notification_precedes_response(self) -> None:
        server, out = _server(
            _lines({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "chatty"}})
        )

        async def chatty(args: dict[str, Any]) -> str:
            await server.log("info", {"step": 1}, logger_name="chatty")
            return "done"

        server.register_tool("chatty", chatty)
        await server.start()
        notification, response = _responses(out)
        assert notification == {
            "jsonrpc": "2.0",
            "method": "notifications/message",
            "params": {"level": "info", "data": {"step": 1}, "logger": "chatty"},
        }
        assert response["id"] == 1

    async def test_log_dropped_when_idle(self) -> None:
        server, out = _server(b"")
        await server.log("info", "nobody listening")
        assert out.getvalue() == b""
