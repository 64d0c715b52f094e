"""Transports — byte-stream framing for the server side of the wire.

Each transport satisfies the :class:`Transport` protocol, providing
``receive``, ``send`` and ``close``.  Framing is newline-delimited JSON:
encoded messages never contain raw newlines, so a line is a message.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import BinaryIO, Protocol, runtime_checkable

from toolwire.protocol.errors import MessageTooLargeError, TransportError

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGE_SIZE = 1024 * 1024
_CHUNK_SIZE = 64 * 1024


@runtime_checkable
class Transport(Protocol):
    """Abstract server-side transport."""

    async def receive(self) -> bytes | None: ...
    async def send(self, data: bytes) -> None: ...
    async def close(self) -> None: ...


class StdioTransport:
    """Reads framed messages from stdin and writes them to stdout.

    *reader* and *writer* default to the process's standard streams and can
    be replaced (an :class:`asyncio.StreamReader` and any binary file-like
    object) to drive the transport without a live process.

    ``receive`` returns ``None`` at end-of-stream instead of raising, and
    ``send`` flushes every message immediately.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        writer: BinaryIO | None = None,
        *,
        max_message_size: int = DEFAULT_MAX_MESSAGE_SIZE,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._max_message_size = max_message_size
        self._buffer = bytearray()
        self._discarding = False
        self._eof = False
        self._closed = False
        self._pipe: asyncio.ReadTransport | None = None
        self.stats: dict[str, int] = {
            "messages_received": 0,
            "messages_sent": 0,
            "bytes_received": 0,
            "bytes_sent": 0,
        }

    async def connect(self) -> None:
        """Attach to the process's stdin/stdout unless streams were injected."""
        if self._reader is None:
            loop = asyncio.get_running_loop()
            reader = asyncio.StreamReader()
            protocol = asyncio.StreamReaderProtocol(reader)
            pipe, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)
            self._pipe = pipe
            self._reader = reader
        if self._writer is None:
            self._writer = sys.stdout.buffer
        logger.debug("Stdio transport connected")

    async def receive(self) -> bytes | None:
        """Return the next non-blank line, or ``None`` at end-of-stream.

        Raises:
            MessageTooLargeError: A line exceeded ``max_message_size``; the
                oversized line is discarded and the stream stays usable.
        """
        if self._closed:
            return None
        if self._reader is None:
            await self.connect()
        reader = self._reader
        if reader is None:
            msg = "No input stream attached"
            raise TransportError(msg)

        while True:
            line = self._next_line()
            if line is not None:
                if line.strip():
                    self.stats["messages_received"] += 1
                    self.stats["bytes_received"] += len(line)
                    return line
                continue

            if self._eof:
                return self._drain_tail()

            chunk = await reader.read(_CHUNK_SIZE)
            if not chunk:
                self._eof = True
                continue
            self._buffer.extend(chunk)

    async def send(self, data: bytes) -> None:
        """Write one message followed by a newline and flush."""
        if self._closed:
            msg = "Transport closed"
            raise TransportError(msg)
        if self._writer is None:
            await self.connect()
        writer = self._writer
        if writer is None:
            msg = "No output stream attached"
            raise TransportError(msg)
        try:
            writer.write(data + b"\n")
            writer.flush()
        except (OSError, ValueError) as exc:
            raise TransportError(f"Failed to write message: {exc}") from exc
        self.stats["messages_sent"] += 1
        self.stats["bytes_sent"] += len(data) + 1

    async def close(self) -> None:
        """Stop reading; further ``receive`` calls return ``None``."""
        if self._closed:
            return
        self._closed = True
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None
        logger.debug("Stdio transport closed: %s", self.stats)

    def _next_line(self) -> bytes | None:
        index = self._buffer.find(b"\n")
        if index < 0:
            if len(self._buffer) > self._max_message_size:
                self._discarding = True
                self._buffer.clear()
            return None

        line = bytes(self._buffer[:index])
        del self._buffer[: index + 1]
        if self._discarding or len(line) > self._max_message_size:
            self._discarding = False
            raise MessageTooLargeError(self._max_message_size)
        return line.rstrip(b"\r")

    def _drain_tail(self) -> bytes | None:
        """Return a final unterminated line left at end-of-stream, if any."""
        if self._discarding:
            self._discarding = False
            self._buffer.clear()
            raise MessageTooLargeError(self._max_message_size)
        tail = bytes(self._buffer).strip()
        self._buffer.clear()
        if not tail:
            return None
        self.stats["messages_received"] += 1
        self.stats["bytes_received"] += len(tail)
        return tail
