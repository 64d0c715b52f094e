"""Builtin tools — file access, host info and small text utilities.

All handlers here are synchronous; the server runs each on its own thread.
"""

from __future__ import annotations

import base64
import binascii
import getpass
import hashlib
import json
import os
import platform
import socket
import stat
import sys
import tempfile
import time
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from toolwire.catalog.command import EXECUTE_COMMAND_SCHEMA, execute_command
from toolwire.protocol.errors import InvalidArgumentError

if TYPE_CHECKING:
    from toolwire.server.server import McpServer

HASH_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")


# ---------------------------------------------------------------------------
# File tools
# ---------------------------------------------------------------------------


def read_file(args: dict[str, Any]) -> str:
    path = Path(args["path"])
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_text(encoding="utf-8", errors="replace")


def write_file(args: dict[str, Any]) -> str:
    path = Path(args["path"])
    content: str = args["content"]
    append = bool(args.get("append", False))

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a" if append else "w", encoding="utf-8") as fh:
        written = fh.write(content)
    verb = "appended to" if append else "wrote"
    return f"Successfully {verb} file: {path} ({written} characters)"


def list_directory(args: dict[str, Any]) -> list[dict[str, Any]]:
    """Directory entries, directories first, then case-insensitive by name."""
    path = Path(args.get("path") or ".")
    include_hidden = bool(args.get("include_hidden", False))
    if not path.is_dir():
        raise NotADirectoryError(f"Directory not found: {path}")

    items: list[dict[str, Any]] = []
    for entry in os.scandir(path):
        if not include_hidden and entry.name.startswith("."):
            continue
        info = entry.stat(follow_symlinks=False)
        is_dir = entry.is_dir()
        items.append(
            {
                "name": entry.name,
                "type": "directory" if is_dir else "file",
                "size": None if is_dir else info.st_size,
                "modified": int(info.st_mtime),
                "permissions": oct(stat.S_IMODE(info.st_mode))[2:].zfill(4),
            }
        )
    items.sort(key=lambda item: (item["type"] != "directory", item["name"].lower()))
    return items


# ---------------------------------------------------------------------------
# System tools
# ---------------------------------------------------------------------------


def system_info(args: dict[str, Any]) -> dict[str, Any]:
    now = time.time()
    return {
        "python_version": platform.python_version(),
        "python_implementation": platform.python_implementation(),
        "executable": sys.executable,
        "operating_system": platform.system(),
        "architecture": platform.machine(),
        "hostname": socket.gethostname(),
        "current_user": _current_user(),
        "current_directory": os.getcwd(),
        "temp_directory": tempfile.gettempdir(),
        "timezone": time.strftime("%Z"),
        "timestamp": int(now),
        "date": datetime.fromtimestamp(now).strftime("%Y-%m-%d %H:%M:%S"),
    }


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


# ---------------------------------------------------------------------------
# Utility tools
# ---------------------------------------------------------------------------


def format_json(args: dict[str, Any]) -> str:
    try:
        data = json.loads(args["json"])
    except json.JSONDecodeError as exc:
        raise InvalidArgumentError(f"Invalid JSON: {exc}", data={"field": "json"}) from exc
    if args.get("pretty", True):
        return json.dumps(data, indent=4, ensure_ascii=False)
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def base64_tool(args: dict[str, Any]) -> str:
    data: str = args["data"]
    operation = args.get("operation", "encode")
    if operation == "encode":
        return base64.b64encode(data.encode("utf-8")).decode("ascii")
    if operation == "decode":
        try:
            return base64.b64decode(data, validate=True).decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise InvalidArgumentError("Invalid base64 data", data={"field": "data"}) from exc
    raise InvalidArgumentError(f"Invalid operation: {operation}", data={"field": "operation"})


def hash_tool(args: dict[str, Any]) -> str:
    algorithm = args.get("algorithm", "sha256")
    if algorithm not in HASH_ALGORITHMS:
        raise InvalidArgumentError(
            f"Unsupported hash algorithm: {algorithm}",
            data={"field": "algorithm", "supported": list(HASH_ALGORITHMS)},
        )
    return hashlib.new(algorithm, args["data"].encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_builtin_tools(server: McpServer) -> None:
    """Register the file, system and utility tools on *server*."""
    (
        server.register_tool(
            "read_file",
            read_file,
            {
                "properties": {"path": {"type": "string", "description": "Path to the file to read"}},
                "required": ["path"],
            },
            "Read the contents of a file",
        )
        .register_tool(
            "write_file",
            write_file,
            {
                "properties": {
                    "path": {"type": "string", "description": "Path to the file to write"},
                    "content": {"type": "string", "description": "Content to write to the file"},
                    "append": {
                        "type": "boolean",
                        "description": "Whether to append to the file (default: false)",
                        "default": False,
                    },
                },
                "required": ["path", "content"],
            },
            "Write content to a file",
        )
        .register_tool(
            "list_directory",
            list_directory,
            {
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path to the directory to list (default: current directory)",
                        "default": ".",
                    },
                    "include_hidden": {
                        "type": "boolean",
                        "description": "Whether to include hidden files (default: false)",
                        "default": False,
                    },
                },
            },
            "List the contents of a directory",
        )
        .register_tool(
            "execute_command",
            execute_command,
            EXECUTE_COMMAND_SCHEMA,
            "Execute a system command",
        )
        .register_tool("system_info", system_info, {}, "Get system information")
        .register_tool(
            "format_json",
            format_json,
            {
                "properties": {
                    "json": {"type": "string", "description": "JSON string to format"},
                    "pretty": {
                        "type": "boolean",
                        "description": "Whether to pretty print the JSON (default: true)",
                        "default": True,
                    },
                },
                "required": ["json"],
            },
            "Format and validate JSON",
        )
        .register_tool(
            "base64",
            base64_tool,
            {
                "properties": {
                    "data": {"type": "string", "description": "Data to encode/decode"},
                    "operation": {
                        "type": "string",
                        "enum": ["encode", "decode"],
                        "description": "Operation to perform (default: encode)",
                        "default": "encode",
                    },
                },
                "required": ["data"],
            },
            "Base64 encode or decode data",
        )
        .register_tool(
            "hash",
            hash_tool,
            {
                "properties": {
                    "data": {"type": "string", "description": "Data to hash"},
                    "algorithm": {
                        "type": "string",
                        "enum": list(HASH_ALGORITHMS),
                        "description": "Hash algorithm (default: sha256)",
                        "default": "sha256",
                    },
                },
                "required": ["data"],
            },
            "Generate hash of data using various algorithms",
        )
    )
