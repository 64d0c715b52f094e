"""Default resources — project info, host status and plain files."""

from __future__ import annotations

import os
import platform
import shutil
import sys
import time
import tomllib
from datetime import datetime
from pathlib import Path
from urllib.parse import unquote, urlparse
from typing import TYPE_CHECKING, Any

from toolwire import __version__
from toolwire.protocol.errors import ResourceNotFoundError

if TYPE_CHECKING:
    from toolwire.server.server import McpServer

FILE_TEMPLATE = "file:///{+path}"


def project_info(uri: str, *, root: Path | None = None) -> dict[str, Any]:
    """Describe the server and, when present, the ``pyproject.toml`` under *root*."""
    project_root = root or Path.cwd()
    info: dict[str, Any] = {
        "name": "toolwire",
        "version": __version__,
        "description": "JSON-RPC tool server with pluggable AI model providers",
        "project_root": str(project_root),
        "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }
    pyproject = project_root / "pyproject.toml"
    if pyproject.is_file():
        try:
            project = tomllib.loads(pyproject.read_text(encoding="utf-8")).get("project", {})
        except tomllib.TOMLDecodeError:
            project = {}
        info["pyproject"] = {
            "name": project.get("name", "unknown"),
            "description": project.get("description", ""),
            "version": project.get("version", "dev"),
            "authors": project.get("authors", []),
        }
    return info


def system_status(uri: str) -> dict[str, Any]:
    disk = shutil.disk_usage(".")
    status: dict[str, Any] = {
        "python_version": platform.python_version(),
        "pid": os.getpid(),
        "disk_free": disk.free,
        "disk_total": disk.total,
        "timestamp": int(time.time()),
        "date": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }
    if hasattr(os, "getloadavg"):
        status["load_average"] = list(os.getloadavg())
    if sys.platform != "win32":
        import resource

        status["max_rss_kb"] = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    return status


def read_file_resource(uri: str) -> str:
    """Read the text file addressed by a ``file://`` URI."""
    path = Path(unquote(urlparse(uri).path))
    if not path.is_file():
        raise ResourceNotFoundError(uri)
    return path.read_text(encoding="utf-8", errors="replace")


def register_default_resources(server: McpServer) -> None:
    server.register_resource(
        "project://info",
        project_info,
        name="project-info",
        description="Information about the current project",
        mime_type="application/json",
    )
    server.register_resource(
        "system://status",
        system_status,
        name="system-status",
        description="Current system status and resource usage",
        mime_type="application/json",
    )
    server.register_resource(
        FILE_TEMPLATE,
        read_file_resource,
        name="file",
        description="Contents of a text file on the host",
        mime_type="text/plain",
    )
