"""Server configuration — identity, per-call timeout, catalog switches."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolwire import __version__
from toolwire.protocol.errors import ConfigurationError
from toolwire.protocol.transport import DEFAULT_MAX_MESSAGE_SIZE

DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class ServerConfig(BaseModel):
    """Immutable settings for one server lifetime.

    ``timeout`` bounds every handler invocation in seconds.
    ``max_request_size`` bounds a single framed inbound message in bytes.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(default="toolwire", min_length=1)
    version: str = __version__
    protocol_version: str = DEFAULT_PROTOCOL_VERSION
    timeout: float = Field(default=30.0, gt=0)
    max_request_size: int = Field(default=DEFAULT_MAX_MESSAGE_SIZE, gt=0)
    builtin_tools: bool = True
    ai_tools: bool = True
    telemetry: bool = False

    def with_overrides(self, **overrides: Any) -> ServerConfig:
        """Return a copy with every non-``None`` override applied and re-validated."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        try:
            return ServerConfig.model_validate({**self.model_dump(), **values})
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc


class ServerConfigLoader:
    """Load and validate a server YAML file into a :class:`ServerConfig`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> ServerConfig:
        """Read YAML, interpolate env vars, and validate.

        ``${VAR}`` and ``$VAR`` references are expanded with
        :func:`os.path.expandvars` before parsing.  An empty file yields the
        defaults.

        Raises:
            ConfigurationError: On read, YAML parse or schema validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Server config YAML must be a mapping")

        # Accept either a bare mapping or one nested under ``server:``.
        if isinstance(data.get("server"), dict):
            data = data["server"]

        try:
            return ServerConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc
