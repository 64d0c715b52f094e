"""Capability registries — tools, resources and prompts.

Each registry maps a key (tool/prompt name, resource URI or URI template) to
an immutable definition, keeps registration order for the ``*/list``
endpoints, and refuses duplicate keys so user capabilities cannot shadow
builtins.  Registries are frozen while the server is running.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from toolwire.protocol.errors import (
    ConfigurationError,
    NotFoundError,
    PromptNotFoundError,
    ResourceNotFoundError,
    ToolNotFoundError,
)
from toolwire.protocol.models import PromptArgument, PromptInfo, ResourceInfo, ToolInfo

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Any]
ResourceHandler = Callable[[str], Any]
PromptHandler = Callable[[dict[str, Any]], Any]

# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------


class ToolDefinition(BaseModel):
    """A named, schema-validated callable action with a textual result."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    handler: ToolHandler
    input_schema: dict[str, Any] = Field(default_factory=dict)
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description"):
            data = {**data, "description": f"Tool: {data.get('name', '')}"}
        return data

    @field_validator("input_schema")
    @classmethod
    def _object_schema(cls, schema: dict[str, Any]) -> dict[str, Any]:
        return {"type": "object", "properties": {}, "required": [], **schema}

    def info(self) -> ToolInfo:
        return ToolInfo(name=self.name, description=self.description, input_schema=self.input_schema)


_TEMPLATE_VAR = re.compile(r"\{(\+?)([A-Za-z_][A-Za-z0-9_]*)\}")


def compile_uri_template(template: str) -> re.Pattern[str]:
    """Compile a URI template into a regex.

    ``{name}`` matches a single path segment; ``{+name}`` matches the rest of
    the URI including ``/``.
    """
    parts: list[str] = []
    pos = 0
    for match in _TEMPLATE_VAR.finditer(template):
        parts.append(re.escape(template[pos : match.start()]))
        reserved, var = match.group(1), match.group(2)
        parts.append(f"(?P<{var}>.+)" if reserved else f"(?P<{var}>[^/]+)")
        pos = match.end()
    parts.append(re.escape(template[pos:]))
    return re.compile("".join(parts))


class ResourceDefinition(BaseModel):
    """A URI-addressed, read-only data source."""

    model_config = ConfigDict(frozen=True)

    uri: str = Field(min_length=1)
    handler: ResourceHandler
    name: str = ""
    description: str = ""
    mime_type: str = "text/plain"

    _pattern: re.Pattern[str] | None = PrivateAttr(default=None)

    @model_validator(mode="before")
    @classmethod
    def _defaults(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        uri = str(data.get("uri", ""))
        data = dict(data)
        if not data.get("name"):
            data["name"] = uri.rstrip("/").rsplit("/", 1)[-1] or uri
        if not data.get("description"):
            data["description"] = f"Resource: {uri}"
        return data

    def model_post_init(self, __context: Any) -> None:
        if self.is_template:
            self._pattern = compile_uri_template(self.uri)

    @property
    def is_template(self) -> bool:
        return _TEMPLATE_VAR.search(self.uri) is not None

    def match(self, uri: str) -> dict[str, str] | None:
        """Return template variables if *uri* matches, else ``None``."""
        if self._pattern is None:
            return {} if uri == self.uri else None
        found = self._pattern.fullmatch(uri)
        return found.groupdict() if found else None

    def info(self) -> ResourceInfo:
        return ResourceInfo(
            uri=self.uri,
            name=self.name,
            description=self.description,
            mime_type=self.mime_type,
        )


class PromptDefinition(BaseModel):
    """A parameterised template producing a message sequence."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    handler: PromptHandler
    arguments: list[PromptArgument] = Field(default_factory=list)
    description: str = ""

    @model_validator(mode="before")
    @classmethod
    def _default_description(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("description"):
            data = {**data, "description": f"Prompt: {data.get('name', '')}"}
        return data

    @property
    def input_schema(self) -> dict[str, Any]:
        """Argument spec expressed as an object schema for validation."""
        return {
            "type": "object",
            "properties": {a.name: {"description": a.description} for a in self.arguments},
            "required": [a.name for a in self.arguments if a.required],
        }

    def info(self) -> PromptInfo:
        return PromptInfo(name=self.name, description=self.description, arguments=list(self.arguments))


# ---------------------------------------------------------------------------
# Registries
# ---------------------------------------------------------------------------

D = TypeVar("D", ToolDefinition, ResourceDefinition, PromptDefinition)
I = TypeVar("I", ToolInfo, ResourceInfo, PromptInfo)


class MetadataView(Generic[D, I]):
    """Lazy, restartable view of a registry's public metadata.

    Each iteration walks the registry afresh in registration order and never
    exposes handlers.
    """

    def __init__(self, entries: dict[str, D], project: Callable[[D], I]) -> None:
        self._entries = entries
        self._project = project

    def __iter__(self) -> Iterator[I]:
        return (self._project(definition) for definition in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


class _Registry(Generic[D, I]):
    kind = "capability"
    not_found: type[NotFoundError] = NotFoundError

    def __init__(self) -> None:
        self._entries: dict[str, D] = {}
        self._frozen = False

    def _key(self, definition: D) -> str:
        raise NotImplementedError

    def register(self, definition: D) -> D:
        """Add *definition*; duplicate keys and running servers are rejected."""
        key = self._key(definition)
        if self._frozen:
            msg = f"Cannot register {self.kind} '{key}' while the server is running"
            raise ConfigurationError(msg)
        if key in self._entries:
            msg = f"Duplicate {self.kind} registration: '{key}'"
            raise ConfigurationError(msg)
        self._entries[key] = definition
        logger.info("Registered %s: %s", self.kind, key)
        return definition

    def get(self, key: str) -> D:
        try:
            return self._entries[key]
        except KeyError:
            raise self.not_found(key) from None

    def list(self) -> MetadataView[D, I]:
        return MetadataView(self._entries, lambda d: d.info())  # type: ignore[arg-type,return-value]

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class ToolRegistry(_Registry[ToolDefinition, ToolInfo]):
    """Tools keyed by name."""

    kind = "tool"
    not_found = ToolNotFoundError

    def _key(self, definition: ToolDefinition) -> str:
        return definition.name


class PromptRegistry(_Registry[PromptDefinition, PromptInfo]):
    """Prompts keyed by name."""

    kind = "prompt"
    not_found = PromptNotFoundError

    def _key(self, definition: PromptDefinition) -> str:
        return definition.name


class ResourceRegistry(_Registry[ResourceDefinition, ResourceInfo]):
    """Resources keyed by URI or URI template.

    Lookup tries an exact URI first, then templates in registration order;
    the first matching template wins when patterns overlap.
    """

    kind = "resource"
    not_found = ResourceNotFoundError

    def _key(self, definition: ResourceDefinition) -> str:
        return definition.uri

    def get(self, key: str) -> ResourceDefinition:
        exact = self._entries.get(key)
        if exact is not None:
            return exact
        for definition in self._entries.values():
            if definition.is_template and definition.match(key) is not None:
                return definition
        raise ResourceNotFoundError(key)
