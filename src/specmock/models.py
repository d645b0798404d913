"""Canonical Pydantic models shared across all specmock modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`ResolverConfig`, :class:`CacheConfig`, :class:`OutputConfig`, and
    :class:`GlobalConfig`.

**Mock definition models** -- produced by the importer and consumed by
whatever stores or serves mocks:
    :class:`Service`, :class:`Operation`, :class:`Metadata`,
    :class:`ParameterConstraint`, :class:`Request`, :class:`Response`,
    :class:`Header`, :class:`Parameter`, :class:`Exchange`,
    :class:`Resource`, plus the dispatch descriptors
    :class:`DispatchStyle`, :class:`DispatchRule` and
    :class:`FallbackSpecification`.

All models use Pydantic v2. ``Operation`` is the only model mutated after
construction: its resource paths grow while exchanges are extracted.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer

from specmock.exceptions import DispatcherRulesError


# --- Configuration ---


class ResolverConfig(BaseModel):
    """Settings for fetching documents referenced through external ``$ref`` pointers."""

    timeout: float = Field(default=30.0, description="Fetch timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    allow_remote: bool = Field(
        default=True, description="Allow fetching http(s) external references"
    )
    max_depth: int = Field(
        default=32, description="Maximum length of a $ref chain before giving up"
    )


class CacheConfig(BaseModel):
    """Disk cache settings for remotely fetched reference documents."""

    enabled: bool = Field(default=True, description="Enable the document cache")
    ttl_seconds: int = Field(default=3600, description="Cache TTL in seconds")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/specmock/config.json``.

    Loaded and saved by :func:`~specmock.config.load_global_config` and
    :func:`~specmock.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~specmock.config.resolve_config`
    for the full precedence chain.
    """

    log_level: str = Field(default="WARNING", description="Logging level name")
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Enumerations ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects.

    Any other key of a path item (``parameters``, ``summary``, ``servers``,
    vendor extensions) does not describe an operation.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class ServiceType(str, enum.Enum):
    """Protocol kind of a mocked service. Only REST is produced here."""

    REST = "REST"


class ResourceType(str, enum.Enum):
    """Kind of an exported resource blob."""

    OPEN_API_SPEC = "OPEN_API_SPEC"
    OPEN_API_SCHEMA = "OPEN_API_SCHEMA"


class DispatchStyle(str, enum.Enum):
    """Dispatch strategies the compiler knows how to produce criteria for.

    An operation without any dispatcher routes on its literal path only.
    ``FALLBACK`` wraps another strategy together with a default response.
    """

    URI_PARAMS = "URI_PARAMS"
    URI_PARTS = "URI_PARTS"
    URI_ELEMENTS = "URI_ELEMENTS"
    FALLBACK = "FALLBACK"


# --- Service and operations ---


class Metadata(BaseModel):
    """Free-form labels and annotations attached to a service."""

    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] = Field(default_factory=dict)


class ParameterConstraint(BaseModel):
    """A constraint the mock runtime enforces on an incoming request parameter."""

    name: str
    location: ParameterLocation = Field(
        default=ParameterLocation.QUERY, alias="in"
    )
    required: bool = False
    recopy: bool = False
    must_match_regexp: Optional[str] = Field(default=None, alias="mustMatchRegexp")

    model_config = ConfigDict(populate_by_name=True)


class Operation(BaseModel):
    """One mocked operation: an HTTP method on a raw URL template.

    ``name`` is ``"<METHOD> <raw-path-template>"``. The dispatcher and its
    rules are fixed once during operation discovery; ``resource_paths``
    keeps insertion order and never holds duplicates.
    """

    name: str
    method: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    dispatcher: Optional[str] = None
    dispatcher_rules: Optional[str] = None
    default_delay: Optional[int] = None
    resource_paths: list[str] = Field(default_factory=list)
    parameter_constraints: list[ParameterConstraint] = Field(default_factory=list)

    @property
    def path_template(self) -> str:
        """The raw URL template part of the operation name."""
        return self.name.split(" ", 1)[1]

    def add_resource_path(self, path: str) -> None:
        """Register *path* unless it is already known."""
        if path not in self.resource_paths:
            self.resource_paths.append(path)


class Service(BaseModel):
    """A mocked service built from one OpenAPI document."""

    name: str
    version: str
    type: ServiceType = ServiceType.REST
    metadata: Optional[Metadata] = None
    operations: list[Operation] = Field(default_factory=list)

    def get_operation(self, name: str) -> Optional[Operation]:
        """Return the operation called *name*, or ``None``."""
        for operation in self.operations:
            if operation.name == name:
                return operation
        return None


# --- Messages ---


class Header(BaseModel):
    """A named header carrying a set of values (CSV headers are split)."""

    name: str
    values: set[str] = Field(default_factory=set)

    @field_serializer("values")
    def _serialize_values(self, values: set[str]) -> list[str]:
        return sorted(values)


class Parameter(BaseModel):
    """A request parameter. Path-template variables are carried as parameters too."""

    name: str
    value: Optional[str] = None


class Request(BaseModel):
    """The request half of an exchange, named after its example identifier."""

    name: str
    content: Optional[str] = None
    headers: list[Header] = Field(default_factory=list)
    query_parameters: list[Parameter] = Field(default_factory=list)

    def add_header(self, header: Header) -> None:
        """Add *header*, replacing any header of the same (case-insensitive) name."""
        self.headers = [
            h for h in self.headers if h.name.lower() != header.name.lower()
        ]
        self.headers.append(header)

    def add_query_parameter(self, parameter: Parameter) -> None:
        self.query_parameters.append(parameter)

    def identity(self) -> tuple[Any, ...]:
        """Hashable key made of the name, headers and parameters.

        Two requests with the same identity describe the same incoming
        request, whatever order their headers were added in.
        """
        headers = tuple(
            sorted((h.name.lower(), tuple(sorted(h.values))) for h in self.headers)
        )
        params = tuple(
            sorted((p.name, p.value or "") for p in self.query_parameters)
        )
        return (self.name, headers, params)


class Response(BaseModel):
    """The response half of an exchange.

    ``dispatch_criteria`` is the literal key the mock runtime compares with
    the key it derives from live traffic. It stays ``None`` for operations
    without dispatcher.
    """

    name: str
    media_type: Optional[str] = None
    status: str
    content: Optional[str] = None
    fault: bool = False
    headers: list[Header] = Field(default_factory=list)
    dispatch_criteria: Optional[str] = None

    def add_header(self, header: Header) -> None:
        self.headers.append(header)


class Exchange(BaseModel):
    """A request paired with the response the mock serves for it."""

    request: Request
    response: Response


class Resource(BaseModel):
    """A document exported next to the mock definitions."""

    name: str
    type: ResourceType
    content: str
    source: Optional[str] = Field(
        default=None, description="Location the content was read from"
    )


# --- Dispatch descriptors ---


class FallbackSpecification(BaseModel):
    """Dispatcher wrapper: an inner dispatcher plus a response used when it finds nothing.

    Serialised in ``dispatcher_rules`` as JSON, e.g.::

        {"dispatcher": "URI_PARTS", "dispatcherRules": "id", "fallback": "Default"}
    """

    dispatcher: str
    dispatcher_rules: str = Field(default="", alias="dispatcherRules")
    fallback: str = ""

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_json(cls, text: Optional[str]) -> FallbackSpecification:
        """Decode a fallback envelope from its JSON text.

        Raises:
            DispatcherRulesError: If *text* is not a JSON object with at
                least a ``dispatcher`` string.
        """
        if not text:
            raise DispatcherRulesError("Fallback dispatcher rules are empty")
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, TypeError) as exc:
            raise DispatcherRulesError(
                f"Fallback dispatcher rules are not valid JSON: {exc}"
            ) from exc
        if not isinstance(data, dict):
            raise DispatcherRulesError(
                f"Fallback dispatcher rules must be a JSON object (got {type(data).__name__})"
            )
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise DispatcherRulesError(f"Invalid fallback dispatcher rules: {exc}") from exc


class DispatchRule(BaseModel):
    """The dispatch strategy of one operation, stored as data.

    ``style`` is ``None`` when the operation has no dispatcher. A
    ``FALLBACK`` rule holds the strategy it wraps in ``inner``; a fallback
    whose envelope could not be decoded has no ``inner`` and compiles as its
    own style.
    """

    model_config = ConfigDict(frozen=True)

    style: Optional[str] = None
    rules: Optional[str] = None
    inner: Optional[DispatchRule] = None
    fallback: Optional[str] = None

    def effective(self) -> DispatchRule:
        """Return the rule criteria are compiled from (the inner one for fallbacks)."""
        if self.style == DispatchStyle.FALLBACK.value and self.inner is not None:
            return self.inner
        return self
