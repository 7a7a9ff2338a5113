"""
Configuration and result types for the fetch/aggregate pipeline.

Configuration shapes are frozen pydantic models, validated once when a
pipeline document is loaded. Keys may be written in camelCase
(``maxRetries``, ``arrayPath``, ``postProcess``) or snake_case.

Results are plain dataclasses produced fresh for every execution.

Tags:
    pipeline, pydantic, config, result, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        arbitrary_types_allowed=True,
    )


# A named function from a FunctionTable, or the callable itself.
FunctionRef = Union[str, Callable[..., Any]]


# ── Retry / error ────────────────────────────────────────────────────────


class RetryConfig(ConfigModel):
    """Bounded retry: ``max_retries`` extra attempts after the first."""

    max_retries: int = Field(default=0, ge=0)
    backoff_ms: int = Field(default=0, ge=0)
    exponential: bool = False


class ErrorStrategy(str, Enum):
    THROW = "throw"
    SKIP = "skip"
    DEFAULT = "default"
    RETRY = "retry"


class ErrorConfig(ConfigModel):
    strategy: ErrorStrategy = ErrorStrategy.THROW
    default_value: Any = None
    log_error: bool = True


# ── Filter ───────────────────────────────────────────────────────────────


class FilterOperator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    LT = "lt"
    GTE = "gte"
    LTE = "lte"
    IN = "in"
    NIN = "nin"
    CONTAINS = "contains"
    REGEX = "regex"
    EXISTS = "exists"


class FilterType(str, Enum):
    FIELD = "field"    # AND across rules
    VALUE = "value"    # OR across rules
    CUSTOM = "custom"  # named predicate


class FilterRule(ConfigModel):
    field: str | None = None
    operator: FilterOperator
    value: Any = None
    values: list[Any] | None = None
    pattern: str | None = None


class FilterConfig(ConfigModel):
    type: FilterType = FilterType.FIELD
    rules: list[FilterRule] = Field(default_factory=list)
    custom_fn: FunctionRef | None = None


# ── Formatter ────────────────────────────────────────────────────────────


class FormatterType(str, Enum):
    JSON = "json"
    CSV = "csv"
    XML = "xml"
    HTML = "html"
    CUSTOM = "custom"


class FormatterOptions(ConfigModel):
    array_path: str | None = None
    delimiter: str = ","
    headers: bool | list[str] = True
    from_line: int = Field(default=1, ge=1)
    transform_fn: FunctionRef | None = None


class FormatterConfig(ConfigModel):
    type: FormatterType = FormatterType.JSON
    options: FormatterOptions = Field(default_factory=FormatterOptions)


class ProcessConfig(ConfigModel):
    formatter: FormatterConfig | None = None
    filter: FilterConfig | None = None
    error: ErrorConfig = Field(default_factory=ErrorConfig)


# ── Sources ──────────────────────────────────────────────────────────────


class StringSource(ConfigModel):
    """Inline value; strings are parsed as JSON when possible."""

    type: Literal["string", "inline"] = "string"
    value: Any = Field(default=None, validation_alias=AliasChoices("value", "data"))


class FileSource(ConfigModel):
    type: Literal["file"] = "file"
    path: str
    encoding: str = "utf-8"


class HttpAuth(ConfigModel):
    type: Literal["basic", "bearer", "apikey"]
    username: str | None = None
    password: str | None = None
    token: str | None = None
    api_key: str | None = None
    api_key_header: str = "X-API-Key"


class HttpSource(ConfigModel):
    type: Literal["http"] = "http"
    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] | None = None
    body: Any = None
    timeout_ms: int = Field(default=30_000, ge=1)
    auth: HttpAuth | None = None


class DatabaseSource(ConfigModel):
    type: Literal["database"] = "database"
    connection: str
    query: str
    params: dict[str, Any] = Field(default_factory=dict)


class GlobSource(ConfigModel):
    type: Literal["glob"] = "glob"
    pattern: str
    root: str = "."
    encoding: str = "utf-8"


SourceConfig = Annotated[
    Union[StringSource, FileSource, HttpSource, DatabaseSource, GlobSource],
    Field(discriminator="type"),
]


class FetcherConfig(ConfigModel):
    id: str = Field(min_length=1)
    source: SourceConfig
    process: ProcessConfig = Field(default_factory=ProcessConfig)
    retry: RetryConfig | None = None
    timeout_ms: int | None = Field(default=None, ge=1)


# ── Aggregate ────────────────────────────────────────────────────────────


class AggregateStrategy(str, Enum):
    MERGE = "merge"
    CONCAT = "concat"
    CUSTOM = "custom"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortConfig(ConfigModel):
    field: str
    order: SortOrder = SortOrder.ASC


class PostProcessConfig(ConfigModel):
    filter: FilterConfig | None = None
    formatter: FormatterConfig | None = None
    sort: SortConfig | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    error: ErrorConfig | None = None


class AggregateConfig(ConfigModel):
    fetchers: list[str]
    strategy: AggregateStrategy = AggregateStrategy.CONCAT
    parallel: bool = False
    max_parallel: int | None = Field(default=None, ge=1)
    custom_fn: FunctionRef | None = None
    post_process: PostProcessConfig | None = None


class PipelineConfig(ConfigModel):
    """A pipeline document: fetch units plus one aggregate over them."""

    fetchers: list[FetcherConfig] = Field(default_factory=list)
    aggregate: AggregateConfig


# ── Results ──────────────────────────────────────────────────────────────


class FetchState(str, Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED_HANDLED = "failed_handled"
    FAILED_THROWN = "failed_thrown"


@dataclass(frozen=True)
class PipelineResultMetadata:
    fetcher_id: str
    timestamp_ms: int
    duration_ms: int
    success: bool
    attempts: int = 0


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of one fetch unit or one aggregate."""

    success: bool
    data: Any
    metadata: PipelineResultMetadata
    errors: list[BaseException] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "data": self.data,
            "errors": [str(e) for e in self.errors],
            "metadata": {
                "fetcher_id": self.metadata.fetcher_id,
                "timestamp_ms": self.metadata.timestamp_ms,
                "duration_ms": self.metadata.duration_ms,
                "success": self.metadata.success,
                "attempts": self.metadata.attempts,
            },
        }


__all__ = [
    "ConfigModel",
    "FunctionRef",
    "RetryConfig",
    "ErrorStrategy",
    "ErrorConfig",
    "FilterOperator",
    "FilterType",
    "FilterRule",
    "FilterConfig",
    "FormatterType",
    "FormatterOptions",
    "FormatterConfig",
    "ProcessConfig",
    "StringSource",
    "FileSource",
    "HttpAuth",
    "HttpSource",
    "DatabaseSource",
    "GlobSource",
    "SourceConfig",
    "FetcherConfig",
    "AggregateStrategy",
    "SortOrder",
    "SortConfig",
    "PostProcessConfig",
    "AggregateConfig",
    "PipelineConfig",
    "FetchState",
    "PipelineResultMetadata",
    "PipelineResult",
]
