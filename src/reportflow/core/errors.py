"""
Structured error types for reportflow.

Every failure the registry, the fetch units or the orchestrator can surface
is a typed exception carrying a category and structured context. Callers
catch by kind, never by message.

Manifesto:
    - **Typed Error Hierarchy:** Registration, fetch and aggregate failures
      are distinct branches
    - **Rich Context:** Errors carry fetcher id, plugin and phase for logging
    - **Error Chaining:** The original exception is preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                     ReportflowError                              │
        │  (category, context, cause)                                     │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  RegistryError          SourceError          PipelineError       │
        │  (REGISTRY)             (SOURCE)             (PIPELINE)          │
        │      │                      │                    │               │
        │  RegistryLocked         SourceNotFound       FetcherNotFound     │
        │  DuplicatePlugin        FormatError          DuplicateFetcher    │
        │  PluginNotFound         FilterError          AggregationError    │
        │  PluginIncompatible                                              │
        │  PluginTypeError        TransientError       ConfigError         │
        │  InvalidVersionRange    (NETWORK)            (CONFIG)            │
        │                             │                    │               │
        │                         NetworkError         InvalidConfigError  │
        │                         FetchTimeoutError                        │
        └─────────────────────────────────────────────────────────────────┘

Propagation:
    Registration errors always propagate to the bootstrap caller and abort
    startup. Fetch errors are absorbed by the configured error strategy
    unless ``throw`` is selected. Aggregate errors are collected and only
    escalate when no usable data resulted.

Tags:
    error-handling, exception-hierarchy, error-context,
    reportflow, registry, pipeline

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Categories group errors by where they arise:
    - **Infrastructure:** NETWORK, DATABASE
    - **Source/data errors:** SOURCE, PARSE, FILTER
    - **Startup errors:** REGISTRY, CONFIG
    - **Application errors:** PIPELINE
    - **Internal errors:** INTERNAL, UNKNOWN
    """

    # Infrastructure errors
    NETWORK = "NETWORK"           # Connection, timeout, non-2xx
    DATABASE = "DATABASE"         # Engine, query failures

    # Source/data errors
    SOURCE = "SOURCE"             # Upstream API, file not found
    PARSE = "PARSE"               # JSON/CSV formatting
    FILTER = "FILTER"             # Filter rule evaluation

    # Startup errors
    REGISTRY = "REGISTRY"         # Plugin registration and lookup
    CONFIG = "CONFIG"             # Missing config, invalid settings

    # Application errors
    PIPELINE = "PIPELINE"         # Fetch/aggregate orchestration

    # Internal errors
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only the fields that are set are emitted by ``to_dict()``, so the
    context can be splatted straight into a structlog event.

    Attributes:
        fetcher_id: Fetch unit the error belongs to
        plugin: Plugin name involved in the failure
        phase: Lifecycle phase (enhance, data, render, action)
        source_type: Source kind of the failing fetch (http, file, ...)
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    fetcher_id: str | None = None
    plugin: str | None = None
    phase: str | None = None
    source_type: str | None = None
    url: str | None = None
    http_status: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["fetcher_id", "plugin", "phase", "source_type", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ReportflowError(Exception):
    """
    Base exception for all reportflow errors.

    Subclasses set ``default_category`` so call sites only pass the message
    and whatever context they know.

    Examples:
        >>> error = ReportflowError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = SourceError("Fetch failed").with_context(fetcher_id="sales")
        >>> error.context.fetcher_id
        'sales'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ReportflowError:
        """
        Add context to this error (fluent API).

        Usage:
            raise SourceError("Failed").with_context(
                fetcher_id="sales",
                url="https://api.example.com/sales"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# REGISTRY ERRORS (fail-fast, never recovered)
# =============================================================================


class RegistryError(ReportflowError):
    """Plugin registration or lookup failure."""

    default_category = ErrorCategory.REGISTRY


class RegistryLockedError(RegistryError):
    """Registration attempted after the registry was locked."""

    def __init__(self, registry_name: str):
        self.registry_name = registry_name
        super().__init__(f"Registry '{registry_name}' is locked, cannot register plugins")


class DuplicatePluginError(RegistryError):
    """A plugin is already registered under the key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Duplicate plugin key registration: {key}")


class PluginNotFoundError(RegistryError):
    """No plugin registered for the key."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"No plugin registered for key: {key}")


class PluginIncompatibleError(RegistryError):
    """The plugin's compatible range does not accept the contracts version."""

    def __init__(self, plugin_name: str, plugin_version: str, contracts_version: str):
        self.plugin_name = plugin_name
        self.plugin_version = plugin_version
        self.contracts_version = contracts_version
        super().__init__(
            f"Plugin {plugin_name}@{plugin_version} is incompatible with "
            f"contracts version {contracts_version}"
        )


class PluginTypeError(RegistryError):
    """The plugin's phase does not match the registry's expected phase."""

    def __init__(self, plugin_name: str, expected_phase: str, actual_phase: str):
        self.plugin_name = plugin_name
        self.expected_phase = expected_phase
        self.actual_phase = actual_phase
        super().__init__(
            f"Plugin '{plugin_name}' has invalid phase: "
            f"expected '{expected_phase}', got '{actual_phase}'"
        )


class InvalidVersionRangeError(RegistryError):
    """A version or range expression could not be parsed."""

    def __init__(self, expression: str, message: str | None = None):
        self.expression = expression
        super().__init__(message or f"Invalid version or range expression: {expression!r}")


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(ReportflowError):
    """Temporary network-level failure (connection, timeout, non-2xx)."""

    default_category = ErrorCategory.NETWORK


class NetworkError(TransientError):
    """Network-related transient error."""

    def __init__(self, message: str, *, status_code: int | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        if status_code is not None:
            self.context.http_status = status_code


class FetchTimeoutError(TransientError):
    """A raw fetch exceeded its deadline."""

    def __init__(self, fetcher_id: str, timeout_ms: int):
        self.fetcher_id = fetcher_id
        self.timeout_ms = timeout_ms
        super().__init__(f"Fetcher '{fetcher_id}' timed out after {timeout_ms}ms")
        self.context.fetcher_id = fetcher_id


# =============================================================================
# SOURCE / DATA ERRORS
# =============================================================================


class SourceError(ReportflowError):
    """
    Error from a data source.

    File not found, unsupported source, unreadable payload.
    """

    default_category = ErrorCategory.SOURCE


class SourceNotFoundError(SourceError):
    """Source data not found (file, API endpoint, etc.)."""

    pass


class DatabaseError(SourceError):
    """Database query failure."""

    default_category = ErrorCategory.DATABASE


class FormatError(SourceError):
    """Error reshaping a fetched payload."""

    default_category = ErrorCategory.PARSE


class FilterError(SourceError):
    """Error evaluating a filter configuration."""

    default_category = ErrorCategory.FILTER


# =============================================================================
# PIPELINE ERRORS
# =============================================================================


class PipelineError(ReportflowError):
    """Fetch/aggregate orchestration error."""

    default_category = ErrorCategory.PIPELINE


class FetcherNotFoundError(PluginNotFoundError):
    """An aggregate referenced a fetcher id that is not registered."""

    default_category = ErrorCategory.PIPELINE

    def __init__(self, fetcher_id: str):
        self.fetcher_id = fetcher_id
        super().__init__(fetcher_id, f"Fetcher not found: {fetcher_id}")
        self.context.fetcher_id = fetcher_id


class DuplicateFetcherError(PipelineError):
    """A fetch unit id is already registered with the pipeline."""

    def __init__(self, fetcher_id: str):
        self.fetcher_id = fetcher_id
        super().__init__(f"Fetcher already registered: {fetcher_id}")


class AggregationError(PipelineError):
    """Aggregation or post-processing failed."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ReportflowError):
    """
    Configuration error.

    Configuration must be fixed before the run can proceed.
    """

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """Configuration value or document is invalid."""

    def __init__(self, key: str, value: Any = None, message: str | None = None, **kwargs: Any):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}", **kwargs)


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ReportflowError",
    # Registry
    "RegistryError",
    "RegistryLockedError",
    "DuplicatePluginError",
    "PluginNotFoundError",
    "PluginIncompatibleError",
    "PluginTypeError",
    "InvalidVersionRangeError",
    # Transient
    "TransientError",
    "NetworkError",
    "FetchTimeoutError",
    # Source
    "SourceError",
    "SourceNotFoundError",
    "DatabaseError",
    "FormatError",
    "FilterError",
    # Pipeline
    "PipelineError",
    "FetcherNotFoundError",
    "DuplicateFetcherError",
    "AggregationError",
    # Config
    "ConfigError",
    "InvalidConfigError",
]
