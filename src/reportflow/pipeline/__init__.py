"""
Fetch/aggregate pipeline.

    FetchUnit     one retryable, policy-governed retrieval
    DataPipeline  runs many units and aggregates their results
"""

from reportflow.pipeline.aggregator import aggregate
from reportflow.pipeline.fetcher import FetchUnit
from reportflow.pipeline.functions import (
    FunctionTable,
    get_default_functions,
    register_aggregate,
    register_filter,
    register_transform,
)
from reportflow.pipeline.orchestrator import DataPipeline
from reportflow.pipeline.sources import SourceKind
from reportflow.pipeline.types import (
    AggregateConfig,
    AggregateStrategy,
    ErrorConfig,
    ErrorStrategy,
    FetchState,
    FetcherConfig,
    FilterConfig,
    FilterOperator,
    FilterRule,
    FormatterConfig,
    PipelineConfig,
    PipelineResult,
    PipelineResultMetadata,
    PostProcessConfig,
    RetryConfig,
    SortConfig,
)

__all__ = [
    "AggregateConfig",
    "AggregateStrategy",
    "DataPipeline",
    "ErrorConfig",
    "ErrorStrategy",
    "FetchState",
    "FetchUnit",
    "FetcherConfig",
    "FilterConfig",
    "FilterOperator",
    "FilterRule",
    "FormatterConfig",
    "FunctionTable",
    "PipelineConfig",
    "PipelineResult",
    "PipelineResultMetadata",
    "PostProcessConfig",
    "RetryConfig",
    "SortConfig",
    "SourceKind",
    "aggregate",
    "get_default_functions",
    "register_aggregate",
    "register_filter",
    "register_transform",
]
