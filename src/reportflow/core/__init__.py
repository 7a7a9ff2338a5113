"""
Core primitives shared by every reportflow subsystem.

- ``errors``     — typed exception hierarchy
- ``logging``    — structlog configuration helpers
- ``settings``   — environment-driven settings
- ``versioning`` — contracts version and range checks
"""

from reportflow.core.errors import (
    ConfigError,
    DuplicatePluginError,
    ErrorCategory,
    ErrorContext,
    PipelineError,
    PluginIncompatibleError,
    PluginNotFoundError,
    PluginTypeError,
    RegistryError,
    RegistryLockedError,
    ReportflowError,
    SourceError,
    TransientError,
)
from reportflow.core.logging import configure_logging, get_logger
from reportflow.core.settings import ReportflowSettings, get_settings
from reportflow.core.versioning import CONTRACTS_VERSION, VersionGate, satisfies

__all__ = [
    "CONTRACTS_VERSION",
    "ConfigError",
    "DuplicatePluginError",
    "ErrorCategory",
    "ErrorContext",
    "PipelineError",
    "PluginIncompatibleError",
    "PluginNotFoundError",
    "PluginTypeError",
    "RegistryError",
    "RegistryLockedError",
    "ReportflowError",
    "ReportflowSettings",
    "SourceError",
    "TransientError",
    "VersionGate",
    "configure_logging",
    "get_logger",
    "get_settings",
    "satisfies",
]
