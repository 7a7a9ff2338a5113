"""
reportflow — config-driven report pipelines.

A report run resolves every phase implementation through a versioned,
lock-once plugin registry, and fetches its data through retryable,
policy-governed fetch units that an orchestrator aggregates.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
