"""
Core infrastructure for mvstats.

Shared abstractions and utilities used by the inference engine.

Key components:
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing
"""

from mvstats.core.protocols import Backend
from mvstats.core.result import Result
from mvstats.core.exceptions import (
    MVStatsError,
    ValidationError,
    DimensionError,
    InvalidConfigError,
    UnknownTestError,
    AmbiguousMetricError,
    MetricNotFoundError,
    UnsupportedMetricError,
    MissingDataError,
    ShapeMismatchError,
    NoClustersFoundError,
)

__all__ = [
    # Protocols
    "Backend",
    # Result
    "Result",
    # Exceptions
    "MVStatsError",
    "ValidationError",
    "DimensionError",
    "InvalidConfigError",
    "UnknownTestError",
    "AmbiguousMetricError",
    "MetricNotFoundError",
    "UnsupportedMetricError",
    "MissingDataError",
    "ShapeMismatchError",
    "NoClustersFoundError",
]
