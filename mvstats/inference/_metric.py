"""
Metric selection.

Reduces a (possibly multi-metric) PerformanceResult to the single named
performance array that is tested.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from mvstats.core.exceptions import AmbiguousMetricError, MetricNotFoundError
from mvstats.inference.performance import (
    MultipleMetrics,
    PerformanceResult,
    SingleMetric,
)


def select_metric(
    result: PerformanceResult,
    metric: str | None = None,
) -> tuple[NDArray[np.floating[Any]], str]:
    """
    Pick the performance array to test.

    Parameters
    ----------
    result : PerformanceResult
        Analysis outcome.
    metric : str or None
        Target metric. Required when the result carries several metrics;
        matched by exact name.

    Returns
    -------
    (perf, name)
        The performance array and its metric name.

    Raises
    ------
    AmbiguousMetricError
        Several metrics and no target given.
    MetricNotFoundError
        The target is not among the result's metrics.
    """
    metrics = result.metrics

    if isinstance(metrics, SingleMetric):
        if metric is not None and metric != metrics.name:
            raise MetricNotFoundError(metric, metrics.names)
        return metrics.perf, metrics.name

    if isinstance(metrics, MultipleMetrics):
        if metric is None:
            raise AmbiguousMetricError(metrics.names)
        if metric not in metrics.perfs:
            raise MetricNotFoundError(metric, metrics.names)
        return metrics.perfs[metric], metric

    raise TypeError(f"unexpected metric container {type(metrics).__name__}")
