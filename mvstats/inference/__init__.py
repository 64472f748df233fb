"""
Significance testing of MVPA results.

Tests whether classification/regression performance exceeds chance,
optionally correcting for multiple comparisons across time points,
time x time grids or other result dimensions.

Public API:
    binomial_test(result)                      - closed-form test on accuracy
    permutation_test(result, data, labels)     - re-runs the analysis on
                                                 shuffled labels
    mv_statistics(result, test, ...)           - single entry point
    label_clusters(mask, conn)                 - connected components
    cluster_statistics(labels, k, perf, stat)  - per-cluster statistics
"""

from mvstats.inference.solvers import binomial_test, permutation_test, mv_statistics
from mvstats.inference.performance import (
    PerformanceResult,
    SingleMetric,
    MultipleMetrics,
)
from mvstats.inference.design import StatConfig, BinomialDesign, PermutationDesign
from mvstats.inference.solution import StatResult
from mvstats.inference._common import StatParams
from mvstats.inference._metric import select_metric
from mvstats.inference._connectivity import (
    DisjointSet,
    label_clusters,
    cluster_indices,
    find_clusters,
)
from mvstats.inference._cluster_stats import (
    cluster_statistics,
    extreme_cluster_statistic,
)

__all__ = [
    "binomial_test",
    "permutation_test",
    "mv_statistics",
    "PerformanceResult",
    "SingleMetric",
    "MultipleMetrics",
    "StatConfig",
    "BinomialDesign",
    "PermutationDesign",
    "StatResult",
    "StatParams",
    "select_metric",
    "DisjointSet",
    "label_clusters",
    "cluster_indices",
    "find_clusters",
    "cluster_statistics",
    "extreme_cluster_statistic",
]
