"""
Common types for MVPA statistical inference.

Defines the accepted option values and StatParams, the payload wrapped by
Result[P] and exposed through StatResult.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


VALID_TESTS = ("binomial", "permutation")
VALID_CORRECTIONS = ("none", "bonferroni", "cluster")
VALID_TAILS = (1, -1)
TWO_TAILED = (0, 2, "both", "two.sided", "two-sided")
VALID_CLUSTER_STATISTICS = ("maxsum", "maxsize")
VALID_CONNECTIVITY = ("minimal", "maximal")
VALID_BACKENDS = ("cpu", "parallel")
ACCURACY_METRICS = ("accuracy", "acc")


@dataclass(frozen=True)
class StatParams:
    """
    Parameter payload for MVPA significance tests.

    Shared by the binomial and permutation paths; fields that only exist
    for one path are None for the other.

    - p: per-cell p-values, same shape as perf. In cluster mode each cell
      carries the p-value of its cluster and 1.0 outside clusters.
    - mask: per-cell significance
    - counts: permutations strictly more extreme, per cell or per cluster
    - cluster_id_mask: observed cluster id per cell, 0 outside clusters
    - null_cluster_statistic: extreme cluster statistic of each permutation
    """
    test: str
    metric: str
    alpha: float
    alpha_effective: float
    perf: NDArray[np.floating[Any]]
    p: NDArray[np.floating[Any]]
    mask: NDArray[np.bool_]
    correctm: str = "none"
    tail: int = 1
    n_permutations: int | None = None
    counts: NDArray[np.int64] | None = None
    null_distribution: NDArray[np.floating[Any]] | None = None
    # Cluster correction only
    cluster_id_mask: NDArray[np.int64] | None = None
    n_clusters: int | None = None
    n_significant_clusters: int | None = None
    cluster_p: NDArray[np.floating[Any]] | None = None
    cluster_statistic: NDArray[np.floating[Any]] | None = None
    null_cluster_statistic: NDArray[np.floating[Any]] | None = None
