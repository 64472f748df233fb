"""
Multiple-comparison policies.

none       - every cell is tested at alpha
bonferroni - every cell is tested at alpha / number of cells
cluster    - cluster-based permutation test (Maris & Oostenveld, 2007):
             superthreshold cells are grouped into clusters, and each
             observed cluster statistic is compared against the maximum
             cluster statistic of every permutation
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from mvstats.core.exceptions import NoClustersFoundError
from mvstats.inference._cluster_stats import (
    cluster_statistics,
    extreme_cluster_statistic,
    more_extreme,
)
from mvstats.inference._connectivity import Connectivity, find_clusters


def effective_alpha(alpha: float, correctm: str, n_tests: int) -> float:
    """Per-cell significance threshold under the given correction."""
    if correctm == "bonferroni":
        return alpha / n_tests
    return alpha


@dataclass(frozen=True)
class ClusterSignificance:
    """Cell-level view of the cluster test outcome."""
    p: NDArray[np.floating[Any]]
    mask: NDArray[np.bool_]
    cluster_id_mask: NDArray[np.int64]
    n_significant_clusters: int


class ClusterCorrection:
    """
    Observed clusters and the max-statistic comparison against permutations.

    Construct once on the observed performance grid, then call update() on
    every permuted grid and accumulate its result into the counts.

    Raises:
        NoClustersFoundError: If clustercritval selects no observed cell.
    """

    def __init__(
        self,
        perf: NDArray[np.floating[Any]],
        clustercritval: float | NDArray[np.floating[Any]],
        tail: int,
        statistic: str,
        conn: Connectivity,
    ):
        self.clustercritval = clustercritval
        self.tail = tail
        self.statistic = statistic
        self.conn = conn

        self.labels, self.n_clusters = find_clusters(
            perf, clustercritval, tail, conn
        )
        if self.n_clusters == 0:
            raise NoClustersFoundError(clustercritval, tail)
        self.cluster_statistic = cluster_statistics(
            self.labels, self.n_clusters, perf, statistic
        )

    def permutation_statistic(self, perf: NDArray[np.floating[Any]]) -> float:
        """Most extreme cluster statistic of a permuted grid."""
        labels, n_clusters = find_clusters(
            perf, self.clustercritval, self.tail, self.conn
        )
        return extreme_cluster_statistic(
            labels, n_clusters, perf, self.statistic, self.tail
        )

    def exceedances(self, extreme: float) -> NDArray[np.bool_]:
        """Observed clusters that the permutation extreme beats."""
        return more_extreme(
            extreme, self.cluster_statistic, self.statistic, self.tail
        )

    def update(self, perf: NDArray[np.floating[Any]]) -> tuple[NDArray[np.bool_], float]:
        extreme = self.permutation_statistic(perf)
        return self.exceedances(extreme), extreme

    def significance(
        self,
        cluster_p: NDArray[np.floating[Any]],
        alpha: float,
    ) -> ClusterSignificance:
        """
        Spread cluster p-values back onto the grid.

        Cells outside any cluster get p = 1 and are never significant.
        """
        significant = cluster_p < alpha
        # index 0 is the background
        p_lookup = np.concatenate(([1.0], cluster_p))
        sig_lookup = np.concatenate(([False], significant))
        return ClusterSignificance(
            p=p_lookup[self.labels],
            mask=sig_lookup[self.labels],
            cluster_id_mask=self.labels.copy(),
            n_significant_clusters=int(np.sum(significant)),
        )


def permutation_p_values(
    counts: NDArray[np.int64],
    n_permutations: int,
) -> NDArray[np.floating[Any]]:
    """
    Monte-Carlo p-values counts / n_permutations.

    No +1 correction: with few permutations an extreme result can get p = 0.
    """
    return counts.astype(np.float64) / n_permutations
