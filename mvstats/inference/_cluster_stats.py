"""
Cluster-level statistics.

maxsum  - sum of the performance values of a cluster's cells
maxsize - number of cells in a cluster

Cluster size is always more extreme when larger. Cluster sums follow the
tail: larger is more extreme for tail = +1, smaller for tail = -1.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray


def larger_is_more_extreme(statistic: str, tail: int) -> bool:
    return statistic == "maxsize" or tail == 1


def cluster_statistics(
    labels: NDArray[np.int64],
    n_clusters: int,
    values: NDArray[np.floating[Any]],
    statistic: str,
) -> NDArray[np.floating[Any]]:
    """
    One statistic per cluster.

    Parameters
    ----------
    labels : ndarray of int
        Cluster ids per cell (0 = background), from label_clusters().
    n_clusters : int
        Number of clusters K.
    values : ndarray
        Performance values, same shape as labels.
    statistic : str
        "maxsum" or "maxsize".

    Returns
    -------
    ndarray, shape (K,)
        Entry j - 1 holds the statistic of cluster j.
    """
    if n_clusters == 0:
        return np.empty(0, dtype=np.float64)

    ids = labels.ravel()
    inside = ids > 0
    members = ids[inside] - 1

    if statistic == "maxsum":
        weights = np.asarray(values, dtype=np.float64).ravel()[inside]
        return np.bincount(members, weights=weights, minlength=n_clusters)
    if statistic == "maxsize":
        return np.bincount(members, minlength=n_clusters).astype(np.float64)
    raise ValueError(f"Unknown cluster statistic: {statistic!r}")


def neutral_statistic(statistic: str, tail: int) -> float:
    """Sentinel for a pass without clusters; never more extreme than anything."""
    return -np.inf if larger_is_more_extreme(statistic, tail) else np.inf


def extreme_cluster_statistic(
    labels: NDArray[np.int64],
    n_clusters: int,
    values: NDArray[np.floating[Any]],
    statistic: str,
    tail: int,
) -> float:
    """
    The single most extreme cluster statistic of one labelling pass.

    Returns the neutral sentinel when the pass found no clusters.
    """
    stats = cluster_statistics(labels, n_clusters, values, statistic)
    if stats.size == 0:
        return neutral_statistic(statistic, tail)
    if larger_is_more_extreme(statistic, tail):
        return float(stats.max())
    return float(stats.min())


def more_extreme(
    candidate: float,
    reference: NDArray[np.floating[Any]],
    statistic: str,
    tail: int,
) -> NDArray[np.bool_]:
    """Where candidate is strictly more extreme than reference."""
    if larger_is_more_extreme(statistic, tail):
        return candidate > reference
    return candidate < reference
