"""
Connected-component labelling of thresholded performance grids.

Clusters are maximal sets of superthreshold cells connected under an
adjacency rule:

    minimal  - face adjacency: cells differing by one step along one axis
    maximal  - cells differing by at most one step along every axis
    custom   - one neighbour matrix per axis (None = ordinal axis); cells
               are adjacent iff they differ along exactly one axis and
               are neighbours on that axis

Named rules are labelled with scipy.ndimage.label and the structuring
element of the rule. Custom rules merge every pair of neighbouring
superthreshold cells in a disjoint-set forest over flat indices, so there
is no recursion and the same code handles any number of dimensions.
"""

from __future__ import annotations

from typing import Any, Iterator, Sequence, Union

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import generate_binary_structure, label as ndimage_label

from mvstats.core.exceptions import InvalidConfigError
from mvstats.inference._common import VALID_CONNECTIVITY

# 'minimal', 'maximal', or a per-axis tuple of neighbour matrices / None
Connectivity = Union[str, tuple[Union[NDArray[np.bool_], None], ...]]


class DisjointSet:
    """
    Union-find over the integers 0..size-1.

    Path halving in find(), union by size in union().
    """

    def __init__(self, size: int):
        self._parent = list(range(size))
        self._size = [1] * size

    def find(self, i: int) -> int:
        parent = self._parent
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra = self.find(a)
        rb = self.find(b)
        if ra == rb:
            return
        if self._size[ra] < self._size[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        self._size[ra] += self._size[rb]

    def roots(self) -> NDArray[np.int64]:
        """Representative of every element."""
        return np.fromiter(
            (self.find(i) for i in range(len(self._parent))),
            dtype=np.int64, count=len(self._parent),
        )


def check_connectivity(conn: Any, shape: tuple[int, ...]) -> Connectivity:
    """
    Validate an adjacency rule against the grid shape.

    Returns the rule normalised to 'minimal', 'maximal', or a tuple with
    one boolean matrix (or None) per axis.

    Raises:
        InvalidConfigError: Unknown rule name, wrong number of axes,
            badly shaped or asymmetric neighbour matrices.
    """
    if isinstance(conn, str):
        if conn not in VALID_CONNECTIVITY:
            raise InvalidConfigError(
                f"conn must be one of {VALID_CONNECTIVITY} or a sequence of "
                f"per-axis neighbour matrices, got {conn!r}",
                field="conn", value=conn, valid=VALID_CONNECTIVITY,
            )
        return conn

    try:
        axes = list(conn)
    except TypeError:
        raise InvalidConfigError(
            f"conn must be one of {VALID_CONNECTIVITY} or a sequence of "
            f"per-axis neighbour matrices, got {type(conn).__name__}",
            field="conn", value=conn, valid=VALID_CONNECTIVITY,
        ) from None

    if len(axes) != len(shape):
        raise InvalidConfigError(
            f"conn: expected one neighbour matrix (or None) per axis, "
            f"got {len(axes)} for a {len(shape)}D result",
            field="conn", value=conn,
        )

    normalised: list[NDArray[np.bool_] | None] = []
    for axis, (matrix, length) in enumerate(zip(axes, shape)):
        if matrix is None:
            normalised.append(None)
            continue
        m = np.asarray(matrix).astype(bool)
        if m.shape != (length, length):
            raise InvalidConfigError(
                f"conn[{axis}]: neighbour matrix must have shape "
                f"({length}, {length}), got {m.shape}",
                field="conn", value=conn,
            )
        if not np.array_equal(m, m.T):
            raise InvalidConfigError(
                f"conn[{axis}]: neighbour matrix must be symmetric",
                field="conn", value=conn,
            )
        normalised.append(m)
    return tuple(normalised)


def superthreshold(
    values: NDArray[np.floating[Any]],
    critval: float | NDArray[np.floating[Any]],
    tail: int,
) -> NDArray[np.bool_]:
    """Cells exceeding the critical value in the tail direction (strict)."""
    if tail == 1:
        return values > critval
    return values < critval


def label_clusters(
    mask: NDArray[np.bool_],
    conn: Connectivity = "minimal",
) -> tuple[NDArray[np.int64], int]:
    """
    Partition the true cells of a boolean grid into connected components.

    Named rules are labelled by scipy.ndimage.label with the matching
    structuring element. Custom per-axis rules merge neighbour pairs in a
    DisjointSet forest over the true cells.

    Parameters
    ----------
    mask : ndarray of bool
        Grid of any dimensionality.
    conn : str or tuple
        Adjacency rule, as returned by check_connectivity().

    Returns
    -------
    labels : ndarray of int64
        Same shape as mask; 0 for false cells, 1..K for the clusters,
        numbered in order of each cluster's first cell (C order).
    n_clusters : int
        K, the number of clusters.
    """
    mask = np.asarray(mask, dtype=bool)
    labels = np.zeros(mask.shape, dtype=np.int64)
    cells = np.flatnonzero(mask)
    if cells.size == 0:
        return labels, 0

    if isinstance(conn, str):
        connectivity = 1 if conn == "minimal" else mask.ndim
        structure = generate_binary_structure(mask.ndim, connectivity)
        components, _ = ndimage_label(mask, structure=structure)
        roots = components.ravel()[cells]
    else:
        roots = _union_find_roots(mask, cells, conn)

    # cells are sorted, so first_seen orders clusters by their first cell
    _, first_seen, inverse = np.unique(
        roots, return_index=True, return_inverse=True
    )
    n_clusters = first_seen.size
    rank = np.empty(n_clusters, dtype=np.int64)
    rank[np.argsort(first_seen)] = np.arange(1, n_clusters + 1)
    labels.flat[cells] = rank[inverse.ravel()]
    return labels, int(n_clusters)


def _union_find_roots(
    mask: NDArray[np.bool_],
    cells: NDArray[np.int64],
    conn: Connectivity,
) -> NDArray[np.int64]:
    """Component representative of every true cell under a custom rule."""
    # compact ids 0..len(cells)-1 for the union-find
    compact = np.full(mask.size, -1, dtype=np.int64)
    compact[cells] = np.arange(cells.size)

    forest = DisjointSet(cells.size)
    for a, b in _neighbour_pairs(mask, conn):
        for i, j in zip(compact[a].tolist(), compact[b].tolist()):
            forest.union(i, j)
    return forest.roots()


def cluster_indices(labels: NDArray[np.int64]) -> dict[int, NDArray[np.int64]]:
    """Map each cluster id to the flat indices of its cells."""
    flat = labels.ravel()
    order = np.argsort(flat, kind="stable")
    ids, starts = np.unique(flat[order], return_index=True)
    groups = np.split(order, starts[1:])
    return {int(i): g for i, g in zip(ids, groups) if i > 0}


def find_clusters(
    values: NDArray[np.floating[Any]],
    critval: float | NDArray[np.floating[Any]],
    tail: int,
    conn: Connectivity = "minimal",
) -> tuple[NDArray[np.int64], int]:
    """Threshold a performance grid and label its clusters."""
    return label_clusters(superthreshold(values, critval, tail), conn)


def _neighbour_pairs(
    mask: NDArray[np.bool_],
    conn: tuple[NDArray[np.bool_] | None, ...],
) -> Iterator[tuple[NDArray[np.int64], NDArray[np.int64]]]:
    """Yield (a, b) arrays of flat indices of adjacent true cells."""
    flat = np.arange(mask.size, dtype=np.int64).reshape(mask.shape)

    for axis, matrix in enumerate(conn):
        if matrix is None:
            offset = tuple(1 if d == axis else 0 for d in range(mask.ndim))
            src, dst = _shifted_slices(mask.shape, offset)
            both = mask[src] & mask[dst]
            if both.any():
                yield flat[src][both], flat[dst][both]
            continue
        rows, cols = np.nonzero(np.triu(matrix, k=1))
        for i, j in zip(rows.tolist(), cols.tolist()):
            both = np.take(mask, i, axis=axis) & np.take(mask, j, axis=axis)
            if both.any():
                yield (
                    np.take(flat, i, axis=axis)[both],
                    np.take(flat, j, axis=axis)[both],
                )


def _shifted_slices(
    shape: Sequence[int],
    offset: Sequence[int],
) -> tuple[tuple[slice, ...], tuple[slice, ...]]:
    """Slices selecting cells x and x + offset that are both in bounds."""
    src = []
    dst = []
    for length, step in zip(shape, offset):
        src.append(slice(0, max(length - step, 0)))
        dst.append(slice(step, length))
    return tuple(src), tuple(dst)
