"""
Solution wrapper for MVPA significance tests.

StatResult wraps Result[StatParams] and provides convenient accessors and
a printable summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from mvstats.core.result import Result
from mvstats.inference._common import StatParams

if TYPE_CHECKING:
    from mvstats.inference.design import BinomialDesign, PermutationDesign


@dataclass
class StatResult:
    """
    User-facing significance test results.

    p and mask have the shape of the tested performance array. With
    cluster correction, cluster_id_mask labels the observed clusters and
    mask marks every cell of a significant cluster.
    """
    _result: Result[StatParams]
    _design: 'BinomialDesign | PermutationDesign'

    # --- Core fields ---

    @property
    def test(self) -> str:
        """'binomial' or 'permutation'."""
        return self._result.params.test

    @property
    def metric(self) -> str:
        """Name of the tested metric."""
        return self._result.params.metric

    @property
    def alpha(self) -> float:
        return self._result.params.alpha

    @property
    def alpha_effective(self) -> float:
        """Per-cell threshold after correction (alpha / size for bonferroni)."""
        return self._result.params.alpha_effective

    @property
    def perf(self) -> NDArray[np.floating[Any]]:
        """The tested performance array."""
        return self._result.params.perf

    @property
    def p(self) -> NDArray[np.floating[Any]]:
        """p-values, same shape as perf."""
        return self._result.params.p

    @property
    def mask(self) -> NDArray[np.bool_]:
        """Significance per cell."""
        return self._result.params.mask

    @property
    def correctm(self) -> str:
        return self._result.params.correctm

    @property
    def tail(self) -> int:
        return self._result.params.tail

    # --- Permutation fields ---

    @property
    def n_permutations(self) -> int | None:
        return self._result.params.n_permutations

    @property
    def counts(self) -> NDArray[np.int64] | None:
        """Permutations more extreme than observed, per cell or per cluster."""
        return self._result.params.counts

    @property
    def null_distribution(self) -> NDArray[np.floating[Any]] | None:
        """Shape (n_permutations, *perf.shape) if retained, else None."""
        return self._result.params.null_distribution

    # --- Cluster fields ---

    @property
    def cluster_id_mask(self) -> NDArray[np.int64] | None:
        """Observed cluster id per cell (0 outside clusters)."""
        return self._result.params.cluster_id_mask

    @property
    def mask_with_cluster_numbers(self) -> NDArray[np.int64] | None:
        """Alias of cluster_id_mask."""
        return self.cluster_id_mask

    @property
    def n_clusters(self) -> int | None:
        return self._result.params.n_clusters

    @property
    def n_significant_clusters(self) -> int | None:
        return self._result.params.n_significant_clusters

    @property
    def cluster_p(self) -> NDArray[np.floating[Any]] | None:
        """p-value of each observed cluster; entry j - 1 is cluster j."""
        return self._result.params.cluster_p

    @property
    def cluster_statistic(self) -> NDArray[np.floating[Any]] | None:
        """Statistic of each observed cluster."""
        return self._result.params.cluster_statistic

    @property
    def null_cluster_statistic(self) -> NDArray[np.floating[Any]] | None:
        """Most extreme cluster statistic of each permutation."""
        return self._result.params.null_cluster_statistic

    # --- Metadata ---

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Display ---

    def summary(self) -> str:
        """
        Test report.

        Produces:
            PERMUTATION TEST (metric: accuracy)

            Permutations: 1000, tail: +1, correction: cluster
            alpha = 0.05
            Clusters: 2 found, 1 significant

              cluster   statistic     p-value   significant
                    1     12.3400      0.0010   *
                    2      1.0200      0.4120
        """
        lines = [f"\n{self.test.upper()} TEST (metric: {self.metric})", ""]

        if self.test == "permutation":
            lines.append(
                f"Permutations: {self.n_permutations}, tail: {self.tail:+d}, "
                f"correction: {self.correctm}"
            )
        else:
            lines.append(
                f"Samples: {self.info.get('n')}, chance: {self.info.get('chance')}, "
                f"correction: {self.correctm}"
            )

        if self.alpha_effective != self.alpha:
            lines.append(
                f"alpha = {self.alpha:g} (effective {self.alpha_effective:.4g})"
            )
        else:
            lines.append(f"alpha = {self.alpha:g}")

        if self.cluster_p is not None:
            lines.append(
                f"Clusters: {self.n_clusters} found, "
                f"{self.n_significant_clusters} significant"
            )
            lines.append("")
            lines.append(
                f"{'cluster':>9s} {'statistic':>11s} {'p-value':>11s}   significant"
            )
            for j, (stat, pv) in enumerate(
                zip(self.cluster_statistic, self.cluster_p), start=1
            ):
                star = "*" if pv < self.alpha_effective else ""
                lines.append(f"{j:>9d} {stat:11.4f} {pv:11.4f}   {star}")
        else:
            n_sig = int(np.sum(self.mask))
            lines.append(f"Significant: {n_sig} of {self.mask.size}")
            if self.p.size <= 20:
                lines.append(
                    "p-value(s): " + " ".join(f"{v:.3f}" for v in self.p.ravel())
                )
                lines.append(
                    "significant: " + " ".join(str(int(m)) for m in self.mask.ravel())
                )

        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        if self.cluster_p is not None:
            extra = f", n_significant_clusters={self.n_significant_clusters}"
        else:
            extra = f", n_significant={int(np.sum(self.mask))}"
        return (
            f"StatResult(test={self.test!r}, metric={self.metric!r}, "
            f"shape={self.p.shape}{extra})"
        )
