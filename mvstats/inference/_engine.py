"""
Building blocks of the permutation engine, shared by all backends.

One permutation is a pure function of the design and its index: the index
selects a child of the design's SeedSequence, so every backend draws the
same shuffle for the same index, whatever order iterations run in. Its
contribution is committed to the accumulator in one step, so an
interrupted run never leaves half an iteration in the counts.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from mvstats.core.exceptions import ShapeMismatchError
from mvstats.core.result import Result
from mvstats.core.compute.timing import Timer
from mvstats.inference._common import StatParams
from mvstats.inference._correction import (
    ClusterCorrection,
    effective_alpha,
    permutation_p_values,
)
from mvstats.inference._metric import select_metric
from mvstats.inference.design import PermutationDesign
from mvstats.inference.performance import PerformanceResult

logger = logging.getLogger(__name__)


def permutation_seeds(design: PermutationDesign) -> list[np.random.SeedSequence]:
    """One independent child seed per permutation index."""
    return np.random.SeedSequence(design.config.seed).spawn(design.n_permutations)


def run_analysis(
    design: PermutationDesign,
    index: int,
    seed: np.random.SeedSequence,
) -> NDArray[np.floating[Any]]:
    """
    Re-run the analysis on shuffled labels.

    Raises:
        ShapeMismatchError: If the callback's output differs in shape
            from the reference performance array.
    """
    rng = np.random.default_rng(seed)
    labels = rng.permutation(design.labels)
    out = design.analysis(design.analysis_config, design.data, labels)

    if isinstance(out, PerformanceResult):
        out, _ = select_metric(out, design.metric)

    perf = np.atleast_1d(np.asarray(out, dtype=np.float64))
    if perf.shape != design.shape:
        raise ShapeMismatchError(design.shape, perf.shape, permutation_index=index)
    return perf


@dataclass(frozen=True)
class Contribution:
    """
    What one permutation adds to the running totals.

    exceeds is per cell without cluster correction and per observed
    cluster with it; extreme is the permutation's extreme cluster
    statistic (cluster correction only).
    """
    index: int
    exceeds: NDArray[np.bool_]
    extreme: float | None = None
    perf: NDArray[np.floating[Any]] | None = None


def permutation_contribution(
    design: PermutationDesign,
    correction: ClusterCorrection | None,
    index: int,
    seed: np.random.SeedSequence,
) -> Contribution:
    perf = run_analysis(design, index, seed)
    keep = perf if design.config.keep_null_distribution else None

    if correction is None:
        tail = design.tail
        return Contribution(
            index=index, exceeds=tail * perf > tail * design.perf, perf=keep,
        )

    exceeds, extreme = correction.update(perf)
    return Contribution(index=index, exceeds=exceeds, extreme=extreme, perf=keep)


def null_distribution_warning(design: PermutationDesign) -> str:
    n_bytes = design.n_permutations * design.perf.size * 8
    return (
        f"keep_null_distribution=True stores {design.n_permutations} "
        f"permutation results of shape {design.shape} "
        f"({n_bytes / 2**20:.1f} MiB)"
    )


class PermutationAccumulator:
    """
    Running totals of a permutation test.

    Counts are integers and every commit adds one permutation's
    contribution, so the totals don't depend on commit order.
    """

    def __init__(self, design: PermutationDesign, correction: ClusterCorrection | None):
        self.design = design
        self.correction = correction
        self.n_done = 0

        if correction is None:
            self.counts = np.zeros(design.shape, dtype=np.int64)
            self.null_cluster_statistic = None
        else:
            self.counts = np.zeros(correction.n_clusters, dtype=np.int64)
            self.null_cluster_statistic = np.empty(
                design.n_permutations, dtype=np.float64
            )

        self.null_distribution = None
        if design.config.keep_null_distribution:
            self.null_distribution = np.empty(
                (design.n_permutations,) + design.shape, dtype=np.float64
            )

    def commit(self, contribution: Contribution) -> None:
        t = contribution.index
        self.counts += contribution.exceeds
        if self.null_cluster_statistic is not None:
            self.null_cluster_statistic[t] = contribution.extreme
        if self.null_distribution is not None:
            self.null_distribution[t] = contribution.perf
        self.n_done += 1

        step = max(self.design.n_permutations // 10, 1)
        if self.n_done % step == 0:
            logger.debug(
                "permutation %d/%d done", self.n_done, self.design.n_permutations
            )


def prepare(
    design: PermutationDesign,
    timer: Timer,
) -> tuple[ClusterCorrection | None, PermutationAccumulator, list[str]]:
    """Observed clusters, empty accumulator and any resource warnings."""
    config = design.config
    logger.info(
        "Running %d permutations (metric=%s, correctm=%s, tail=%+d)",
        design.n_permutations, design.metric, config.correctm, config.tail,
    )

    warnings_list: list[str] = []
    if config.keep_null_distribution:
        message = null_distribution_warning(design)
        warnings.warn(message, UserWarning, stacklevel=4)
        warnings_list.append(message)

    correction = None
    with timer.section('observed'):
        if config.correctm == "cluster":
            correction = ClusterCorrection(
                design.perf,
                design.clustercritval,
                config.tail,
                config.clusterstatistic,
                design.conn,
            )
            logger.info("Found %d observed cluster(s)", correction.n_clusters)

    return correction, PermutationAccumulator(design, correction), warnings_list


def interrupted(accumulator: PermutationAccumulator) -> None:
    logger.warning(
        "Permutation test interrupted after %d of %d permutations",
        accumulator.n_done, accumulator.design.n_permutations,
    )


def finalize(
    design: PermutationDesign,
    accumulator: PermutationAccumulator,
    timer: Timer,
    backend_name: str,
    warnings_list: list[str],
) -> Result[StatParams]:
    """Turn the accumulated counts into p-values and masks."""
    config = design.config
    n_perm = design.n_permutations
    if accumulator.n_done != n_perm:
        raise RuntimeError(
            f"n_permutations: only {accumulator.n_done} of {n_perm} "
            f"permutations were committed"
        )

    correction = accumulator.correction
    with timer.section('p_values'):
        alpha_eff = effective_alpha(config.alpha, config.correctm, design.perf.size)
        counts = accumulator.counts

        if correction is None:
            p = permutation_p_values(counts, n_perm)
            params = StatParams(
                test=config.test,
                metric=design.metric,
                alpha=config.alpha,
                alpha_effective=alpha_eff,
                perf=design.perf,
                p=p,
                mask=p < alpha_eff,
                correctm=config.correctm,
                tail=config.tail,
                n_permutations=n_perm,
                counts=counts,
                null_distribution=accumulator.null_distribution,
            )
            info = {}
        else:
            cluster_p = permutation_p_values(counts, n_perm)
            sig = correction.significance(cluster_p, alpha_eff)
            params = StatParams(
                test=config.test,
                metric=design.metric,
                alpha=config.alpha,
                alpha_effective=alpha_eff,
                perf=design.perf,
                p=sig.p,
                mask=sig.mask,
                correctm=config.correctm,
                tail=config.tail,
                n_permutations=n_perm,
                counts=counts,
                null_distribution=accumulator.null_distribution,
                cluster_id_mask=sig.cluster_id_mask,
                n_clusters=correction.n_clusters,
                n_significant_clusters=sig.n_significant_clusters,
                cluster_p=cluster_p,
                cluster_statistic=correction.cluster_statistic,
                null_cluster_statistic=accumulator.null_cluster_statistic,
            )
            info = {
                'clusterstatistic': config.clusterstatistic,
                'conn': config.conn if isinstance(config.conn, str) else 'custom',
            }

    timer.stop()
    info.update({
        'n_permutations': n_perm,
        'correctm': config.correctm,
        'tail': config.tail,
        'seed': config.seed,
        'shape': design.shape,
    })
    return Result(
        params=params,
        info=info,
        timing=timer.result(),
        backend_name=backend_name,
        warnings=tuple(warnings_list),
    )
