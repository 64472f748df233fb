"""
Solver dispatch for MVPA significance tests.

Provides binomial_test(), permutation_test() and the single entry point
mv_statistics(result, test=...).
"""

from __future__ import annotations

from typing import Any, Callable, Literal

from mvstats.core.exceptions import InvalidConfigError
from mvstats.inference._common import VALID_BACKENDS
from mvstats.inference.backends.cpu import CPUBinomialBackend, CPUPermutationBackend
from mvstats.inference.design import BinomialDesign, PermutationDesign, StatConfig
from mvstats.inference.performance import PerformanceResult
from mvstats.inference.solution import StatResult


BackendChoice = Literal['cpu', 'parallel']


def _get_backend(backend: str = 'cpu', n_jobs: int = 1):
    """
    Select backend for the permutation test.

    'cpu' runs permutations serially. 'parallel' runs them in a joblib
    thread pool of n_jobs workers.
    """
    if backend == 'cpu':
        return CPUPermutationBackend()
    if backend == 'parallel':
        from mvstats.inference.backends.parallel import ParallelPermutationBackend
        return ParallelPermutationBackend(n_jobs=n_jobs)
    raise InvalidConfigError(
        f"Unknown backend: {backend!r}. Use 'cpu' or 'parallel'.",
        field="backend", value=backend, valid=VALID_BACKENDS,
    )


def binomial_test(
    result: PerformanceResult,
    *,
    alpha: float = 0.05,
    metric: str | None = None,
    chance: float = 0.5,
    correctm: Literal["none", "bonferroni"] = "none",
) -> StatResult:
    """
    Binomial test of classification accuracy against chance.

    Single-subject test: the hits over all cross-validation folds and
    repetitions are treated as one binomial experiment with result.n
    trials, p = 1 - CDF(round(acc * n); n, chance).

    Parameters
    ----------
    result : PerformanceResult
        Classification outcome; must carry an accuracy metric ("accuracy"
        or "acc") and the total sample count n.
    alpha : float
        Significance threshold. Default 0.05.
    metric : str or None
        Metric to test if the result carries several.
    chance : float
        Chance level. Default 0.5.
    correctm : str
        "none" (default) or "bonferroni".

    Returns
    -------
    StatResult
        p-values and significance mask, same shape as the accuracy array.
    """
    config = StatConfig.create(
        "binomial", alpha=alpha, metric=metric, chance=chance, correctm=correctm,
    )
    design = BinomialDesign.for_binomial_test(result, config)
    res = CPUBinomialBackend().solve(design)
    return StatResult(_result=res, _design=design)


def permutation_test(
    result: PerformanceResult,
    data: Any,
    labels: Any,
    *,
    analysis: Callable | None = None,
    alpha: float = 0.05,
    metric: str | None = None,
    n_permutations: int = 1000,
    correctm: Literal["none", "bonferroni", "cluster"] = "none",
    tail: int = 1,
    clustercritval: Any = None,
    clusterstatistic: Literal["maxsum", "maxsize"] = "maxsum",
    conn: Any = "minimal",
    keep_null_distribution: bool = False,
    seed: int | None = None,
    backend: BackendChoice = 'cpu',
    n_jobs: int = 1,
) -> StatResult:
    """
    Permutation test of MVPA performance.

    The analysis is repeated n_permutations times on the same data with
    shuffled labels (or responses). The p-value of a cell is the fraction
    of permutations whose performance is strictly more extreme than the
    observed one in the tail direction.

    Parameters
    ----------
    result : PerformanceResult
        Outcome of the original analysis.
    data : array-like
        Data the analysis ran on, samples along the first axis.
    labels : array-like
        Class labels or responses, one row per sample.
    analysis : callable or None
        ``fn(analysis_config, data, labels) -> perf`` re-running the
        analysis. Must return an array shaped like the tested performance
        array (or a PerformanceResult holding the tested metric).
        Defaults to result.analysis_function.
    alpha : float
        Significance threshold. Default 0.05.
    metric : str or None
        Metric to test if the result carries several.
    n_permutations : int
        Number of permutations. Default 1000.
    correctm : str
        "none" (default), "bonferroni" (alpha / number of cells) or
        "cluster" (cluster-based correction, needs clustercritval).
    tail : int
        +1 (default): performance above chance is tested. -1: below.
    clustercritval : float or array-like
        Cluster-forming threshold: cells with perf > clustercritval
        (tail=+1) or perf < clustercritval (tail=-1) form clusters.
    clusterstatistic : str
        "maxsum" (default, sum of perf over a cluster) or "maxsize"
        (number of cells).
    conn : str or sequence
        "minimal" (default, face neighbours), "maximal" (including
        diagonals), or one neighbour matrix (or None for an ordinal axis)
        per axis of the performance array.
    keep_null_distribution : bool
        Keep all permutation results; memory grows with
        n_permutations * perf.size.
    seed : int or None
        Seed for reproducible permutations.
    backend : str
        'cpu' (default, serial) or 'parallel' (joblib threads).
    n_jobs : int
        Worker threads for the parallel backend. Default 1.

    Returns
    -------
    StatResult
        p-values, significance mask and, with cluster correction, the
        cluster labelling and cluster p-values.
    """
    config = StatConfig.create(
        "permutation",
        alpha=alpha,
        metric=metric,
        n_permutations=n_permutations,
        correctm=correctm,
        tail=tail,
        clustercritval=clustercritval,
        clusterstatistic=clusterstatistic,
        conn=conn,
        keep_null_distribution=keep_null_distribution,
        seed=seed,
        backend=backend,
        n_jobs=n_jobs,
    )
    design = PermutationDesign.for_permutation_test(
        result, config, data, labels, analysis=analysis,
    )
    be = _get_backend(config.backend, config.n_jobs)
    res = be.solve(design)
    return StatResult(_result=res, _design=design)


def mv_statistics(
    result: PerformanceResult,
    test: str,
    data: Any = None,
    labels: Any = None,
    *,
    analysis: Callable | None = None,
    **options: Any,
) -> StatResult:
    """
    Statistical analysis of a classification or regression result.

    Parameters
    ----------
    result : PerformanceResult
        Outcome of the analysis.
    test : str
        "binomial" or "permutation".
    data, labels : array-like
        Original data and labels; required by the permutation test.
    analysis : callable or None
        Re-runs the analysis (permutation test).
    **options
        StatConfig options (alpha, metric, chance, n_permutations,
        correctm, tail, clustercritval, clusterstatistic, conn,
        keep_null_distribution, seed, backend, n_jobs).

    Raises
    ------
    UnknownTestError
        If test is not a known test.
    InvalidConfigError
        If an option is unknown or invalid.
    """
    config = StatConfig.create(test, **options)

    if config.test == "binomial":
        design = BinomialDesign.for_binomial_test(result, config)
        res = CPUBinomialBackend().solve(design)
    else:
        design = PermutationDesign.for_permutation_test(
            result, config, data, labels, analysis=analysis,
        )
        res = _get_backend(config.backend, config.n_jobs).solve(design)

    return StatResult(_result=res, _design=design)
