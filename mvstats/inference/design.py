"""
Configuration and design classes for MVPA significance tests.

StatConfig holds the test options with their documented defaults.
BinomialDesign and PermutationDesign bundle a StatConfig with everything a
backend needs. All three are immutable and validated at construction.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable

import numpy as np
from numpy.typing import NDArray

from mvstats.core.exceptions import (
    DimensionError,
    InvalidConfigError,
    MissingDataError,
    UnknownTestError,
    ValidationError,
)
from mvstats.core.validation import (
    check_array,
    check_choice,
    check_consistent_length,
    check_finite,
    check_open_unit_interval,
    check_positive_int,
)
from mvstats.inference._binomial import check_accuracy_metric
from mvstats.inference._common import (
    TWO_TAILED,
    VALID_BACKENDS,
    VALID_CLUSTER_STATISTICS,
    VALID_CORRECTIONS,
    VALID_TAILS,
    VALID_TESTS,
)
from mvstats.inference._connectivity import Connectivity, check_connectivity
from mvstats.inference._metric import select_metric
from mvstats.inference.performance import PerformanceResult


@dataclass(frozen=True)
class StatConfig:
    """
    Options of a significance test.

    Attributes:
        test: "binomial" or "permutation".
        alpha: Significance threshold, default 0.05.
        metric: Metric to test when the result carries several.
        chance: Chance level for the binomial test, default 0.5.
        n_permutations: Number of permutations, default 1000.
        correctm: Multiple-comparison correction: "none" (default),
            "bonferroni" or "cluster".
        tail: +1 tests for values larger than chance (default), -1 for
            smaller values. Two-tailed tests are not supported.
        clustercritval: Cluster-forming threshold, scalar or array
            broadcastable to the performance array. Required for
            correctm="cluster".
        clusterstatistic: "maxsum" (default) or "maxsize".
        conn: Cluster adjacency: "minimal" (default), "maximal", or one
            neighbour matrix (or None) per axis.
        keep_null_distribution: Keep every permutation's performance array.
        seed: Seed of the permutation random stream.
        backend: "cpu" (serial, default) or "parallel".
        n_jobs: Worker threads of the parallel backend, -1 for all cores.
    """
    test: str
    alpha: float = 0.05
    metric: str | None = None
    chance: float = 0.5
    n_permutations: int = 1000
    correctm: str = "none"
    tail: int = 1
    clustercritval: Any = None
    clusterstatistic: str = "maxsum"
    conn: Any = "minimal"
    keep_null_distribution: bool = False
    seed: int | None = None
    backend: str = "cpu"
    n_jobs: int = 1

    @classmethod
    def option_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def create(cls, test: str, **options: Any) -> StatConfig:
        """
        Build a validated configuration.

        Unset options take the defaults listed on the class.

        Raises:
            UnknownTestError: If test is not a known test.
            InvalidConfigError: If an option is unknown or has an
                invalid value.
        """
        if test not in VALID_TESTS:
            raise UnknownTestError(test, VALID_TESTS)

        unknown = sorted(set(options) - set(cls.option_names()))
        if unknown:
            raise InvalidConfigError(
                f"unknown option(s) {unknown}, expected a subset of "
                f"{cls.option_names()[1:]}",
                field=unknown[0], valid=cls.option_names()[1:],
            )

        config = cls(test=test, **options)
        config._validate()
        return config

    def _validate(self) -> None:
        check_open_unit_interval(self.alpha, "alpha")
        check_open_unit_interval(self.chance, "chance")
        check_positive_int(self.n_permutations, "n_permutations")
        check_choice(self.correctm, VALID_CORRECTIONS, "correctm")
        check_choice(self.clusterstatistic, VALID_CLUSTER_STATISTICS, "clusterstatistic")
        check_choice(self.backend, VALID_BACKENDS, "backend")

        if self.metric is not None and not isinstance(self.metric, str):
            raise InvalidConfigError(
                f"metric must be a string or None, got {self.metric!r}",
                field="metric", value=self.metric,
            )

        integer_tail = (
            not isinstance(self.tail, bool)
            and isinstance(self.tail, (int, np.integer))
        )
        if (integer_tail or isinstance(self.tail, str)) and self.tail in TWO_TAILED:
            raise InvalidConfigError(
                f"tail: two-tailed testing is not supported, "
                f"use one of {VALID_TAILS}",
                field="tail", value=self.tail, valid=VALID_TAILS,
            )
        if not integer_tail or self.tail not in VALID_TAILS:
            raise InvalidConfigError(
                f"tail must be one of {VALID_TAILS}, got {self.tail!r}",
                field="tail", value=self.tail, valid=VALID_TAILS,
            )
        object.__setattr__(self, "tail", int(self.tail))

        if self.test == "binomial" and self.tail != 1:
            raise InvalidConfigError(
                "tail: the binomial test is upper-tailed (accuracy above "
                "chance), use tail=1",
                field="tail", value=self.tail, valid=(1,),
            )

        if self.correctm == "cluster":
            if self.test != "permutation":
                raise InvalidConfigError(
                    "correctm: cluster correction requires the permutation "
                    "test",
                    field="correctm", value=self.correctm,
                    valid=("none", "bonferroni"),
                )
            if self.clustercritval is None:
                raise InvalidConfigError(
                    "clustercritval: required for correctm='cluster'",
                    field="clustercritval", value=None,
                )

        if not isinstance(self.keep_null_distribution, bool):
            raise InvalidConfigError(
                f"keep_null_distribution must be a bool, got "
                f"{self.keep_null_distribution!r}",
                field="keep_null_distribution",
                value=self.keep_null_distribution,
            )

        if self.seed is not None and (
            isinstance(self.seed, bool)
            or not isinstance(self.seed, (int, np.integer))
            or self.seed < 0
        ):
            raise InvalidConfigError(
                f"seed must be a non-negative integer or None, got {self.seed!r}",
                field="seed", value=self.seed,
            )

        if self.n_jobs != -1:
            check_positive_int(self.n_jobs, "n_jobs")


@dataclass(frozen=True)
class BinomialDesign:
    """
    Frozen design for the binomial test.

    Attributes:
        config: Validated StatConfig with test="binomial".
        perf: Accuracy array under test.
        metric: Name of the tested metric.
        n: Total number of tested samples.
    """
    config: StatConfig
    perf: NDArray[np.floating[Any]]
    metric: str
    n: int

    @classmethod
    def for_binomial_test(
        cls,
        result: PerformanceResult,
        config: StatConfig,
    ) -> BinomialDesign:
        """
        Create a binomial test design with validation.

        Raises:
            AmbiguousMetricError, MetricNotFoundError: metric selection.
            UnsupportedMetricError: metric is not accuracy.
            MissingDataError: result has no sample count n.
        """
        perf, metric = select_metric(result, config.metric)
        check_accuracy_metric(metric)
        if result.n is None:
            raise MissingDataError(
                "n: the binomial test needs the total number of samples "
                "(PerformanceResult.n)",
                missing=("n",),
            )
        return cls(config=config, perf=perf, metric=metric, n=result.n)


@dataclass(frozen=True)
class PermutationDesign:
    """
    Frozen design for the permutation test.

    Attributes:
        config: Validated StatConfig with test="permutation".
        perf: Reference performance array.
        metric: Name of the tested metric.
        data: Input data, passed unchanged to the analysis callback.
        labels: Class labels or responses; permuted along the first axis.
        analysis: ``fn(analysis_config, data, labels) -> perf``.
        analysis_config: Passed unchanged to the analysis callback.
        clustercritval: Cluster-forming threshold broadcast to perf's
            shape, or None without cluster correction.
        conn: Normalised adjacency rule.
    """
    config: StatConfig
    perf: NDArray[np.floating[Any]]
    metric: str
    data: Any
    labels: NDArray
    analysis: Callable
    analysis_config: Any
    clustercritval: NDArray[np.floating[Any]] | None
    conn: Connectivity

    @property
    def n_permutations(self) -> int:
        return self.config.n_permutations

    @property
    def tail(self) -> int:
        return self.config.tail

    @property
    def shape(self) -> tuple[int, ...]:
        return self.perf.shape

    @classmethod
    def for_permutation_test(
        cls,
        result: PerformanceResult,
        config: StatConfig,
        data: Any,
        labels: Any,
        analysis: Callable | None = None,
    ) -> PermutationDesign:
        """
        Create a permutation test design with validation.

        Args:
            result: Outcome of the original analysis.
            config: Validated StatConfig.
            data: Data the analysis ran on, samples along the first axis.
            labels: Labels/responses of the samples.
            analysis: Callable re-running the analysis. Defaults to
                result.analysis_function.

        Raises:
            MissingDataError: data, labels or the analysis callable absent.
            DimensionError: labels and data disagree on the sample count.
            InvalidConfigError: clustercritval or conn don't fit perf.
        """
        missing = [
            name for name, value in (("data", data), ("labels", labels))
            if value is None
        ]
        if missing:
            raise MissingDataError(
                f"{', '.join(missing)}: the permutation test re-runs the "
                f"analysis and needs the original data and labels",
                missing=missing,
            )

        if analysis is None:
            analysis = result.analysis_function
        if analysis is None or not callable(analysis):
            raise MissingDataError(
                "analysis: the permutation test needs a callable "
                "fn(analysis_config, data, labels) -> perf, passed as "
                "analysis= or stored in PerformanceResult.analysis_function",
                missing=("analysis",),
            )

        perf, metric = select_metric(result, config.metric)

        labels_arr = np.asarray(labels)
        if labels_arr.ndim == 0:
            raise DimensionError("labels: expected an array, got a scalar")
        if labels_arr.shape[0] < 2:
            raise ValidationError(
                f"labels: need at least 2 samples to permute, got "
                f"{labels_arr.shape[0]}"
            )
        check_consistent_length(
            _first_axis(data), labels_arr, names=("data", "labels")
        )

        critval = None
        if config.correctm == "cluster":
            critval = check_array(config.clustercritval, "clustercritval")
            check_finite(critval, "clustercritval")
            try:
                critval = np.broadcast_to(critval, perf.shape)
            except ValueError:
                raise InvalidConfigError(
                    f"clustercritval: shape {critval.shape} cannot be "
                    f"broadcast to the performance shape {perf.shape}",
                    field="clustercritval", value=config.clustercritval,
                ) from None

        return cls(
            config=config,
            perf=perf,
            metric=metric,
            data=data,
            labels=labels_arr.copy(),
            analysis=analysis,
            analysis_config=result.analysis_config,
            clustercritval=critval,
            conn=check_connectivity(config.conn, perf.shape),
        )


def _first_axis(data: Any) -> NDArray:
    """Zero-size stand-in carrying data's sample count for length checks."""
    shape = getattr(data, "shape", None)
    n = shape[0] if shape else len(data)
    return np.empty((n, 0))
