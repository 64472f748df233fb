"""
PerformanceResult: the classification/regression outcome under test.

A result carries either one metric or several. This is modelled as a tagged
variant, Metric := SingleMetric | MultipleMetrics, and the metric selector
always normalises it to one named array before testing.

Immutable after construction. Use the factory classmethods.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence, Union

import numpy as np
from numpy.typing import NDArray, ArrayLike

from mvstats.core.exceptions import ValidationError
from mvstats.core.validation import check_array, check_not_empty


def _to_perf(perf: ArrayLike, name: str) -> NDArray[np.floating[Any]]:
    """Validate a performance array; scalars become shape (1,)."""
    arr = check_array(perf, name)
    check_not_empty(arr, name)
    return np.atleast_1d(arr).copy()


@dataclass(frozen=True)
class SingleMetric:
    """One metric and its performance array."""
    name: str
    perf: NDArray[np.floating[Any]]

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name,)


@dataclass(frozen=True)
class MultipleMetrics:
    """Several metrics, keyed by name, in the order they were computed."""
    perfs: Mapping[str, NDArray[np.floating[Any]]]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self.perfs)


Metric = Union[SingleMetric, MultipleMetrics]


@dataclass(frozen=True)
class PerformanceResult:
    """
    Outcome of an MVPA analysis, as consumed by the significance tests.

    Attributes:
        metrics: SingleMetric or MultipleMetrics
        n: Total number of evaluated samples (binomial test)
        analysis_config: Configuration that produced the performance
            arrays; handed back unchanged to the analysis callback
        analysis_function: Callable re-running the analysis with new
            labels, ``fn(analysis_config, data, labels) -> perf``
    """
    metrics: Metric
    n: int | None = None
    analysis_config: Any = None
    analysis_function: Callable | None = None

    @property
    def perf(self) -> NDArray[np.floating[Any]] | dict[str, NDArray[np.floating[Any]]]:
        """Performance array, or a name -> array dict for several metrics."""
        if isinstance(self.metrics, SingleMetric):
            return self.metrics.perf
        return dict(self.metrics.perfs)

    @property
    def metric(self) -> str | tuple[str, ...]:
        """Metric name, or tuple of names for several metrics."""
        if isinstance(self.metrics, SingleMetric):
            return self.metrics.name
        return self.metrics.names

    @property
    def metric_names(self) -> tuple[str, ...]:
        return self.metrics.names

    @classmethod
    def single(
        cls,
        perf: ArrayLike,
        metric: str,
        *,
        n: int | None = None,
        analysis_config: Any = None,
        analysis_function: Callable | None = None,
    ) -> PerformanceResult:
        """
        Create a result holding one metric.

        Args:
            perf: Performance array (any shape, scalars allowed).
            metric: Metric name, e.g. "accuracy", "auc", "mse".
            n: Total number of evaluated samples.
            analysis_config: Configuration of the analysis.
            analysis_function: Callable that re-runs the analysis.

        Returns:
            Validated PerformanceResult.
        """
        if not isinstance(metric, str) or not metric:
            raise ValidationError(
                f"metric: expected a non-empty string, got {metric!r}"
            )
        return cls(
            metrics=SingleMetric(name=metric, perf=_to_perf(perf, metric)),
            n=_check_n(n),
            analysis_config=analysis_config,
            analysis_function=analysis_function,
        )

    @classmethod
    def multiple(
        cls,
        perfs: Mapping[str, ArrayLike],
        *,
        n: int | None = None,
        analysis_config: Any = None,
        analysis_function: Callable | None = None,
    ) -> PerformanceResult:
        """
        Create a result holding several metrics.

        A mapping with a single entry is stored as a SingleMetric.
        """
        if len(perfs) == 0:
            raise ValidationError("perf: at least one metric is required")
        for name in perfs:
            if not isinstance(name, str) or not name:
                raise ValidationError(
                    f"metric: expected non-empty string names, got {name!r}"
                )
        if len(perfs) == 1:
            (name, perf), = perfs.items()
            return cls.single(
                perf, name, n=n,
                analysis_config=analysis_config,
                analysis_function=analysis_function,
            )
        return cls(
            metrics=MultipleMetrics(
                perfs={name: _to_perf(p, name) for name, p in perfs.items()}
            ),
            n=_check_n(n),
            analysis_config=analysis_config,
            analysis_function=analysis_function,
        )

    @classmethod
    def from_perf(
        cls,
        perf: ArrayLike | Sequence[ArrayLike] | Mapping[str, ArrayLike],
        metric: str | Sequence[str] | None = None,
        **kwargs: Any,
    ) -> PerformanceResult:
        """
        Create a result from the loose perf/metric pairs analysis code returns.

        Accepts a single array with a metric name, parallel sequences of
        arrays and names, or a name -> array mapping (metric omitted).
        Remaining keyword arguments go to single()/multiple().
        """
        if isinstance(perf, Mapping):
            if metric is not None:
                raise ValidationError(
                    "metric: must be omitted when perf is a mapping of "
                    "metric names to arrays"
                )
            return cls.multiple(perf, **kwargs)

        if isinstance(metric, str):
            return cls.single(perf, metric, **kwargs)

        if metric is None:
            raise ValidationError("metric: a metric name is required")

        names = list(metric)
        perfs = list(perf)
        if len(names) != len(perfs):
            raise ValidationError(
                f"metric: got {len(names)} metric names for "
                f"{len(perfs)} performance arrays"
            )
        if len(set(names)) != len(names):
            raise ValidationError(f"metric: duplicate metric names in {names}")
        return cls.multiple(dict(zip(names, perfs)), **kwargs)


def _check_n(n: int | None) -> int | None:
    if n is None:
        return None
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
        raise ValidationError(f"n: expected a positive integer, got {n!r}")
    return int(n)
