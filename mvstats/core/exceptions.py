"""
Exception hierarchy for mvstats.

All exceptions inherit from MVStatsError to allow catching any
library-specific error. Input problems inherit from ValidationError,
shape problems from DimensionError.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages name the offending field and the valid alternatives
    - Never catch and re-raise with less information
"""

from __future__ import annotations

from typing import Any, Sequence


class MVStatsError(Exception):
    """Base exception for all mvstats errors."""
    pass


class ValidationError(MVStatsError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class InvalidConfigError(ValidationError):
    """
    A test configuration option has an invalid value.

    Attributes:
        field: Name of the offending configuration option
        value: The rejected value
        valid: Accepted values, if the option takes a fixed set
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        valid: Sequence[Any] | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.value = value
        self.valid = tuple(valid) if valid is not None else None


class UnknownTestError(InvalidConfigError):
    """
    The requested statistical test does not exist.

    Attributes:
        test: The requested test name
        valid: Names of the available tests
    """

    def __init__(self, test: str, valid: Sequence[str]):
        super().__init__(
            f"test: unknown test {test!r}, expected one of {tuple(valid)}",
            field="test",
            value=test,
            valid=valid,
        )
        self.test = test


class AmbiguousMetricError(ValidationError):
    """
    The result carries several metrics and none was selected.

    Attributes:
        available: Metric names carried by the result
    """

    def __init__(self, available: Sequence[str]):
        names = ", ".join(available)
        super().__init__(
            f"metric: multiple metrics available ({names}), "
            f"set metric to select one"
        )
        self.available = tuple(available)


class MetricNotFoundError(ValidationError):
    """
    The requested metric is not part of the result.

    Attributes:
        requested: The requested metric name
        available: Metric names carried by the result
    """

    def __init__(self, requested: str, available: Sequence[str]):
        names = ", ".join(available)
        super().__init__(
            f"metric: {requested!r} requested but only {names} available"
        )
        self.requested = requested
        self.available = tuple(available)


class UnsupportedMetricError(ValidationError):
    """
    The selected metric cannot be used with the requested test.

    Attributes:
        metric: The selected metric name
        test: The requested test
        supported: Metric names the test accepts
    """

    def __init__(self, metric: str, test: str, supported: Sequence[str]):
        super().__init__(
            f"metric: {test} test requires one of {tuple(supported)}, "
            f"got {metric!r}"
        )
        self.metric = metric
        self.test = test
        self.supported = tuple(supported)


class MissingDataError(ValidationError):
    """
    An input required by the requested test was not supplied.

    Attributes:
        missing: Names of the missing inputs
    """

    def __init__(self, message: str, missing: Sequence[str] = ()):
        super().__init__(message)
        self.missing = tuple(missing)


class ShapeMismatchError(DimensionError):
    """
    A permutation run returned a performance array of the wrong shape.

    Usually indicates a misconfigured analysis callback.

    Attributes:
        expected_shape: Shape of the reference performance array
        actual_shape: Shape returned by the analysis callback
        permutation_index: 0-based index of the offending permutation
    """

    def __init__(
        self,
        expected_shape: tuple[int, ...],
        actual_shape: tuple[int, ...],
        permutation_index: int | None = None,
    ):
        where = (
            f" in permutation {permutation_index}"
            if permutation_index is not None else ""
        )
        super().__init__(
            f"analysis callback returned shape {actual_shape}{where}, "
            f"expected {expected_shape} (the shape of the reference result)"
        )
        self.expected_shape = tuple(expected_shape)
        self.actual_shape = tuple(actual_shape)
        self.permutation_index = permutation_index


class NoClustersFoundError(MVStatsError):
    """
    The cluster-forming threshold selects no cell of the observed data.

    Attributes:
        clustercritval: The critical value that was applied
        tail: Tail direction of the threshold
    """

    def __init__(self, clustercritval: Any, tail: int):
        relation = ">" if tail == 1 else "<"
        super().__init__(
            f"clustercritval: no cell satisfies perf {relation} "
            f"clustercritval ({clustercritval!r}), no clusters found"
        )
        self.clustercritval = clustercritval
        self.tail = tail
