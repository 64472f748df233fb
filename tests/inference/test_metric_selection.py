"""
Tests for PerformanceResult construction and metric selection.
"""

import numpy as np
import pytest

from mvstats.core.exceptions import (
    AmbiguousMetricError,
    MetricNotFoundError,
    ValidationError,
)
from mvstats.inference import (
    MultipleMetrics,
    PerformanceResult,
    SingleMetric,
    select_metric,
)


# ═══════════════════════════════════════════════════════════════════════
# PerformanceResult
# ═══════════════════════════════════════════════════════════════════════


class TestPerformanceResult:

    def test_single(self):
        result = PerformanceResult.single([0.5, 0.7], "accuracy", n=100)
        assert isinstance(result.metrics, SingleMetric)
        assert result.metric == "accuracy"
        assert result.metric_names == ("accuracy",)
        assert result.n == 100
        np.testing.assert_array_equal(result.perf, [0.5, 0.7])

    def test_scalar_perf_becomes_1d(self):
        result = PerformanceResult.single(0.8, "acc", n=50)
        assert result.perf.shape == (1,)

    def test_perf_is_copied(self):
        perf = np.array([0.5, 0.6])
        result = PerformanceResult.single(perf, "acc")
        perf[0] = 1.0
        assert result.perf[0] == 0.5

    def test_multiple(self):
        result = PerformanceResult.multiple(
            {"accuracy": [0.6, 0.7], "auc": [0.65, 0.8]}, n=80
        )
        assert isinstance(result.metrics, MultipleMetrics)
        assert result.metric == ("accuracy", "auc")
        assert set(result.perf) == {"accuracy", "auc"}

    def test_multiple_with_one_entry_is_single(self):
        result = PerformanceResult.multiple({"auc": [0.6]})
        assert isinstance(result.metrics, SingleMetric)

    def test_from_perf_parallel_sequences(self):
        result = PerformanceResult.from_perf(
            [np.zeros(3), np.ones(3)], ["accuracy", "auc"], n=10
        )
        assert result.metric_names == ("accuracy", "auc")
        np.testing.assert_array_equal(result.perf["auc"], np.ones(3))

    def test_from_perf_single(self):
        result = PerformanceResult.from_perf(np.zeros((4, 4)), "mse")
        assert result.metric == "mse"
        assert result.perf.shape == (4, 4)

    def test_from_perf_mapping(self):
        result = PerformanceResult.from_perf({"acc": [0.5], "auc": [0.5]})
        assert result.metric_names == ("acc", "auc")

    def test_from_perf_length_mismatch(self):
        with pytest.raises(ValidationError, match="2 metric names for 1"):
            PerformanceResult.from_perf([np.zeros(3)], ["acc", "auc"])

    def test_from_perf_duplicate_names(self):
        with pytest.raises(ValidationError, match="duplicate"):
            PerformanceResult.from_perf([np.zeros(3), np.zeros(3)], ["acc", "acc"])

    def test_empty_perf_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            PerformanceResult.single([], "acc")

    def test_invalid_n(self):
        with pytest.raises(ValidationError, match="n: expected a positive integer"):
            PerformanceResult.single([0.5], "acc", n=0)

    def test_empty_metric_name(self):
        with pytest.raises(ValidationError, match="metric"):
            PerformanceResult.single([0.5], "")


# ═══════════════════════════════════════════════════════════════════════
# select_metric
# ═══════════════════════════════════════════════════════════════════════


class TestSelectMetric:

    def test_single_without_target(self):
        result = PerformanceResult.single([0.6], "auc")
        perf, name = select_metric(result)
        assert name == "auc"
        np.testing.assert_array_equal(perf, [0.6])

    def test_single_with_matching_target(self):
        result = PerformanceResult.single([0.6], "auc")
        _, name = select_metric(result, "auc")
        assert name == "auc"

    def test_single_with_other_target(self):
        result = PerformanceResult.single([0.6], "auc")
        with pytest.raises(MetricNotFoundError) as exc_info:
            select_metric(result, "accuracy")
        assert exc_info.value.available == ("auc",)

    def test_multiple_requires_target(self):
        result = PerformanceResult.multiple({"acc": [0.6], "auc": [0.7]})
        with pytest.raises(AmbiguousMetricError, match="acc, auc"):
            select_metric(result)

    def test_multiple_selects_target(self):
        result = PerformanceResult.multiple({"acc": [0.6], "auc": [0.7]})
        perf, name = select_metric(result, "auc")
        assert name == "auc"
        np.testing.assert_array_equal(perf, [0.7])

    def test_multiple_missing_target(self):
        result = PerformanceResult.multiple({"acc": [0.6], "auc": [0.7]})
        with pytest.raises(MetricNotFoundError, match="'f1' requested"):
            select_metric(result, "f1")

    def test_exact_name_match(self):
        """'acc' does not match 'accuracy'."""
        result = PerformanceResult.multiple({"accuracy": [0.6], "auc": [0.7]})
        with pytest.raises(MetricNotFoundError):
            select_metric(result, "acc")
