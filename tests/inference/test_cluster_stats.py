"""
Tests for cluster statistics and the cluster correction object.
"""

import numpy as np
import pytest

from mvstats.core.exceptions import NoClustersFoundError
from mvstats.inference import cluster_statistics, extreme_cluster_statistic
from mvstats.inference._cluster_stats import more_extreme, neutral_statistic
from mvstats.inference._correction import (
    ClusterCorrection,
    effective_alpha,
    permutation_p_values,
)


LABELS = np.array([0, 1, 1, 0, 2, 2, 2, 0])
VALUES = np.array([0.1, 0.8, 0.9, 0.2, 0.6, 0.7, 0.65, 0.0])


class TestClusterStatistics:

    def test_maxsum(self):
        stats = cluster_statistics(LABELS, 2, VALUES, "maxsum")
        np.testing.assert_allclose(stats, [1.7, 1.95])

    def test_maxsize(self):
        stats = cluster_statistics(LABELS, 2, VALUES, "maxsize")
        np.testing.assert_array_equal(stats, [2.0, 3.0])

    def test_no_clusters(self):
        stats = cluster_statistics(np.zeros(4, dtype=np.int64), 0, np.ones(4), "maxsum")
        assert stats.shape == (0,)

    def test_2d(self):
        labels = np.array([[1, 0], [1, 2]])
        values = np.array([[1.0, 5.0], [2.0, 4.0]])
        np.testing.assert_allclose(
            cluster_statistics(labels, 2, values, "maxsum"), [3.0, 4.0]
        )

    def test_unknown_statistic(self):
        with pytest.raises(ValueError, match="Unknown cluster statistic"):
            cluster_statistics(LABELS, 2, VALUES, "tfce")


class TestExtremeClusterStatistic:

    def test_upper_tail_takes_max(self):
        assert extreme_cluster_statistic(LABELS, 2, VALUES, "maxsum", 1) == pytest.approx(1.95)

    def test_lower_tail_sum_takes_min(self):
        assert extreme_cluster_statistic(LABELS, 2, VALUES, "maxsum", -1) == pytest.approx(1.7)

    def test_size_always_takes_max(self):
        assert extreme_cluster_statistic(LABELS, 2, VALUES, "maxsize", -1) == 3.0

    def test_sentinel_without_clusters(self):
        labels = np.zeros(4, dtype=np.int64)
        assert extreme_cluster_statistic(labels, 0, np.ones(4), "maxsum", 1) == -np.inf
        assert extreme_cluster_statistic(labels, 0, np.ones(4), "maxsum", -1) == np.inf
        assert extreme_cluster_statistic(labels, 0, np.ones(4), "maxsize", -1) == -np.inf

    @pytest.mark.parametrize("statistic,tail", [
        ("maxsum", 1), ("maxsum", -1), ("maxsize", 1), ("maxsize", -1),
    ])
    def test_sentinel_never_more_extreme(self, statistic, tail):
        reference = np.array([-1e300, 0.0, 1e300])
        sentinel = neutral_statistic(statistic, tail)
        assert not more_extreme(sentinel, reference, statistic, tail).any()

    def test_more_extreme_is_strict(self):
        assert not more_extreme(2.0, np.array([2.0]), "maxsum", 1)[0]
        assert more_extreme(2.5, np.array([2.0]), "maxsum", 1)[0]
        assert more_extreme(1.5, np.array([2.0]), "maxsum", -1)[0]


class TestClusterCorrection:

    def test_observed_clusters(self):
        perf = np.array([0.5, 0.8, 0.9, 0.5, 0.75])
        correction = ClusterCorrection(perf, np.full(5, 0.7), 1, "maxsum", "minimal")
        assert correction.n_clusters == 2
        np.testing.assert_allclose(correction.cluster_statistic, [1.7, 0.75])

    def test_no_clusters(self):
        with pytest.raises(NoClustersFoundError):
            ClusterCorrection(np.full(5, 0.5), np.full(5, 0.7), 1, "maxsum", "minimal")

    def test_update_compares_max_to_every_cluster(self):
        perf = np.array([0.5, 0.8, 0.9, 0.5, 0.75])
        correction = ClusterCorrection(perf, np.full(5, 0.7), 1, "maxsum", "minimal")
        # one permuted cluster with sum 1.0: beats 0.75 but not 1.7
        exceeds, extreme = correction.update(np.array([0.5, 0.5, 0.5, 0.5, 1.0]))
        assert extreme == pytest.approx(1.0)
        np.testing.assert_array_equal(exceeds, [False, True])

    def test_update_without_permuted_clusters(self):
        perf = np.array([0.5, 0.8, 0.9])
        correction = ClusterCorrection(perf, np.full(3, 0.7), 1, "maxsum", "minimal")
        exceeds, extreme = correction.update(np.full(3, 0.5))
        assert extreme == -np.inf
        assert not exceeds.any()

    def test_significance_masks(self):
        perf = np.array([0.5, 0.8, 0.9, 0.5, 0.75])
        correction = ClusterCorrection(perf, np.full(5, 0.7), 1, "maxsum", "minimal")
        sig = correction.significance(np.array([0.01, 0.4]), 0.05)
        np.testing.assert_array_equal(sig.mask, [False, True, True, False, False])
        np.testing.assert_array_equal(sig.cluster_id_mask, [0, 1, 1, 0, 2])
        np.testing.assert_allclose(sig.p, [1.0, 0.01, 0.01, 1.0, 0.4])
        assert sig.n_significant_clusters == 1


class TestCorrectionHelpers:

    def test_bonferroni_alpha(self):
        assert effective_alpha(0.05, "bonferroni", 10) == pytest.approx(0.005)

    @pytest.mark.parametrize("correctm", ["none", "cluster"])
    def test_uncorrected_alpha(self, correctm):
        assert effective_alpha(0.05, correctm, 10) == 0.05

    def test_p_values_without_plus_one(self):
        p = permutation_p_values(np.array([0, 5, 100]), 100)
        np.testing.assert_allclose(p, [0.0, 0.05, 1.0])
