"""
Tests for the permutation test without cluster correction.

The analysis used throughout is the class mean difference per cell. With
the paired fixtures its observed value is exactly the effect pattern, so
effect cells can only be matched by the identity labelling and noise cells
sit in the middle of a symmetric null distribution.
"""

import logging

import numpy as np
import pytest

from mvstats import PerformanceResult, permutation_test
from mvstats.core.exceptions import (
    InvalidConfigError,
    MetricNotFoundError,
    ShapeMismatchError,
)


def class_mean_difference(cfg, X, y):
    return X[y == 1].mean(axis=0) - X[y == 0].mean(axis=0)


@pytest.fixture
def observed(effect_1d):
    X, y, _ = effect_1d
    return PerformanceResult.single(
        class_mean_difference(None, X, y), "diff",
        analysis_function=class_mean_difference,
    )


# ---------------------------------------------------------------------------
# Tests: p-values and masks
# ---------------------------------------------------------------------------

class TestPermutationPValues:

    def test_shapes_and_range(self, observed, effect_1d):
        X, y, _ = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=100, seed=1)
        assert stat.p.shape == (40,)
        assert stat.mask.shape == (40,)
        assert ((stat.p >= 0) & (stat.p <= 1)).all()
        assert stat.counts.dtype == np.int64

    def test_mask_is_p_below_alpha(self, observed, effect_1d):
        X, y, _ = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=100, alpha=0.1, seed=1)
        np.testing.assert_array_equal(stat.mask, stat.p < 0.1)

    def test_p_is_count_over_permutations(self, observed, effect_1d):
        X, y, _ = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=50, seed=1)
        np.testing.assert_allclose(stat.p, stat.counts / 50)

    def test_effect_cells_significant(self, observed, effect_1d):
        X, y, effect = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=200, seed=3)
        assert (stat.p[effect > 0] == 0.0).all()
        assert stat.mask[effect > 0].all()

    def test_noise_cells_near_half(self, observed, effect_1d):
        X, y, effect = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=200, seed=3)
        noise_p = stat.p[effect == 0]
        assert noise_p.mean() == pytest.approx(0.5, abs=0.1)
        assert ((noise_p > 0.3) & (noise_p < 0.7)).all()

    def test_lower_tail(self, observed, effect_1d):
        X, y, effect = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=200, tail=-1, seed=3)
        assert stat.tail == -1
        assert (stat.p[effect > 0] > 0.95).all()
        assert not stat.mask[effect > 0].any()

    def test_null_p_values_roughly_uniform(self, null_1d):
        X, y = null_1d
        result = PerformanceResult.single(
            class_mean_difference(None, X, y), "diff",
            analysis_function=class_mean_difference,
        )
        stat = permutation_test(result, X, y, n_permutations=200, seed=11)
        assert np.sum(stat.p < 0.05) < 30
        assert 0.35 < stat.p.mean() < 0.65

    def test_alpha_monotone(self, observed, effect_1d):
        X, y, _ = effect_1d
        strict = permutation_test(observed, X, y, n_permutations=100, alpha=0.01, seed=5)
        loose = permutation_test(observed, X, y, n_permutations=100, alpha=0.5, seed=5)
        assert not (strict.mask & ~loose.mask).any()

    def test_bonferroni(self, observed, effect_1d):
        X, y, effect = effect_1d
        stat = permutation_test(
            observed, X, y, n_permutations=100, correctm="bonferroni", seed=5,
        )
        assert stat.alpha_effective == pytest.approx(0.05 / 40)
        np.testing.assert_array_equal(stat.mask, stat.p < 0.05 / 40)
        assert stat.mask[effect > 0].all()
        assert not stat.mask[effect == 0].any()

    def test_2d_performance(self, rng, paired_design):
        noise = rng.standard_normal((15, 4, 6))
        effect = np.zeros((4, 6))
        effect[1:3, 2:5] = 2.5
        X, y = paired_design(noise, effect)
        result = PerformanceResult.single(
            class_mean_difference(None, X, y), "diff",
            analysis_function=class_mean_difference,
        )
        stat = permutation_test(result, X, y, n_permutations=100, seed=2)
        assert stat.p.shape == (4, 6)
        assert stat.mask[1:3, 2:5].all()


# ---------------------------------------------------------------------------
# Tests: reproducibility
# ---------------------------------------------------------------------------

class TestSeeding:

    def test_same_seed_same_counts(self, observed, effect_1d):
        X, y, _ = effect_1d
        a = permutation_test(observed, X, y, n_permutations=50, seed=123)
        b = permutation_test(observed, X, y, n_permutations=50, seed=123)
        np.testing.assert_array_equal(a.counts, b.counts)

    def test_different_seed_different_counts(self, observed, effect_1d):
        X, y, _ = effect_1d
        a = permutation_test(observed, X, y, n_permutations=50, seed=1)
        b = permutation_test(observed, X, y, n_permutations=50, seed=2)
        assert not np.array_equal(a.counts, b.counts)

    def test_seed_recorded(self, observed, effect_1d):
        X, y, _ = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=10, seed=9)
        assert stat.info['seed'] == 9
        assert stat.info['n_permutations'] == 10
        assert stat.backend_name == 'cpu_permutation'


# ---------------------------------------------------------------------------
# Tests: analysis callback
# ---------------------------------------------------------------------------

class TestAnalysisCallback:

    def test_receives_permuted_labels(self, effect_1d):
        X, y, _ = effect_1d
        calls = []

        def analysis(cfg, data, labels):
            calls.append((cfg, data, labels))
            return class_mean_difference(cfg, data, labels)

        result = PerformanceResult.single(
            class_mean_difference(None, X, y), "diff",
            analysis_config={"classifier": "lda"},
        )
        permutation_test(result, X, y, analysis=analysis, n_permutations=5, seed=0)

        assert len(calls) == 5
        for cfg, data, labels in calls:
            assert cfg == {"classifier": "lda"}
            assert data is X
            np.testing.assert_array_equal(np.sort(labels), np.sort(y))
        assert any(not np.array_equal(labels, y) for _, _, labels in calls)

    def test_original_labels_untouched(self, observed, effect_1d):
        X, y, _ = effect_1d
        before = y.copy()
        permutation_test(observed, X, y, n_permutations=5, seed=0)
        np.testing.assert_array_equal(y, before)

    def test_shape_mismatch(self, observed, effect_1d):
        X, y, _ = effect_1d

        def analysis(cfg, data, labels):
            return np.zeros(3)

        with pytest.raises(ShapeMismatchError) as exc_info:
            permutation_test(observed, X, y, analysis=analysis, n_permutations=5)
        err = exc_info.value
        assert err.expected_shape == (40,)
        assert err.actual_shape == (3,)
        assert err.permutation_index == 0

    def test_scalar_performance(self, effect_1d):
        X, y, _ = effect_1d

        def analysis(cfg, data, labels):
            return float(class_mean_difference(cfg, data, labels)[15])

        result = PerformanceResult.single(3.0, "diff", analysis_function=analysis)
        stat = permutation_test(result, X, y, n_permutations=20, seed=0)
        assert stat.p.shape == (1,)

    def test_callback_returning_performance_result(self, effect_1d):
        X, y, effect = effect_1d

        def analysis(cfg, data, labels):
            diff = class_mean_difference(cfg, data, labels)
            return PerformanceResult.multiple({"diff": diff, "neg": -diff})

        observed = analysis(None, X, y)
        stat = permutation_test(
            observed, X, y, analysis=analysis, metric="neg",
            n_permutations=50, seed=0,
        )
        assert stat.metric == "neg"
        # "neg" flips the effect, so effect cells are never beaten from above
        assert (stat.p[effect > 0] > 0.9).all()

    def test_unknown_metric(self, observed, effect_1d):
        X, y, _ = effect_1d
        with pytest.raises(MetricNotFoundError):
            permutation_test(observed, X, y, metric="auc", n_permutations=5)

    def test_zero_permutations(self, observed, effect_1d):
        X, y, _ = effect_1d
        with pytest.raises(InvalidConfigError, match="n_permutations"):
            permutation_test(observed, X, y, n_permutations=0)


# ---------------------------------------------------------------------------
# Tests: null distribution and interruption
# ---------------------------------------------------------------------------

class TestNullDistribution:

    def test_not_kept_by_default(self, observed, effect_1d):
        X, y, _ = effect_1d
        stat = permutation_test(observed, X, y, n_permutations=10, seed=0)
        assert stat.null_distribution is None
        assert stat.warnings == ()

    def test_kept_with_warning(self, observed, effect_1d):
        X, y, _ = effect_1d
        with pytest.warns(UserWarning, match="keep_null_distribution=True"):
            stat = permutation_test(
                observed, X, y, n_permutations=30,
                keep_null_distribution=True, seed=0,
            )
        assert stat.null_distribution.shape == (30, 40)
        assert len(stat.warnings) == 1

    def test_counts_match_null_distribution(self, observed, effect_1d):
        X, y, _ = effect_1d
        with pytest.warns(UserWarning):
            stat = permutation_test(
                observed, X, y, n_permutations=30,
                keep_null_distribution=True, seed=0,
            )
        expected = (stat.null_distribution > stat.perf).sum(axis=0)
        np.testing.assert_array_equal(stat.counts, expected)


class TestInterrupt:

    def test_keyboard_interrupt_propagates(self, observed, effect_1d, caplog):
        X, y, _ = effect_1d
        calls = []

        def analysis(cfg, data, labels):
            calls.append(1)
            if len(calls) == 3:
                raise KeyboardInterrupt
            return class_mean_difference(cfg, data, labels)

        with caplog.at_level(logging.WARNING, logger="mvstats"):
            with pytest.raises(KeyboardInterrupt):
                permutation_test(observed, X, y, analysis=analysis, n_permutations=10)

        assert "interrupted after 2 of 10 permutations" in caplog.text

    def test_analysis_errors_propagate(self, observed, effect_1d):
        X, y, _ = effect_1d

        def analysis(cfg, data, labels):
            raise RuntimeError("classifier failed")

        with pytest.raises(RuntimeError, match="classifier failed"):
            permutation_test(observed, X, y, analysis=analysis, n_permutations=5)
