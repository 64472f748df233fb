"""
Binomial test for classification accuracy.

Cross-validated accuracy is a weighted mean over folds and repetitions, so
accuracy * n is the total number of hits across all test samples. Since a
sum of binomial counts is binomial, the whole cross-validation can be
tested as one binomial experiment with n trials.
"""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray
from scipy.stats import binom

from mvstats.core.exceptions import UnsupportedMetricError, ValidationError
from mvstats.core.validation import check_finite
from mvstats.inference._common import ACCURACY_METRICS


def check_accuracy_metric(metric: str) -> None:
    """Reject metrics other than classification accuracy."""
    if metric not in ACCURACY_METRICS:
        raise UnsupportedMetricError(metric, "binomial", ACCURACY_METRICS)


def hit_counts(perf: NDArray[np.floating[Any]], n: int) -> NDArray[np.floating[Any]]:
    """
    Number of correct predictions implied by an accuracy.

    Rounds half away from zero (0.5 * 3 = 1.5 hits -> 2).
    """
    return np.floor(perf * n + 0.5)


def binomial_p_values(
    perf: NDArray[np.floating[Any]],
    n: int,
    chance: float,
) -> NDArray[np.floating[Any]]:
    """
    Upper-tail binomial p-values, elementwise over perf.

    p = 1 - CDF(k; n, chance) with k = round(perf * n), i.e. the
    probability of more than k hits at chance level. The survival function
    is used since it avoids cancellation for very small p.

    Parameters
    ----------
    perf : ndarray
        Accuracies in [0, 1]; NaN and Inf are rejected.
    n : int
        Total number of tested samples.
    chance : float
        Chance level, e.g. 0.5 for two balanced classes.

    Returns
    -------
    ndarray
        p-values, same shape as perf.
    """
    check_finite(perf, "perf")
    if np.any((perf < 0.0) | (perf > 1.0)):
        raise ValidationError(
            f"perf: accuracy must lie in [0, 1], got range "
            f"[{np.min(perf):g}, {np.max(perf):g}]"
        )
    k = hit_counts(perf, n)
    return np.asarray(binom.sf(k, n, chance), dtype=np.float64)
