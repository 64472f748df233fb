"""
mvstats: significance testing for multivariate pattern analysis.

Binomial and permutation tests for classification and regression
performance, with Bonferroni and cluster-based correction for multiple
comparisons.

Submodules:
    core: Result envelope, exceptions, validation, timing
    inference: Binomial and permutation tests
"""

__version__ = "0.1.0"

from mvstats import inference
from mvstats.inference import (
    PerformanceResult,
    StatResult,
    binomial_test,
    mv_statistics,
    permutation_test,
)

__all__ = [
    "__version__",
    "inference",
    "PerformanceResult",
    "StatResult",
    "binomial_test",
    "mv_statistics",
    "permutation_test",
]
