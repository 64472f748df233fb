"""
Backends for MVPA significance tests.

Available backends:
    CPUBinomialBackend: closed-form binomial test
    CPUPermutationBackend: serial permutation test
    ParallelPermutationBackend: joblib thread-pool permutation test
        (import from mvstats.inference.backends.parallel)
"""

from mvstats.inference.backends.cpu import CPUBinomialBackend, CPUPermutationBackend

__all__ = [
    "CPUBinomialBackend",
    "CPUPermutationBackend",
]
