"""
Parallel backend for the permutation test.

Permutations are independent, so they are farmed out to a joblib thread
pool. Workers return their contributions and the calling thread sums them
into the counts (reduce-after-map). Each permutation index owns a child of
the design's SeedSequence, so results are identical to the CPU backend for
the same seed regardless of scheduling.

Threads are used rather than processes so the analysis callback and the
data need not be picklable; numerical callbacks release the GIL inside
numpy/scipy/scikit-learn.
"""

from __future__ import annotations

from joblib import Parallel, delayed

from mvstats.core.result import Result
from mvstats.core.compute.timing import Timer
from mvstats.inference._common import StatParams
from mvstats.inference._engine import (
    finalize,
    interrupted,
    permutation_contribution,
    permutation_seeds,
    prepare,
)
from mvstats.inference.design import PermutationDesign


class ParallelPermutationBackend:
    """
    Thread-parallel permutation test.

    Args:
        n_jobs: Number of worker threads, -1 for all cores.
    """

    def __init__(self, n_jobs: int = -1):
        self._n_jobs = n_jobs

    @property
    def name(self) -> str:
        return 'parallel_permutation'

    def solve(self, design: PermutationDesign) -> Result[StatParams]:
        """Run the permutation test and return Result[StatParams]."""
        timer = Timer()
        timer.start()

        correction, accumulator, warnings_list = prepare(design, timer)

        with timer.section('permutations'):
            tasks = (
                delayed(permutation_contribution)(design, correction, t, seed)
                for t, seed in enumerate(permutation_seeds(design))
            )
            parallel = Parallel(
                n_jobs=self._n_jobs,
                prefer="threads",
                return_as="generator_unordered",
            )
            try:
                for contribution in parallel(tasks):
                    accumulator.commit(contribution)
            except KeyboardInterrupt:
                interrupted(accumulator)
                raise

        result = finalize(design, accumulator, timer, self.name, warnings_list)
        return Result(
            params=result.params,
            info={**result.info, 'n_jobs': self._n_jobs},
            timing=result.timing,
            backend_name=result.backend_name,
            warnings=result.warnings,
        )
