"""
CPU backends for MVPA significance tests.

CPUBinomialBackend: closed-form binomial test on accuracies.
CPUPermutationBackend: serial permutation test, optionally with
Bonferroni or cluster correction.
"""

from __future__ import annotations

from mvstats.core.result import Result
from mvstats.core.compute.timing import Timer
from mvstats.inference._binomial import binomial_p_values
from mvstats.inference._common import StatParams
from mvstats.inference._correction import effective_alpha
from mvstats.inference._engine import (
    finalize,
    interrupted,
    permutation_contribution,
    permutation_seeds,
    prepare,
)
from mvstats.inference.design import BinomialDesign, PermutationDesign


class CPUBinomialBackend:
    """
    CPU backend for the binomial test.

    Deterministic, one CDF evaluation per performance entry.
    """

    @property
    def name(self) -> str:
        return 'cpu_binomial'

    def solve(self, design: BinomialDesign) -> Result[StatParams]:
        """Run the binomial test and return Result[StatParams]."""
        timer = Timer()
        timer.start()

        config = design.config
        with timer.section('p_values'):
            p = binomial_p_values(design.perf, design.n, config.chance)
            alpha_eff = effective_alpha(config.alpha, config.correctm, design.perf.size)

        timer.stop()

        params = StatParams(
            test=config.test,
            metric=design.metric,
            alpha=config.alpha,
            alpha_effective=alpha_eff,
            perf=design.perf,
            p=p,
            mask=p < alpha_eff,
            correctm=config.correctm,
            tail=1,
        )

        return Result(
            params=params,
            info={
                'n': design.n,
                'chance': config.chance,
                'correctm': config.correctm,
                'shape': design.perf.shape,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=(),
        )


class CPUPermutationBackend:
    """
    CPU backend for the permutation test.

    Re-runs the analysis once per permutation in the calling thread.
    """

    @property
    def name(self) -> str:
        return 'cpu_permutation'

    def solve(self, design: PermutationDesign) -> Result[StatParams]:
        """Run the permutation test and return Result[StatParams]."""
        timer = Timer()
        timer.start()

        correction, accumulator, warnings_list = prepare(design, timer)

        with timer.section('permutations'):
            try:
                for t, seed in enumerate(permutation_seeds(design)):
                    accumulator.commit(
                        permutation_contribution(design, correction, t, seed)
                    )
            except KeyboardInterrupt:
                interrupted(accumulator)
                raise

        return finalize(design, accumulator, timer, self.name, warnings_list)
