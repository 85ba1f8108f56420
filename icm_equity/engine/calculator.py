"""
ICM calculator: cache lookup, strategy dispatch and result storage.

A calculator is built once per table with the stacks of every player except
two distinguished players A and B, then queried repeatedly with different
A/B stacks (typically splits of a fixed A+B total while evaluating a pot).

The cache is keyed by min(stack_a, stack_b) alone. That identifies a query
only while stack_a + stack_b stays the same across calls, which is the
intended workload; callers varying the A+B total should use a fresh
calculator or compute_equities().
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from icm_equity.solvers.exact_icm import exact_equities
from icm_equity.solvers.monte_carlo import estimate_equities

from .cache import EquityCache
from .model import (
    DEFAULT_ITERATIONS,
    EquityResult,
    Strategy,
    TournamentModel,
    select_strategy,
)

logger = logging.getLogger(__name__)


def compute_equities(
    stacks: Sequence[float],
    payouts: Sequence[float],
    iterations: int = DEFAULT_ITERATIONS,
    n_workers: int | None = None,
    seed: int | None = None,
) -> np.ndarray:
    """Equity of every player in ``stacks``, routed to the right solver.

    Tables above MAX_EXACT_PAYOUTS payouts or MAX_EXACT_PLAYERS players are
    estimated; everything else is solved exactly. The caller is not told
    which one ran.

    Args:
        stacks:     Stack of every player.
        payouts:    Payout structure, first place first.
        iterations: Monte Carlo iterations per player (estimator only).
        n_workers:  Estimator thread count. None → one per CPU.
        seed:       Estimator root seed. None for a non-deterministic run.

    Returns:
        float64 array of equities in payout units, in input order.
    """
    if len(payouts) == 0:
        return np.zeros(len(stacks), dtype=np.float64)

    strategy = select_strategy(len(stacks), len(payouts))
    logger.debug(
        "dispatch: players=%d payouts=%d strategy=%s",
        len(stacks),
        len(payouts),
        strategy.value,
    )
    if strategy is Strategy.ESTIMATE:
        return estimate_equities(
            stacks, payouts, iterations=iterations, n_workers=n_workers, seed=seed
        )
    return exact_equities(stacks, payouts)


class ICMCalculator:
    """Equity calculator for two distinguished players at a fixed table.

    Args:
        other_players_stacks: Stacks of every player except A and B.
        payout_structure:     Payouts starting from first place. Descending
                              order is expected but not enforced.
        iterations:           Monte Carlo iterations per player.
        n_workers:            Estimator thread count. None → one per CPU.
        seed:                 Estimator root seed. None for fresh entropy.

    Examples:
        >>> calc = ICMCalculator([1000] * 14, [50, 30, 20])
        >>> [round(e, 9) for e in calc.calculate(1000, 1000)]
        [6.25, 6.25]
    """

    def __init__(
        self,
        other_players_stacks: Sequence[int],
        payout_structure: Sequence[int],
        *,
        iterations: int = DEFAULT_ITERATIONS,
        n_workers: int | None = None,
        seed: int | None = None,
    ) -> None:
        self.model = TournamentModel.from_ints(other_players_stacks, payout_structure)
        self.iterations = iterations
        self.n_workers = n_workers
        self.seed = seed
        self.cache = EquityCache()

    @property
    def strategy(self) -> Strategy:
        """Solver every query on this calculator is routed to."""
        return select_strategy(self.model.n_players, self.model.n_payouts)

    def calculate(self, stack_a: int, stack_b: int) -> tuple[float, float]:
        """Return ``(equity_a, equity_b)`` in payout units.

        Served from the cache when a query with the same short stack was
        answered before; otherwise computed, cached and returned.
        """
        cache_key = min(stack_a, stack_b)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("cache hit: key=%s", cache_key)
            return cached.orient(stack_a, stack_b)

        logger.debug("cache miss: key=%s", cache_key)
        if self.model.n_payouts == 0:
            result = EquityResult(short_stack=0.0, deep_stack=0.0)
            self.cache.insert(cache_key, result)
            return result.orient(stack_a, stack_b)

        equities = self.calculate_all(stack_a, stack_b)
        equity_a = float(equities[0])
        equity_b = float(equities[1])
        self.cache.insert(
            cache_key, EquityResult.from_pair(stack_a, stack_b, equity_a, equity_b)
        )
        return (equity_a, equity_b)

    def calculate_all(self, stack_a: int, stack_b: int) -> np.ndarray:
        """Equity of every player ``[A, B, *others]``. Not cached."""
        stacks = self.model.stack_vector(stack_a, stack_b)
        return compute_equities(
            stacks,
            self.model.payouts,
            iterations=self.iterations,
            n_workers=self.n_workers,
            seed=self.seed,
        )
