"""
Monte Carlo ICM estimator for tables too large for the exact solver.

Each iteration draws one uniform u_i in (0, 1] per player and ranks players by
u_i ** (average_stack / stack_i), descending. The ranking is computed on the
log scale, ln(u_i) * average_stack / stack_i, which orders players the same
way but does not underflow to a tie at 0 when a stack is far below average.
With X_i = -ln(u_i) ~ Exp(1) this ranks players by X_i * average / stack_i,
an exponential with rate proportional to the stack, so the first finisher is
chosen with probability proportional to stack and, by memorylessness, so is
every later finisher among those remaining. The finishing-order distribution
is therefore the one the exact solver enumerates; only the sampling error
differs.

Parallelism: the total draw count (iterations * players) is split evenly
across a thread pool. Every worker owns a numpy Generator seeded from its own
child of a SeedSequence and shares nothing with the others while it runs.
Per-worker means are combined with a weighted average.

Dead players (stack <= 0) get an infinite exponent, are ranked below every
live player and any payout that falls to them is discarded.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from icm_equity.engine.model import DEFAULT_BATCH_SIZE, DEFAULT_ITERATIONS

logger = logging.getLogger(__name__)

_DEAD_SCORE: float = -np.inf
"""Score assigned to dead players; live scores are finite and <= 0."""


# ─── Exponents ────────────────────────────────────────────────────────────────


def compute_exponents(stacks: Sequence[float]) -> np.ndarray:
    """Return ``average_stack / stack`` per player, ``inf`` for dead players.

    Below-average stacks get exponents above 1, pushing their draws towards 0.

    Examples:
        >>> compute_exponents([1.0, 3.0]).tolist()
        [2.0, 0.6666666666666666]
        >>> compute_exponents([0.0, 4.0]).tolist()
        [inf, 0.5]
    """
    arr = np.asarray(stacks, dtype=np.float64)
    live = arr > 0.0
    exponents = np.full(arr.shape, np.inf)
    if arr.size == 0:
        return exponents
    average = float(arr.sum()) / arr.size
    np.divide(average, arr, out=exponents, where=live)
    return exponents


# ─── Worker ───────────────────────────────────────────────────────────────────


def _finishing_order(scores: np.ndarray, n_paid: int) -> np.ndarray:
    """Player indices of the top ``n_paid`` scores per row, best first."""
    n_players = scores.shape[1]
    if n_paid < n_players:
        # Only the leaders matter: partition them out, then sort the prefix
        top = np.argpartition(-scores, n_paid - 1, axis=1)[:, :n_paid]
        order = np.argsort(-np.take_along_axis(scores, top, axis=1), axis=1)
        return np.take_along_axis(top, order, axis=1)
    return np.argsort(-scores, axis=1)


def _run_worker(
    exponents: np.ndarray,
    paid: np.ndarray,
    n_iterations: int,
    seed_seq: np.random.SeedSequence,
    batch_size: int,
) -> np.ndarray:
    """Mean payout per player over ``n_iterations`` simulated finishes."""
    rng = np.random.default_rng(seed_seq)
    n_players = exponents.size
    n_paid = paid.size
    live = np.isfinite(exponents)
    weights = np.where(live, exponents, 0.0)
    totals = np.zeros(n_players, dtype=np.float64)

    remaining = n_iterations
    while remaining > 0:
        rows = min(batch_size, remaining)
        # ln(1 - r) with r in [0, 1) is ln(u) for u in (0, 1], always finite
        scores = np.log1p(-rng.random((rows, n_players))) * weights
        scores[:, ~live] = _DEAD_SCORE

        finishers = _finishing_order(scores, n_paid)
        credited = np.where(live[finishers], paid, 0.0)
        totals += np.bincount(
            finishers.ravel(), weights=credited.ravel(), minlength=n_players
        )
        remaining -= rows

    return totals / n_iterations


# ─── Public API ───────────────────────────────────────────────────────────────


def default_worker_count() -> int:
    """One worker per available CPU."""
    return os.cpu_count() or 1


def simulate_worker_means(
    stacks: Sequence[float],
    payouts: Sequence[float],
    iterations: int = DEFAULT_ITERATIONS,
    n_workers: int | None = None,
    seed: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> np.ndarray:
    """Run the estimator and return every worker's per-player mean.

    Args:
        stacks:     Stack of every player.
        payouts:    Payout structure, first place first.
        iterations: Iterations per player; total draws = iterations * players,
                    split evenly (rounded up) across workers.
        n_workers:  Thread-pool size. None → one per CPU.
        seed:       Root seed for the per-worker SeedSequence children. None
                    for a non-deterministic run.
        batch_size: Iterations drawn per vectorised step within a worker.

    Returns:
        Array of shape (n_workers, n_players). All zeros when there is nothing
        to distribute (no payouts, no players, or no chips in play).

    Raises:
        ValueError: If iterations, n_workers or batch_size is below 1.
    """
    if iterations < 1:
        raise ValueError(f"iterations must be at least 1; got {iterations}.")
    if n_workers is None:
        n_workers = default_worker_count()
    if n_workers < 1:
        raise ValueError(f"n_workers must be at least 1; got {n_workers}.")
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1; got {batch_size}.")

    exponents = compute_exponents(stacks)
    n_players = exponents.size
    n_paid = min(len(payouts), n_players)
    if n_paid == 0 or not np.isfinite(exponents).any():
        return np.zeros((n_workers, n_players), dtype=np.float64)

    paid = np.asarray(payouts[:n_paid], dtype=np.float64)
    per_worker = math.ceil(iterations * n_players / n_workers)
    children = np.random.SeedSequence(seed).spawn(n_workers)
    logger.debug(
        "estimate: players=%d payouts=%d workers=%d iterations_per_worker=%d",
        n_players,
        len(payouts),
        n_workers,
        per_worker,
    )

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        futures = [
            executor.submit(_run_worker, exponents, paid, per_worker, child, batch_size)
            for child in children
        ]
        worker_means = [f.result() for f in futures]

    return np.vstack(worker_means)


def estimate_equities(
    stacks: Sequence[float],
    payouts: Sequence[float],
    iterations: int = DEFAULT_ITERATIONS,
    n_workers: int | None = None,
    seed: int | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> np.ndarray:
    """Approximate equity of every player, in input order.

    See simulate_worker_means() for the arguments. Every worker runs the same
    number of iterations, so each mean is weighted 1 / n_workers.

    Examples:
        >>> estimate_equities([0.0, 5.0], [10.0, 1.0], iterations=10, n_workers=1, seed=0).tolist()
        [0.0, 10.0]
    """
    worker_means = simulate_worker_means(
        stacks,
        payouts,
        iterations=iterations,
        n_workers=n_workers,
        seed=seed,
        batch_size=batch_size,
    )
    n_workers = worker_means.shape[0]
    weights = np.full(n_workers, 1.0 / n_workers)
    return weights @ worker_means
