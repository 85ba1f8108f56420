"""
Cross-validation of the Monte Carlo estimator against the exact solver.

For a table small enough to solve exactly, runs both solvers on the same
stacks and reports per-player absolute error together with a Student-t
confidence interval built from the per-worker means (each worker's mean is an
independent estimate, so their spread measures the sampling error).

Usage (standalone report):
    python -m icm_equity.analysis.validation
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from scipy import stats

from icm_equity.engine.model import Strategy, select_strategy
from icm_equity.solvers.exact_icm import exact_equities
from icm_equity.solvers.monte_carlo import simulate_worker_means

# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass
class ValidationResult:
    """Exact vs estimated equities for one table.

    Attributes:
        stacks:        Stack vector that was evaluated.
        payouts:       Payout structure that was evaluated.
        exact:         Exact equity per player.
        estimate:      Estimated equity per player (mean of worker means).
        abs_error:     |estimate - exact| per player.
        ci_low:        Lower confidence bound per player. NaN with one worker.
        ci_high:       Upper confidence bound per player. NaN with one worker.
        confidence:    Confidence level of the interval, e.g. 0.99.
        n_workers:     Number of independent worker estimates.
        iterations:    Iterations per player requested from the estimator.
    """

    stacks: np.ndarray
    payouts: np.ndarray
    exact: np.ndarray
    estimate: np.ndarray
    abs_error: np.ndarray
    ci_low: np.ndarray
    ci_high: np.ndarray
    confidence: float
    n_workers: int
    iterations: int

    @property
    def max_abs_error(self) -> float:
        return float(self.abs_error.max()) if self.abs_error.size else 0.0

    @property
    def coverage(self) -> float:
        """Fraction of players whose exact equity lies inside the interval."""
        if self.exact.size == 0 or np.isnan(self.ci_low).any():
            return float("nan")
        inside = (self.ci_low <= self.exact) & (self.exact <= self.ci_high)
        return float(inside.mean())

    def __str__(self) -> str:
        return (
            f"Players: {self.stacks.size} | Payouts: {self.payouts.size} | "
            f"Workers: {self.n_workers} | Iterations/player: {self.iterations:,} | "
            f"Max |error|: {self.max_abs_error:.4f} | "
            f"{self.confidence:.0%} CI coverage: {self.coverage:.2f}"
        )


# ─── Validation ───────────────────────────────────────────────────────────────


def validate_estimator(
    stacks: Sequence[float],
    payouts: Sequence[float],
    iterations: int = 20_000,
    n_workers: int = 4,
    seed: int | None = 42,
    confidence: float = 0.99,
) -> ValidationResult:
    """Run the exact solver and the estimator on the same table and compare.

    Args:
        stacks:     Stack of every player.
        payouts:    Payout structure, first place first.
        iterations: Estimator iterations per player.
        n_workers:  Estimator workers; at least 2 for a confidence interval.
        seed:       Estimator root seed.
        confidence: Two-sided confidence level of the interval.

    Returns:
        ValidationResult for the table.

    Raises:
        ValueError: If the table is too large for the exact solver.
    """
    if select_strategy(len(stacks), len(payouts)) is not Strategy.EXACT:
        raise ValueError(
            f"validate_estimator() needs a table the exact solver accepts; got "
            f"{len(stacks)} players and {len(payouts)} payouts."
        )

    exact = exact_equities(stacks, payouts)
    worker_means = simulate_worker_means(
        stacks, payouts, iterations=iterations, n_workers=n_workers, seed=seed
    )
    estimate = worker_means.mean(axis=0)

    if n_workers > 1:
        sem = stats.sem(worker_means, axis=0)
        margin = stats.t.ppf(0.5 + confidence / 2.0, df=n_workers - 1) * sem
        ci_low = estimate - margin
        ci_high = estimate + margin
    else:
        ci_low = np.full(estimate.shape, np.nan)
        ci_high = np.full(estimate.shape, np.nan)

    return ValidationResult(
        stacks=np.asarray(stacks, dtype=np.float64),
        payouts=np.asarray(payouts, dtype=np.float64),
        exact=exact,
        estimate=estimate,
        abs_error=np.abs(estimate - exact),
        ci_low=ci_low,
        ci_high=ci_high,
        confidence=confidence,
        n_workers=n_workers,
        iterations=iterations,
    )


def print_validation_report(result: ValidationResult) -> None:
    """Print a per-player exact / estimate / interval table."""
    print(result)
    print(f"{'Player':>6} {'Stack':>10} {'Exact':>10} {'Estimate':>10} {'|Error|':>8}  CI")
    for i, (stack, ex, est, err, lo, hi) in enumerate(
        zip(
            result.stacks,
            result.exact,
            result.estimate,
            result.abs_error,
            result.ci_low,
            result.ci_high,
        )
    ):
        print(f"{i:>6} {stack:>10.0f} {ex:>10.4f} {est:>10.4f} {err:>8.4f}  [{lo:.4f}, {hi:.4f}]")


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    print("ICM estimator validation — 10 players, payouts 50/30/20\n")
    report = validate_estimator(
        [9, 10, 1, 2, 3, 4, 5, 6, 7, 8],
        [50, 30, 20],
        iterations=50_000,
        n_workers=8,
    )
    print_validation_report(report)
