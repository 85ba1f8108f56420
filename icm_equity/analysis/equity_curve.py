"""
Equity curve of two players splitting a fixed number of chips.

Sweeps stack_a over (0, total_chips) with stack_b = total_chips - stack_a
through one ICMCalculator, so every query after the midpoint is answered from
the cache. Useful for pot-odds style questions ("how much equity does A give
up by risking X chips against B?") and as a monotonicity check.

Usage (standalone report):
    python -m icm_equity.analysis.equity_curve
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from icm_equity.engine.calculator import ICMCalculator

# ─── Result type ──────────────────────────────────────────────────────────────


@dataclass
class EquityCurve:
    """A/B equities over a sweep of stack splits.

    Attributes:
        total_chips: stack_a + stack_b, constant over the sweep.
        stacks_a:    Player A's stack at each point (ascending).
        equities_a:  Player A's equity at each point.
        equities_b:  Player B's equity at each point.
    """

    total_chips: int
    stacks_a: np.ndarray
    equities_a: np.ndarray
    equities_b: np.ndarray

    @property
    def stacks_b(self) -> np.ndarray:
        return self.total_chips - self.stacks_a

    @property
    def combined(self) -> np.ndarray:
        """A + B equity; below the chip-proportional line under ICM pressure."""
        return self.equities_a + self.equities_b


def build_equity_curve(
    calculator: ICMCalculator,
    total_chips: int,
    step: int = 1,
) -> EquityCurve:
    """Query ``calculator`` for every split of ``total_chips`` between A and B.

    Args:
        calculator:  Calculator for the table (other stacks and payouts).
        total_chips: Chips shared by A and B.
        step:        Spacing between successive stack_a values.

    Returns:
        EquityCurve over stack_a = step, 2*step, ... < total_chips.

    Raises:
        ValueError: If step < 1 or the sweep would be empty.
    """
    if step < 1:
        raise ValueError(f"step must be at least 1; got {step}.")
    stacks_a = np.arange(step, total_chips, step, dtype=np.int64)
    if stacks_a.size == 0:
        raise ValueError(
            f"No split of total_chips={total_chips} with step={step} leaves both "
            "players with chips."
        )

    equities = [calculator.calculate(int(a), int(total_chips - a)) for a in stacks_a]
    eq = np.array(equities, dtype=np.float64)
    return EquityCurve(
        total_chips=total_chips,
        stacks_a=stacks_a,
        equities_a=eq[:, 0],
        equities_b=eq[:, 1],
    )


def is_monotone(curve: EquityCurve, tolerance: float = 1e-12) -> bool:
    """True if A's equity never falls (and B's never rises) as A gains chips."""
    rising_a = np.all(np.diff(curve.equities_a) >= -tolerance)
    falling_b = np.all(np.diff(curve.equities_b) <= tolerance)
    return bool(rising_a and falling_b)


def print_equity_curve(curve: EquityCurve, calculator: ICMCalculator | None = None) -> None:
    """Print the sweep as a table; with ``calculator``, also its cached keys."""
    print(f"Equity curve: A + B = {curve.total_chips:,} chips")
    print(f"{'Stack A':>10} {'Stack B':>10} {'Equity A':>10} {'Equity B':>10} {'A + B':>10}")
    print("─" * 54)
    for a, b, ea, eb, ab in zip(
        curve.stacks_a, curve.stacks_b, curve.equities_a, curve.equities_b, curve.combined
    ):
        print(f"{int(a):>10,} {int(b):>10,} {ea:>10.4f} {eb:>10.4f} {ab:>10.4f}")
    if calculator is not None:
        print(f"Cached short stacks: {calculator.cache.keys()}")


# ─── __main__ ─────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    calc = ICMCalculator(list(range(1, 9)), [50, 30, 20])
    curve = build_equity_curve(calc, total_chips=19)
    print_equity_curve(curve, calc)
    print(f"\nMonotone: {is_monotone(curve)}")
