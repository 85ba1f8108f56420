"""
Shared pytest fixtures for ICM equity tests.

Provides the reference tables used across the solver and calculator tests.
"""

from __future__ import annotations

import pytest

from icm_equity.engine.calculator import ICMCalculator

REGRESSION_OTHERS: list[int] = list(range(1, 9))
"""Other stacks of the 10-player regression table (A=9, B=10)."""

REGRESSION_PAYOUTS: list[int] = [50, 30, 20]

REGRESSION_EQUITY_A: float = 15.794621704108263
REGRESSION_EQUITY_B: float = 17.216638033941944


def table(stack_a: float, stack_b: float, others: list[int]) -> list[float]:
    """Build a full stack vector ``[A, B, *others]`` as floats.

    Examples:
        >>> table(9, 10, [1, 2])
        [9.0, 10.0, 1.0, 2.0]
    """
    return [float(stack_a), float(stack_b), *(float(s) for s in others)]


@pytest.fixture
def regression_calculator() -> ICMCalculator:
    """10 players (A, B plus stacks 1..8), payouts 50/30/20."""
    return ICMCalculator(REGRESSION_OTHERS, REGRESSION_PAYOUTS)


@pytest.fixture
def equal_stack_calculator() -> ICMCalculator:
    """16 players of 1000 chips each (A and B included), payouts 50/30/20."""
    return ICMCalculator([1000] * 14, [50, 30, 20])
