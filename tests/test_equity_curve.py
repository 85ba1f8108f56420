"""
Tests for icm_equity/analysis/equity_curve.py
"""

from __future__ import annotations

import numpy as np
import pytest

from icm_equity.analysis.equity_curve import (
    EquityCurve,
    build_equity_curve,
    is_monotone,
    print_equity_curve,
)
from icm_equity.engine.calculator import ICMCalculator
from tests.conftest import REGRESSION_OTHERS, REGRESSION_PAYOUTS


class TestBuildEquityCurve:
    @pytest.fixture(scope="class")
    def curve_and_calc(self):
        calc = ICMCalculator(REGRESSION_OTHERS, REGRESSION_PAYOUTS)
        return build_equity_curve(calc, total_chips=19), calc

    def test_sweep_points(self, curve_and_calc):
        curve, _ = curve_and_calc
        assert curve.stacks_a.tolist() == list(range(1, 19))
        assert curve.stacks_b.tolist() == list(range(18, 0, -1))

    def test_uses_cache(self, curve_and_calc):
        _, calc = curve_and_calc
        assert len(calc.cache) == 9

    def test_monotone(self, curve_and_calc):
        curve, _ = curve_and_calc
        assert is_monotone(curve)

    def test_mirror_symmetry(self, curve_and_calc):
        curve, _ = curve_and_calc
        assert np.allclose(curve.equities_a, curve.equities_b[::-1])

    def test_contains_regression_point(self, curve_and_calc):
        curve, _ = curve_and_calc
        idx = int(np.where(curve.stacks_a == 9)[0][0])
        assert curve.equities_a[idx] == pytest.approx(15.794621704108263, abs=1e-9)

    def test_step(self):
        calc = ICMCalculator(REGRESSION_OTHERS, REGRESSION_PAYOUTS)
        curve = build_equity_curve(calc, total_chips=19, step=5)
        assert curve.stacks_a.tolist() == [5, 10, 15]

    def test_rejects_bad_step(self):
        calc = ICMCalculator(REGRESSION_OTHERS, REGRESSION_PAYOUTS)
        with pytest.raises(ValueError, match="step"):
            build_equity_curve(calc, total_chips=19, step=0)

    def test_rejects_empty_sweep(self):
        calc = ICMCalculator(REGRESSION_OTHERS, REGRESSION_PAYOUTS)
        with pytest.raises(ValueError, match="total_chips=1"):
            build_equity_curve(calc, total_chips=1)

    def test_print(self, curve_and_calc, capsys):
        curve, _ = curve_and_calc
        print_equity_curve(curve)
        out = capsys.readouterr().out
        assert "A + B = 19 chips" in out
        assert len(out.strip().splitlines()) == 3 + 18

    def test_print_lists_cached_short_stacks(self, curve_and_calc, capsys):
        curve, calc = curve_and_calc
        print_equity_curve(curve, calc)
        last = capsys.readouterr().out.strip().splitlines()[-1]
        assert last == f"Cached short stacks: {list(range(1, 10))}"


class TestIsMonotone:
    def test_detects_drop(self):
        curve = EquityCurve(
            total_chips=4,
            stacks_a=np.array([1, 2, 3]),
            equities_a=np.array([1.0, 3.0, 2.0]),
            equities_b=np.array([3.0, 2.0, 1.0]),
        )
        assert not is_monotone(curve)

    def test_flat_is_monotone(self):
        curve = EquityCurve(
            total_chips=4,
            stacks_a=np.array([1, 2, 3]),
            equities_a=np.array([1.0, 1.0, 1.0]),
            equities_b=np.array([1.0, 1.0, 1.0]),
        )
        assert is_monotone(curve)
