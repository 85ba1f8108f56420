"""
Shared data model for the ICM equity engine.

A tournament is described by an ordered payout structure (index 0 = first
place) and the stacks of every player other than the two distinguished
players A and B. Per query the full stack vector is assembled as
``[A, B, *others]``.

Active players inside the exact solver are tracked as a bitmask held in a
plain Python int, restricted to MAX_EXACT_PLAYERS bits (bit i set ⇔ player i
may still claim a remaining payout position).
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

import numpy as np

# ─── Constants ────────────────────────────────────────────────────────────────

MAX_EXACT_PLAYERS: int = 64
"""Width of the active-player bitmask.

Structural, not tunable: a wider table needs a wider mask representation and
the exact solver's state space grows exponentially with it.
"""

MAX_EXACT_PAYOUTS: int = 16
"""Largest payout structure still routed to the exact solver."""

DEFAULT_ITERATIONS: int = 80_000
"""Monte Carlo iterations per player (total draws = iterations * players)."""

DEFAULT_BATCH_SIZE: int = 4_096
"""Rows of random draws generated per vectorised step of an estimator worker."""


# ─── Strategy ─────────────────────────────────────────────────────────────────


class Strategy(Enum):
    """Which solver a query is routed to."""

    EXACT = "EXACT"
    ESTIMATE = "ESTIMATE"


def select_strategy(n_players: int, n_payouts: int) -> Strategy:
    """Pick the solver for a table of ``n_players`` and ``n_payouts``.

    Examples:
        >>> select_strategy(16, 16)
        <Strategy.EXACT: 'EXACT'>
        >>> select_strategy(16, 17)
        <Strategy.ESTIMATE: 'ESTIMATE'>
        >>> select_strategy(65, 3)
        <Strategy.ESTIMATE: 'ESTIMATE'>
    """
    if n_payouts > MAX_EXACT_PAYOUTS or n_players > MAX_EXACT_PLAYERS:
        return Strategy.ESTIMATE
    return Strategy.EXACT


# ─── Inputs ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TournamentModel:
    """Immutable inputs of a calculator: payouts and the fixed other stacks.

    Attributes:
        payouts:      Prize per finishing place, first place first.
        other_stacks: Stacks of every player except A and B.
    """

    payouts: tuple[float, ...]
    other_stacks: tuple[float, ...]

    @classmethod
    def from_ints(
        cls,
        other_players_stacks: Sequence[int],
        payout_structure: Sequence[int],
    ) -> TournamentModel:
        return cls(
            payouts=tuple(float(p) for p in payout_structure),
            other_stacks=tuple(float(s) for s in other_players_stacks),
        )

    @property
    def n_players(self) -> int:
        """Players per query: A, B and the others."""
        return len(self.other_stacks) + 2

    @property
    def n_payouts(self) -> int:
        return len(self.payouts)

    def stack_vector(self, stack_a: float, stack_b: float) -> np.ndarray:
        """Assemble ``[A, B, *others]`` as a float64 array."""
        return build_stack_vector(stack_a, stack_b, self.other_stacks)


def build_stack_vector(
    stack_a: float,
    stack_b: float,
    other_stacks: Sequence[float],
) -> np.ndarray:
    """Return the full per-query stack vector, distinguished players first.

    Examples:
        >>> build_stack_vector(9, 10, (1.0, 2.0)).tolist()
        [9.0, 10.0, 1.0, 2.0]
    """
    stacks = np.empty(len(other_stacks) + 2, dtype=np.float64)
    stacks[0] = stack_a
    stacks[1] = stack_b
    stacks[2:] = other_stacks
    return stacks


# ─── EquityResult ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EquityResult:
    """Equities of A and B stored by stack size rather than by argument order.

    The short-stack slot belongs to whichever of A/B holds fewer chips; on a
    tie A takes the short-stack slot. This makes the cached value independent
    of the order in which the caller passed the two stacks.

    Attributes:
        short_stack: Equity of the player with the smaller (or equal) stack.
        deep_stack:  Equity of the other distinguished player.
    """

    short_stack: float
    deep_stack: float

    @classmethod
    def from_pair(
        cls,
        stack_a: float,
        stack_b: float,
        equity_a: float,
        equity_b: float,
    ) -> EquityResult:
        if stack_a <= stack_b:
            return cls(short_stack=equity_a, deep_stack=equity_b)
        return cls(short_stack=equity_b, deep_stack=equity_a)

    def orient(self, stack_a: float, stack_b: float) -> tuple[float, float]:
        """Return ``(equity_a, equity_b)`` for the given argument order.

        Examples:
            >>> EquityResult(1.0, 2.0).orient(5, 7)
            (1.0, 2.0)
            >>> EquityResult(1.0, 2.0).orient(7, 5)
            (2.0, 1.0)
        """
        if stack_a <= stack_b:
            return (self.short_stack, self.deep_stack)
        return (self.deep_stack, self.short_stack)


# ─── Active-player bitmask ────────────────────────────────────────────────────


def full_mask(n_players: int) -> int:
    """Bitmask with the lowest ``n_players`` bits set.

    Raises:
        ValueError: If ``n_players`` exceeds MAX_EXACT_PLAYERS.

    Examples:
        >>> bin(full_mask(3))
        '0b111'
        >>> full_mask(0)
        0
    """
    if n_players > MAX_EXACT_PLAYERS:
        raise ValueError(
            f"An active-player mask holds at most {MAX_EXACT_PLAYERS} players; "
            f"got {n_players}."
        )
    return (1 << n_players) - 1


def active_indices(mask: int) -> Iterator[int]:
    """Yield the indices of set bits in ascending order.

    Examples:
        >>> list(active_indices(0b1011))
        [0, 1, 3]
    """
    index = 0
    while mask:
        if mask & 1:
            yield index
        mask >>= 1
        index += 1


def count_active(mask: int) -> int:
    """Number of players still in contention.

    Examples:
        >>> count_active(0b1011)
        3
    """
    return bin(mask).count("1")
