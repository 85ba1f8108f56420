"""
Exact ICM solver by recursion over subsets of active players.

State is (active-player bitmask, payout index). At each state every active
player may win the current payout position with probability proportional to
its stack among the active players; the remaining players then compete for
the next position. Results are memoised per top-level call only: the memo's
vectors are ordered by player index, so a memo built for one stack vector is
meaningless for another.

Reachable states are bounded by the masks obtainable by removing up to
(n_payouts - 1) players, which is why callers restrict this solver to at most
MAX_EXACT_PLAYERS players and MAX_EXACT_PAYOUTS payouts.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from icm_equity.engine.model import active_indices, count_active, full_mask

logger = logging.getLogger(__name__)

Memo = dict[tuple[int, int], np.ndarray]
"""(active mask, payout index) → equity vector over the active players."""


def solve_subset(
    stacks: Sequence[float],
    payouts: Sequence[float],
    mask: int,
    payout_idx: int,
    memo: Memo,
) -> np.ndarray:
    """Compute the equity of every active player from ``payout_idx`` onwards.

    Args:
        stacks:     Stack of every player, indexed by original player index.
        payouts:    Payout structure, first place first.
        mask:       Active-player bitmask (bit i ⇔ player i still in contention).
        payout_idx: Index of the next payout position to hand out.
        memo:       Memo table private to one top-level call. Mutated.

    Returns:
        Array of equities, one per active player, in ascending player index.
        Returned arrays may be shared with the memo; callers must not mutate
        them.
    """
    key = (mask, payout_idx)
    cached = memo.get(key)
    if cached is not None:
        return cached

    n_active = count_active(mask)
    equities = np.zeros(n_active, dtype=np.float64)

    if payout_idx >= len(payouts) or n_active == 0:
        return equities

    players = list(active_indices(mask))

    active_stacks = np.array([stacks[i] for i in players], dtype=np.float64)
    active_sum = float(active_stacks.sum())

    # A subset holding no chips claims nothing
    if active_sum == 0.0:
        return equities

    probs = active_stacks / active_sum
    equities += probs * payouts[payout_idx]

    if payout_idx + 1 < len(payouts) and n_active > 1:
        for pos, winner in enumerate(players):
            prob_win = probs[pos]
            if prob_win == 0.0:
                continue
            sub = solve_subset(
                stacks, payouts, mask & ~(1 << winner), payout_idx + 1, memo
            )
            # sub covers every active player except the winner, in order
            equities[:pos] += prob_win * sub[:pos]
            equities[pos + 1 :] += prob_win * sub[pos:]

    memo[key] = equities
    return equities


def exact_equities(stacks: Sequence[float], payouts: Sequence[float]) -> np.ndarray:
    """Exact equity of every player, in input order.

    Starts the recursion with every player active at payout index 0 and a
    fresh memo that is dropped on return.

    Raises:
        ValueError: If there are more players than the bitmask can hold.

    Examples:
        >>> exact_equities([1.0, 1.0], [60.0, 40.0]).tolist()
        [50.0, 50.0]
        >>> exact_equities([3.0, 1.0], [100.0]).tolist()
        [75.0, 25.0]
    """
    mask = full_mask(len(stacks))
    stack_list = [float(s) for s in stacks]
    payout_list = [float(p) for p in payouts]
    memo: Memo = {}
    result = solve_subset(stack_list, payout_list, mask, 0, memo)
    logger.debug(
        "exact solve: players=%d payouts=%d memo_states=%d",
        len(stack_list),
        len(payout_list),
        len(memo),
    )
    return np.array(result, dtype=np.float64)
