from typing import Final

PRIZE_LADDER: Final[tuple[int, ...]] = (
    1000, 2000, 3000, 5000, 7500,
    15000, 30000, 60000, 125000, 250000,
    500000, 1000000, 2000000, 5000000, 10000000,
)

# Zero-based ladder indices whose prize is kept after a later wrong answer
# (the 5th and 10th questions).
SAFE_INDICES: Final[frozenset[int]] = frozenset({4, 9})

QUESTION_COUNT: Final[int] = len(PRIZE_LADDER)
LAST_INDEX: Final[int] = QUESTION_COUNT - 1

XP_PER_CORRECT_ON_LOSS: Final[int] = 100
XP_PER_CORRECT_ON_WITHDRAW: Final[int] = 50
XP_ON_WIN: Final[int] = 5000


def prize_at(index: int) -> int:
    if not 0 <= index <= LAST_INDEX:
        raise IndexError(f"ladder index {index} out of range")
    return PRIZE_LADDER[index]


def withdraw_prize(position: int) -> int:
    """Prize for walking away with ``position`` questions answered."""
    if position <= 0:
        return 0
    return prize_at(position - 1)


def retained_prize(position: int) -> int:
    """Prize kept after a wrong answer at ``position``.

    ``position`` is the zero-based index of the question that was missed, so
    ``position`` questions were answered correctly. The player keeps the
    prize of the highest safe index already passed, i.e. at or below
    ``position - 1``.
    """
    passed = [i for i in SAFE_INDICES if i <= position - 1]
    if not passed:
        return 0
    return PRIZE_LADDER[max(passed)]
