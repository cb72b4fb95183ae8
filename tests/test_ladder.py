"""
test_ladder.py - Prize ladder, safe zones and XP level rules
"""

import pytest

from database.ledger import level_for
from quiz.ladder import (
    LAST_INDEX,
    PRIZE_LADDER,
    QUESTION_COUNT,
    SAFE_INDICES,
    prize_at,
    retained_prize,
    withdraw_prize,
)


class TestLadderShape:
    def test_fifteen_strictly_increasing_prizes(self):
        assert QUESTION_COUNT == 15
        assert LAST_INDEX == 14
        assert all(a < b for a, b in zip(PRIZE_LADDER, PRIZE_LADDER[1:]))

    def test_safe_zones_are_fifth_and_tenth_questions(self):
        assert SAFE_INDICES == {4, 9}
        assert PRIZE_LADDER[4] == 7500
        assert PRIZE_LADDER[9] == 250000

    def test_prize_at_rejects_out_of_range(self):
        with pytest.raises(IndexError):
            prize_at(15)
        with pytest.raises(IndexError):
            prize_at(-1)


class TestRetainedPrize:
    """A miss keeps the prize of the highest safe zone already passed."""

    @pytest.mark.parametrize("position", [0, 1, 4])
    def test_nothing_before_first_safe_zone_is_passed(self, position):
        assert retained_prize(position) == 0

    def test_missing_question_six_keeps_first_safe_zone(self):
        assert retained_prize(5) == PRIZE_LADDER[4]

    def test_missing_question_seven_keeps_first_safe_zone(self):
        assert retained_prize(6) == PRIZE_LADDER[4]

    def test_missing_question_ten_keeps_first_safe_zone(self):
        assert retained_prize(9) == PRIZE_LADDER[4]

    @pytest.mark.parametrize("position", [10, 14])
    def test_after_second_safe_zone(self, position):
        assert retained_prize(position) == PRIZE_LADDER[9]


class TestWithdrawPrize:
    def test_withdraw_before_answering_pays_nothing(self):
        assert withdraw_prize(0) == 0

    def test_withdraw_pays_last_answered_prize(self):
        assert withdraw_prize(3) == PRIZE_LADDER[2]
        assert withdraw_prize(14) == PRIZE_LADDER[13]


class TestLevels:
    def test_below_threshold_stays(self):
        assert level_for(999, 1) == 1

    def test_crossing_threshold_levels_up(self):
        assert level_for(1000, 1) == 2

    def test_large_gain_cascades(self):
        assert level_for(5000, 1) == 6

    def test_never_levels_down(self):
        assert level_for(0, 3) == 3
