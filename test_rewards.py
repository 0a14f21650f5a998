"""Tests for reward shaping."""

import pytest

from services.rewards import apply_capacity_scaling, calculate_reward


def test_completed_session_full_reward():
    assert calculate_reward(True, False, 25, 25, 30) == 1.0


def test_acceptance_bonus_is_capped():
    assert calculate_reward(True, True, 30, 25, 30) == 1.0


def test_accepted_recommendation_sets_target():
    # Focused 15 of a recommended 30 while the timer was set to 15
    assert calculate_reward(True, True, 15, 15, 30) == pytest.approx(0.7 + 0.15 + 0.15)
    assert calculate_reward(True, False, 15, 15, 30) == pytest.approx(1.0)


def test_missing_recommendation_falls_back_to_selection():
    assert calculate_reward(True, True, 20, 20, None) == 1.0


def test_skipped_focus():
    assert calculate_reward(False, False, 10, 20, 25, 'skippedFocus') == pytest.approx(0.2)


def test_skip_reason_wins_over_completed_flag():
    assert calculate_reward(True, False, 10, 20, None, 'skippedFocus') == pytest.approx(0.2)


def test_unfinished_without_reason_scored_as_skipped_focus():
    assert calculate_reward(False, False, 10, 20, None) == pytest.approx(0.2)


def test_skipped_break():
    assert calculate_reward(False, False, 5, 10, None, 'skippedBreak') == pytest.approx(0.45)


def test_very_long_targets_are_penalised():
    assert calculate_reward(True, False, 120, 120, None) == pytest.approx(1.0 - 0.1 * 30 / 90)
    assert calculate_reward(True, False, 200, 200, None) == pytest.approx(0.9)


def test_reward_never_negative():
    assert calculate_reward(False, False, 0, 180, None, 'skippedFocus') == 0.0


@pytest.mark.parametrize('base, completed, capacity, expected', [
    (0.92, 25, 25, 0.92),
    (0.92, 30, 25, 1.0),
    (0.8, 29, 25, pytest.approx(0.88)),
    (1.0, 10, 25, pytest.approx(0.85)),
    (1.0, 17.5, 25, pytest.approx(0.85)),
    (0.6, 10, 0, 0.6),
])
def test_apply_capacity_scaling(base, completed, capacity, expected):
    assert apply_capacity_scaling(base, completed, capacity) == expected


@pytest.mark.parametrize('completed, accepted, focused, selected, recommended, skip_reason', [
    (True, True, 300, 300, 300, None),
    (False, False, 299, 300, None, 'skippedBreak'),
    (True, False, 0, 5, None, None),
    (False, True, 400, 300, 300, 'skippedFocus'),
])
def test_rewards_stay_in_unit_interval(completed, accepted, focused, selected, recommended, skip_reason):
    reward = calculate_reward(completed, accepted, focused, selected, recommended, skip_reason)
    assert 0.0 <= reward <= 1.0
    assert 0.0 <= apply_capacity_scaling(reward, focused, 10) <= 1.0
