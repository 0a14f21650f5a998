"""Tests for capacity tracking and adjustment."""

import pytest

from categories import EnergyLevel
from models.capacity import CapacityTracker, adjust_for_capacity, calculate_trend
from models.state import CapacitySession, CapacityStats
from utils import ContextKey


def make_sessions(ratios, selected=20):
    return [
        CapacitySession(selected_duration=selected, actual_focus_time=selected * r, completed=r >= 1.0)
        for r in ratios
    ]


def make_stats(sessions, completion_rate, trend='stable'):
    return CapacityStats(
        recent_sessions=sessions,
        average_capacity=sum(s.actual_focus_time for s in sessions) / len(sessions),
        completion_rate=completion_rate,
        trend=trend,
    )


@pytest.mark.parametrize('ratios, expected', [
    ([0.5, 1.0], 'stable'),
    ([0.5, 0.6, 0.7, 0.8, 0.9], 'growing'),
    ([1.0, 0.8, 0.6, 0.4, 0.2], 'declining'),
    ([0.9, 0.9, 0.9, 0.9], 'stable'),
])
def test_calculate_trend(ratios, expected):
    assert calculate_trend(make_sessions(ratios)) == expected


def test_trend_uses_last_five_sessions():
    sessions = make_sessions([1.0, 0.8, 0.6, 0.4, 0.2, 0.2, 0.2, 0.2, 0.2, 0.2])
    assert calculate_trend(sessions) == 'stable'


def test_no_adjustment_with_few_sessions():
    stats = make_stats(make_sessions([0.1, 0.1]), completion_rate=0.0)
    assert adjust_for_capacity(30, stats, EnergyLevel.MID) == 30


def test_struggling_user_gets_reality_override():
    sessions = [CapacitySession(selected_duration=30, actual_focus_time=12, completed=False)] * 3
    stats = make_stats(sessions, completion_rate=0.0)
    assert adjust_for_capacity(30, stats, EnergyLevel.HIGH) == 10


def test_reality_override_has_floor():
    sessions = [CapacitySession(selected_duration=30, actual_focus_time=3, completed=False)] * 3
    stats = make_stats(sessions, completion_rate=0.0)
    assert adjust_for_capacity(30, stats, EnergyLevel.MID) == 10


def test_low_energy_is_never_stretched():
    stats = make_stats(make_sessions([1.0] * 4), completion_rate=1.0)
    assert adjust_for_capacity(20, stats, EnergyLevel.LOW) == 20


@pytest.mark.parametrize('energy, completion_rate, trend, expected', [
    (EnergyLevel.HIGH, 0.9, 'stable', 35),
    (EnergyLevel.HIGH, 0.9, 'growing', 35),
    (EnergyLevel.HIGH, 0.9, 'declining', 30),
    (EnergyLevel.HIGH, 0.8, 'stable', 30),
    (EnergyLevel.MID, 0.9, 'stable', 30),
    (EnergyLevel.MID, 1.0, 'stable', 35),
    (EnergyLevel.UNSET, 1.0, 'stable', 35),
])
def test_stretch_nudge(energy, completion_rate, trend, expected):
    stats = make_stats(make_sessions([1.0] * 5), completion_rate=completion_rate, trend=trend)
    assert adjust_for_capacity(30, stats, energy) == expected


def test_tracker_keeps_rolling_window(repository):
    tracker = CapacityTracker(repository)
    context = ContextKey.create('coding', 'mid')

    assert tracker.get_capacity_stats(context).recent_sessions == []

    for i in range(12):
        stats = tracker.update_capacity_stats(context, 30, 30 if i % 2 else 15, completed=bool(i % 2))

    assert len(stats.recent_sessions) == 10
    assert stats.average_capacity == pytest.approx(22.5)
    assert stats.completion_rate == pytest.approx(0.5)

    reloaded = tracker.get_capacity_stats(context)
    assert reloaded.average_capacity == pytest.approx(22.5)
    assert len(reloaded.recent_sessions) == 10


def test_trend_treats_zero_selection_as_zero_ratio():
    sessions = make_sessions([1.0, 1.0]) + [
        CapacitySession(selected_duration=0, actual_focus_time=15, completed=False)
    ]
    assert calculate_trend(sessions) == 'declining'
