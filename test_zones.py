"""Tests for zone detection, transitions and the zone manager."""

import pytest

from categories import EnergyLevel, FocusZone
from models.state import ZoneData
from models.zones import (
    ZoneManager, add_dynamic_arm, check_zone_transition, detect_zone, get_zone_actions
)
from utils import ContextKey


@pytest.mark.parametrize('selection, energy, expected', [
    (10, EnergyLevel.MID, FocusZone.SHORT),
    (25, EnergyLevel.HIGH, FocusZone.SHORT),
    (27, EnergyLevel.LOW, FocusZone.SHORT),
    (27, EnergyLevel.MID, FocusZone.LONG),
    (27, EnergyLevel.UNSET, FocusZone.LONG),
    (30, EnergyLevel.LOW, FocusZone.LONG),
    (69, EnergyLevel.MID, FocusZone.LONG),
    (70, EnergyLevel.LOW, FocusZone.EXTENDED),
    (120, EnergyLevel.HIGH, FocusZone.EXTENDED),
])
def test_detect_zone(selection, energy, expected):
    assert detect_zone(selection, energy) == expected


def test_zone_actions_include_dynamic_arms():
    assert get_zone_actions(FocusZone.SHORT) == [10, 15, 20, 25, 30]
    assert get_zone_actions(FocusZone.SHORT, [42, 15]) == [10, 15, 20, 25, 30, 42]
    assert add_dynamic_arm([25, 30], 27) == [25, 27, 30]


@pytest.mark.parametrize('zone, selections, expected', [
    (FocusZone.SHORT, [30] * 5, FocusZone.LONG),
    (FocusZone.SHORT, [28] * 5, FocusZone.SHORT),
    (FocusZone.LONG, [25] * 5, FocusZone.SHORT),
    (FocusZone.LONG, [27] * 5, FocusZone.LONG),
    (FocusZone.LONG, [55] * 5, FocusZone.EXTENDED),
    (FocusZone.EXTENDED, [50] * 5, FocusZone.LONG),
    (FocusZone.EXTENDED, [60] * 5, FocusZone.EXTENDED),
    (FocusZone.SHORT, [60] * 4, FocusZone.SHORT),
])
def test_check_zone_transition(zone, selections, expected):
    assert check_zone_transition(ZoneData(zone=zone, selections=selections)) == expected


def test_transition_uses_only_recent_window():
    data = ZoneData(zone=FocusZone.SHORT, selections=[10] * 5 + [40] * 5)
    assert check_zone_transition(data) == FocusZone.LONG


def test_zone_seeded_from_heuristic(repository):
    manager = ZoneManager(repository)
    context = ContextKey.create('coding', 'high')

    data = manager.get_zone_data(context, 35)
    assert data.zone == FocusZone.LONG
    assert data.selections == []
    assert manager.load_zone_data(context).zone == FocusZone.LONG

    # Existing zones are not re-seeded
    assert manager.get_zone_data(context, 10).zone == FocusZone.LONG


def test_update_trims_history_and_tracks_confidence(repository):
    manager = ZoneManager(repository)
    context = ContextKey.create('reading', 'mid')

    data = manager.update_zone_data(context, 20)
    assert data.zone == FocusZone.SHORT
    assert data.confidence == pytest.approx(0.2)

    for _ in range(12):
        data = manager.update_zone_data(context, 20)
    assert len(data.selections) == 10
    assert data.confidence == 1.0


def test_update_moves_zone_and_resets_readiness(repository):
    manager = ZoneManager(repository)
    context = ContextKey.create('writing', 'mid')
    manager.get_zone_data(context, 20)

    for _ in range(4):
        data = manager.update_zone_data(context, 40)
        assert data.zone == FocusZone.SHORT

    data = manager.update_zone_data(context, 40.4)
    assert data.zone == FocusZone.LONG
    assert data.transition_ready is False
    assert data.selections[-1] == 40
    assert manager.load_zone_data(context).zone == FocusZone.LONG


def test_hysteresis_band_keeps_zone():
    # Average 28 sits between the down (25) and up (30) thresholds
    assert check_zone_transition(ZoneData(zone=FocusZone.SHORT, selections=[25, 28, 30, 26, 31])) == FocusZone.SHORT
    assert check_zone_transition(ZoneData(zone=FocusZone.SHORT, selections=[15, 15, 20, 18, 12])) == FocusZone.SHORT
    assert check_zone_transition(ZoneData(zone=FocusZone.LONG, selections=[25, 28, 30, 26, 31])) == FocusZone.LONG
