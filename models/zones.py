"""
Zone Management for Focus Recommendations

A zone is a band of plausible durations (short / long / extended) with its
own action set. Zones move with the user's achieved durations, using
asymmetric up/down thresholds so a context does not flip-flop between
neighbouring zones.
"""

import logging
from typing import List, Optional, Sequence

from pydantic import ValidationError

from categories import ZONE_ACTIONS, EnergyLevel, FocusZone
from config.config import ZoneConfig
from models.state import ZoneData
from services.storage import ZONE_NAMESPACE, StateRepository
from utils import ContextKey, merge_actions

logger = logging.getLogger(__name__)


def detect_zone(selection: float, energy_level: EnergyLevel,
                config: Optional[ZoneConfig] = None) -> FocusZone:
    """
    Detect the zone for a single duration.

    The 26-29 minute band is ambiguous and falls to short only for low
    energy.
    """
    config = config or ZoneConfig()
    if selection <= config.short_upper:
        return FocusZone.SHORT
    if selection >= config.extended_lower:
        return FocusZone.EXTENDED
    if selection >= config.long_lower:
        return FocusZone.LONG
    return FocusZone.SHORT if energy_level == EnergyLevel.LOW else FocusZone.LONG


def get_zone_actions(zone: FocusZone, dynamic_arms: Sequence[int] = ()) -> List[int]:
    """Fixed zone actions merged with the user's custom durations."""
    return merge_actions(ZONE_ACTIONS[FocusZone(zone)], dynamic_arms)


def add_dynamic_arm(actions: Sequence[int], custom_duration: int) -> List[int]:
    """Return a new sorted action list that includes a custom duration."""
    return merge_actions(actions, [custom_duration])


def check_zone_transition(zone_data: ZoneData, config: Optional[ZoneConfig] = None) -> FocusZone:
    """
    Decide the zone from the average of the most recent selections.

    Returns the current zone when there are too few selections or the
    average sits inside the hysteresis band.
    """
    config = config or ZoneConfig()
    zone = zone_data.zone
    selections = zone_data.selections

    if len(selections) < config.transition_window:
        return zone

    recent = selections[-config.transition_window:]
    avg_recent = sum(recent) / len(recent)

    if zone == FocusZone.SHORT and avg_recent >= config.short_to_long:
        new_zone = FocusZone.LONG
    elif zone == FocusZone.LONG and avg_recent <= config.long_to_short:
        new_zone = FocusZone.SHORT
    elif zone == FocusZone.LONG and avg_recent >= config.long_to_extended:
        new_zone = FocusZone.EXTENDED
    elif zone == FocusZone.EXTENDED and avg_recent <= config.extended_to_long:
        new_zone = FocusZone.LONG
    else:
        return zone

    logger.info(f"Zone transition: {zone.value} -> {new_zone.value} (avg: {avg_recent:.1f})")
    return new_zone


class ZoneManager:
    """Reads and updates per-context zone state."""

    def __init__(self, repository: StateRepository, config: Optional[ZoneConfig] = None):
        self.repository = repository
        self.config = config or ZoneConfig()

    def load_zone_data(self, context: ContextKey) -> Optional[ZoneData]:
        raw = self.repository.get(ZONE_NAMESPACE, context.storage_key)
        if raw is None:
            return None
        try:
            return ZoneData.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid zone data for {context.storage_key}: {e}")
            return None

    def _save(self, context: ContextKey, zone_data: ZoneData):
        self.repository.put(ZONE_NAMESPACE, context.storage_key, zone_data.model_dump(mode='json'))

    def get_zone_data(self, context: ContextKey, heuristic_duration: float) -> ZoneData:
        """Get or create the zone for a context, seeding it from the heuristic."""
        zone_data = self.load_zone_data(context)
        if zone_data is None:
            zone = detect_zone(heuristic_duration, context.energy_level, self.config)
            zone_data = ZoneData(zone=zone)
            self._save(context, zone_data)
            logger.info(f"Created zone for {context.storage_key}: {zone.value}")
        return zone_data

    def update_zone_data(self, context: ContextKey, achieved_duration: float) -> ZoneData:
        """Record an achieved duration and re-evaluate the zone."""
        zone_data = self.load_zone_data(context)
        if zone_data is None:
            zone_data = ZoneData(zone=detect_zone(achieved_duration, context.energy_level, self.config))

        zone_data.selections.append(int(round(achieved_duration)))
        zone_data.selections = zone_data.selections[-self.config.history_limit:]
        zone_data.confidence = min(1.0, len(zone_data.selections) / self.config.transition_window)

        new_zone = check_zone_transition(zone_data, self.config)
        if new_zone != zone_data.zone:
            zone_data.zone = new_zone
            zone_data.transition_ready = False

        self._save(context, zone_data)
        return zone_data
