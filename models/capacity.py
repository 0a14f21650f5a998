"""
Capacity Tracking

Tracks how long the user actually focuses against what they selected, per
context, and uses that to override or stretch the model's recommendation.
"""

import logging
from typing import Optional

import numpy as np
from pydantic import ValidationError

from categories import TREND_DECLINING, TREND_GROWING, TREND_STABLE, EnergyLevel, parse_energy_level
from config.config import CapacityConfig
from models.state import CapacitySession, CapacityStats
from services.storage import CAPACITY_NAMESPACE, StateRepository
from utils import ContextKey, round_to_nearest_5, safe_divide

logger = logging.getLogger(__name__)


def calculate_trend(sessions, config: Optional[CapacityConfig] = None) -> str:
    """
    Classify the trend of actual/selected ratios over the recent window.

    Uses the slope of a least-squares line fitted to the ratios.
    """
    config = config or CapacityConfig()
    if len(sessions) < config.min_samples:
        return TREND_STABLE

    recent = sessions[-config.trend_window:]
    ratios = np.array([safe_divide(s.actual_focus_time, s.selected_duration) for s in recent])
    x = np.arange(len(ratios), dtype=float)
    slope = np.polyfit(x, ratios, 1)[0]

    if slope > config.trend_slope:
        return TREND_GROWING
    if slope < -config.trend_slope:
        return TREND_DECLINING
    return TREND_STABLE


def adjust_for_capacity(model_rec: float, stats: CapacityStats,
                        energy_level: EnergyLevel = EnergyLevel.MID,
                        config: Optional[CapacityConfig] = None) -> float:
    """
    Adjust a model recommendation against proven capacity.

    Args:
        model_rec: The model's recommendation in minutes
        stats: Capacity statistics for the context
        energy_level: Current energy; low energy is never stretched
        config: Capacity configuration

    Returns:
        The adjusted recommendation in minutes
    """
    config = config or CapacityConfig()
    if len(stats.recent_sessions) < config.min_samples:
        return model_rec
    energy_level = parse_energy_level(energy_level)

    # Consistently quitting early: recommend what the user actually manages
    if stats.completion_rate < config.struggle_rate:
        adjusted = max(config.min_override_minutes, round_to_nearest_5(stats.average_capacity))
        logger.info(f"Capacity override: recommending {adjusted} instead of {model_rec}")
        return adjusted

    if energy_level == EnergyLevel.LOW:
        return model_rec

    threshold = config.high_stretch_rate if energy_level == EnergyLevel.HIGH else config.mid_stretch_rate
    if stats.completion_rate >= threshold and stats.trend in (TREND_STABLE, TREND_GROWING):
        nudged = model_rec + config.stretch_minutes
        logger.info(
            f"Capacity stretch ({energy_level.value} energy, {stats.completion_rate:.0%} completion): "
            f"{model_rec} -> {nudged}"
        )
        return nudged

    return model_rec


class CapacityTracker:
    """Reads and updates per-context capacity statistics."""

    def __init__(self, repository: StateRepository, config: Optional[CapacityConfig] = None):
        self.repository = repository
        self.config = config or CapacityConfig()

    def get_capacity_stats(self, context: ContextKey) -> CapacityStats:
        raw = self.repository.get(CAPACITY_NAMESPACE, context.storage_key)
        if raw is None:
            return CapacityStats()
        try:
            return CapacityStats.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Discarding invalid capacity data for {context.storage_key}: {e}")
            return CapacityStats()

    def update_capacity_stats(self, context: ContextKey, selected_duration: float,
                              actual_focus_time: float, completed: bool) -> CapacityStats:
        """Append a session and recompute average, completion rate and trend."""
        stats = self.get_capacity_stats(context)

        stats.recent_sessions.append(CapacitySession(
            selected_duration=selected_duration,
            actual_focus_time=actual_focus_time,
            completed=completed
        ))
        stats.recent_sessions = stats.recent_sessions[-self.config.history_limit:]

        sessions = stats.recent_sessions
        stats.average_capacity = float(np.mean([s.actual_focus_time for s in sessions]))
        stats.completion_rate = sum(1 for s in sessions if s.completed) / len(sessions)
        stats.trend = calculate_trend(sessions, self.config)

        self.repository.put(CAPACITY_NAMESPACE, context.storage_key, stats.model_dump(mode='json'))

        logger.info(
            f"Capacity updated for {context.storage_key}: avg={stats.average_capacity:.1f}, "
            f"completion={stats.completion_rate:.0%}, trend={stats.trend}"
        )
        return stats

    def adjust_for_capacity(self, model_rec: float, stats: CapacityStats,
                            energy_level: EnergyLevel) -> float:
        return adjust_for_capacity(model_rec, stats, energy_level, self.config)
