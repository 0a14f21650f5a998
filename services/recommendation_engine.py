"""
Recommendation Engine Service

Adaptive focus-duration recommender combining:
1. Cold start: the heuristic baseline when a context has no data at all
2. Bootstrap: a recency-weighted average of the user's own selections while
   the bandit has too little evidence
3. Main strategy: Thompson Sampling over the context's zone actions
   - Capacity adjustment (reality override or stretch nudge)
   - Cross-energy floor (never below what lower energy already proved)
   - Zone clamping

After each session the reward pipeline (reward, capacity scaling,
spillover) updates the bandit, the capacity window and the zone.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from pydantic import ValidationError

from categories import BREAK_ACTIONS, ENERGY_HIERARCHY, SKIPPED_BREAK, FocusZone
from config.config import EngineConfig
from models.capacity import CapacityTracker
from models.contextual_bandit import ThompsonBandit
from models.state import ActionTable, CapacityStats, ZoneData
from models.zones import ZoneManager, detect_zone, get_zone_actions
from services.rewards import apply_capacity_scaling, calculate_reward
from services.storage import (
    CAPACITY_NAMESPACE, MODEL_NAMESPACE, ZONE_NAMESPACE, StateRepository,
    create_state_repository
)
from utils import ContextKey, clamp, round_to_nearest_5

logger = logging.getLogger(__name__)

# Backup blob section -> (namespace, record schema)
EXPORT_SECTIONS = {
    'model': (MODEL_NAMESPACE, ActionTable),
    'zones': (ZONE_NAMESPACE, ZoneData),
    'capacity': (CAPACITY_NAMESPACE, CapacityStats),
}


@dataclass
class Recommendation:
    minutes: int
    source: str


def get_break_actions_for_focus(focus_minutes: float) -> List[int]:
    """
    Break options for a focus block: at most a third of it, never under 5.

    >>> get_break_actions_for_focus(45)
    [5, 10, 15]
    """
    max_break = max(5, int(focus_minutes // 3))
    return [action for action in BREAK_ACTIONS if action <= max_break]


class AdaptiveRecommendationEngine:
    """
    Per-(task, energy) contextual bandit with zone-sized action spaces.

    The engine never raises from `get_recommendation`: any unexpected error
    degrades to the heuristic baseline.
    """

    def __init__(self, repository: StateRepository, config: Optional[EngineConfig] = None,
                 rng: Optional[np.random.Generator] = None):
        self.repository = repository
        self.config = config or EngineConfig()

        self.bandit = ThompsonBandit(repository, self.config.bandit, rng)
        self.zones = ZoneManager(repository, self.config.zones)
        self.capacity = CapacityTracker(repository, self.config.capacity)

        logger.info("Adaptive recommendation engine initialised successfully")

    @classmethod
    def from_settings(cls, settings) -> 'AdaptiveRecommendationEngine':
        return cls(create_state_repository(settings), settings.to_engine_config())

    # ------------------------------------------------------------------
    # Focus recommendations
    # ------------------------------------------------------------------

    def get_recommendation(self, context: ContextKey, heuristic: int,
                           dynamic_arms: Sequence[int] = (),
                           short_session: bool = False) -> Recommendation:
        """
        Recommend a focus duration for a context.

        Args:
            context: Task and energy level
            heuristic: Rule-based baseline in minutes
            dynamic_arms: Custom durations the user has added
            short_session: Restrict to the short zone

        Returns:
            Recommendation with minutes and a source label
        """
        try:
            return self._recommend(context, heuristic, dynamic_arms, short_session)
        except Exception as e:
            logger.error(f"Error generating recommendation for {context!r}: {e}")
            if short_session:
                heuristic = clamp(heuristic, self.config.bounds.short_min, self.config.bounds.short_max)
            return Recommendation(minutes=int(heuristic), source='heuristic')

    def _recommend(self, context, heuristic, dynamic_arms, short_session):
        bandit_config = self.config.bandit
        bounds = self.config.bounds

        zone_data = self.zones.get_zone_data(context, heuristic)
        stats = self.capacity.get_capacity_stats(context)

        arms = self._usable_arms(dynamic_arms, short_session)
        zone = FocusZone.SHORT if short_session else zone_data.zone
        actions = get_zone_actions(zone, arms)

        total_obs = self.bandit.get_total_observations(context, actions)
        sessions = stats.recent_sessions

        if total_obs < 1 and not sessions:
            if short_session:
                heuristic = clamp(heuristic, bounds.short_min, bounds.short_max)
            logger.info(f"Using heuristic for {context.storage_key} (no data): {heuristic}")
            return Recommendation(minutes=int(heuristic), source='heuristic')

        is_bootstrap = total_obs < bandit_config.bootstrap_threshold
        mirrored = False
        if is_bootstrap:
            if sessions:
                model_rec = round_to_nearest_5(self._bootstrap_average(sessions))
                mirrored = True
                logger.info(f"Bootstrap phase for {context.storage_key}: {model_rec}m from {len(sessions)} sessions")
            else:
                model_rec = int(heuristic)
        else:
            if stats.average_capacity > 0 and not short_session:
                correct_zone = detect_zone(round(stats.average_capacity), context.energy_level, self.config.zones)
                if correct_zone != zone:
                    logger.info(
                        f"Automatic zone switch for {context.storage_key}: {zone.value} -> {correct_zone.value} "
                        f"(avg: {stats.average_capacity:.1f})"
                    )
                    zone = correct_zone
                    actions = get_zone_actions(zone, arms)
            model_rec = self.bandit.get_best_action(context, actions)

        capacity_adjusted = self.capacity.adjust_for_capacity(model_rec, stats, context.energy_level)
        floored = self._apply_cross_energy_floor(context, capacity_adjusted)

        if is_bootstrap:
            value = clamp(floored, bounds.bootstrap_min, bounds.bootstrap_max)
        else:
            value = clamp(floored, min(actions), max(actions))

        value = round_to_nearest_5(value)
        if short_session:
            value = clamp(value, bounds.short_min, bounds.short_max)
        else:
            value = clamp(value, bounds.min_focus, bounds.max_focus)

        if capacity_adjusted != model_rec:
            source = 'capacity'
        elif total_obs >= bandit_config.bootstrap_threshold or mirrored:
            source = 'learned'
        else:
            source = 'blended'

        logger.info(
            f"Recommendation for {context.storage_key}: model={model_rec}, capacity={capacity_adjusted}, "
            f"final={value} ({source})"
        )
        return Recommendation(minutes=int(value), source=source)

    def _usable_arms(self, dynamic_arms: Sequence[int], short_session: bool) -> List[int]:
        arms = [int(a) for a in dynamic_arms if a > 0]
        if short_session:
            arms = [a for a in arms if a <= self.config.bounds.short_max]
        return arms

    def _bootstrap_average(self, sessions) -> float:
        """Recency-weighted average of selected durations, newest weighted most."""
        selections = pd.Series([s.selected_duration for s in sessions], dtype=float)
        return float(selections.ewm(alpha=self.config.bandit.ewma_alpha, adjust=False).mean().iloc[-1])

    def _apply_cross_energy_floor(self, context: ContextKey, value: float) -> float:
        """Raise a value to the best duration already proven at any lower energy."""
        if context.energy_level not in ENERGY_HIERARCHY:
            return value

        current_idx = ENERGY_HIERARCHY.index(context.energy_level)
        for lower_level in reversed(ENERGY_HIERARCHY[:current_idx]):
            best_lower = self.bandit.best_proven_action(context.with_energy(lower_level))
            if best_lower is not None and best_lower > value:
                logger.info(f"Cross-energy floor: {value}m -> {best_lower}m (proven at {lower_level.value} energy)")
                value = best_lower
        return value

    # ------------------------------------------------------------------
    # Break recommendations
    # ------------------------------------------------------------------

    def get_break_recommendation(self, context: ContextKey, base_break: int, focus_minutes: float,
                                 short_session: bool = False) -> Recommendation:
        """Recommend a break length scaled to the focus block."""
        candidates = get_break_actions_for_focus(focus_minutes)
        if short_session:
            candidates = [b for b in candidates if b <= self.config.bounds.short_max_break]
        clamped_base = int(clamp(base_break, min(candidates), max(candidates)))

        try:
            break_context = context.break_context()
            total_obs = self.bandit.get_total_observations(break_context)
            if total_obs < self.config.bandit.break_exploration_threshold:
                return Recommendation(minutes=clamped_base, source='heuristic')

            best = self.bandit.get_best_action(break_context, candidates)
            return Recommendation(minutes=best, source='learned')
        except Exception as e:
            logger.error(f"Error generating break recommendation for {context!r}: {e}")
            return Recommendation(minutes=clamped_base, source='heuristic')

    # ------------------------------------------------------------------
    # Learning
    # ------------------------------------------------------------------

    def record_outcome(self, context: ContextKey, selected_duration: int, actual_focus_minutes: float,
                       completed: bool, accepted: bool = False,
                       recommended_duration: Optional[int] = None,
                       skip_reason: Optional[str] = None,
                       dynamic_arms: Sequence[int] = ()) -> float:
        """
        Learn from a finished focus session.

        Steps run strictly in order: reward, capacity scaling against the
        capacity known before this session, bandit update, capacity update,
        zone update, spillover.

        Returns:
            The reward applied to the selected duration
        """
        base_reward = calculate_reward(
            completed, accepted, actual_focus_minutes, selected_duration,
            recommended_duration, skip_reason, self.config.rewards
        )
        stats = self.capacity.get_capacity_stats(context)
        reward = apply_capacity_scaling(
            base_reward, actual_focus_minutes, stats.average_capacity, self.config.rewards
        )

        self.bandit.update_model(context, selected_duration, reward)
        self.capacity.update_capacity_stats(context, selected_duration, actual_focus_minutes, completed)
        zone_data = self.zones.update_zone_data(context, actual_focus_minutes)

        if completed and reward >= self.config.bandit.spillover_threshold:
            self._apply_spillover(context, zone_data.zone, selected_duration, reward, dynamic_arms)

        return reward

    def _apply_spillover(self, context: ContextKey, zone: FocusZone, selected_duration: int,
                         reward: float, dynamic_arms: Sequence[int]):
        """Give partial credit to the next longer duration in the zone."""
        actions = get_zone_actions(zone, self._usable_arms(dynamic_arms, False))
        higher = [a for a in actions if a > selected_duration]
        if not higher:
            return

        next_arm = higher[0]
        spill = reward * self.config.bandit.spillover_factor
        logger.info(f"Spillover for {context.storage_key}: {selected_duration}m -> {next_arm}m ({spill:.3f})")
        self.bandit.update_model(context, next_arm, spill)

    def record_break_outcome(self, context: ContextKey, selected_break: int, taken_minutes: float,
                             skipped: bool, accepted: bool = False,
                             recommended_break: Optional[int] = None) -> float:
        """Learn from a finished or skipped break."""
        reward = calculate_reward(
            not skipped, accepted, taken_minutes, selected_break, recommended_break,
            SKIPPED_BREAK if skipped else None, self.config.rewards
        )
        self.bandit.update_model(context.break_context(), selected_break, reward)
        return reward

    def penalize_rejection(self, context: ContextKey, action: int):
        """Record that the user declined a recommended duration."""
        self.bandit.penalize_rejection(context, action)

    # ------------------------------------------------------------------
    # State management
    # ------------------------------------------------------------------

    def export_state(self) -> Dict[str, Dict[str, Any]]:
        """Bundle the model, zone and capacity maps for backup."""
        return {
            section: self.repository.load_namespace(namespace)
            for section, (namespace, _) in EXPORT_SECTIONS.items()
        }

    def import_state(self, blob: Any) -> bool:
        """
        Restore state from a backup, overwriting each section present.

        Missing sections are left untouched; invalid records are skipped.

        Returns:
            True when at least one section was restored
        """
        if not isinstance(blob, dict):
            logger.warning(f"Ignoring state import: expected an object, got {type(blob).__name__}")
            return False

        restored = False
        for section, (namespace, schema) in EXPORT_SECTIONS.items():
            data = blob.get(section)
            if not isinstance(data, dict):
                if data is not None:
                    logger.warning(f"Ignoring malformed '{section}' section in state import")
                continue

            valid = {}
            for key, value in data.items():
                try:
                    if schema is ActionTable:
                        ActionTable(actions=value)
                    else:
                        schema.model_validate(value)
                except (ValidationError, ValueError, TypeError) as e:
                    logger.warning(f"Skipping invalid {section} record for {key}: {e}")
                    continue
                valid[key] = value

            self.repository.replace_namespace(namespace, valid)
            restored = True

        logger.info("Imported engine state from backup")
        return restored

    def reset_state(self):
        """Forget everything learned."""
        self.repository.clear()
        logger.info("Engine state reset")

    def clean_break_context_keys(self) -> int:
        """Drop model entries with a doubled break suffix. Returns how many were removed."""
        model = self.repository.load_namespace(MODEL_NAMESPACE)
        cleaned = {key: value for key, value in model.items() if '-break-break' not in key}
        removed = len(model) - len(cleaned)
        if removed:
            self.repository.replace_namespace(MODEL_NAMESPACE, cleaned)
            logger.info(f"Cleaned model: removed {removed} duplicate break keys")
        return removed

    def get_model_statistics(self) -> Dict[str, Dict[str, Any]]:
        """Summary of every learned context: zone, capacity and per-action beliefs."""
        summary = {}
        for key in self.repository.load_namespace(MODEL_NAMESPACE):
            context = ContextKey.from_storage_key(key)
            zone_data = self.zones.load_zone_data(context)
            stats = self.capacity.get_capacity_stats(context)
            summary[key] = {
                'zone': zone_data.zone.value if zone_data else None,
                'zone_confidence': zone_data.confidence if zone_data else 0.0,
                'average_capacity': stats.average_capacity,
                'completion_rate': stats.completion_rate,
                'trend': stats.trend,
                'total_observations': self.bandit.get_total_observations(context),
                'actions': self.bandit.get_context_statistics(context),
            }
        return summary
