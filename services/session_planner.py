"""
Session Planner

High-level service that plans a focus session (focus and break lengths)
and records its outcome. Combines:
- Heuristic baselines
- The adaptive recommendation engine
- Burnout protection from the session history
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from categories import COMPLETED, COMPLETION_TYPES, parse_energy_level
from services.burnout import get_burnout_multiplier
from services.heuristics import get_heuristic_recommendation
from services.recommendation_engine import AdaptiveRecommendationEngine
from services.session_store import SessionRecord, SessionStore
from utils import ContextKey, clamp, round_to_nearest_5

logger = logging.getLogger(__name__)


@dataclass
class SessionPlan:
    focus_minutes: int
    break_minutes: int
    focus_source: str
    break_source: str


def seconds_to_minutes(seconds: float) -> int:
    return int(round(seconds / 60))


class SessionPlanner:
    """Plans sessions and feeds finished ones back into the engine."""

    def __init__(self, engine: AdaptiveRecommendationEngine, session_store: SessionStore):
        self.engine = engine
        self.session_store = session_store
        self.bounds = engine.config.bounds

    def plan_session(self, energy_level, task_type: str, dynamic_arms: Sequence[int] = (),
                     short_session: bool = False, now: Optional[datetime] = None) -> SessionPlan:
        """
        Recommend focus and break lengths for the next session.

        Args:
            energy_level: Current energy level
            task_type: Task being worked on
            dynamic_arms: Custom focus durations added by the user
            short_session: Keep sessions within the short-session limits
            now: Current time, for burnout calculations
        """
        now = now or datetime.now()
        context = ContextKey.create(task_type, energy_level)
        heuristic = get_heuristic_recommendation(energy_level, task_type, short_session, self.bounds)

        focus = self.engine.get_recommendation(context, heuristic.focus_minutes, dynamic_arms, short_session)
        focus_minutes = focus.minutes
        focus_source = focus.source

        multiplier = self._burnout_multiplier(focus_minutes, now)
        if multiplier < 1.0:
            adjusted = round_to_nearest_5(focus_minutes * multiplier)
            if short_session:
                adjusted = clamp(adjusted, self.bounds.short_min, self.bounds.short_max)
            else:
                adjusted = clamp(adjusted, self.bounds.min_focus, self.bounds.max_focus)
            logger.info(f"Burnout protection: {focus_minutes}m * {multiplier:.2f} -> {adjusted}m")
            focus_minutes = int(adjusted)
            focus_source = 'fatigue-adjusted'

        brk = self.engine.get_break_recommendation(context, heuristic.break_minutes, focus_minutes, short_session)

        return SessionPlan(
            focus_minutes=focus_minutes,
            break_minutes=brk.minutes,
            focus_source=focus_source,
            break_source=brk.source
        )

    def _burnout_multiplier(self, focus_minutes: int, now: datetime) -> float:
        try:
            today_total = self.session_store.today_total_minutes(now)
            last_end = self.session_store.last_session_end()
            days_away = self.session_store.days_since_last_session(now)
        except Exception as e:
            logger.error(f"Error fetching sessions for planner: {e}")
            return 1.0

        return get_burnout_multiplier(
            today_total, last_end, days_away, max(5, focus_minutes / 3), now,
            self.engine.config.burnout
        )

    def complete_session(self, completion_type: str, task_type: str, energy_level,
                         recommended_focus: int, recommended_break: int, accepted: bool,
                         selected_focus_seconds: float, selected_break_seconds: float,
                         focused_seconds: float, dynamic_arms: Sequence[int] = (),
                         now: Optional[datetime] = None) -> Optional[SessionRecord]:
        """
        Record a finished session in the store and the engine.

        Skipped sessions shorter than the minimum save length are treated
        as accidental starts and ignored.

        Returns:
            The stored record, or None when the session was too short
        """
        if completion_type not in COMPLETION_TYPES:
            raise ValueError(f"Unknown completion type: {completion_type}")

        if completion_type != COMPLETED and focused_seconds < self.bounds.min_session_seconds:
            logger.info(f"Skipping save: session was only {focused_seconds:.0f}s")
            return None

        completed = completion_type == COMPLETED
        skip_reason = None if completed else completion_type
        context = ContextKey.create(task_type, energy_level)
        selected_minutes = seconds_to_minutes(selected_focus_seconds)
        focused_minutes = seconds_to_minutes(focused_seconds)

        reward = self.engine.record_outcome(
            context, selected_minutes, focused_minutes, completed, accepted,
            recommended_duration=recommended_focus, skip_reason=skip_reason,
            dynamic_arms=dynamic_arms
        )

        record = SessionRecord(
            task_type=context.task_type,
            energy_level=parse_energy_level(energy_level).value,
            selected_duration=selected_minutes,
            recommended_duration=recommended_focus,
            selected_break=seconds_to_minutes(selected_break_seconds) if completed else 0,
            recommended_break=recommended_break,
            accepted=accepted,
            completed=completed,
            actual_focus_minutes=focused_minutes,
            skip_reason=skip_reason,
            reward=reward,
            created_at=now or datetime.now()
        )
        self.session_store.append(record)
        return record

    def complete_break(self, task_type: str, energy_level, selected_break_seconds: float,
                       taken_seconds: float, skipped: bool, accepted: bool = False,
                       recommended_break: Optional[int] = None) -> float:
        """Feed a finished or skipped break back into the engine."""
        context = ContextKey.create(task_type, energy_level)
        return self.engine.record_break_outcome(
            context, seconds_to_minutes(selected_break_seconds), seconds_to_minutes(taken_seconds),
            skipped, accepted, recommended_break
        )
