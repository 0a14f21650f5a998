"""
Heuristic Recommendations

Static focus/break baselines by energy level and task, independent of any
learned state. Used as the cold-start answer and to seed a context's zone.
"""

from dataclasses import dataclass

from categories import SHORT_SESSION_TASKS, EnergyLevel, parse_energy_level
from config.config import DurationBounds
from utils import clamp, normalise_task, round_to_nearest_5


@dataclass
class HeuristicRecommendation:
    focus_minutes: int
    break_minutes: int


BASE_RECOMMENDATIONS = {
    EnergyLevel.LOW: HeuristicRecommendation(focus_minutes=15, break_minutes=5),
    EnergyLevel.MID: HeuristicRecommendation(focus_minutes=25, break_minutes=5),
    EnergyLevel.HIGH: HeuristicRecommendation(focus_minutes=35, break_minutes=10),
    EnergyLevel.UNSET: HeuristicRecommendation(focus_minutes=25, break_minutes=5),
}

SHORT_TASK_FACTOR = 0.8
MAX_HEURISTIC_BREAK = 20


def get_heuristic_recommendation(energy_level, task_type: str = None,
                                 short_session: bool = False,
                                 bounds: DurationBounds = None) -> HeuristicRecommendation:
    """
    Get the rule-based recommendation for an energy level and task.

    Args:
        energy_level: Energy level (enum or raw string)
        task_type: Task name; meditating and planning get shorter blocks
        short_session: Cap focus at the short-session maximum and breaks at 5 minutes

    Example:
        >>> get_heuristic_recommendation('high', 'planning')
        HeuristicRecommendation(focus_minutes=30, break_minutes=10)
    """
    bounds = bounds or DurationBounds()
    base = BASE_RECOMMENDATIONS[parse_energy_level(energy_level)]
    focus = base.focus_minutes
    break_minutes = base.break_minutes

    if short_session:
        focus = min(bounds.short_max, focus)
        break_minutes = min(bounds.short_max_break, break_minutes)

    if normalise_task(task_type) in SHORT_SESSION_TASKS:
        focus = round_to_nearest_5(focus * SHORT_TASK_FACTOR)

    focus = int(clamp(round_to_nearest_5(focus), bounds.min_focus, bounds.max_focus))
    break_minutes = int(clamp(round_to_nearest_5(break_minutes), 5, MAX_HEURISTIC_BREAK))

    return HeuristicRecommendation(focus_minutes=focus, break_minutes=break_minutes)
