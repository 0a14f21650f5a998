"""
Reward Shaping

Turns a session outcome into a scalar reward in [0, 1], then scales it by
how the session compared to the user's proven capacity.
"""

from typing import Optional

from categories import SKIPPED_BREAK, SKIPPED_FOCUS
from config.config import RewardConfig
from utils import clamp, safe_divide

_DEFAULT_REWARDS = RewardConfig()


def calculate_reward(completed: bool, accepted_rec: bool, focused_minutes: float,
                     selected_duration: float, recommended_duration: Optional[float],
                     skip_reason: Optional[str] = None,
                     config: RewardConfig = _DEFAULT_REWARDS) -> float:
    """
    Calculate the reward for a finished session.

    Args:
        completed: Whether the focus block ran to the end
        accepted_rec: Whether the user took the recommended duration
        focused_minutes: Minutes actually focused
        selected_duration: Duration the user started with
        recommended_duration: Duration the engine recommended
        skip_reason: 'skippedFocus', 'skippedBreak' or None

    Returns:
        Reward between 0 and 1

    Example:
        >>> calculate_reward(True, False, 25, 25, 30)
        1.0
        >>> round(calculate_reward(False, False, 10, 20, 25, 'skippedFocus'), 2)
        0.2
    """
    if accepted_rec and recommended_duration:
        target = recommended_duration
    else:
        target = selected_duration
    ratio = min(1.0, safe_divide(focused_minutes, target))
    bonus = config.acceptance_bonus if accepted_rec else 0.0

    if skip_reason == SKIPPED_FOCUS:
        reward = config.skipped_focus_scale * ratio + bonus
    elif skip_reason == SKIPPED_BREAK:
        reward = config.skipped_break_base + config.skipped_break_scale * ratio + bonus
    elif completed:
        reward = config.completed_base + config.completed_scale * ratio + bonus
    else:
        reward = config.skipped_focus_scale * ratio + bonus

    # Very long targets are rarely sustainable
    if target > config.excess_threshold:
        overshoot = min(1.0, (target - config.excess_threshold) / config.excess_span)
        reward -= config.excess_penalty * overshoot

    return clamp(reward, 0.0, 1.0)


def apply_capacity_scaling(base_reward: float, completed_duration: float, average_capacity: float,
                           config: RewardConfig = _DEFAULT_REWARDS) -> float:
    """
    Scale a reward by the session's length relative to proven capacity.

    Trivially easy sessions are discounted so they do not dominate the
    bandit; genuine stretches get a bonus.

    Example:
        >>> apply_capacity_scaling(0.92, 25, 25)
        0.92
        >>> apply_capacity_scaling(0.92, 30, 25)
        1.0
    """
    if average_capacity <= 0:
        return base_reward

    ratio = completed_duration / average_capacity

    if ratio <= config.comfort_ratio:
        return clamp(base_reward * config.comfort_penalty, 0.0, 1.0)
    if ratio >= config.stretch_ratio:
        return clamp(base_reward * config.stretch_bonus, 0.0, 1.0)
    return base_reward
