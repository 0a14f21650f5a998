"""
Burnout Protection

Multipliers that shrink a recommendation after a heavy day, an immediate
restart, or a long absence. Each multiplier is 1.0 when it does not apply.
"""

from datetime import datetime
from typing import Optional

from config.config import BurnoutConfig

_DEFAULT_BURNOUT = BurnoutConfig()


def get_daily_fatigue_multiplier(today_total_minutes: float,
                                 config: BurnoutConfig = _DEFAULT_BURNOUT) -> float:
    """
    Fatigue from today's focused minutes.

    1.0 up to the daily threshold, then linearly down to 1 - max_daily_drop.
    """
    if today_total_minutes <= config.daily_threshold_minutes:
        return 1.0
    over = today_total_minutes - config.daily_threshold_minutes
    drop = min(config.max_daily_drop, (over / config.daily_span_minutes) * config.max_daily_drop)
    return 1.0 - drop


def get_consecutive_session_penalty(last_session_end: Optional[datetime], recommended_break: float,
                                    now: Optional[datetime] = None,
                                    config: BurnoutConfig = _DEFAULT_BURNOUT) -> float:
    """Penalty for starting again before a full break has passed."""
    if last_session_end is None or recommended_break <= 0:
        return 1.0

    now = now or datetime.now()
    minutes_since_last = max(0.0, (now - last_session_end).total_seconds() / 60)
    if minutes_since_last >= recommended_break:
        return 1.0

    rest_ratio = minutes_since_last / recommended_break
    return config.cooldown_floor + (1.0 - config.cooldown_floor) * rest_ratio


def get_rest_day_multiplier(days_since_last_session: int,
                            config: BurnoutConfig = _DEFAULT_BURNOUT) -> float:
    """Ease back in after several days away."""
    if days_since_last_session >= config.rest_days:
        return config.rest_multiplier
    return 1.0


def get_burnout_multiplier(today_total_minutes: float, last_session_end: Optional[datetime],
                           days_since_last_session: int, recommended_break: float,
                           now: Optional[datetime] = None,
                           config: BurnoutConfig = _DEFAULT_BURNOUT) -> float:
    """Product of the fatigue, cooldown and rest-day multipliers."""
    return (
        get_daily_fatigue_multiplier(today_total_minutes, config)
        * get_consecutive_session_penalty(last_session_end, recommended_break, now, config)
        * get_rest_day_multiplier(days_since_last_session, config)
    )
