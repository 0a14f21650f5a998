"""
Configuration classes for the adaptive focus recommender.
Grouped engine parameters; environment settings map onto these in settings.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class BanditConfig:
    """Configuration for the Thompson Sampling model."""
    prior_alpha: float = 1.0  # Pseudo-successes for an unexplored action
    prior_beta: float = 1.5  # Pseudo-failures; prior mean 0.4 keeps noise below proven winners
    early_exploration_threshold: float = 2.0  # Evidence below this picks uniformly at random
    bootstrap_threshold: float = 5.0  # Evidence below this mirrors recent selections
    ewma_alpha: float = 0.7  # Weight of the newest selection in the bootstrap average
    confident_reward: float = 0.7  # Rewards above this are trusted more
    trust_multiplier: float = 1.5  # Weight applied to confident updates
    rejection_reward: float = -0.3  # Synthetic reward for a declined recommendation
    spillover_threshold: float = 0.7  # Minimum scaled reward to warm the next action
    spillover_factor: float = 0.25  # Fraction of reward given to the next action
    break_exploration_threshold: float = 2.0  # Break evidence needed before sampling
    random_seed: Optional[int] = None  # Seed for reproducible sampling


@dataclass
class ZoneConfig:
    """Configuration for zone detection and hysteresis."""
    history_limit: int = 10  # Selections kept per context
    transition_window: int = 5  # Selections averaged for a transition
    short_upper: int = 25  # Selections at or below this are short
    long_lower: int = 30  # Selections at or above this are long
    extended_lower: int = 70  # Selections at or above this are extended
    short_to_long: float = 30.0
    long_to_short: float = 25.0
    long_to_extended: float = 55.0
    extended_to_long: float = 55.0


@dataclass
class CapacityConfig:
    """Configuration for capacity tracking and adjustment."""
    history_limit: int = 10  # Sessions kept per context
    min_samples: int = 3  # Sessions needed before adjusting
    trend_window: int = 5  # Sessions used for the trend regression
    trend_slope: float = 0.05  # Slope beyond which a trend is growing/declining
    struggle_rate: float = 0.5  # Completion rate below which reality overrides the model
    min_override_minutes: int = 10  # Floor for the reality override
    high_stretch_rate: float = 0.85  # Completion needed to stretch at high energy
    mid_stretch_rate: float = 0.95  # Completion needed to stretch at mid energy
    stretch_minutes: int = 5  # Size of a stretch nudge


@dataclass
class RewardConfig:
    """Configuration for reward shaping."""
    acceptance_bonus: float = 0.15
    completed_base: float = 0.7
    completed_scale: float = 0.3
    skipped_focus_scale: float = 0.4
    skipped_break_base: float = 0.3
    skipped_break_scale: float = 0.3
    excess_threshold: float = 90.0  # Targets longer than this are penalised
    excess_span: float = 90.0  # Penalty reaches its cap at threshold + span
    excess_penalty: float = 0.1
    comfort_ratio: float = 0.7  # Sessions at or below this share of capacity are too easy
    stretch_ratio: float = 1.15  # Sessions at or above this share of capacity are a stretch
    comfort_penalty: float = 0.85
    stretch_bonus: float = 1.1


@dataclass
class BurnoutConfig:
    """Configuration for burnout protection."""
    daily_threshold_minutes: float = 120.0  # Fatigue starts after this much focus in a day
    daily_span_minutes: float = 180.0  # Fatigue reaches its floor this far past the threshold
    max_daily_drop: float = 0.4
    cooldown_floor: float = 0.8  # Multiplier for an instant restart
    rest_days: int = 3  # Days away before easing back in
    rest_multiplier: float = 0.8


@dataclass
class DurationBounds:
    """Hard limits for recommended focus durations."""
    min_focus: int = 5
    max_focus: int = 120
    bootstrap_min: int = 10
    bootstrap_max: int = 120
    short_min: int = 10
    short_max: int = 30
    short_max_break: int = 5
    min_session_seconds: int = 60  # Skipped sessions shorter than this are not saved


@dataclass
class EngineConfig:
    """Top-level configuration for the recommendation engine."""
    bandit: BanditConfig = None
    zones: ZoneConfig = None
    capacity: CapacityConfig = None
    rewards: RewardConfig = None
    burnout: BurnoutConfig = None
    bounds: DurationBounds = None

    def __post_init__(self):
        """Initialise default configs if not provided."""
        if self.bandit is None:
            self.bandit = BanditConfig()
        if self.zones is None:
            self.zones = ZoneConfig()
        if self.capacity is None:
            self.capacity = CapacityConfig()
        if self.rewards is None:
            self.rewards = RewardConfig()
        if self.burnout is None:
            self.burnout = BurnoutConfig()
        if self.bounds is None:
            self.bounds = DurationBounds()

