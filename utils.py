"""
Utility Functions for the Adaptive Focus Recommender

Contains the context key value type and helpers for rounding, clamping
and logging setup.
"""

import logging
import math
from typing import List, NamedTuple, Optional, Sequence

from categories import EnergyLevel, get_default_value, parse_energy_level

BREAK_SUFFIX = '-break'
KEY_SEPARATOR = '|'


class ContextKey(NamedTuple):
    """
    The (task type, energy level) pair that scopes all learning.

    Used as a dictionary key in memory; only `storage_key` crosses the
    persistence boundary.
    """
    task_type: str
    energy_level: EnergyLevel

    @classmethod
    def create(cls, task_type: Optional[str], energy_level) -> 'ContextKey':
        return cls(task_type or get_default_value('task'), parse_energy_level(energy_level))

    @property
    def storage_key(self) -> str:
        """
        Serialised form, e.g. 'coding|mid'.

        >>> ContextKey.create('coding', 'mid').storage_key
        'coding|mid'
        """
        return f"{self.task_type}{KEY_SEPARATOR}{parse_energy_level(self.energy_level).value}"

    @classmethod
    def from_storage_key(cls, key: str) -> 'ContextKey':
        task_type, _, energy = key.rpartition(KEY_SEPARATOR)
        return cls.create(task_type, energy)

    def break_context(self) -> 'ContextKey':
        """Derived context used to learn break lengths."""
        return ContextKey(f"{self.task_type}{BREAK_SUFFIX}", self.energy_level)

    def with_energy(self, energy_level: EnergyLevel) -> 'ContextKey':
        return ContextKey(self.task_type, energy_level)


def round_to_nearest_5(value: float) -> int:
    """
    Round minutes to the nearest multiple of 5, halves rounding up.

    >>> round_to_nearest_5(27.5)
    30
    >>> round_to_nearest_5(22)
    20
    """
    return int(math.floor(value / 5.0 + 0.5)) * 5


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value into [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default if denominator is zero.
    """
    if denominator == 0:
        return default
    return numerator / denominator


def merge_actions(base: Sequence[int], extra: Sequence[int] = ()) -> List[int]:
    """Sorted, de-duplicated union of two duration lists."""
    return sorted({int(a) for a in base} | {int(a) for a in extra})


def normalise_task(task: Optional[str]) -> str:
    """Trim and lower-case a task name for heuristic lookups."""
    return (task or '').strip().lower()


def configure_logging(level: str = 'INFO', log_file: Optional[str] = None):
    """
    Configure root logging for entry-point scripts.

    Args:
        level: Logging level name
        log_file: Optional path; logs go to stderr when omitted
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        handlers=handlers,
    )
