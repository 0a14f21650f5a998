"""
Categorical Variables for the Adaptive Focus Recommender

Contains standardised lists of categorical values and the fixed duration
tables used throughout the system.
"""

from enum import Enum


class EnergyLevel(str, Enum):
    """User-reported energy for a session."""
    LOW = 'low'
    MID = 'mid'
    HIGH = 'high'
    UNSET = 'unset'


class FocusZone(str, Enum):
    """Named band of plausible focus durations."""
    SHORT = 'short'
    LONG = 'long'
    EXTENDED = 'extended'


# Energy levels ordered from least to most capable
ENERGY_HIERARCHY = (EnergyLevel.LOW, EnergyLevel.MID, EnergyLevel.HIGH)

# Zone action tables (minutes). Boundaries overlap for smooth handoff.
ZONE_ACTIONS = {
    FocusZone.SHORT: (10, 15, 20, 25, 30),
    FocusZone.LONG: (25, 30, 35, 40, 45, 50, 55, 60),
    FocusZone.EXTENDED: (50, 60, 70, 80, 90, 105, 120),
}

# Break durations (minutes)
BREAK_ACTIONS = (5, 10, 15, 20, 25, 30)

# Capacity trend categories
TREND_GROWING = 'growing'
TREND_STABLE = 'stable'
TREND_DECLINING = 'declining'
TREND_CATEGORIES = [TREND_GROWING, TREND_STABLE, TREND_DECLINING]

# Session skip reasons and completion types
SKIPPED_FOCUS = 'skippedFocus'
SKIPPED_BREAK = 'skippedBreak'
COMPLETED = 'completed'
SKIP_REASON_CATEGORIES = [SKIPPED_FOCUS, SKIPPED_BREAK]
COMPLETION_TYPES = [COMPLETED] + SKIP_REASON_CATEGORIES

# Tasks that get a shorter heuristic focus block
SHORT_SESSION_TASKS = ['meditating', 'planning']

# Category mappings for easy access
CATEGORY_MAPPINGS = {
    'energy_level': [level.value for level in EnergyLevel],
    'focus_zone': [zone.value for zone in FocusZone],
    'trend': TREND_CATEGORIES,
    'skip_reason': SKIP_REASON_CATEGORIES,
    'completion_type': COMPLETION_TYPES,
}

# Default mappings for categorical features with their default values
DEFAULT_CATEGORICAL_VALUES = {
    'energy_level': EnergyLevel.UNSET.value,
    'focus_zone': FocusZone.SHORT.value,
    'trend': TREND_STABLE,
    'task': 'default',
}


# Helper function to get category list by name
def get_categories(category_name: str):
    """
    Get category list by name.

    Args:
        category_name: Name of the category

    Returns:
        List of category values

    Raises:
        KeyError: If category name not found
    """
    if category_name not in CATEGORY_MAPPINGS:
        raise KeyError(f"Category '{category_name}' not found. Available categories: {list(CATEGORY_MAPPINGS.keys())}")

    return CATEGORY_MAPPINGS[category_name]


# Helper function to get default value for a category
def get_default_value(category_name: str):
    """
    Get default value for a category.

    Raises:
        KeyError: If category name not found
    """
    if category_name not in DEFAULT_CATEGORICAL_VALUES:
        raise KeyError(f"Default value for category '{category_name}' not found.")

    return DEFAULT_CATEGORICAL_VALUES[category_name]


# Helper function to validate if a value exists in a category
def is_valid_category_value(category_name: str, value: str) -> bool:
    """Check if a value is valid for a given category."""
    try:
        categories = get_categories(category_name)
        return value in categories
    except KeyError:
        return False


def parse_energy_level(value) -> EnergyLevel:
    """
    Coerce a raw energy value into an EnergyLevel.

    Empty strings and unknown values map to the category default.
    """
    if isinstance(value, EnergyLevel):
        return value
    if not is_valid_category_value('energy_level', value):
        value = get_default_value('energy_level')
    return EnergyLevel(value)
