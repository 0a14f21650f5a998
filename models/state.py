"""
Persisted record types for the adaptive engine.

Each record is JSON-serialisable through pydantic so that stored state and
imported backups are validated field by field.
"""

from datetime import datetime
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from categories import TREND_STABLE, FocusZone, is_valid_category_value


class ModelParameters(BaseModel):
    """Beta(alpha, beta) belief about one duration in one context."""
    alpha: float = Field(..., gt=0, description="Success evidence")
    beta: float = Field(..., gt=0, description="Failure evidence")

    @property
    def mean(self) -> float:
        return self.alpha / (self.alpha + self.beta)


class ZoneData(BaseModel):
    """Preferred duration band for a context."""
    zone: FocusZone
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    selections: List[int] = Field(default_factory=list)
    transition_ready: bool = False


class CapacitySession(BaseModel):
    selected_duration: float
    actual_focus_time: float
    completed: bool
    timestamp: float = Field(default_factory=lambda: datetime.now().timestamp())


class CapacityStats(BaseModel):
    """Rolling window of recent outcomes for a context."""
    recent_sessions: List[CapacitySession] = Field(default_factory=list)
    average_capacity: float = 0.0
    completion_rate: float = Field(0.0, ge=0.0, le=1.0)
    trend: str = TREND_STABLE

    @field_validator('trend')
    @classmethod
    def _check_trend(cls, value):
        if not is_valid_category_value('trend', value):
            raise ValueError(f"Unknown trend: {value}")
        return value


class ActionTable(BaseModel):
    """All action parameters of one context, keyed by minutes."""
    actions: Dict[int, ModelParameters] = Field(default_factory=dict)

    @field_validator('actions', mode='before')
    @classmethod
    def _coerce_keys(cls, value):
        # JSON object keys arrive as strings
        if isinstance(value, dict):
            return {int(float(k)): v for k, v in value.items()}
        return value

    def to_storage(self) -> Dict[str, Dict[str, float]]:
        return {str(action): params.model_dump() for action, params in sorted(self.actions.items())}
