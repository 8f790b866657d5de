"""Base models and common types used across modules."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


# Common enums and types


class ErrorType(str, Enum):
    """Error taxonomy surfaced to callers."""

    GENERATION = "generation"
    VALIDATION = "validation"
    STORAGE = "storage"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ErrorResponse(BaseSchema):
    """Structured error object handed back to callers."""

    success: bool = False
    type: ErrorType
    message: str
    details: dict[str, Any] | None = None


class GoalCategory(str, Enum):
    """Category of a user's long-term goal."""

    LEARNING = "learning"
    CAREER = "career"
    HEALTH = "health"
    SKILL = "skill"
    CREATIVE = "creative"
    OTHER = "other"


class MotivationStyle(str, Enum):
    """How a user prefers to be motivated."""

    PUSH = "push"
    PULL = "pull"
    SOCIAL = "social"


class Trend(str, Enum):
    """Direction of recent performance."""

    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class Priority(str, Enum):
    """Priority of an insight or recommendation."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class Severity(str, Enum):
    """Severity of a detected risk factor."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ChallengeResponse(str, Enum):
    """How a learner responds to hard quests."""

    THRIVES = "thrives"
    STRUGGLES = "struggles"
    ADAPTIVE = "adaptive"
    UNKNOWN = "unknown"
