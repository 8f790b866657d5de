"""Planning Module - turn profile and learning statistics into a quest config."""

from dataclasses import dataclass
from datetime import date
from typing import Any, Protocol, Sequence

from climb_you.modules.analysis.interface import LearningPattern
from climb_you.modules.history.interface import Profile, QuestHistoryRecord
from climb_you.shared.models import Trend


@dataclass(frozen=True)
class RecentPerformance:
    """Completion statistics over the last few days."""

    completion_rate: float
    average_rating: float | None
    total_quests: int
    trend: Trend = Trend.STABLE


@dataclass(frozen=True)
class ContextualAdjustments:
    """Modifiers applied on top of the profile for one target date."""

    reasons: tuple[str, ...] = ()
    difficulty_modifier: float = 0.0
    time_modifier: float = 1.0


@dataclass(frozen=True)
class QuestConfig:
    """What the generator is asked to produce for one day."""

    total_minutes: int
    quest_count: int
    average_difficulty: float
    difficulty_range: tuple[float, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_minutes": self.total_minutes,
            "quest_count": self.quest_count,
            "average_difficulty": self.average_difficulty,
            "difficulty_range": list(self.difficulty_range),
        }


class IQuestPlanner(Protocol):
    """Interface for the adaptive quest planner."""

    def analyze_recent_performance(
        self,
        history: Sequence[QuestHistoryRecord],
        days: int = 7,
        today: date | None = None,
    ) -> RecentPerformance:
        ...

    def determine_contextual_adjustments(
        self,
        target_date: date,
        learning_pattern: LearningPattern,
        recent_performance: RecentPerformance,
    ) -> ContextualAdjustments:
        ...

    def calculate_optimal_quest_config(
        self,
        profile: Profile,
        adjustments: ContextualAdjustments,
        learning_pattern: LearningPattern | None = None,
    ) -> QuestConfig:
        ...

    def get_recent_patterns(
        self,
        history: Sequence[QuestHistoryRecord],
        days: int = 7,
        today: date | None = None,
    ) -> set[str]:
        ...
