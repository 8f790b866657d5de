"""Analysis Module - learning pattern statistics derived from quest history."""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Protocol, Sequence

from climb_you.modules.history.interface import Quest, QuestHistoryRecord
from climb_you.shared.constants import (
    DEFAULT_BEST_TIME_SLOTS,
    DEFAULT_COMPLETION_RATE,
    DEFAULT_PREFERRED_DIFFICULTY,
    DEFAULT_WEEKDAY_RATE,
    WEEKDAY_NAMES,
)
from climb_you.shared.datetime_utils import datetime_to_iso, iso_to_datetime, utc_now
from climb_you.shared.models import ChallengeResponse, Priority, Severity


def json_dict_factory(items: list[tuple[str, Any]]) -> dict[str, Any]:
    """dict_factory for asdict() that flattens enums and tuples."""
    result: dict[str, Any] = {}
    for key, value in items:
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, tuple):
            value = [v.value if isinstance(v, Enum) else v for v in value]
        elif isinstance(value, datetime):
            value = datetime_to_iso(value)
        elif isinstance(value, date):
            value = value.isoformat()
        result[key] = value
    return result


@dataclass(frozen=True)
class LearningPattern:
    """Compact learning statistics fed back into quest planning.

    Always a projection of history within a lookback window; never a
    source of truth. ``last_analyzed`` is excluded from equality.
    """

    average_completion_rate: float
    best_time_slots: tuple[int, ...]
    preferred_difficulty: float
    weekly_trends: Mapping[str, float]
    improvement_areas: tuple[str, ...]
    sample_size: int = 0
    last_analyzed: datetime = field(default_factory=utc_now, compare=False)

    def __post_init__(self) -> None:
        # Read-only view of the weekday rates
        object.__setattr__(self, "weekly_trends", MappingProxyType(dict(self.weekly_trends)))

    def __hash__(self) -> int:
        return hash((
            self.average_completion_rate,
            self.best_time_slots,
            self.preferred_difficulty,
            tuple(sorted(self.weekly_trends.items())),
            self.improvement_areas,
            self.sample_size,
        ))

    @classmethod
    def neutral(cls) -> "LearningPattern":
        """Pattern for a user with no history at all."""
        return cls(
            average_completion_rate=DEFAULT_COMPLETION_RATE,
            best_time_slots=DEFAULT_BEST_TIME_SLOTS,
            preferred_difficulty=DEFAULT_PREFERRED_DIFFICULTY,
            weekly_trends={day: DEFAULT_WEEKDAY_RATE for day in WEEKDAY_NAMES},
            improvement_areas=("consistency",),
        )

    def weekday_rate(self, day: date) -> float:
        """Historical completion rate for the weekday of ``day``."""
        return self.weekly_trends.get(WEEKDAY_NAMES[day.weekday()], DEFAULT_WEEKDAY_RATE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "average_completion_rate": self.average_completion_rate,
            "best_time_slots": list(self.best_time_slots),
            "preferred_difficulty": self.preferred_difficulty,
            "weekly_trends": dict(self.weekly_trends),
            "improvement_areas": list(self.improvement_areas),
            "sample_size": self.sample_size,
            "last_analyzed": datetime_to_iso(self.last_analyzed),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearningPattern":
        return cls(
            average_completion_rate=data["average_completion_rate"],
            best_time_slots=tuple(data["best_time_slots"]),
            preferred_difficulty=data["preferred_difficulty"],
            weekly_trends=dict(data["weekly_trends"]),
            improvement_areas=tuple(data["improvement_areas"]),
            sample_size=data.get("sample_size", 0),
            last_analyzed=iso_to_datetime(data.get("last_analyzed")) or utc_now(),
        )


# ===================
# Detailed Analysis
# ===================


@dataclass(frozen=True)
class StreakData:
    """Runs of consecutive successful resolutions."""

    current: int
    longest: int
    average: float


@dataclass(frozen=True)
class CompletionTimeStats:
    """Minutes actually spent on successful quests."""

    average: float
    fastest: int
    slowest: int


@dataclass(frozen=True)
class CompletionPatterns:
    overall_rate: float
    streaks: StreakData
    consistency_score: float  # active days / days spanned
    completion_times: CompletionTimeStats


@dataclass(frozen=True)
class ProductiveHour:
    hour: int
    efficiency: float


@dataclass(frozen=True)
class TimeEfficiency:
    actual_vs_planned_ratio: float
    ratio_variance: float
    optimal_session_length: int
    productive_hours: tuple[ProductiveHour, ...]
    time_wastage_indicators: tuple[str, ...]
    average_focus_time: float


@dataclass(frozen=True)
class SkillProgression:
    """Success rate per difficulty band."""

    beginner: float
    intermediate: float
    advanced: float


@dataclass(frozen=True)
class DifficultyProgression:
    comfort_zone_min: float
    comfort_zone_max: float
    growth_rate: float
    challenge_response: ChallengeResponse
    skill_progression: SkillProgression
    plateau_risk: float


@dataclass(frozen=True)
class WeeklyTrendAnalysis:
    best_day: str | None
    worst_day: str | None
    weekend_rate: float
    weekday_rate: float


@dataclass(frozen=True)
class ImprovementOpportunity:
    category: str  # time_management, difficulty, consistency, efficiency, engagement
    title: str
    description: str
    impact: Priority
    action_items: tuple[str, ...] = ()


@dataclass(frozen=True)
class LearningStrength:
    category: str
    description: str
    evidence: tuple[str, ...]
    leverage: str


@dataclass(frozen=True)
class RiskFactor:
    type: str  # burnout, plateau, inconsistency, overcommitment, underchallenge
    severity: Severity
    description: str
    early_warnings: tuple[str, ...] = ()
    mitigation_strategies: tuple[str, ...] = ()


@dataclass(frozen=True)
class Recommendation:
    category: str  # schedule, difficulty, content, motivation, technique
    priority: Priority
    title: str
    rationale: str
    implementation: str
    time_frame: str  # immediate, short_term, long_term


@dataclass(frozen=True)
class DetailedLearningAnalysis:
    """Full statistical picture of a learner over an analysis window.

    ``is_baseline`` marks the fixed new-user analysis returned when the
    window holds too few records for confident statistics.
    """

    completion: CompletionPatterns
    time_efficiency: TimeEfficiency
    difficulty: DifficultyProgression
    weekly_trends: WeeklyTrendAnalysis
    improvement_opportunities: tuple[ImprovementOpportunity, ...]
    strengths: tuple[LearningStrength, ...]
    risk_factors: tuple[RiskFactor, ...]
    recommendations: tuple[Recommendation, ...]
    confidence_score: float
    sample_size: int
    is_baseline: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self, dict_factory=json_dict_factory)


# ===================
# Adjustment & Prediction
# ===================


@dataclass(frozen=True)
class DifficultyAdjustment:
    new_difficulty: float
    adjustment: float
    reason: str
    confidence: float


@dataclass(frozen=True)
class PredictionContext:
    """Situation in which upcoming quests will be attempted."""

    hour_of_day: int
    weekday: str  # Mon..Sun
    recent_performance: float  # recent completion rate


@dataclass(frozen=True)
class PerformancePrediction:
    quest_id: str
    predicted_success: float
    confidence: float
    recommended_adjustments: tuple[str, ...] = ()


class IPerformanceAnalyzer(Protocol):
    """Interface for the performance analyzer.

    All operations are pure functions of their arguments and never raise
    on sparse data.
    """

    def compute_learning_pattern(
        self,
        history: Sequence[QuestHistoryRecord],
        window_days: int = 30,
        now: datetime | None = None,
    ) -> LearningPattern:
        ...

    def analyze_learning_patterns(
        self,
        history: Sequence[QuestHistoryRecord],
        timeframe_days: int = 30,
        reference_date: date | None = None,
    ) -> DetailedLearningAnalysis:
        ...

    def generate_difficulty_adjustment(
        self,
        current_difficulty: float,
        recent_history: Sequence[QuestHistoryRecord],
    ) -> DifficultyAdjustment:
        ...

    def predict_performance(
        self,
        quests: Sequence[Quest],
        history: Sequence[QuestHistoryRecord],
        context: PredictionContext,
    ) -> list[PerformancePrediction]:
        ...
