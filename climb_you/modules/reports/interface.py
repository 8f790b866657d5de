"""Reports Module - weekly reports, personalized insights and motivation."""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Protocol, Sequence

from climb_you.modules.analysis.interface import DetailedLearningAnalysis, json_dict_factory
from climb_you.modules.history.interface import QuestHistoryRecord
from climb_you.shared.datetime_utils import utc_now
from climb_you.shared.models import Priority, Trend


@dataclass(frozen=True)
class WeekRange:
    start_date: date
    end_date: date

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass(frozen=True)
class WeeklyComparison:
    """Deltas against the immediately preceding week."""

    completion_rate_delta: float
    learning_time_delta: int
    trend: Trend


@dataclass(frozen=True)
class WeeklySummary:
    total_quests: int
    completed_quests: int
    completion_rate: float
    total_learning_minutes: int
    average_difficulty: float
    streak_days: int  # distinct dates with at least one success
    consistency_score: float
    compared_to_previous_week: WeeklyComparison


@dataclass(frozen=True)
class Achievement:
    type: str  # completion, consistency, difficulty, streak
    title: str
    description: str
    impact: str


@dataclass(frozen=True)
class Challenge:
    type: str  # completion, consistency, time_management
    title: str
    description: str
    impact: str  # minor, moderate, significant
    suggested_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class WeeklyInsight:
    category: str  # performance, timing, difficulty, motivation
    title: str
    observation: str
    significance: Priority
    actionable: bool
    implication: str


@dataclass(frozen=True)
class WeeklyRecommendation:
    priority: Priority
    category: str  # schedule, difficulty, content, technique, motivation
    title: str
    rationale: str
    specific_actions: tuple[str, ...]
    expected_benefit: str
    time_to_see_results: str  # immediate, short_term, long_term


@dataclass(frozen=True)
class NextWeekGoal:
    type: str  # completion_rate, learning_time, consistency
    title: str
    target: str
    motivation: str
    success_criteria: tuple[str, ...] = ()
    supporting_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class WeeklyReport:
    """Summary of one week of learning compared with the week before.

    Everything except ``generated_at`` is reproducible from history.
    """

    week_range: WeekRange
    summary: WeeklySummary
    achievements: tuple[Achievement, ...]
    challenges: tuple[Challenge, ...]
    insights: tuple[WeeklyInsight, ...]
    recommendations: tuple[WeeklyRecommendation, ...]
    next_week_goals: tuple[NextWeekGoal, ...]
    celebration_message: str
    improvement_focus: str
    confidence_score: float
    generated_at: datetime = field(default_factory=utc_now, compare=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self, dict_factory=json_dict_factory)


@dataclass(frozen=True)
class InsightContext:
    """Real-time context for personalized insights."""

    current_streak: int
    recent_completion_rate: float
    hour_of_day: int
    last_quest_rating: int | None = None


@dataclass(frozen=True)
class PersonalizedInsight:
    user_id: str
    insight_type: str  # achievement, improvement, warning, encouragement, milestone
    title: str
    message: str
    priority: Priority
    action_items: tuple[str, ...] = ()
    relevant_data: dict[str, Any] = field(default_factory=dict)
    generated_at: datetime = field(default_factory=utc_now)
    expires_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self, dict_factory=json_dict_factory)


class IInsightAndReportSynthesizer(Protocol):
    """Interface for report and insight synthesis."""

    def generate_weekly_report(
        self,
        history: Sequence[QuestHistoryRecord],
        week_start_date: date,
        reference_analysis: DetailedLearningAnalysis | None = None,
    ) -> WeeklyReport:
        ...

    def generate_personalized_insights(
        self,
        user_id: str,
        history: Sequence[QuestHistoryRecord],
        context: InsightContext,
        now: datetime | None = None,
    ) -> list[PersonalizedInsight]:
        ...

    def generate_motivational_message(
        self,
        completion_rate: float,
        streak: int,
        trend: Trend,
    ) -> str:
        ...
