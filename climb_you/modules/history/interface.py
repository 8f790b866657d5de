"""History Module - profiles, quest resolutions and daily plans.

Defines the immutable domain records shared by the whole pipeline and the
store contract (``IProfileAndHistoryStore``) every persistence backend
implements.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Protocol
from uuid import uuid4

from climb_you.shared.datetime_utils import (
    datetime_to_iso,
    ensure_utc,
    iso_to_datetime,
    parse_date,
    utc_now,
)
from climb_you.shared.exceptions import (
    InvalidRateError,
    InvalidRatingError,
    ValidationError,
)
from climb_you.shared.models import GoalCategory, MotivationStyle


def _require_text(field_name: str, value: Any) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(field_name, "Must be a non-empty string")


def _require_rate(field_name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, f"Must be a number, got {value!r}")
    if not 0.0 <= value <= 1.0:
        raise InvalidRateError(field_name, value)


def _require_minutes(field_name: str, value: Any, minimum: int = 1) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(field_name, f"Must be an integer, got {value!r}")
    if value < minimum:
        raise ValidationError(field_name, f"Must be at least {minimum}, got {value}")


def _coerce_enum(field_name: str, enum_cls: type, value: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(field_name, f"Must be one of: {allowed}") from None


@dataclass(frozen=True)
class Profile:
    """A user's stable learning profile.

    Immutable within a generation cycle; edited only by onboarding.
    """

    user_id: str
    long_term_goal: str
    time_budget_min_per_day: int
    preferred_session_length_min: int = 20
    difficulty_tolerance: float = 0.5
    category: GoalCategory = GoalCategory.LEARNING
    motivation_style: MotivationStyle = MotivationStyle.PULL
    peak_hours: tuple[int, ...] = ()
    hard_constraints: tuple[str, ...] = ()
    soft_constraints: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require_text("user_id", self.user_id)
        _require_text("long_term_goal", self.long_term_goal)
        _require_minutes("time_budget_min_per_day", self.time_budget_min_per_day)
        _require_minutes("preferred_session_length_min", self.preferred_session_length_min)
        _require_rate("difficulty_tolerance", self.difficulty_tolerance)
        object.__setattr__(
            self, "category", _coerce_enum("category", GoalCategory, self.category)
        )
        object.__setattr__(
            self,
            "motivation_style",
            _coerce_enum("motivation_style", MotivationStyle, self.motivation_style),
        )
        hours = tuple(self.peak_hours)
        for hour in hours:
            if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
                raise ValidationError("peak_hours", f"Hours must be integers 0-23, got {hour!r}")
        object.__setattr__(self, "peak_hours", hours)
        object.__setattr__(self, "hard_constraints", tuple(self.hard_constraints))
        object.__setattr__(self, "soft_constraints", tuple(self.soft_constraints))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "user_id": self.user_id,
            "long_term_goal": self.long_term_goal,
            "category": self.category.value,
            "time_budget_min_per_day": self.time_budget_min_per_day,
            "preferred_session_length_min": self.preferred_session_length_min,
            "difficulty_tolerance": self.difficulty_tolerance,
            "motivation_style": self.motivation_style.value,
            "peak_hours": list(self.peak_hours),
            "hard_constraints": list(self.hard_constraints),
            "soft_constraints": list(self.soft_constraints),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Profile":
        """Build a profile from a stored document."""
        try:
            return cls(
                user_id=data["user_id"],
                long_term_goal=data["long_term_goal"],
                time_budget_min_per_day=data["time_budget_min_per_day"],
                preferred_session_length_min=data.get("preferred_session_length_min", 20),
                difficulty_tolerance=data.get("difficulty_tolerance", 0.5),
                category=data.get("category", GoalCategory.LEARNING.value),
                motivation_style=data.get("motivation_style", MotivationStyle.PULL.value),
                peak_hours=tuple(data.get("peak_hours", ())),
                hard_constraints=tuple(data.get("hard_constraints", ())),
                soft_constraints=tuple(data.get("soft_constraints", ())),
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "Missing required field") from None


@dataclass(frozen=True)
class QuestHistoryRecord:
    """The resolution of a single quest (completed or skipped).

    Append-only: corrections are recorded as new entries.
    """

    user_id: str
    quest_id: str
    title: str
    pattern: str
    difficulty: float
    was_successful: bool
    date: date
    planned_minutes: int | None = None
    actual_minutes: int | None = None
    user_rating: int | None = None
    completed_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid4()))
    recorded_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        _require_text("user_id", self.user_id)
        _require_text("quest_id", self.quest_id)
        _require_text("pattern", self.pattern)
        _require_rate("difficulty", self.difficulty)
        if self.planned_minutes is not None:
            _require_minutes("planned_minutes", self.planned_minutes)
        if self.actual_minutes is not None:
            _require_minutes("actual_minutes", self.actual_minutes, minimum=0)
        if self.user_rating is not None:
            if isinstance(self.user_rating, bool) or self.user_rating not in (1, 2, 3, 4, 5):
                raise InvalidRatingError(self.user_rating)
        try:
            object.__setattr__(self, "date", parse_date(self.date))
        except (TypeError, ValueError):
            raise ValidationError("date", f"Expected YYYY-MM-DD, got {self.date!r}") from None
        object.__setattr__(self, "completed_at", ensure_utc(self.completed_at))
        object.__setattr__(self, "recorded_at", ensure_utc(self.recorded_at))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quest_id": self.quest_id,
            "title": self.title,
            "pattern": self.pattern,
            "difficulty": self.difficulty,
            "planned_minutes": self.planned_minutes,
            "actual_minutes": self.actual_minutes,
            "was_successful": self.was_successful,
            "user_rating": self.user_rating,
            "completed_at": datetime_to_iso(self.completed_at),
            "date": self.date.isoformat(),
            "recorded_at": datetime_to_iso(self.recorded_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "QuestHistoryRecord":
        """Build a record from a stored document."""
        extra: dict[str, Any] = {}
        if data.get("id"):
            extra["id"] = data["id"]
        if data.get("recorded_at"):
            extra["recorded_at"] = iso_to_datetime(data["recorded_at"])
        try:
            return cls(
                user_id=data["user_id"],
                quest_id=data["quest_id"],
                title=data.get("title", ""),
                pattern=data["pattern"],
                difficulty=data["difficulty"],
                was_successful=bool(data["was_successful"]),
                date=data["date"],
                planned_minutes=data.get("planned_minutes"),
                actual_minutes=data.get("actual_minutes"),
                user_rating=data.get("user_rating"),
                completed_at=iso_to_datetime(data.get("completed_at")),
                **extra,
            )
        except KeyError as e:
            raise ValidationError(str(e.args[0]), "Missing required field") from None


@dataclass(frozen=True)
class Quest:
    """A single generated learning task."""

    id: str
    title: str
    description: str
    pattern: str
    category: str
    minutes: int
    difficulty: float
    instructions: tuple[str, ...]
    success_criteria: tuple[str, ...]
    deliverable: str = ""
    goal_contribution: str = ""
    motivation_message: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _require_text("title", self.title)
        _require_text("pattern", self.pattern)
        _require_minutes("minutes", self.minutes)
        _require_rate("difficulty", self.difficulty)
        object.__setattr__(self, "instructions", tuple(self.instructions))
        object.__setattr__(self, "success_criteria", tuple(self.success_criteria))
        object.__setattr__(self, "tags", tuple(self.tags))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "pattern": self.pattern,
            "category": self.category,
            "minutes": self.minutes,
            "difficulty": self.difficulty,
            "instructions": list(self.instructions),
            "success_criteria": list(self.success_criteria),
            "deliverable": self.deliverable,
            "goal_contribution": self.goal_contribution,
            "motivation_message": self.motivation_message,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Quest":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description", ""),
            pattern=data["pattern"],
            category=data.get("category", data["pattern"]),
            minutes=data["minutes"],
            difficulty=data["difficulty"],
            instructions=tuple(data.get("instructions", ())),
            success_criteria=tuple(data.get("success_criteria", ())),
            deliverable=data.get("deliverable", ""),
            goal_contribution=data.get("goal_contribution", ""),
            motivation_message=data.get("motivation_message", ""),
            tags=tuple(data.get("tags", ())),
        )


@dataclass(frozen=True)
class DailyQuestPlan:
    """The ordered set of quests generated for one user on one date.

    ``total_minutes`` is always derived from the quests.
    """

    user_id: str
    target_date: date
    quests: tuple[Quest, ...]
    rationale: tuple[str, ...] = ()
    estimated_difficulty: float = 0.5
    daily_message: str = ""
    attempts: int = 1
    generated_at: datetime = field(default_factory=utc_now)
    total_minutes: int = field(init=False)

    def __post_init__(self) -> None:
        _require_text("user_id", self.user_id)
        _require_rate("estimated_difficulty", self.estimated_difficulty)
        object.__setattr__(self, "target_date", parse_date(self.target_date))
        object.__setattr__(self, "quests", tuple(self.quests))
        object.__setattr__(self, "rationale", tuple(self.rationale))
        object.__setattr__(self, "generated_at", ensure_utc(self.generated_at))
        object.__setattr__(self, "total_minutes", sum(q.minutes for q in self.quests))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "user_id": self.user_id,
            "target_date": self.target_date.isoformat(),
            "quests": [q.to_dict() for q in self.quests],
            "total_minutes": self.total_minutes,
            "rationale": list(self.rationale),
            "estimated_difficulty": self.estimated_difficulty,
            "daily_message": self.daily_message,
            "attempts": self.attempts,
            "generated_at": datetime_to_iso(self.generated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DailyQuestPlan":
        return cls(
            user_id=data["user_id"],
            target_date=data["target_date"],
            quests=tuple(Quest.from_dict(q) for q in data.get("quests", [])),
            rationale=tuple(data.get("rationale", ())),
            estimated_difficulty=data.get("estimated_difficulty", 0.5),
            daily_message=data.get("daily_message", ""),
            attempts=data.get("attempts", 1),
            generated_at=iso_to_datetime(data.get("generated_at")) or utc_now(),
        )


class IProfileAndHistoryStore(Protocol):
    """Interface for profile, history and plan persistence.

    Absent data is reported as ``None`` or an empty list, never as an
    exception. Backend failures raise ``StorageError`` and are not retried.
    """

    async def get_profile(self, user_id: str) -> Profile | None:
        """Get a user's profile, or None if they have not onboarded."""
        ...

    async def save_profile(self, profile: Profile) -> None:
        """Create or replace a user's profile."""
        ...

    async def get_history(
        self,
        user_id: str,
        since: date | None = None,
    ) -> list[QuestHistoryRecord]:
        """Get quest resolutions on or after ``since``.

        Returns:
            Records ascending by date, in append order within a date
        """
        ...

    async def append_history_record(self, record: QuestHistoryRecord) -> None:
        """Append a quest resolution."""
        ...

    async def get_plan_for_date(
        self,
        user_id: str,
        target_date: date,
    ) -> DailyQuestPlan | None:
        """Get the stored plan for a user and date."""
        ...

    async def save_plan(self, plan: DailyQuestPlan) -> None:
        """Store a plan, replacing any plan for the same user and date."""
        ...
