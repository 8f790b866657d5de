"""SQLAlchemy models for History module."""

import datetime as dt
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from climb_you.modules.history.interface import (
    DailyQuestPlan,
    Profile,
    Quest,
    QuestHistoryRecord,
)
from climb_you.shared.database import Base
from climb_you.shared.datetime_utils import utc_now

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class ProfileModel(Base):
    """User profile database model."""

    __tablename__ = "profiles"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    long_term_goal: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False)
    time_budget_min_per_day: Mapped[int] = mapped_column(Integer, nullable=False)
    preferred_session_length_min: Mapped[int] = mapped_column(Integer, nullable=False)
    difficulty_tolerance: Mapped[float] = mapped_column(Float, nullable=False)
    motivation_style: Mapped[str] = mapped_column(String(16), nullable=False)
    peak_hours: Mapped[list] = mapped_column(JSONType, default=list)
    hard_constraints: Mapped[list] = mapped_column(JSONType, default=list)
    soft_constraints: Mapped[list] = mapped_column(JSONType, default=list)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
    )

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileModel":
        data = profile.to_dict()
        return cls(**data)

    def to_domain(self) -> Profile:
        return Profile(
            user_id=self.user_id,
            long_term_goal=self.long_term_goal,
            category=self.category,
            time_budget_min_per_day=self.time_budget_min_per_day,
            preferred_session_length_min=self.preferred_session_length_min,
            difficulty_tolerance=self.difficulty_tolerance,
            motivation_style=self.motivation_style,
            peak_hours=tuple(self.peak_hours or ()),
            hard_constraints=tuple(self.hard_constraints or ()),
            soft_constraints=tuple(self.soft_constraints or ()),
        )


class QuestHistoryModel(Base):
    """Quest resolution database model.

    ``seq`` preserves append order for records sharing a date.
    """

    __tablename__ = "quest_history"
    __table_args__ = (
        Index("ix_quest_history_user_date", "user_id", "date"),
    )

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    quest_id: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    pattern: Mapped[str] = mapped_column(String(64), nullable=False)
    difficulty: Mapped[float] = mapped_column(Float, nullable=False)
    planned_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    actual_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    was_successful: Mapped[bool] = mapped_column(Boolean, nullable=False)
    user_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    completed_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    recorded_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
    )

    @classmethod
    def from_domain(cls, record: QuestHistoryRecord) -> "QuestHistoryModel":
        return cls(
            id=record.id,
            user_id=record.user_id,
            quest_id=record.quest_id,
            title=record.title,
            pattern=record.pattern,
            difficulty=record.difficulty,
            planned_minutes=record.planned_minutes,
            actual_minutes=record.actual_minutes,
            was_successful=record.was_successful,
            user_rating=record.user_rating,
            completed_at=record.completed_at,
            date=record.date,
            recorded_at=record.recorded_at,
        )

    def to_domain(self) -> QuestHistoryRecord:
        return QuestHistoryRecord(
            id=self.id,
            user_id=self.user_id,
            quest_id=self.quest_id,
            title=self.title,
            pattern=self.pattern,
            difficulty=self.difficulty,
            planned_minutes=self.planned_minutes,
            actual_minutes=self.actual_minutes,
            was_successful=self.was_successful,
            user_rating=self.user_rating,
            completed_at=self.completed_at,
            date=self.date,
            recorded_at=self.recorded_at,
        )


class DailyQuestPlanModel(Base):
    """Daily quest plan database model, one row per user and date."""

    __tablename__ = "daily_quest_plans"
    __table_args__ = (
        UniqueConstraint("user_id", "target_date", name="uq_daily_quest_plans_user_date"),
    )

    id: Mapped[str] = mapped_column(String(160), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    target_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    quests: Mapped[list] = mapped_column(JSONType, nullable=False)
    total_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    rationale: Mapped[list] = mapped_column(JSONType, default=list)
    estimated_difficulty: Mapped[float] = mapped_column(Float, nullable=False)
    daily_message: Mapped[str] = mapped_column(Text, default="")
    attempts: Mapped[int] = mapped_column(Integer, default=1)
    generated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @staticmethod
    def make_id(user_id: str, target_date: dt.date) -> str:
        return f"{user_id}:{target_date.isoformat()}"

    @classmethod
    def from_domain(cls, plan: DailyQuestPlan) -> "DailyQuestPlanModel":
        return cls(
            id=cls.make_id(plan.user_id, plan.target_date),
            user_id=plan.user_id,
            target_date=plan.target_date,
            quests=[q.to_dict() for q in plan.quests],
            total_minutes=plan.total_minutes,
            rationale=list(plan.rationale),
            estimated_difficulty=plan.estimated_difficulty,
            daily_message=plan.daily_message,
            attempts=plan.attempts,
            generated_at=plan.generated_at,
        )

    def to_domain(self) -> DailyQuestPlan:
        return DailyQuestPlan(
            user_id=self.user_id,
            target_date=self.target_date,
            quests=tuple(Quest.from_dict(q) for q in self.quests),
            rationale=tuple(self.rationale or ()),
            estimated_difficulty=self.estimated_difficulty,
            daily_message=self.daily_message or "",
            attempts=self.attempts,
            generated_at=self.generated_at,
        )
