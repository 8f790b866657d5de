"""Daily Module - one generation cycle per user and date."""

from contextlib import AbstractAsyncContextManager
from datetime import date, datetime
from typing import Protocol

from climb_you.modules.analysis.interface import DetailedLearningAnalysis, LearningPattern
from climb_you.modules.history.interface import DailyQuestPlan, QuestHistoryRecord
from climb_you.modules.reports.interface import PersonalizedInsight, WeeklyReport


class GenerationLock(Protocol):
    """Serializes generation for the same (user, date).

    Plans are last-write-wins, so two concurrent cycles for one key would
    both call the LLM and one plan would silently replace the other.
    """

    def acquire(self, user_id: str, target_date: date) -> AbstractAsyncContextManager[None]:
        ...


class IDailyQuestService(Protocol):
    """Interface for the daily quest cycle."""

    async def generate_quests_for_date(
        self,
        user_id: str,
        target_date: date,
        force_regeneration: bool = False,
    ) -> DailyQuestPlan:
        ...

    async def generate_todays_quests(
        self,
        user_id: str,
        force_regeneration: bool = False,
    ) -> DailyQuestPlan:
        ...

    async def record_quest_resolution(
        self,
        user_id: str,
        target_date: date,
        quest_id: str,
        was_successful: bool,
        actual_minutes: int | None = None,
        user_rating: int | None = None,
        completed_at: datetime | None = None,
    ) -> QuestHistoryRecord:
        ...

    async def update_learning_pattern(self, user_id: str) -> LearningPattern:
        ...

    async def analyze_learning(self, user_id: str) -> DetailedLearningAnalysis:
        ...

    async def generate_weekly_report(self, user_id: str, week_start: date) -> WeeklyReport:
        ...

    async def get_personalized_insights(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> list[PersonalizedInsight]:
        ...
