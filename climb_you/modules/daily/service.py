"""Daily Quest Service - orchestrates one generation cycle.

Flow for ``generate_quests_for_date``:
    store (profile, history) -> analyzer (learning pattern)
    -> planner (recent performance, adjustments, quest config, avoid patterns)
    -> gateway (LLM quests) -> store.save_plan

The service holds no per-user state of its own. Collaborators are injected;
the service registry wires the defaults.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta, timezone
from typing import AsyncIterator
import logging

from climb_you.modules.analysis.interface import DetailedLearningAnalysis, LearningPattern
from climb_you.modules.analysis.service import PerformanceAnalyzer
from climb_you.modules.daily.interface import GenerationLock, IDailyQuestService
from climb_you.modules.generation.interface import IQuestGenerationGateway
from climb_you.modules.history.interface import (
    DailyQuestPlan,
    IProfileAndHistoryStore,
    Profile,
    QuestHistoryRecord,
)
from climb_you.modules.planning.interface import ContextualAdjustments, RecentPerformance
from climb_you.modules.planning.service import AdaptiveQuestPlanner
from climb_you.modules.reports.interface import InsightContext, PersonalizedInsight, WeeklyReport
from climb_you.modules.reports.service import InsightAndReportSynthesizer
from climb_you.shared.config import Settings, get_settings
from climb_you.shared.datetime_utils import ensure_utc, utc_now, utc_today
from climb_you.shared.exceptions import ProfileNotFoundError, ValidationError

logger = logging.getLogger(__name__)

BASE_RATIONALE = "Generated based on your learning profile and recent performance"
WELCOME_RATIONALE = "Welcome! These are your first personalized quests."


class InProcessGenerationLock(GenerationLock):
    """asyncio-based GenerationLock scoped to one instance.

    Only serializes callers sharing this instance inside one event loop.
    Multi-process deployments need a distributed lock behind the same
    interface.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], asyncio.Lock] = {}

    @asynccontextmanager
    async def acquire(self, user_id: str, target_date: date) -> AsyncIterator[None]:
        lock = self._locks.setdefault((user_id, target_date), asyncio.Lock())
        async with lock:
            yield


class DailyQuestService(IDailyQuestService):
    """Runs generation cycles and records quest resolutions."""

    def __init__(
        self,
        store: IProfileAndHistoryStore,
        gateway: IQuestGenerationGateway,
        analyzer: PerformanceAnalyzer | None = None,
        planner: AdaptiveQuestPlanner | None = None,
        synthesizer: InsightAndReportSynthesizer | None = None,
        lock: GenerationLock | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._analyzer = analyzer or PerformanceAnalyzer()
        self._planner = planner or AdaptiveQuestPlanner()
        self._synthesizer = synthesizer or InsightAndReportSynthesizer(self._analyzer)
        self._lock = lock or InProcessGenerationLock()
        self._settings = settings or get_settings()

    # ===================
    # Generation
    # ===================

    async def generate_quests_for_date(
        self,
        user_id: str,
        target_date: date,
        force_regeneration: bool = False,
    ) -> DailyQuestPlan:
        """Return the plan for ``target_date``, generating it if needed.

        An existing plan is returned as-is unless ``force_regeneration`` is
        set, in which case it is replaced.

        Raises:
            ProfileNotFoundError: The user has no profile
            GenerationError: The LLM never produced a valid plan
            StorageError: The store failed
        """
        async with self._lock.acquire(user_id, target_date):
            if not force_regeneration:
                existing = await self._store.get_plan_for_date(user_id, target_date)
                if existing is not None:
                    logger.debug(f"Returning existing plan for user {user_id} on {target_date}")
                    return existing

            profile = await self._require_profile(user_id)
            history = await self._load_history(user_id, target_date)

            pattern = self._analyzer.compute_learning_pattern(
                history,
                window_days=self._settings.analysis_window_days,
                now=self._reference_time(target_date),
            )
            recent = self._planner.analyze_recent_performance(
                history, days=self._settings.recent_performance_days, today=target_date
            )
            adjustments = self._planner.determine_contextual_adjustments(target_date, pattern, recent)
            config = self._planner.calculate_optimal_quest_config(profile, adjustments, pattern)
            avoid = self._planner.get_recent_patterns(
                history, days=self._settings.recent_performance_days, today=target_date
            )

            logger.info(
                f"Planning {config.quest_count} quests ({config.total_minutes} min, "
                f"difficulty {config.average_difficulty}) for user {user_id} on {target_date}"
            )

            plan = await self._gateway.generate(
                profile,
                config,
                avoid,
                target_date=target_date,
                rationale=self.build_rationale(adjustments, recent),
            )
            await self._store.save_plan(plan)
            return plan

    async def generate_todays_quests(
        self,
        user_id: str,
        force_regeneration: bool = False,
    ) -> DailyQuestPlan:
        """Generate (or fetch) the plan for today in UTC."""
        return await self.generate_quests_for_date(user_id, utc_today(), force_regeneration)

    def build_rationale(
        self,
        adjustments: ContextualAdjustments,
        recent: RecentPerformance,
    ) -> tuple[str, ...]:
        """Human-readable reasons recorded on the plan."""
        reasons = [BASE_RATIONALE, *adjustments.reasons]
        if recent.total_quests == 0:
            reasons.append(WELCOME_RATIONALE)
        return tuple(reasons)

    # ===================
    # Resolution
    # ===================

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
        """Append a history record for a quest from the plan of ``target_date``.

        Records are never edited; resolving the same quest twice appends a
        correcting entry.

        Raises:
            ValidationError: No plan for the date, or the quest is not in it
        """
        plan = await self._store.get_plan_for_date(user_id, target_date)
        if plan is None:
            raise ValidationError("target_date", f"No plan for user {user_id} on {target_date}")

        quest = next((q for q in plan.quests if q.id == quest_id), None)
        if quest is None:
            raise ValidationError("quest_id", f"Quest {quest_id} is not part of the plan for {target_date}")

        record = QuestHistoryRecord(
            user_id=user_id,
            quest_id=quest.id,
            title=quest.title,
            pattern=quest.pattern,
            difficulty=quest.difficulty,
            was_successful=was_successful,
            date=target_date,
            planned_minutes=quest.minutes,
            actual_minutes=actual_minutes,
            user_rating=user_rating,
            completed_at=ensure_utc(completed_at) if completed_at else (utc_now() if was_successful else None),
        )
        await self._store.append_history_record(record)
        logger.info(
            f"Recorded {'success' if was_successful else 'miss'} for quest {quest_id} (user {user_id})"
        )
        return record

    # ===================
    # Analytics
    # ===================

    async def update_learning_pattern(self, user_id: str) -> LearningPattern:
        """Recompute the learning pattern from stored history."""
        history = await self._load_history(user_id, utc_today())
        pattern = self._analyzer.compute_learning_pattern(
            history, window_days=self._settings.analysis_window_days
        )
        logger.info(
            f"Learning pattern for user {user_id}: completion={pattern.average_completion_rate:.2f}, "
            f"preferred_difficulty={pattern.preferred_difficulty:.2f}, samples={pattern.sample_size}"
        )
        return pattern

    async def analyze_learning(self, user_id: str) -> DetailedLearningAnalysis:
        """Detailed analysis over the configured analysis window."""
        history = await self._load_history(user_id, utc_today())
        return self._analyzer.analyze_learning_patterns(
            history, timeframe_days=self._settings.analysis_window_days
        )

    async def generate_weekly_report(self, user_id: str, week_start: date) -> WeeklyReport:
        """Weekly report for the week starting at ``week_start``."""
        history = await self._store.get_history(user_id)
        return self._synthesizer.generate_weekly_report(history, week_start)

    async def get_personalized_insights(
        self,
        user_id: str,
        now: datetime | None = None,
    ) -> list[PersonalizedInsight]:
        """Insights for the current moment (hour of day in UTC)."""
        moment = ensure_utc(now) if now else utc_now()
        history = await self._load_history(user_id, moment.date())

        recent = self._planner.analyze_recent_performance(
            history, days=self._settings.recent_performance_days, today=moment.date()
        )
        ratings = [r.user_rating for r in history if r.user_rating is not None]

        context = InsightContext(
            current_streak=self._analyzer.calculate_streaks(history).current,
            recent_completion_rate=recent.completion_rate,
            hour_of_day=moment.hour,
            last_quest_rating=ratings[-1] if ratings else None,
        )
        return self._synthesizer.generate_personalized_insights(user_id, history, context, now=moment)

    # ===================
    # Helpers
    # ===================

    async def _require_profile(self, user_id: str) -> Profile:
        profile = await self._store.get_profile(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    def _reference_time(self, target_date: date) -> datetime:
        """Current time for today, start of day (UTC) for any other date."""
        if target_date == utc_today():
            return utc_now()
        return datetime.combine(target_date, time.min, tzinfo=timezone.utc)

    async def _load_history(self, user_id: str, reference: date) -> list[QuestHistoryRecord]:
        since = reference - timedelta(days=self._settings.history_lookback_days)
        return await self._store.get_history(user_id, since=since)
