"""Adaptive Quest Planner - difficulty and time budget for one day.

Pure functions over the profile, the learning pattern and recent history.
Nothing here touches storage or the LLM.
"""

from datetime import date, timedelta
from statistics import fmean
from typing import Sequence
import logging

from climb_you.modules.analysis.interface import LearningPattern
from climb_you.modules.history.interface import Profile, QuestHistoryRecord
from climb_you.modules.planning.interface import (
    ContextualAdjustments,
    IQuestPlanner,
    QuestConfig,
    RecentPerformance,
)
from climb_you.shared.constants import (
    DIFFICULTY_RANGE_HALF_WIDTH,
    HARD_DAY_RATE,
    HARD_DAY_TIME_MODIFIER,
    MAX_PLANNED_DIFFICULTY,
    MAX_QUEST_COUNT,
    MIN_ANALYSIS_SAMPLES,
    MIN_PLANNED_DIFFICULTY,
    MIN_QUEST_COUNT,
    MIN_QUEST_MINUTES,
    MIN_TREND_SAMPLES,
    NEW_USER_RECENT_COMPLETION_RATE,
    RECENT_PATTERN_DAYS,
    TREND_WINDOW,
    WEEKDAY_NAMES,
)
from climb_you.shared.datetime_utils import utc_today
from climb_you.shared.math_utils import clamp, round_half_up
from climb_you.shared.models import Trend

logger = logging.getLogger(__name__)


class AdaptiveQuestPlanner(IQuestPlanner):
    """Computes quest count, difficulty range and time budget.

    Adjustment rules:
    - recent completion < 0.5: difficulty -0.2; > 0.8: +0.1
    - target weekday historically below 0.4: time x0.8
    - declining trend: difficulty -0.15; improving: +0.1
    """

    def __init__(self) -> None:
        self._low_completion_threshold = 0.5
        self._high_completion_threshold = 0.8
        self._low_completion_modifier = -0.2
        self._high_completion_modifier = 0.1
        self._declining_modifier = -0.15
        self._improving_modifier = 0.1

    def analyze_recent_performance(
        self,
        history: Sequence[QuestHistoryRecord],
        days: int = RECENT_PATTERN_DAYS,
        today: date | None = None,
    ) -> RecentPerformance:
        """Summarize the last ``days`` days of history.

        With no recent records the completion rate is an optimistic 0.7 so
        new users are not immediately throttled.
        """
        end = today or utc_today()
        cutoff = end - timedelta(days=days)
        recent = [r for r in history if cutoff <= r.date <= end]

        completion_rate = NEW_USER_RECENT_COMPLETION_RATE
        if recent:
            completion_rate = sum(1 for r in recent if r.was_successful) / len(recent)

        ratings = [r.user_rating for r in recent if r.user_rating is not None]

        return RecentPerformance(
            completion_rate=completion_rate,
            average_rating=fmean(ratings) if ratings else None,
            total_quests=len(recent),
            trend=self._calculate_trend(recent),
        )

    def _calculate_trend(self, history: Sequence[QuestHistoryRecord]) -> Trend:
        """Compare successes in the last three entries with the three before."""
        if len(history) < MIN_TREND_SAMPLES:
            return Trend.STABLE

        recent = sum(1 for r in history[-TREND_WINDOW:] if r.was_successful)
        previous = sum(
            1 for r in history[-2 * TREND_WINDOW:-TREND_WINDOW] if r.was_successful
        )

        if recent > previous:
            return Trend.IMPROVING
        if recent < previous:
            return Trend.DECLINING
        return Trend.STABLE

    def determine_contextual_adjustments(
        self,
        target_date: date,
        learning_pattern: LearningPattern,
        recent_performance: RecentPerformance,
    ) -> ContextualAdjustments:
        """Derive difficulty and time modifiers for ``target_date``.

        Args:
            target_date: Day being planned
            learning_pattern: Current learning pattern (for weekday trends)
            recent_performance: Output of analyze_recent_performance

        Returns:
            ContextualAdjustments with human-readable reasons
        """
        reasons: list[str] = []
        difficulty_modifier = 0.0
        time_modifier = 1.0

        rate = recent_performance.completion_rate
        if rate < self._low_completion_threshold:
            reasons.append("Reducing difficulty due to low completion rate")
            difficulty_modifier += self._low_completion_modifier
        elif rate > self._high_completion_threshold:
            reasons.append("Increasing difficulty due to high completion rate")
            difficulty_modifier += self._high_completion_modifier

        day_name = WEEKDAY_NAMES[target_date.weekday()]
        if learning_pattern.weekday_rate(target_date) < HARD_DAY_RATE:
            reasons.append(f"Reducing load for {day_name} (historically challenging day)")
            time_modifier *= HARD_DAY_TIME_MODIFIER

        if recent_performance.trend == Trend.DECLINING:
            reasons.append("Providing easier quests to rebuild confidence")
            difficulty_modifier += self._declining_modifier
        elif recent_performance.trend == Trend.IMPROVING:
            reasons.append("Increasing challenge to maintain momentum")
            difficulty_modifier += self._improving_modifier

        return ContextualAdjustments(
            reasons=tuple(reasons),
            difficulty_modifier=round(difficulty_modifier, 3),
            time_modifier=round(time_modifier, 3),
        )

    def calculate_optimal_quest_config(
        self,
        profile: Profile,
        adjustments: ContextualAdjustments,
        learning_pattern: LearningPattern | None = None,
    ) -> QuestConfig:
        """Compute the generation request for one day.

        The difficulty base is the profile's tolerance until the learning
        pattern has at least five windowed samples, after which the learned
        preferred difficulty takes over.
        """
        total_minutes = round_half_up(profile.time_budget_min_per_day * adjustments.time_modifier)

        quest_count = round_half_up(total_minutes / profile.preferred_session_length_min)
        quest_count = int(clamp(quest_count, MIN_QUEST_COUNT, MAX_QUEST_COUNT))
        # Every quest needs at least MIN_QUEST_MINUTES
        quest_count = max(MIN_QUEST_COUNT, min(quest_count, total_minutes // MIN_QUEST_MINUTES))

        base = profile.difficulty_tolerance
        if learning_pattern is not None and learning_pattern.sample_size >= MIN_ANALYSIS_SAMPLES:
            base = learning_pattern.preferred_difficulty

        average = round(
            clamp(base + adjustments.difficulty_modifier, MIN_PLANNED_DIFFICULTY, MAX_PLANNED_DIFFICULTY),
            3,
        )
        low = round(max(MIN_PLANNED_DIFFICULTY, average - DIFFICULTY_RANGE_HALF_WIDTH), 3)
        high = round(min(MAX_PLANNED_DIFFICULTY, average + DIFFICULTY_RANGE_HALF_WIDTH), 3)

        config = QuestConfig(
            total_minutes=total_minutes,
            quest_count=quest_count,
            average_difficulty=average,
            difficulty_range=(low, high),
        )
        logger.debug(f"Quest config for user {profile.user_id}: {config}")
        return config

    def get_recent_patterns(
        self,
        history: Sequence[QuestHistoryRecord],
        days: int = RECENT_PATTERN_DAYS,
        today: date | None = None,
    ) -> set[str]:
        """Quest patterns used in the last ``days`` days."""
        end = today or utc_today()
        cutoff = end - timedelta(days=days)
        return {r.pattern for r in history if cutoff <= r.date <= end}


def get_quest_planner() -> AdaptiveQuestPlanner:
    """Get a quest planner (stateless, safe to share)."""
    return AdaptiveQuestPlanner()
