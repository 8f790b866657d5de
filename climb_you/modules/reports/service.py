"""Insight and Report Synthesizer - weekly reports and real-time insights.

All output is derived from quest history (plus an optional precomputed
analysis), so a report for a given week is reproducible. Sparse data never
raises: an empty week produces a zeroed summary and an encouraging message.
"""

from datetime import date, datetime, timedelta
from typing import Sequence
import logging

from climb_you.modules.analysis.interface import DetailedLearningAnalysis
from climb_you.modules.analysis.service import PerformanceAnalyzer
from climb_you.modules.history.interface import QuestHistoryRecord
from climb_you.modules.reports.interface import (
    Achievement,
    Challenge,
    IInsightAndReportSynthesizer,
    InsightContext,
    NextWeekGoal,
    PersonalizedInsight,
    WeekRange,
    WeeklyComparison,
    WeeklyInsight,
    WeeklyRecommendation,
    WeeklyReport,
    WeeklySummary,
)
from climb_you.shared.constants import (
    ACHIEVEMENT_COMPLETION_RATE,
    ACHIEVEMENT_CONSISTENCY,
    ACHIEVEMENT_DIFFICULTY,
    ACHIEVEMENT_STREAK_DAYS,
    CHALLENGE_COMPLETION_RATE,
    INSIGHT_HIGH_COMPLETION,
    INSIGHT_LOW_COMPLETION,
    INSIGHT_MIN_RECORDS,
    LATE_NIGHT_HOUR,
    LOW_QUEST_RATING,
    MILESTONE_STREAK,
    MOTIVATION_HIGH_COMPLETION,
    MOTIVATION_STEADY_COMPLETION,
    MOTIVATION_STREAK,
    NEXT_WEEK_MAX_RATE,
    NEXT_WEEK_RATE_STEP,
    RECOMMENDATION_COMPLETION_RATE,
    REPORT_ANALYSIS_WINDOW_DAYS,
    REPORT_TOTAL_SAMPLE_DENOMINATOR,
    REPORT_WEEK_SAMPLE_DENOMINATOR,
    TIME_OVERRUN_RATIO,
    TREND_MINUTES_DELTA,
    TREND_RATE_DELTA,
    WEEK_LENGTH_DAYS,
    WEEKDAY_NAMES,
)
from climb_you.shared.datetime_utils import parse_date, utc_now
from climb_you.shared.math_utils import clamp, round_half_up
from climb_you.shared.models import Priority, Trend

logger = logging.getLogger(__name__)

DEFAULT_CELEBRATION = "A new week is a fresh start. Every small step forward counts."
DEFAULT_IMPROVEMENT_FOCUS = "Keep your current pace and try one new challenge next week."


def _completion_rate(records: Sequence[QuestHistoryRecord]) -> float:
    if not records:
        return 0.0
    return sum(1 for r in records if r.was_successful) / len(records)


def _learning_minutes(records: Sequence[QuestHistoryRecord]) -> int:
    return sum(r.actual_minutes or 0 for r in records)


class InsightAndReportSynthesizer(IInsightAndReportSynthesizer):
    """Builds weekly reports and personalized insights from history."""

    def __init__(self, analyzer: PerformanceAnalyzer | None = None) -> None:
        self._analyzer = analyzer or PerformanceAnalyzer()

    # ===================
    # Weekly Report
    # ===================

    def generate_weekly_report(
        self,
        history: Sequence[QuestHistoryRecord],
        week_start_date: date | str,
        reference_analysis: DetailedLearningAnalysis | None = None,
    ) -> WeeklyReport:
        """Summarize the week starting at ``week_start_date``.

        Args:
            history: Full quest history for the user
            week_start_date: First day of the report week
            reference_analysis: Precomputed analysis; when omitted a 14-day
                analysis ending on the last day of the week is used

        Returns:
            WeeklyReport comparing the week with the preceding one
        """
        start = parse_date(week_start_date)
        week = WeekRange(start_date=start, end_date=start + timedelta(days=WEEK_LENGTH_DAYS - 1))
        previous = WeekRange(
            start_date=start - timedelta(days=WEEK_LENGTH_DAYS),
            end_date=start - timedelta(days=1),
        )

        week_history = [r for r in history if week.contains(r.date)]
        previous_history = [r for r in history if previous.contains(r.date)]

        analysis = reference_analysis or self._analyzer.analyze_learning_patterns(
            history,
            timeframe_days=REPORT_ANALYSIS_WINDOW_DAYS,
            reference_date=week.end_date,
        )

        summary = self.build_weekly_summary(week_history, previous_history)
        achievements = self._identify_achievements(summary)
        challenges = self._identify_challenges(summary, analysis)
        insights = self._generate_insights(week_history, summary)
        recommendations = self._generate_recommendations(summary, analysis)
        goals = self._generate_next_week_goals(summary)

        confidence = (
            min(1.0, len(week_history) / REPORT_WEEK_SAMPLE_DENOMINATOR)
            + min(1.0, len(history) / REPORT_TOTAL_SAMPLE_DENOMINATOR)
        ) / 2

        logger.info(
            f"Weekly report {week.start_date}..{week.end_date}: "
            f"{summary.completed_quests}/{summary.total_quests} completed, "
            f"trend={summary.compared_to_previous_week.trend.value}"
        )

        return WeeklyReport(
            week_range=week,
            summary=summary,
            achievements=tuple(achievements),
            challenges=tuple(challenges),
            insights=tuple(insights),
            recommendations=tuple(recommendations),
            next_week_goals=tuple(goals),
            celebration_message=self._celebration_message(achievements),
            improvement_focus=self._improvement_focus(challenges),
            confidence_score=confidence,
        )

    def build_weekly_summary(
        self,
        week_history: Sequence[QuestHistoryRecord],
        previous_history: Sequence[QuestHistoryRecord],
    ) -> WeeklySummary:
        """Totals for one week and deltas against the previous week."""
        total = len(week_history)
        completed = sum(1 for r in week_history if r.was_successful)
        rate = _completion_rate(week_history)
        minutes = _learning_minutes(week_history)
        average_difficulty = sum(r.difficulty for r in week_history) / total if total else 0.0

        streak_days = len({r.date for r in week_history if r.was_successful})

        rate_delta = rate - _completion_rate(previous_history)
        time_delta = minutes - _learning_minutes(previous_history)

        trend = Trend.STABLE
        if rate_delta > TREND_RATE_DELTA or time_delta > TREND_MINUTES_DELTA:
            trend = Trend.IMPROVING
        elif rate_delta < -TREND_RATE_DELTA or time_delta < -TREND_MINUTES_DELTA:
            trend = Trend.DECLINING

        return WeeklySummary(
            total_quests=total,
            completed_quests=completed,
            completion_rate=rate,
            total_learning_minutes=minutes,
            average_difficulty=average_difficulty,
            streak_days=streak_days,
            consistency_score=clamp(streak_days / WEEK_LENGTH_DAYS),
            compared_to_previous_week=WeeklyComparison(
                completion_rate_delta=rate_delta,
                learning_time_delta=time_delta,
                trend=trend,
            ),
        )

    def _identify_achievements(self, summary: WeeklySummary) -> list[Achievement]:
        achievements: list[Achievement] = []
        percent = round_half_up(summary.completion_rate * 100)

        if summary.completion_rate >= ACHIEVEMENT_COMPLETION_RATE:
            achievements.append(Achievement(
                type="completion",
                title="High completion rate!",
                description=f"You completed {percent}% of your quests this week",
                impact="Your learning habit is taking root",
            ))

        if summary.consistency_score >= ACHIEVEMENT_CONSISTENCY:
            achievements.append(Achievement(
                type="consistency",
                title="Remarkable consistency",
                description=f"You learned on {summary.streak_days} of 7 days",
                impact="A steady pace builds long-term results",
            ))

        if summary.average_difficulty > ACHIEVEMENT_DIFFICULTY:
            achievements.append(Achievement(
                type="difficulty",
                title="Took on hard quests",
                description="You actively worked on challenging content",
                impact="Faster skill growth",
            ))

        if summary.streak_days >= ACHIEVEMENT_STREAK_DAYS:
            achievements.append(Achievement(
                type="streak",
                title=f"{summary.streak_days} successful days",
                description=f"You completed at least one quest on {summary.streak_days} days",
                impact="Momentum that carries into next week",
            ))

        return achievements

    def _identify_challenges(
        self,
        summary: WeeklySummary,
        analysis: DetailedLearningAnalysis,
    ) -> list[Challenge]:
        challenges: list[Challenge] = []

        if summary.total_quests == 0:
            challenges.append(Challenge(
                type="consistency",
                title="No activity this week",
                description="No quests were resolved this week",
                impact="significant",
                suggested_actions=(
                    "Pick one short quest to restart",
                    "Block a fixed time slot in your calendar",
                ),
            ))
        elif summary.completion_rate < CHALLENGE_COMPLETION_RATE:
            challenges.append(Challenge(
                type="completion",
                title="Completion rate dropped",
                description="Fewer quests were completed than planned this week",
                impact="moderate",
                suggested_actions=(
                    "Lower the difficulty slightly",
                    "Shorten your sessions",
                    "Try a different quest pattern",
                ),
            ))

        if analysis.time_efficiency.actual_vs_planned_ratio > TIME_OVERRUN_RATIO:
            challenges.append(Challenge(
                type="time_management",
                title="Quests take longer than planned",
                description="Actual time regularly exceeds the planned time",
                impact="moderate",
                suggested_actions=(
                    "Find the hours when you focus best",
                    "Prepare your learning environment",
                    "Try the Pomodoro technique",
                ),
            ))

        return challenges

    def find_best_day(self, week_history: Sequence[QuestHistoryRecord]) -> str | None:
        """Weekday with the highest completion rate among days with data.

        Returns None when nothing was completed. Ties go to the earlier weekday.
        """
        counts = [0] * 7
        successes = [0] * 7
        for record in week_history:
            day = record.date.weekday()
            counts[day] += 1
            if record.was_successful:
                successes[day] += 1

        best_day = None
        best_rate = 0.0
        for day in range(7):
            if counts[day]:
                rate = successes[day] / counts[day]
                if rate > best_rate:
                    best_rate = rate
                    best_day = WEEKDAY_NAMES[day]
        return best_day

    def _generate_insights(
        self,
        week_history: Sequence[QuestHistoryRecord],
        summary: WeeklySummary,
    ) -> list[WeeklyInsight]:
        insights: list[WeeklyInsight] = []

        best_day = self.find_best_day(week_history)
        if best_day:
            insights.append(WeeklyInsight(
                category="timing",
                title=f"{best_day} was your most productive day",
                observation=f"Your best completion rate this week was on {best_day}",
                significance=Priority.MEDIUM,
                actionable=True,
                implication="Try to reuse that day's schedule on other days",
            ))

        trend = summary.compared_to_previous_week.trend
        if trend == Trend.IMPROVING:
            insights.append(WeeklyInsight(
                category="performance",
                title="Up on last week",
                observation="Completion rate or learning time grew compared with last week",
                significance=Priority.HIGH,
                actionable=False,
                implication="The current plan is working, keep it",
            ))
        elif trend == Trend.DECLINING:
            insights.append(WeeklyInsight(
                category="performance",
                title="Down on last week",
                observation="Completion rate or learning time fell compared with last week",
                significance=Priority.HIGH,
                actionable=True,
                implication="Lighter quests for a few days can rebuild momentum",
            ))

        return insights

    def _generate_recommendations(
        self,
        summary: WeeklySummary,
        analysis: DetailedLearningAnalysis,
    ) -> list[WeeklyRecommendation]:
        recommendations: list[WeeklyRecommendation] = []

        # The baseline analysis has no evidence behind its rates
        if not analysis.is_baseline and analysis.completion.overall_rate < RECOMMENDATION_COMPLETION_RATE:
            recommendations.append(WeeklyRecommendation(
                priority=Priority.HIGH,
                category="difficulty",
                title="Adjust your learning content",
                rationale="The current difficulty may be too high",
                specific_actions=(
                    "Restart from the fundamentals",
                    "Shorten your sessions",
                    "Use supporting material",
                ),
                expected_benefit="Higher completion rate and regained confidence",
                time_to_see_results="short_term",
            ))

        if summary.total_quests > 0 and summary.consistency_score < 0.5:
            recommendations.append(WeeklyRecommendation(
                priority=Priority.MEDIUM,
                category="schedule",
                title="Learn a little every day",
                rationale=f"You were active on only {summary.streak_days} days this week",
                specific_actions=("Schedule one short quest per day",),
                expected_benefit="A steadier routine",
                time_to_see_results="short_term",
            ))

        if summary.total_quests == 0:
            recommendations.append(WeeklyRecommendation(
                priority=Priority.HIGH,
                category="motivation",
                title="Restart with a small win",
                rationale="No quests were resolved this week",
                specific_actions=("Complete one 10-minute quest tomorrow",),
                expected_benefit="Momentum to get back on track",
                time_to_see_results="immediate",
            ))

        recommendations.sort(key=lambda r: r.priority.rank, reverse=True)
        return recommendations

    def _generate_next_week_goals(self, summary: WeeklySummary) -> list[NextWeekGoal]:
        target_rate = min(NEXT_WEEK_MAX_RATE, summary.completion_rate + NEXT_WEEK_RATE_STEP)
        target_percent = round_half_up(target_rate * 100)
        goals = [
            NextWeekGoal(
                type="completion_rate",
                title="Raise your completion rate",
                target=f"Reach a {target_percent}% completion rate",
                motivation="Steady growth and a stronger habit",
                success_criteria=(f"Weekly completion rate of at least {target_percent}%",),
                supporting_actions=("Keep difficulty at the right level", "Protect your focus time"),
            ),
        ]

        if summary.streak_days < WEEK_LENGTH_DAYS:
            target_days = summary.streak_days + 1
            goals.append(NextWeekGoal(
                type="consistency",
                title="Add one more learning day",
                target=f"Complete quests on {target_days} days",
                motivation="Consistency beats intensity",
                success_criteria=(f"At least one completed quest on {target_days} days",),
                supporting_actions=("Plan tomorrow's quest the evening before",),
            ))

        return goals

    def _celebration_message(self, achievements: Sequence[Achievement]) -> str:
        if not achievements:
            return DEFAULT_CELEBRATION
        return f"{achievements[0].title} What a great week!"

    def _improvement_focus(self, challenges: Sequence[Challenge]) -> str:
        if not challenges:
            return DEFAULT_IMPROVEMENT_FOCUS
        return f'Next week, focus on improving "{challenges[0].title}".'

    # ===================
    # Real-time Insights
    # ===================

    def generate_personalized_insights(
        self,
        user_id: str,
        history: Sequence[QuestHistoryRecord],
        context: InsightContext,
        now: datetime | None = None,
    ) -> list[PersonalizedInsight]:
        """Short-lived insights for the current moment, highest priority first."""
        generated_at = now or utc_now()
        insights: list[PersonalizedInsight] = []

        if context.current_streak >= MILESTONE_STREAK:
            insights.append(PersonalizedInsight(
                user_id=user_id,
                insight_type="milestone",
                title=f"{context.current_streak} in a row!",
                message="Impressive persistence. Keep the habit going.",
                priority=Priority.HIGH,
                action_items=("Complete at least one quest today to extend your streak",),
                relevant_data={"streak": context.current_streak},
                generated_at=generated_at,
                expires_at=generated_at + timedelta(hours=24),
            ))

        if context.recent_completion_rate < INSIGHT_LOW_COMPLETION and len(history) >= INSIGHT_MIN_RECORDS:
            insights.append(PersonalizedInsight(
                user_id=user_id,
                insight_type="warning",
                title="Your recent completion rate is dropping",
                message="The content may be too hard or the time allocation may be off.",
                priority=Priority.HIGH,
                action_items=(
                    "Start today with an easy quest",
                    "Try shorter sessions",
                ),
                relevant_data={"completion_rate": context.recent_completion_rate},
                generated_at=generated_at,
                expires_at=generated_at + timedelta(days=3),
            ))
        elif context.recent_completion_rate > INSIGHT_HIGH_COMPLETION:
            insights.append(PersonalizedInsight(
                user_id=user_id,
                insight_type="achievement",
                title="Keeping a high completion rate!",
                message="You may be ready for more advanced content.",
                priority=Priority.MEDIUM,
                action_items=("Try a harder quest",),
                relevant_data={"completion_rate": context.recent_completion_rate},
                generated_at=generated_at,
                expires_at=generated_at + timedelta(weeks=1),
            ))

        if context.hour_of_day >= LATE_NIGHT_HOUR:
            insights.append(PersonalizedInsight(
                user_id=user_id,
                insight_type="encouragement",
                title="Working late tonight",
                message="Good work today. Get some rest and be ready for tomorrow.",
                priority=Priority.MEDIUM,
                relevant_data={"hour_of_day": context.hour_of_day},
                generated_at=generated_at,
                expires_at=generated_at + timedelta(hours=2),
            ))

        if context.last_quest_rating is not None and context.last_quest_rating <= LOW_QUEST_RATING:
            insights.append(PersonalizedInsight(
                user_id=user_id,
                insight_type="improvement",
                title="Let's make the next quest better",
                message="Your last quest did not land well. Content and difficulty will be adjusted.",
                priority=Priority.HIGH,
                action_items=(
                    "Try a different quest pattern today",
                    "Tell us what did not work",
                ),
                relevant_data={"rating": context.last_quest_rating},
                generated_at=generated_at,
                expires_at=generated_at + timedelta(hours=24),
            ))

        insights.sort(key=lambda i: i.priority.rank, reverse=True)
        return insights

    def generate_motivational_message(
        self,
        completion_rate: float,
        streak: int,
        trend: Trend,
    ) -> str:
        """Pick an encouraging message from completion rate, streak and trend."""
        if completion_rate >= MOTIVATION_HIGH_COMPLETION and streak >= MOTIVATION_STREAK:
            return "Outstanding persistence and performance! Your effort is clearly paying off."
        if trend == Trend.IMPROVING:
            return "Your recent upward trend is great. Keep it going!"
        if completion_rate >= MOTIVATION_STEADY_COMPLETION:
            return "You keep growing steadily. Small, consistent steps matter most."
        if trend == Trend.DECLINING:
            return (
                "It has been a tough stretch, and that is a natural part of learning. "
                "Go at your own pace."
            )
        return "A new challenge begins! Start with a small step and build your pace from there."


def get_report_synthesizer(analyzer: PerformanceAnalyzer | None = None) -> InsightAndReportSynthesizer:
    """Get a report synthesizer (stateless, safe to share)."""
    return InsightAndReportSynthesizer(analyzer)
