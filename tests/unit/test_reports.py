"""Unit tests for weekly reports and personalized insights."""

import json
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone

import pytest

from climb_you.modules.analysis import PerformanceAnalyzer
from climb_you.modules.reports import InsightAndReportSynthesizer, InsightContext
from climb_you.modules.reports.service import DEFAULT_CELEBRATION, DEFAULT_IMPROVEMENT_FOCUS
from climb_you.shared.models import Priority, Trend

WEEK_START = date(2024, 6, 10)  # Monday
PREVIOUS_START = WEEK_START - timedelta(days=7)


@pytest.fixture
def synthesizer():
    return InsightAndReportSynthesizer()


@pytest.fixture
def baseline_analysis():
    return PerformanceAnalyzer().new_user_analysis()


def week_of(make_record, start, outcomes, **kwargs):
    """One record per day from ``start`` with the given outcomes."""
    return [
        make_record(start + timedelta(days=i), was_successful=ok, **kwargs)
        for i, ok in enumerate(outcomes)
    ]


class TestWeeklySummary:
    """Tests for the week summary and comparison."""

    def test_declining_week(self, synthesizer, make_record):
        """Test 2/5 after 4/5 is reported as declining."""
        previous = week_of(make_record, PREVIOUS_START, [True, True, True, True, False])
        current = week_of(make_record, WEEK_START, [True, False, True, False, False])

        report = synthesizer.generate_weekly_report(previous + current, WEEK_START)

        summary = report.summary
        assert summary.total_quests == 5
        assert summary.completed_quests == 2
        assert summary.completion_rate == pytest.approx(0.4)
        assert summary.total_learning_minutes == 100
        assert summary.compared_to_previous_week.completion_rate_delta == pytest.approx(-0.4)
        assert summary.compared_to_previous_week.learning_time_delta == 0
        assert summary.compared_to_previous_week.trend == Trend.DECLINING
        assert any(i.title == "Down on last week" for i in report.insights)
        assert report.challenges[0].title == "Completion rate dropped"

    def test_more_learning_time_is_improving(self, synthesizer, make_record):
        """Test an extra hour of learning counts as improvement."""
        previous = week_of(make_record, PREVIOUS_START, [True], actual_minutes=20)
        current = week_of(make_record, WEEK_START, [True, True, True, True], actual_minutes=30)

        summary = synthesizer.build_weekly_summary(current, previous)

        assert summary.compared_to_previous_week.learning_time_delta == 100
        assert summary.compared_to_previous_week.trend == Trend.IMPROVING

    def test_streak_days_are_distinct_success_dates(self, synthesizer, make_record):
        """Test several successes on one day count as one streak day."""
        current = [
            make_record(WEEK_START),
            make_record(WEEK_START),
            make_record(WEEK_START + timedelta(days=1), was_successful=False),
        ]

        summary = synthesizer.build_weekly_summary(current, [])

        assert summary.streak_days == 1
        assert summary.consistency_score == pytest.approx(1 / 7)

    def test_records_outside_week_are_ignored(self, synthesizer, make_record):
        """Test the report only counts its own seven days."""
        history = [
            make_record(WEEK_START - timedelta(days=30)),
            make_record(WEEK_START + timedelta(days=6)),
            make_record(WEEK_START + timedelta(days=7)),
        ]

        report = synthesizer.generate_weekly_report(history, WEEK_START)

        assert report.summary.total_quests == 1
        assert report.week_range.end_date == date(2024, 6, 16)


class TestEmptyWeek:
    """Tests for a week without activity."""

    def test_empty_week_report(self, synthesizer):
        """Test an empty week gives a zeroed summary and a restart plan."""
        report = synthesizer.generate_weekly_report([], WEEK_START)

        assert report.summary.total_quests == 0
        assert report.summary.completion_rate == 0.0
        assert report.summary.compared_to_previous_week.trend == Trend.STABLE
        assert report.achievements == ()
        assert [c.title for c in report.challenges] == ["No activity this week"]
        assert report.recommendations[0].title == "Restart with a small win"
        assert report.celebration_message == DEFAULT_CELEBRATION
        assert report.improvement_focus == 'Next week, focus on improving "No activity this week".'
        assert report.next_week_goals[0].target == "Reach a 10% completion rate"
        assert report.next_week_goals[1].target == "Complete quests on 1 days"
        assert report.confidence_score == 0.0

    def test_report_accepts_iso_date(self, synthesizer):
        """Test the week start may be given as text."""
        report = synthesizer.generate_weekly_report([], "2024-06-10")

        assert report.week_range.start_date == WEEK_START


class TestAchievementsAndGoals:
    """Tests for a strong week."""

    def test_perfect_week(self, synthesizer, make_record):
        """Test a hard, complete, daily week unlocks every achievement."""
        current = week_of(make_record, WEEK_START, [True] * 7, difficulty=0.8)

        report = synthesizer.generate_weekly_report(current, WEEK_START)

        assert [a.type for a in report.achievements] == [
            "completion", "consistency", "difficulty", "streak",
        ]
        assert report.celebration_message == "High completion rate! What a great week!"
        assert report.challenges == ()
        assert report.improvement_focus == DEFAULT_IMPROVEMENT_FOCUS
        assert [g.type for g in report.next_week_goals] == ["completion_rate"]
        assert report.next_week_goals[0].target == "Reach a 90% completion rate"

    def test_confidence_score(self, synthesizer, make_record):
        """Test confidence blends week and total sample sizes."""
        previous = week_of(make_record, PREVIOUS_START, [True] * 5)
        current = week_of(make_record, WEEK_START, [True] * 5)

        report = synthesizer.generate_weekly_report(previous + current, WEEK_START)

        assert report.confidence_score == pytest.approx((0.5 + 0.2) / 2)


class TestBestDay:
    """Tests for find_best_day."""

    def test_highest_rate_wins(self, synthesizer, make_record):
        """Test Tuesday at 100% beats Monday at 50%."""
        history = [
            make_record(WEEK_START),
            make_record(WEEK_START, was_successful=False),
            make_record(WEEK_START + timedelta(days=1)),
        ]

        assert synthesizer.find_best_day(history) == "Tue"

    def test_ties_go_to_earlier_day(self, synthesizer, make_record):
        """Test equal rates resolve to the earlier weekday."""
        history = [make_record(WEEK_START + timedelta(days=3)), make_record(WEEK_START + timedelta(days=1))]

        assert synthesizer.find_best_day(history) == "Tue"

    def test_no_successes(self, synthesizer, make_record):
        """Test a week without successes has no best day."""
        history = [make_record(WEEK_START, was_successful=False)]

        assert synthesizer.find_best_day(history) is None


class TestRecommendations:
    """Tests for analysis-driven challenges and recommendations."""

    def test_baseline_analysis_skips_content_recommendation(
        self, synthesizer, make_record, baseline_analysis
    ):
        """Test the neutral 0.5 baseline rate does not trigger content advice."""
        current = week_of(make_record, WEEK_START, [True, True])

        report = synthesizer.generate_weekly_report(current, WEEK_START, baseline_analysis)

        assert "Adjust your learning content" not in [r.title for r in report.recommendations]

    def test_low_analysed_rate_recommends_content_change(
        self, synthesizer, make_record, baseline_analysis
    ):
        """Test a measured rate below 0.6 leads with a high-priority recommendation."""
        analysis = replace(baseline_analysis, is_baseline=False)
        current = week_of(make_record, WEEK_START, [True, True])

        report = synthesizer.generate_weekly_report(current, WEEK_START, analysis)

        first = report.recommendations[0]
        assert first.title == "Adjust your learning content"
        assert first.priority == Priority.HIGH
        assert [r.category for r in report.recommendations] == ["difficulty", "schedule"]

    def test_past_week_ignores_later_history(self, synthesizer, make_record):
        """Test appending later records does not change a past week's report."""
        current = week_of(make_record, WEEK_START, [True] * 5)
        later = week_of(make_record, WEEK_START + timedelta(days=30), [False] * 7)
        later += week_of(make_record, WEEK_START + timedelta(days=37), [False] * 7)

        before = synthesizer.generate_weekly_report(current, WEEK_START)
        after = synthesizer.generate_weekly_report(current + later, WEEK_START)

        assert after.recommendations == before.recommendations
        assert after.challenges == before.challenges
        assert "Adjust your learning content" not in [r.title for r in after.recommendations]

    def test_time_overrun_challenge(self, synthesizer, make_record, baseline_analysis):
        """Test a high actual/planned ratio is reported as a challenge."""
        analysis = replace(
            baseline_analysis,
            time_efficiency=replace(baseline_analysis.time_efficiency, actual_vs_planned_ratio=1.5),
        )
        current = week_of(make_record, WEEK_START, [True] * 7)

        report = synthesizer.generate_weekly_report(current, WEEK_START, analysis)

        assert [c.type for c in report.challenges] == ["time_management"]

    def test_to_dict_is_json_serializable(self, synthesizer, make_record):
        """Test the report serializes with plain values."""
        current = week_of(make_record, WEEK_START, [True, False, True])

        data = synthesizer.generate_weekly_report(current, WEEK_START).to_dict()

        json.dumps(data)
        assert data["week_range"] == {"start_date": "2024-06-10", "end_date": "2024-06-16"}


class TestPersonalizedInsights:
    """Tests for generate_personalized_insights."""

    NOW = datetime(2024, 6, 15, 23, 0, tzinfo=timezone.utc)

    def test_all_rules_fire(self, synthesizer, make_record, sample_user_id):
        """Test insights are ordered by priority and keep rule order within it."""
        history = [make_record(WEEK_START) for _ in range(6)]
        context = InsightContext(
            current_streak=8, recent_completion_rate=0.3, hour_of_day=23, last_quest_rating=1
        )

        insights = synthesizer.generate_personalized_insights(sample_user_id, history, context, now=self.NOW)

        assert [i.insight_type for i in insights] == [
            "milestone", "warning", "improvement", "encouragement",
        ]
        assert insights[0].expires_at == self.NOW + timedelta(hours=24)
        assert insights[1].expires_at == self.NOW + timedelta(days=3)
        assert insights[3].expires_at == self.NOW + timedelta(hours=2)
        assert all(i.user_id == sample_user_id for i in insights)

    def test_low_rate_needs_enough_history(self, synthesizer, make_record, sample_user_id):
        """Test the warning waits for five records."""
        history = [make_record(WEEK_START) for _ in range(4)]
        context = InsightContext(current_streak=0, recent_completion_rate=0.3, hour_of_day=10)

        insights = synthesizer.generate_personalized_insights(sample_user_id, history, context, now=self.NOW)

        assert insights == []

    def test_high_rate_is_an_achievement(self, synthesizer, sample_user_id):
        """Test completion above 90% gives a week-long achievement insight."""
        context = InsightContext(current_streak=2, recent_completion_rate=0.95, hour_of_day=10)

        [insight] = synthesizer.generate_personalized_insights(sample_user_id, [], context, now=self.NOW)

        assert insight.insight_type == "achievement"
        assert insight.priority == Priority.MEDIUM
        assert insight.expires_at == self.NOW + timedelta(weeks=1)
        assert insight.to_dict()["priority"] == "medium"


class TestMotivationalMessage:
    """Tests for generate_motivational_message."""

    @pytest.mark.parametrize("rate,streak,trend,expected", [
        (0.9, 5, Trend.DECLINING, "Outstanding persistence"),
        (0.9, 2, Trend.IMPROVING, "upward trend"),
        (0.3, 0, Trend.IMPROVING, "upward trend"),
        (0.7, 1, Trend.STABLE, "growing steadily"),
        (0.3, 0, Trend.DECLINING, "tough stretch"),
        (0.3, 0, Trend.STABLE, "A new challenge begins"),
    ])
    def test_rules_apply_in_order(self, synthesizer, rate, streak, trend, expected):
        """Test the first matching rule picks the message."""
        assert expected in synthesizer.generate_motivational_message(rate, streak, trend)
