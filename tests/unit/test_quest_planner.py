"""Unit tests for the adaptive quest planner."""

from dataclasses import replace
from datetime import date, timedelta

import pytest

from climb_you.modules.analysis.interface import LearningPattern
from climb_you.modules.planning import (
    AdaptiveQuestPlanner,
    ContextualAdjustments,
    RecentPerformance,
)
from climb_you.shared.models import Trend

TODAY = date(2024, 6, 15)  # Saturday


@pytest.fixture
def planner():
    return AdaptiveQuestPlanner()


@pytest.fixture
def neutral_pattern():
    return LearningPattern.neutral()


class TestRecentPerformance:
    """Tests for analyze_recent_performance."""

    def test_no_history_is_optimistic(self, planner):
        """Test new users get the 0.7 default completion rate."""
        recent = planner.analyze_recent_performance([], today=TODAY)

        assert recent.completion_rate == 0.7
        assert recent.total_quests == 0
        assert recent.average_rating is None
        assert recent.trend == Trend.STABLE

    def test_only_recent_days_count(self, planner, make_record):
        """Test records older than seven days are ignored."""
        history = [
            make_record(TODAY - timedelta(days=20), was_successful=False),
            make_record(TODAY - timedelta(days=2)),
            make_record(TODAY - timedelta(days=1), was_successful=False, user_rating=4),
        ]

        recent = planner.analyze_recent_performance(history, today=TODAY)

        assert recent.total_quests == 2
        assert recent.completion_rate == 0.5
        assert recent.average_rating == 4

    def test_declining_trend(self, planner, make_record):
        """Test fewer successes in the last three entries means declining."""
        outcomes = [True, True, True, False, False, True]
        history = [
            make_record(TODAY - timedelta(days=6 - i), was_successful=ok)
            for i, ok in enumerate(outcomes)
        ]

        recent = planner.analyze_recent_performance(history, today=TODAY)

        assert recent.trend == Trend.DECLINING

    def test_improving_trend(self, planner, make_record):
        """Test more successes in the last three entries means improving."""
        outcomes = [False, False, True, True, True, True]
        history = [
            make_record(TODAY - timedelta(days=6 - i), was_successful=ok)
            for i, ok in enumerate(outcomes)
        ]

        recent = planner.analyze_recent_performance(history, today=TODAY)

        assert recent.trend == Trend.IMPROVING

    def test_later_records_are_ignored(self, planner, make_record):
        """Test the recent window ends at ``today``."""
        history = [
            make_record(TODAY - timedelta(days=1)),
            make_record(TODAY + timedelta(days=2), was_successful=False),
        ]

        recent = planner.analyze_recent_performance(history, today=TODAY)

        assert recent.total_quests == 1
        assert recent.completion_rate == 1.0

    def test_trend_needs_four_entries(self, planner, make_record):
        """Test three entries always give a stable trend."""
        history = [
            make_record(TODAY - timedelta(days=1), was_successful=False),
            make_record(TODAY),
            make_record(TODAY),
        ]

        recent = planner.analyze_recent_performance(history, today=TODAY)

        assert recent.trend == Trend.STABLE


class TestContextualAdjustments:
    """Tests for determine_contextual_adjustments."""

    def test_neutral_inputs_give_no_adjustment(self, planner, neutral_pattern):
        """Test a 0.7 completion rate on an average weekday changes nothing."""
        recent = RecentPerformance(completion_rate=0.7, average_rating=None, total_quests=0)

        adjustments = planner.determine_contextual_adjustments(TODAY, neutral_pattern, recent)

        assert adjustments.difficulty_modifier == 0.0
        assert adjustments.time_modifier == 1.0
        assert adjustments.reasons == ()

    def test_low_completion_and_declining_stack(self, planner, neutral_pattern):
        """Test low completion and a declining trend both lower difficulty."""
        recent = RecentPerformance(
            completion_rate=0.3, average_rating=None, total_quests=6, trend=Trend.DECLINING
        )

        adjustments = planner.determine_contextual_adjustments(TODAY, neutral_pattern, recent)

        assert adjustments.difficulty_modifier == pytest.approx(-0.35)
        assert len(adjustments.reasons) == 2

    def test_high_completion_and_improving(self, planner, neutral_pattern):
        """Test high completion and improvement raise difficulty."""
        recent = RecentPerformance(
            completion_rate=0.9, average_rating=None, total_quests=6, trend=Trend.IMPROVING
        )

        adjustments = planner.determine_contextual_adjustments(TODAY, neutral_pattern, recent)

        assert adjustments.difficulty_modifier == pytest.approx(0.2)

    def test_hard_weekday_reduces_time(self, planner, neutral_pattern):
        """Test a historically weak weekday scales time by 0.8."""
        pattern = replace(neutral_pattern, weekly_trends={**neutral_pattern.weekly_trends, "Sat": 0.2})
        recent = RecentPerformance(completion_rate=0.7, average_rating=None, total_quests=3)

        adjustments = planner.determine_contextual_adjustments(TODAY, pattern, recent)

        assert adjustments.time_modifier == 0.8
        assert "Sat" in adjustments.reasons[0]


class TestQuestConfig:
    """Tests for calculate_optimal_quest_config."""

    def test_new_user_config(self, planner, sample_profile, neutral_pattern):
        """Test the config for a 60-minute budget with 20-minute sessions."""
        config = planner.calculate_optimal_quest_config(
            sample_profile, ContextualAdjustments(), neutral_pattern
        )

        assert config.total_minutes == 60
        assert config.quest_count == 3
        assert config.average_difficulty == 0.6
        assert config.difficulty_range == (0.4, 0.8)

    def test_time_modifier_scales_budget(self, planner, sample_profile):
        """Test the time modifier shrinks minutes and quest count."""
        config = planner.calculate_optimal_quest_config(
            sample_profile, ContextualAdjustments(time_modifier=0.8)
        )

        assert config.total_minutes == 48
        assert config.quest_count == 2

    def test_quest_count_is_bounded(self, planner, sample_profile):
        """Test quest count stays within 1-5."""
        big = replace(sample_profile, time_budget_min_per_day=300, preferred_session_length_min=10)
        small = replace(sample_profile, time_budget_min_per_day=5, preferred_session_length_min=60)

        assert planner.calculate_optimal_quest_config(big, ContextualAdjustments()).quest_count == 5
        assert planner.calculate_optimal_quest_config(small, ContextualAdjustments()).quest_count == 1

    def test_quest_count_leaves_minimum_minutes(self, planner, sample_profile):
        """Test each quest can get at least five minutes."""
        tight = replace(sample_profile, time_budget_min_per_day=12, preferred_session_length_min=2)

        config = planner.calculate_optimal_quest_config(tight, ContextualAdjustments())

        assert config.quest_count == 2

    def test_difficulty_range_is_bounded(self, planner, sample_profile):
        """Test the range never leaves [0.1, 0.9]."""
        easy = replace(sample_profile, difficulty_tolerance=0.0)
        hard = replace(sample_profile, difficulty_tolerance=1.0)

        low = planner.calculate_optimal_quest_config(easy, ContextualAdjustments())
        high = planner.calculate_optimal_quest_config(hard, ContextualAdjustments())

        assert low.average_difficulty == 0.1
        assert low.difficulty_range == (0.1, 0.3)
        assert high.average_difficulty == 0.9
        assert high.difficulty_range == (0.7, 0.9)

    def test_learned_difficulty_takes_over(self, planner, sample_profile, neutral_pattern):
        """Test the learned preference replaces tolerance after five samples."""
        learned = replace(neutral_pattern, preferred_difficulty=0.4, sample_size=5)
        sparse = replace(neutral_pattern, preferred_difficulty=0.4, sample_size=4)

        assert planner.calculate_optimal_quest_config(
            sample_profile, ContextualAdjustments(), learned
        ).average_difficulty == 0.4
        assert planner.calculate_optimal_quest_config(
            sample_profile, ContextualAdjustments(), sparse
        ).average_difficulty == 0.6

    def test_end_to_end_without_history(self, planner, sample_profile, neutral_pattern):
        """Test the full planning chain for a user without history."""
        recent = planner.analyze_recent_performance([], today=TODAY)
        adjustments = planner.determine_contextual_adjustments(TODAY, neutral_pattern, recent)

        config = planner.calculate_optimal_quest_config(sample_profile, adjustments, neutral_pattern)

        assert config.to_dict() == {
            "total_minutes": 60,
            "quest_count": 3,
            "average_difficulty": 0.6,
            "difficulty_range": [0.4, 0.8],
        }


class TestRecentPatterns:
    """Tests for get_recent_patterns."""

    def test_collects_last_week_patterns(self, planner, make_record):
        """Test patterns outside the seven-day window are dropped."""
        history = [
            make_record(TODAY - timedelta(days=10), pattern="old"),
            make_record(TODAY - timedelta(days=3), pattern="listening"),
            make_record(TODAY, pattern="grammar"),
            make_record(TODAY, pattern="grammar"),
            make_record(TODAY + timedelta(days=1), pattern="future"),
        ]

        assert planner.get_recent_patterns(history, today=TODAY) == {"listening", "grammar"}
