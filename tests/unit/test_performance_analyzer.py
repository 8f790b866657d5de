"""Unit tests for the performance analyzer."""

from datetime import date, datetime, timedelta, timezone

import pytest

from climb_you.modules.analysis import PerformanceAnalyzer, PredictionContext
from climb_you.modules.history.interface import Quest
from climb_you.shared.exceptions import InvalidRateError, ValidationError
from climb_you.shared.models import ChallengeResponse, Priority

# Saturday
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
TODAY = NOW.date()


def days_before(n):
    return TODAY - timedelta(days=n)


@pytest.fixture
def analyzer():
    return PerformanceAnalyzer()


class TestLearningPattern:
    """Tests for compute_learning_pattern."""

    def test_empty_history_uses_neutral_defaults(self, analyzer):
        """Test that an empty window gives the neutral prior."""
        pattern = analyzer.compute_learning_pattern([], now=NOW)

        assert pattern.average_completion_rate == 0.5
        assert pattern.preferred_difficulty == 0.5
        assert pattern.best_time_slots == (9, 14, 19)
        assert set(pattern.weekly_trends.values()) == {0.5}
        assert pattern.improvement_areas == ("consistency",)
        assert pattern.sample_size == 0

    def test_completion_rate(self, analyzer, make_record):
        """Test completion rate is completed over total in the window."""
        history = [
            make_record(days_before(3), was_successful=False),
            make_record(days_before(2)),
            make_record(days_before(1)),
            make_record(days_before(0)),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.average_completion_rate == 0.75
        assert pattern.sample_size == 4

    def test_records_outside_window_are_ignored(self, analyzer, make_record):
        """Test that the 30-day window bounds the completion rate."""
        history = [
            make_record(days_before(45), was_successful=False),
            make_record(days_before(40), was_successful=False),
            make_record(days_before(1)),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.average_completion_rate == 1.0
        assert pattern.sample_size == 1

    def test_records_after_reference_time_are_ignored(self, analyzer, make_record):
        """Test the window ends at ``now``."""
        history = [make_record(days_before(1)), make_record(TODAY + timedelta(days=3), was_successful=False)]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.average_completion_rate == 1.0
        assert pattern.sample_size == 1
        assert 0.0 not in pattern.weekly_trends.values()

    def test_preferred_difficulty_is_clamped(self, analyzer, make_record):
        """Test preferred difficulty stays within [0.2, 0.8]."""
        hard = [make_record(days_before(i), difficulty=0.95) for i in range(3)]
        easy = [make_record(days_before(i), difficulty=0.05) for i in range(3)]

        assert analyzer.compute_learning_pattern(hard, now=NOW).preferred_difficulty == 0.8
        assert analyzer.compute_learning_pattern(easy, now=NOW).preferred_difficulty == 0.2

    def test_preferred_difficulty_uses_successes_only(self, analyzer, make_record):
        """Test failed quests do not pull the preferred difficulty."""
        history = [
            make_record(days_before(2), difficulty=0.4),
            make_record(days_before(1), difficulty=0.6),
            make_record(days_before(0), was_successful=False, difficulty=0.9),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.preferred_difficulty == pytest.approx(0.5)

    def test_best_time_slots_need_high_success(self, analyzer, make_record):
        """Test only hours with success rate above 0.7 qualify."""
        history = [
            make_record(days_before(3), hour=7),
            make_record(days_before(2), hour=7),
            make_record(days_before(1), hour=20),
            make_record(days_before(0), hour=18),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        # All completed hours are 100% successful; ties break by hour
        assert pattern.best_time_slots == (7, 18, 20)

    def test_weekly_trends(self, analyzer, make_record):
        """Test per-weekday completion rates."""
        monday = date(2024, 6, 10)
        history = [
            make_record(monday),
            make_record(monday, was_successful=False),
            make_record(monday + timedelta(days=1)),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.weekly_trends["Mon"] == 0.5
        assert pattern.weekly_trends["Tue"] == 1.0
        assert pattern.weekly_trends["Sun"] == 0.5

    def test_improvement_areas(self, analyzer, make_record):
        """Test low completion and repeated pattern failures are flagged."""
        history = [
            make_record(days_before(3), was_successful=False, pattern="listening"),
            make_record(days_before(2), was_successful=False, pattern="listening"),
            make_record(days_before(1), was_successful=False, pattern="grammar"),
            make_record(days_before(0), pattern="grammar"),
        ]

        pattern = analyzer.compute_learning_pattern(history, now=NOW)

        assert pattern.improvement_areas == ("time management", "listening mastery")

    def test_idempotent(self, analyzer, make_record):
        """Test that recomputing from the same history gives an equal pattern."""
        history = [make_record(days_before(i), was_successful=i % 2 == 0) for i in range(6)]

        first = analyzer.compute_learning_pattern(history, now=NOW)
        second = analyzer.compute_learning_pattern(history, now=NOW + timedelta(hours=1))

        assert first == second

    def test_to_dict_round_trip(self, analyzer, make_record):
        """Test serialization keeps the statistics."""
        from climb_you.modules.analysis import LearningPattern

        pattern = analyzer.compute_learning_pattern([make_record(days_before(1))], now=NOW)

        restored = LearningPattern.from_dict(pattern.to_dict())

        assert restored == pattern


class TestStreaks:
    """Tests for streak calculation."""

    def test_trailing_run(self, analyzer, make_record):
        """Test [F, S, S, S] gives current 3 and longest 3."""
        history = [
            make_record(days_before(3), was_successful=False),
            make_record(days_before(2)),
            make_record(days_before(1)),
            make_record(days_before(0)),
        ]

        streaks = analyzer.calculate_streaks(history)

        assert streaks.current == 3
        assert streaks.longest == 3

    def test_broken_run(self, analyzer, make_record):
        """Test [S, F, S] gives current 1 and longest 1."""
        history = [
            make_record(days_before(2)),
            make_record(days_before(1), was_successful=False),
            make_record(days_before(0)),
        ]

        streaks = analyzer.calculate_streaks(history)

        assert streaks.current == 1
        assert streaks.longest == 1
        assert streaks.average == 1.0

    def test_ends_with_failure(self, analyzer, make_record):
        """Test current streak is zero after a failure."""
        history = [
            make_record(days_before(2)),
            make_record(days_before(1)),
            make_record(days_before(0), was_successful=False),
        ]

        streaks = analyzer.calculate_streaks(history)

        assert streaks.current == 0
        assert streaks.longest == 2


class TestDetailedAnalysis:
    """Tests for analyze_learning_patterns."""

    def test_sparse_history_returns_baseline(self, analyzer, make_record):
        """Test four records give the new-user analysis."""
        history = [make_record(days_before(i)) for i in range(4)]

        analysis = analyzer.analyze_learning_patterns(history, reference_date=TODAY)

        assert analysis.is_baseline is True
        assert analysis.confidence_score == 0.3
        assert analysis.sample_size == 4
        assert analysis.completion.overall_rate == 0.5
        assert analysis.weekly_trends.best_day is None

    def test_full_analysis(self, analyzer, make_record):
        """Test statistics over ten records."""
        difficulties = [0.4, 0.5, 0.6, 0.7, 0.4, 0.5, 0.6, 0.7, 0.8, 0.3]
        outcomes = [True, True, True, True, False, True, True, True, True, False]
        history = [
            make_record(days_before(9 - i), was_successful=ok, difficulty=d)
            for i, (d, ok) in enumerate(zip(difficulties, outcomes))
        ]

        analysis = analyzer.analyze_learning_patterns(history, reference_date=TODAY)

        assert analysis.is_baseline is False
        assert analysis.sample_size == 10
        assert analysis.confidence_score == pytest.approx(10 / 30)
        assert analysis.completion.overall_rate == 0.8
        assert analysis.completion.streaks.longest == 4
        assert analysis.completion.streaks.current == 0
        assert analysis.completion.consistency_score == 1.0
        # Quartiles of the successful difficulties, interpolated between ranks
        assert analysis.difficulty.comfort_zone_min == pytest.approx(0.5)
        assert analysis.difficulty.comfort_zone_max == pytest.approx(0.7)
        assert analysis.weekly_trends.best_day is not None

    def test_window_ends_at_reference_date(self, analyzer, make_record):
        """Test later history does not leak into an analysis of an earlier period."""
        week = [make_record(date(2026, 1, 5) + timedelta(days=i)) for i in range(5)]
        later = [
            make_record(date(2026, 2, 1) + timedelta(days=i), was_successful=False)
            for i in range(20)
        ]

        analysis = analyzer.analyze_learning_patterns(
            week + later, timeframe_days=14, reference_date=date(2026, 1, 11)
        )

        assert analysis.sample_size == 5
        assert analysis.completion.overall_rate == 1.0

    def test_time_efficiency_defaults_planned_minutes(self, analyzer, make_record):
        """Test missing planned minutes default to 25."""
        history = [
            make_record(days_before(i), planned_minutes=None, actual_minutes=50)
            for i in range(5)
        ]

        analysis = analyzer.analyze_learning_patterns(history, reference_date=TODAY)

        assert analysis.time_efficiency.actual_vs_planned_ratio == 2.0
        assert any(r.type == "burnout" for r in analysis.risk_factors)

    def test_recommendations_sorted_by_priority(self, analyzer, make_record):
        """Test recommendations come highest priority first."""
        history = [
            make_record(days_before(i * 3), was_successful=i == 0, actual_minutes=40)
            for i in range(6)
        ]

        analysis = analyzer.analyze_learning_patterns(history, reference_date=TODAY)

        ranks = [r.priority.rank for r in analysis.recommendations]
        assert ranks == sorted(ranks, reverse=True)
        assert analysis.recommendations[0].priority == Priority.HIGH

    def test_challenge_response(self, analyzer, make_record):
        """Test learners who complete hard quests are marked as thriving."""
        history = [make_record(days_before(i), difficulty=0.8) for i in range(5)]

        analysis = analyzer.analyze_learning_patterns(history, reference_date=TODAY)

        assert analysis.difficulty.challenge_response == ChallengeResponse.THRIVES

    def test_to_dict_is_json_friendly(self, analyzer, make_record):
        """Test enums and tuples are flattened."""
        import json

        history = [make_record(days_before(i)) for i in range(6)]

        data = analyzer.analyze_learning_patterns(history, reference_date=TODAY).to_dict()

        json.dumps(data)
        assert data["difficulty"]["challenge_response"] in {"thrives", "struggles", "adaptive", "unknown"}


class TestPlateau:
    """Tests for growth rate and plateau risk."""

    def test_flat_difficulty_is_high_risk(self, analyzer, make_record):
        """Test ten successes at the same difficulty give full plateau risk."""
        history = [make_record(days_before(i), difficulty=0.5) for i in range(10)]

        assert analyzer.calculate_plateau_risk(history) == 1.0
        assert analyzer.detect_plateau(history) is True

    def test_rising_difficulty_is_low_risk(self, analyzer, make_record):
        """Test clear growth means no plateau."""
        history = [make_record(days_before(9 - i), difficulty=0.2 + i * 0.06) for i in range(10)]

        assert analyzer.calculate_growth_rate(history) > 0.1
        assert analyzer.calculate_plateau_risk(history) == 0.0
        assert analyzer.detect_plateau(history) is False

    def test_few_records_scale_risk(self, analyzer, make_record):
        """Test evidence scaling keeps small samples below full risk."""
        history = [make_record(days_before(i), difficulty=0.5) for i in range(4)]

        assert analyzer.calculate_plateau_risk(history) == pytest.approx(0.4)

    def test_empty_history_has_no_risk(self, analyzer):
        """Test empty history gives zero risk."""
        assert analyzer.calculate_plateau_risk([]) == 0.0


class TestDifficultyAdjustment:
    """Tests for generate_difficulty_adjustment."""

    def test_high_success_steps_up(self, analyzer, make_record):
        """Test success above 85% raises difficulty by 0.1."""
        history = [make_record(days_before(i)) for i in range(7)]

        result = analyzer.generate_difficulty_adjustment(0.5, history)

        assert result.new_difficulty == 0.6
        assert result.adjustment == pytest.approx(0.1)

    def test_low_success_steps_down(self, analyzer, make_record):
        """Test success below 50% lowers difficulty by 0.15."""
        history = [make_record(days_before(i), was_successful=i == 0) for i in range(4)]

        result = analyzer.generate_difficulty_adjustment(0.5, history)

        assert result.new_difficulty == 0.35

    def test_result_is_clamped(self, analyzer, make_record):
        """Test the new difficulty stays within [0.1, 0.9]."""
        history = [make_record(days_before(i)) for i in range(7)]

        assert analyzer.generate_difficulty_adjustment(0.85, history).new_difficulty == 0.9

    def test_empty_history(self, analyzer):
        """Test no history means no change and low confidence."""
        result = analyzer.generate_difficulty_adjustment(0.5, [])

        assert result.new_difficulty == 0.5
        assert result.confidence == 0.3

    def test_rejects_out_of_range_difficulty(self, analyzer):
        """Test invalid current difficulty raises a validation error."""
        with pytest.raises(InvalidRateError) as exc_info:
            analyzer.generate_difficulty_adjustment(1.5, [])

        assert isinstance(exc_info.value, ValidationError)


class TestPredictPerformance:
    """Tests for predict_performance."""

    @pytest.fixture
    def quest(self):
        return Quest(
            id="q1",
            title="Read a chapter",
            description="Read and summarize",
            pattern="read_note_q",
            category="learning",
            minutes=20,
            difficulty=0.5,
            instructions=("Read",),
            success_criteria=("Summary written",),
        )

    def test_baseline_without_history(self, analyzer, quest):
        """Test default prediction for a user without history."""
        context = PredictionContext(hour_of_day=9, weekday="Mon", recent_performance=0.9)

        [prediction] = analyzer.predict_performance([quest], [], context)

        assert prediction.quest_id == "q1"
        assert prediction.predicted_success == pytest.approx(0.8)
        assert prediction.confidence == 0.3

    def test_predictions_are_bounded(self, analyzer, quest, make_record):
        """Test predictions stay within [0.1, 0.9]."""
        history = [make_record(days_before(i), pattern="read_note_q", difficulty=0.5) for i in range(5)]
        context = PredictionContext(hour_of_day=9, weekday="Sat", recent_performance=1.0)

        [prediction] = analyzer.predict_performance([quest], history, context)

        assert prediction.predicted_success == 0.9
        assert prediction.confidence == pytest.approx(0.5)
