"""Performance Analyzer - learning statistics from quest history.

This service provides:
- LearningPattern projection (completion rate, best hours, difficulty, weekday trends)
- DetailedLearningAnalysis (streaks, time efficiency, comfort zone, risks)
- Difficulty adjustment recommendations
- Per-quest success predictions

Every method is a pure function of its arguments. Sparse history degrades to
documented defaults instead of raising.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from statistics import fmean, median, pvariance, quantiles
from typing import Sequence
import logging

from climb_you.modules.analysis.interface import (
    CompletionPatterns,
    CompletionTimeStats,
    DetailedLearningAnalysis,
    DifficultyAdjustment,
    DifficultyProgression,
    ImprovementOpportunity,
    IPerformanceAnalyzer,
    LearningPattern,
    LearningStrength,
    PerformancePrediction,
    PredictionContext,
    ProductiveHour,
    Recommendation,
    RiskFactor,
    SkillProgression,
    StreakData,
    TimeEfficiency,
    WeeklyTrendAnalysis,
)
from climb_you.modules.history.interface import Quest, QuestHistoryRecord
from climb_you.shared.constants import (
    BASELINE_PREDICTED_SUCCESS,
    BASELINE_PREDICTION_CONFIDENCE,
    BEST_TIME_SLOT_MIN_RATE,
    CONFIDENCE_SAMPLE_DENOMINATOR,
    DEFAULT_BEST_TIME_SLOTS,
    DEFAULT_COMPLETION_RATE,
    DEFAULT_PLANNED_MINUTES,
    DEFAULT_PREFERRED_DIFFICULTY,
    DEFAULT_WEEKDAY_RATE,
    DIFFICULTY_NUDGE,
    DIFFICULTY_STEP_DOWN,
    DIFFICULTY_STEP_UP,
    EASY_QUEST_DIFFICULTY,
    HARD_QUEST_DIFFICULTY,
    HIGH_RATING,
    HIGH_SUCCESS_RATE,
    LOW_RATING,
    LOW_SUCCESS_RATE,
    MAX_BEST_TIME_SLOTS,
    MAX_IMPROVEMENT_AREAS,
    MAX_PLANNED_DIFFICULTY,
    MAX_PREDICTED_SUCCESS,
    MAX_PREDICTION_CONFIDENCE,
    MAX_PREFERRED_DIFFICULTY,
    MAX_PRODUCTIVE_HOURS,
    MIN_ANALYSIS_SAMPLES,
    MIN_PLANNED_DIFFICULTY,
    MIN_PREDICTED_SUCCESS,
    MIN_PREFERRED_DIFFICULTY,
    NEW_USER_CONFIDENCE,
    PATTERN_FAILURE_THRESHOLD,
    PLATEAU_DETECTION_THRESHOLD,
    PLATEAU_GROWTH_SCALE,
    PLATEAU_SAMPLE_DENOMINATOR,
    PREDICTION_SAMPLE_DENOMINATOR,
    RECENT_PERFORMANCE_ADJUSTMENT,
    SIMILAR_DIFFICULTY_DELTA,
    TIME_OVERRUN_RATIO,
    TIME_VARIANCE_THRESHOLD,
    WEEKDAY_NAMES,
)
from climb_you.shared.datetime_utils import utc_now, weekday_name
from climb_you.shared.exceptions import InvalidRateError
from climb_you.shared.math_utils import clamp
from climb_you.shared.models import ChallengeResponse, Priority, Severity

logger = logging.getLogger(__name__)


def _success_rate(records: Sequence[QuestHistoryRecord]) -> float | None:
    if not records:
        return None
    return sum(1 for r in records if r.was_successful) / len(records)


def _filter_window(
    history: Sequence[QuestHistoryRecord],
    days: int,
    today: date,
) -> list[QuestHistoryRecord]:
    cutoff = today - timedelta(days=days)
    return [r for r in history if cutoff <= r.date <= today]


class PerformanceAnalyzer(IPerformanceAnalyzer):
    """Derives learning statistics from quest history.

    Stateless: a single instance can be shared by any number of callers.
    """

    # Rule thresholds for strengths, risks and opportunities
    _strong_completion_rate = 0.8
    _strong_streak = 5
    _strong_consistency = 0.8
    _weak_consistency = 0.5
    _very_weak_consistency = 0.3
    _underchallenge_rate = 0.9
    _burnout_ratio = 1.5
    _fast_finish_ratio = 0.6

    # ===================
    # Learning Pattern
    # ===================

    def compute_learning_pattern(
        self,
        history: Sequence[QuestHistoryRecord],
        window_days: int = 30,
        now: datetime | None = None,
    ) -> LearningPattern:
        """Project history into a LearningPattern.

        Args:
            history: Quest resolutions in resolution order
            window_days: Trailing window for everything except weekly trends
            now: Reference time (defaults to the current UTC time)

        Returns:
            LearningPattern; identical inputs give equal patterns
        """
        analyzed_at = now or utc_now()
        window = _filter_window(history, window_days, analyzed_at.date())

        completion_rate = _success_rate(window)
        if completion_rate is None:
            completion_rate = DEFAULT_COMPLETION_RATE

        successful = [r for r in window if r.was_successful]
        preferred = DEFAULT_PREFERRED_DIFFICULTY
        if successful:
            preferred = fmean(r.difficulty for r in successful)

        return LearningPattern(
            average_completion_rate=clamp(completion_rate),
            best_time_slots=self._best_time_slots(window),
            preferred_difficulty=clamp(
                preferred, MIN_PREFERRED_DIFFICULTY, MAX_PREFERRED_DIFFICULTY
            ),
            weekly_trends=self._weekday_rates(
                [r for r in history if r.date <= analyzed_at.date()]
            ),
            improvement_areas=self._improvement_areas(window, completion_rate),
            sample_size=len(window),
            last_analyzed=analyzed_at,
        )

    def _best_time_slots(self, window: Sequence[QuestHistoryRecord]) -> tuple[int, ...]:
        counts: dict[int, int] = defaultdict(int)
        successes: dict[int, int] = defaultdict(int)
        for record in window:
            if record.completed_at is None:
                continue
            hour = record.completed_at.hour
            counts[hour] += 1
            if record.was_successful:
                successes[hour] += 1

        rated = [
            (successes[hour] / count, hour)
            for hour, count in counts.items()
            if successes[hour] / count > BEST_TIME_SLOT_MIN_RATE
        ]
        rated.sort(key=lambda item: (-item[0], item[1]))
        slots = tuple(hour for _, hour in rated[:MAX_BEST_TIME_SLOTS])
        return slots or DEFAULT_BEST_TIME_SLOTS

    def _weekday_rates(self, history: Sequence[QuestHistoryRecord]) -> dict[str, float]:
        counts = [0] * 7
        successes = [0] * 7
        for record in history:
            day = record.date.weekday()
            counts[day] += 1
            if record.was_successful:
                successes[day] += 1
        return {
            name: successes[i] / counts[i] if counts[i] else DEFAULT_WEEKDAY_RATE
            for i, name in enumerate(WEEKDAY_NAMES)
        }

    def _improvement_areas(
        self,
        window: Sequence[QuestHistoryRecord],
        completion_rate: float,
    ) -> tuple[str, ...]:
        areas: list[str] = []
        if completion_rate < 0.5:
            areas.append("time management")

        failures: dict[str, int] = {}
        for record in window:
            if not record.was_successful:
                failures[record.pattern] = failures.get(record.pattern, 0) + 1
        areas.extend(
            f"{pattern} mastery"
            for pattern, count in failures.items()
            if count >= PATTERN_FAILURE_THRESHOLD
        )

        if not areas:
            areas.append("consistency")
        return tuple(areas[:MAX_IMPROVEMENT_AREAS])

    # ===================
    # Detailed Analysis
    # ===================

    def analyze_learning_patterns(
        self,
        history: Sequence[QuestHistoryRecord],
        timeframe_days: int = 30,
        reference_date: date | None = None,
    ) -> DetailedLearningAnalysis:
        """Run the full analysis over a trailing window.

        Windows holding fewer than five records get the fixed new-user
        analysis (confidence 0.3).

        Args:
            history: Quest resolutions in resolution order
            timeframe_days: Trailing window size
            reference_date: Last day of the window (defaults to UTC today)

        Returns:
            DetailedLearningAnalysis
        """
        today = reference_date or utc_now().date()
        window = _filter_window(history, timeframe_days, today)

        if len(window) < MIN_ANALYSIS_SAMPLES:
            logger.debug(
                f"Only {len(window)} records in {timeframe_days}-day window, "
                "returning baseline analysis"
            )
            return self.new_user_analysis(sample_size=len(window))

        completion = self._completion_patterns(window)
        time_efficiency = self._time_efficiency(window)
        difficulty = self._difficulty_progression(window)
        weekly = self._weekly_trend_analysis(window)

        strengths = self._identify_strengths(completion, time_efficiency, difficulty)
        risks = self._identify_risk_factors(completion, time_efficiency, difficulty)
        opportunities = self._identify_opportunities(window, completion, time_efficiency, difficulty)
        recommendations = self._build_recommendations(risks, opportunities)

        return DetailedLearningAnalysis(
            completion=completion,
            time_efficiency=time_efficiency,
            difficulty=difficulty,
            weekly_trends=weekly,
            improvement_opportunities=tuple(opportunities),
            strengths=tuple(strengths),
            risk_factors=tuple(risks),
            recommendations=tuple(recommendations),
            confidence_score=min(1.0, len(window) / CONFIDENCE_SAMPLE_DENOMINATOR),
            sample_size=len(window),
        )

    def calculate_streaks(self, history: Sequence[QuestHistoryRecord]) -> StreakData:
        """Measure runs of consecutive successes in resolution order.

        ``current`` is the run still open at the end of the history.
        """
        runs: list[int] = []
        run = 0
        for record in history:
            if record.was_successful:
                run += 1
            elif run:
                runs.append(run)
                run = 0
        if run:
            runs.append(run)

        return StreakData(
            current=run,
            longest=max(runs, default=0),
            average=fmean(runs) if runs else 0.0,
        )

    def _completion_patterns(self, window: Sequence[QuestHistoryRecord]) -> CompletionPatterns:
        active_days = {r.date for r in window}
        span = (max(active_days) - min(active_days)).days + 1
        times = [
            r.actual_minutes for r in window
            if r.was_successful and r.actual_minutes is not None
        ]

        return CompletionPatterns(
            overall_rate=_success_rate(window) or 0.0,
            streaks=self.calculate_streaks(window),
            consistency_score=clamp(len(active_days) / span),
            completion_times=CompletionTimeStats(
                average=fmean(times) if times else 0.0,
                fastest=min(times, default=0),
                slowest=max(times, default=0),
            ),
        )

    def _time_efficiency(self, window: Sequence[QuestHistoryRecord]) -> TimeEfficiency:
        timed = [r for r in window if r.was_successful and r.actual_minutes is not None]
        ratios = [
            r.actual_minutes / (r.planned_minutes or DEFAULT_PLANNED_MINUTES)
            for r in timed
        ]
        ratio = fmean(ratios) if ratios else 1.0
        spread = pvariance(ratios) if ratios else 0.0

        optimal = DEFAULT_PLANNED_MINUTES
        if timed:
            optimal = int(median([r.actual_minutes for r in timed]))

        hour_counts: dict[int, int] = defaultdict(int)
        hour_successes: dict[int, int] = defaultdict(int)
        for record in window:
            if record.completed_at is None:
                continue
            hour_counts[record.completed_at.hour] += 1
            if record.was_successful:
                hour_successes[record.completed_at.hour] += 1
        productive = sorted(
            (
                ProductiveHour(hour=hour, efficiency=hour_successes[hour] / count)
                for hour, count in hour_counts.items()
                if hour_successes[hour] > 0
            ),
            key=lambda h: (-h.efficiency, h.hour),
        )[:MAX_PRODUCTIVE_HOURS]

        wastage: list[str] = []
        if ratio > TIME_OVERRUN_RATIO:
            wastage.append("Quests regularly take longer than planned")
        if spread > TIME_VARIANCE_THRESHOLD:
            wastage.append("Time spent per quest is highly unpredictable")
        if ratios and ratio < self._fast_finish_ratio:
            wastage.append("Quests finish far ahead of plan; estimates may be too generous")

        focus = float(DEFAULT_PLANNED_MINUTES)
        if ratio > 0:
            focus = clamp(DEFAULT_PLANNED_MINUTES / ratio, 10, DEFAULT_PLANNED_MINUTES)

        return TimeEfficiency(
            actual_vs_planned_ratio=ratio,
            ratio_variance=spread,
            optimal_session_length=optimal,
            productive_hours=tuple(productive),
            time_wastage_indicators=tuple(wastage),
            average_focus_time=focus,
        )

    def _difficulty_progression(self, window: Sequence[QuestHistoryRecord]) -> DifficultyProgression:
        successful = [r.difficulty for r in window if r.was_successful]
        if len(successful) > 1:
            # Linear interpolation between closest ranks
            comfort_min, _, comfort_max = quantiles(successful, n=4, method="inclusive")
        elif successful:
            comfort_min = comfort_max = successful[0]
        else:
            comfort_min, comfort_max = 0.3, 0.7

        growth = self.calculate_growth_rate(window)

        return DifficultyProgression(
            comfort_zone_min=comfort_min,
            comfort_zone_max=comfort_max,
            growth_rate=growth,
            challenge_response=self._challenge_response(window),
            skill_progression=self._skill_progression(window),
            plateau_risk=self.calculate_plateau_risk(window),
        )

    def calculate_growth_rate(self, history: Sequence[QuestHistoryRecord]) -> float:
        """Change in mean successful difficulty between the halves of history.

        Positive means the learner is succeeding at harder quests than
        before. Needs at least two successes.
        """
        successful = [r.difficulty for r in history if r.was_successful]
        if len(successful) < 2:
            return 0.0
        half = len(successful) // 2
        return fmean(successful[half:]) - fmean(successful[:half])

    def calculate_plateau_risk(self, history: Sequence[QuestHistoryRecord]) -> float:
        """Likelihood that progress has stalled despite continued activity.

        Risk is 1 when successful difficulty is flat and falls linearly to 0
        as the growth rate approaches +/-0.1. It is scaled by evidence so
        that fewer than ten records cannot produce full risk.
        """
        if not history:
            return 0.0
        growth = self.calculate_growth_rate(history)
        flatness = 1.0 - abs(growth) / PLATEAU_GROWTH_SCALE
        evidence = min(1.0, len(history) / PLATEAU_SAMPLE_DENOMINATOR)
        return clamp(flatness * evidence)

    def detect_plateau(self, history: Sequence[QuestHistoryRecord]) -> bool:
        return self.calculate_plateau_risk(history) >= PLATEAU_DETECTION_THRESHOLD

    def _challenge_response(self, window: Sequence[QuestHistoryRecord]) -> ChallengeResponse:
        hard = [r for r in window if r.difficulty >= HARD_QUEST_DIFFICULTY]
        rate = _success_rate(hard)
        if rate is None:
            return ChallengeResponse.UNKNOWN
        if rate >= 0.7:
            return ChallengeResponse.THRIVES
        if rate < 0.4:
            return ChallengeResponse.STRUGGLES
        return ChallengeResponse.ADAPTIVE

    def _skill_progression(self, window: Sequence[QuestHistoryRecord]) -> SkillProgression:
        beginner = [r for r in window if r.difficulty < EASY_QUEST_DIFFICULTY]
        intermediate = [
            r for r in window
            if EASY_QUEST_DIFFICULTY <= r.difficulty < HARD_QUEST_DIFFICULTY
        ]
        advanced = [r for r in window if r.difficulty >= HARD_QUEST_DIFFICULTY]
        return SkillProgression(
            beginner=_success_rate(beginner) or 0.0,
            intermediate=_success_rate(intermediate) or 0.0,
            advanced=_success_rate(advanced) or 0.0,
        )

    def _weekly_trend_analysis(self, window: Sequence[QuestHistoryRecord]) -> WeeklyTrendAnalysis:
        by_day: dict[int, list[QuestHistoryRecord]] = defaultdict(list)
        for record in window:
            by_day[record.date.weekday()].append(record)

        rates = {day: _success_rate(records) for day, records in by_day.items()}
        # Iterate Mon..Sun so ties resolve to the earliest weekday
        ordered = [(day, rates[day]) for day in range(7) if day in rates]
        best = max(ordered, key=lambda item: item[1])
        worst = min(ordered, key=lambda item: item[1])

        weekend = [rates[d] for d in (5, 6) if d in rates]
        weekday = [rates[d] for d in range(5) if d in rates]

        return WeeklyTrendAnalysis(
            best_day=WEEKDAY_NAMES[best[0]],
            worst_day=WEEKDAY_NAMES[worst[0]],
            weekend_rate=fmean(weekend) if weekend else DEFAULT_WEEKDAY_RATE,
            weekday_rate=fmean(weekday) if weekday else DEFAULT_WEEKDAY_RATE,
        )

    def _identify_strengths(
        self,
        completion: CompletionPatterns,
        time_efficiency: TimeEfficiency,
        difficulty: DifficultyProgression,
    ) -> list[LearningStrength]:
        strengths: list[LearningStrength] = []

        if completion.overall_rate >= self._strong_completion_rate:
            strengths.append(LearningStrength(
                category="completion",
                description="Reliably finishes planned quests",
                evidence=(f"{completion.overall_rate:.0%} completion rate",),
                leverage="Take on slightly harder quests to keep growing",
            ))
        if completion.streaks.longest >= self._strong_streak:
            strengths.append(LearningStrength(
                category="consistency",
                description="Sustains long runs of successful quests",
                evidence=(f"Longest streak of {completion.streaks.longest} quests",),
                leverage="Anchor new habits to the existing routine",
            ))
        if completion.consistency_score >= self._strong_consistency:
            strengths.append(LearningStrength(
                category="routine",
                description="Shows up on most days",
                evidence=(f"Active on {completion.consistency_score:.0%} of days",),
                leverage="Use the daily slot for spaced review",
            ))
        if difficulty.challenge_response == ChallengeResponse.THRIVES:
            strengths.append(LearningStrength(
                category="challenge",
                description="Handles hard quests well",
                evidence=(f"Comfort zone up to {difficulty.comfort_zone_max:.2f}",),
                leverage="Schedule stretch quests regularly",
            ))
        return strengths

    def _identify_risk_factors(
        self,
        completion: CompletionPatterns,
        time_efficiency: TimeEfficiency,
        difficulty: DifficultyProgression,
    ) -> list[RiskFactor]:
        risks: list[RiskFactor] = []

        if time_efficiency.actual_vs_planned_ratio > self._burnout_ratio:
            risks.append(RiskFactor(
                type="burnout",
                severity=Severity.MEDIUM,
                description="Quests consistently run well over their planned time",
                early_warnings=("Sessions running late", "Skipped follow-up quests"),
                mitigation_strategies=("Shorten sessions", "Plan fewer quests per day"),
            ))
        if difficulty.plateau_risk >= 0.5:
            risks.append(RiskFactor(
                type="plateau",
                severity=Severity.HIGH if difficulty.plateau_risk >= PLATEAU_DETECTION_THRESHOLD else Severity.MEDIUM,
                description="Difficulty of completed quests has stopped rising",
                early_warnings=("Same patterns repeated", "Quests feel routine"),
                mitigation_strategies=("Introduce a new quest pattern", "Raise difficulty slightly"),
            ))
        if completion.consistency_score < self._weak_consistency:
            risks.append(RiskFactor(
                type="inconsistency",
                severity=Severity.HIGH if completion.consistency_score < self._very_weak_consistency else Severity.MEDIUM,
                description="Learning days are irregular",
                early_warnings=("Multi-day gaps",),
                mitigation_strategies=("Fix a daily time slot", "Keep a minimum quest for busy days"),
            ))
        if completion.overall_rate < 0.5:
            risks.append(RiskFactor(
                type="overcommitment",
                severity=Severity.HIGH,
                description="More than half of planned quests are not completed",
                early_warnings=("Unfinished quests piling up",),
                mitigation_strategies=("Reduce daily load", "Lower difficulty temporarily"),
            ))
        if (
            completion.overall_rate > self._underchallenge_rate
            and difficulty.comfort_zone_max < 0.5
        ):
            risks.append(RiskFactor(
                type="underchallenge",
                severity=Severity.LOW,
                description="Quests are completed easily at low difficulty",
                mitigation_strategies=("Increase difficulty",),
            ))
        return risks

    def _identify_opportunities(
        self,
        window: Sequence[QuestHistoryRecord],
        completion: CompletionPatterns,
        time_efficiency: TimeEfficiency,
        difficulty: DifficultyProgression,
    ) -> list[ImprovementOpportunity]:
        opportunities: list[ImprovementOpportunity] = []

        if time_efficiency.actual_vs_planned_ratio > TIME_OVERRUN_RATIO:
            opportunities.append(ImprovementOpportunity(
                category="time_management",
                title="Bring sessions back on schedule",
                description="Quests take longer than planned",
                impact=Priority.HIGH,
                action_items=("Use a timer", "Split long quests"),
            ))
        if completion.overall_rate < 0.6 or difficulty.challenge_response == ChallengeResponse.STRUGGLES:
            opportunities.append(ImprovementOpportunity(
                category="difficulty",
                title="Rebalance quest difficulty",
                description="Current quests are harder than the completion rate supports",
                impact=Priority.HIGH,
                action_items=("Start the day with an easier quest",),
            ))
        if completion.consistency_score < 0.7:
            opportunities.append(ImprovementOpportunity(
                category="consistency",
                title="Establish a daily learning habit",
                description="Learning happens on fewer than 70% of days",
                impact=Priority.MEDIUM,
                action_items=("Set a fixed learning time", "Start with small sessions"),
            ))
        if time_efficiency.ratio_variance > TIME_VARIANCE_THRESHOLD:
            opportunities.append(ImprovementOpportunity(
                category="efficiency",
                title="Make sessions more predictable",
                description="Time spent varies widely between quests",
                impact=Priority.LOW,
                action_items=("Prepare materials before starting",),
            ))

        ratings = [r.user_rating for r in window if r.user_rating is not None]
        if ratings and fmean(ratings) < LOW_RATING:
            opportunities.append(ImprovementOpportunity(
                category="engagement",
                title="Find more engaging quest formats",
                description="Recent quests received low ratings",
                impact=Priority.MEDIUM,
                action_items=("Try a different quest pattern",),
            ))
        return opportunities

    def _build_recommendations(
        self,
        risks: Sequence[RiskFactor],
        opportunities: Sequence[ImprovementOpportunity],
    ) -> list[Recommendation]:
        category_for_risk = {
            "burnout": "schedule",
            "plateau": "difficulty",
            "inconsistency": "schedule",
            "overcommitment": "difficulty",
            "underchallenge": "difficulty",
        }
        priority_for_severity = {
            Severity.HIGH: Priority.HIGH,
            Severity.MEDIUM: Priority.MEDIUM,
            Severity.LOW: Priority.LOW,
        }

        recommendations = [
            Recommendation(
                category=category_for_risk[risk.type],
                priority=priority_for_severity[risk.severity],
                title=risk.mitigation_strategies[0] if risk.mitigation_strategies else "Adjust your plan",
                rationale=risk.description,
                implementation="; ".join(risk.mitigation_strategies),
                time_frame="immediate" if risk.severity == Severity.HIGH else "short_term",
            )
            for risk in risks
        ]
        recommendations.extend(
            Recommendation(
                category="technique",
                priority=opportunity.impact,
                title=opportunity.title,
                rationale=opportunity.description,
                implementation="; ".join(opportunity.action_items),
                time_frame="short_term",
            )
            for opportunity in opportunities
        )

        if not recommendations:
            recommendations.append(Recommendation(
                category="motivation",
                priority=Priority.LOW,
                title="Keep the current rhythm",
                rationale="No risks detected in the analysis window",
                implementation="Continue with the current plan",
                time_frame="long_term",
            ))

        # sort() is stable, so equal priorities keep rule order
        recommendations.sort(key=lambda r: r.priority.rank, reverse=True)
        return recommendations

    def new_user_analysis(self, sample_size: int = 0) -> DetailedLearningAnalysis:
        """Fixed analysis for windows too small for confident statistics."""
        return DetailedLearningAnalysis(
            completion=CompletionPatterns(
                overall_rate=DEFAULT_COMPLETION_RATE,
                streaks=StreakData(current=0, longest=0, average=0.0),
                consistency_score=0.5,
                completion_times=CompletionTimeStats(
                    average=float(DEFAULT_PLANNED_MINUTES),
                    fastest=DEFAULT_PLANNED_MINUTES,
                    slowest=DEFAULT_PLANNED_MINUTES,
                ),
            ),
            time_efficiency=TimeEfficiency(
                actual_vs_planned_ratio=1.0,
                ratio_variance=0.0,
                optimal_session_length=DEFAULT_PLANNED_MINUTES,
                productive_hours=(),
                time_wastage_indicators=(),
                average_focus_time=float(DEFAULT_PLANNED_MINUTES),
            ),
            difficulty=DifficultyProgression(
                comfort_zone_min=0.3,
                comfort_zone_max=0.7,
                growth_rate=0.0,
                challenge_response=ChallengeResponse.UNKNOWN,
                skill_progression=SkillProgression(beginner=0.0, intermediate=0.0, advanced=0.0),
                plateau_risk=0.0,
            ),
            weekly_trends=WeeklyTrendAnalysis(
                best_day=None,
                worst_day=None,
                weekend_rate=DEFAULT_WEEKDAY_RATE,
                weekday_rate=DEFAULT_WEEKDAY_RATE,
            ),
            improvement_opportunities=(
                ImprovementOpportunity(
                    category="consistency",
                    title="Establish a daily learning habit",
                    description="Build a consistent learning routine",
                    impact=Priority.HIGH,
                    action_items=("Set a fixed learning time", "Start with small sessions"),
                ),
            ),
            strengths=(
                LearningStrength(
                    category="motivation",
                    description="High initial motivation",
                    evidence=("Completed onboarding", "Set a clear goal"),
                    leverage="Use early motivation to build strong habits",
                ),
            ),
            risk_factors=(
                RiskFactor(
                    type="inconsistency",
                    severity=Severity.MEDIUM,
                    description="New learner without established patterns",
                    early_warnings=("Skipping days", "Declining engagement"),
                    mitigation_strategies=("Start small", "Focus on consistency over intensity"),
                ),
            ),
            recommendations=(
                Recommendation(
                    category="schedule",
                    priority=Priority.HIGH,
                    title="Establish a consistent learning time",
                    rationale="Consistency is key for new learners",
                    implementation="Choose the same time each day",
                    time_frame="immediate",
                ),
            ),
            confidence_score=NEW_USER_CONFIDENCE,
            sample_size=sample_size,
            is_baseline=True,
        )

    # ===================
    # Adjustment & Prediction
    # ===================

    def generate_difficulty_adjustment(
        self,
        current_difficulty: float,
        recent_history: Sequence[QuestHistoryRecord],
    ) -> DifficultyAdjustment:
        """Recommend the next difficulty level from recent results.

        Rules apply in order: high success rate, low success rate, plateau,
        then average rating. The result stays within [0.1, 0.9].
        """
        if not 0.0 <= current_difficulty <= 1.0:
            raise InvalidRateError("current_difficulty", current_difficulty)

        rate = _success_rate(recent_history)
        adjustment = 0.0
        confidence = 0.7
        reason = "Current difficulty matches recent performance"

        if rate is None:
            reason = "Not enough recent quests to adjust difficulty"
            confidence = NEW_USER_CONFIDENCE
        elif rate > HIGH_SUCCESS_RATE:
            adjustment = DIFFICULTY_STEP_UP
            reason = "High success rate suggests readiness for more challenge"
            confidence = 0.9
        elif rate < LOW_SUCCESS_RATE:
            adjustment = -DIFFICULTY_STEP_DOWN
            reason = "Lowering difficulty to rebuild confidence and motivation"
            confidence = 0.8
        elif self.detect_plateau(recent_history):
            adjustment = DIFFICULTY_NUDGE
            reason = "Breaking a plateau with slightly more challenge"
            confidence = 0.6
        else:
            ratings = [r.user_rating for r in recent_history if r.user_rating is not None]
            if ratings:
                average_rating = fmean(ratings)
                if average_rating < LOW_RATING:
                    adjustment = -DIFFICULTY_NUDGE
                    reason = "Low ratings suggest easier, more engaging quests"
                elif average_rating > HIGH_RATING:
                    adjustment = DIFFICULTY_NUDGE
                    reason = "High ratings suggest readiness for more challenge"
                    confidence = 0.8

        new_difficulty = round(
            clamp(current_difficulty + adjustment, MIN_PLANNED_DIFFICULTY, MAX_PLANNED_DIFFICULTY),
            3,
        )
        return DifficultyAdjustment(
            new_difficulty=new_difficulty,
            adjustment=adjustment,
            reason=reason,
            confidence=confidence,
        )

    def predict_performance(
        self,
        quests: Sequence[Quest],
        history: Sequence[QuestHistoryRecord],
        context: PredictionContext,
    ) -> list[PerformancePrediction]:
        """Estimate the success probability of each upcoming quest.

        Starts from the success rate of similar past quests (same pattern,
        difficulty within 0.2), then shifts by how the context's hour and
        weekday deviate from the overall rate and by recent performance.
        """
        overall = _success_rate(history)
        hour_shift = 0.0
        day_shift = 0.0
        if overall is not None:
            at_hour = [
                r for r in history
                if r.completed_at is not None and r.completed_at.hour == context.hour_of_day
            ]
            on_day = [r for r in history if weekday_name(r.date) == context.weekday]
            hour_rate = _success_rate(at_hour)
            day_rate = _success_rate(on_day)
            if hour_rate is not None:
                hour_shift = hour_rate - overall
            if day_rate is not None:
                day_shift = day_rate - overall

        trend_shift = (
            RECENT_PERFORMANCE_ADJUSTMENT
            if context.recent_performance > BASELINE_PREDICTED_SUCCESS
            else -RECENT_PERFORMANCE_ADJUSTMENT
        )

        predictions = []
        for quest in quests:
            similar = [
                r for r in history
                if r.pattern == quest.pattern
                and abs(r.difficulty - quest.difficulty) < SIMILAR_DIFFICULTY_DELTA
            ]
            base = BASELINE_PREDICTED_SUCCESS
            confidence = BASELINE_PREDICTION_CONFIDENCE
            if similar:
                base = _success_rate(similar)
                confidence = min(MAX_PREDICTION_CONFIDENCE, len(similar) / PREDICTION_SAMPLE_DENOMINATOR)

            predicted = clamp(
                base + hour_shift + day_shift + trend_shift,
                MIN_PREDICTED_SUCCESS,
                MAX_PREDICTED_SUCCESS,
            )
            predictions.append(PerformancePrediction(
                quest_id=quest.id,
                predicted_success=predicted,
                confidence=confidence,
                recommended_adjustments=self._quest_adjustments(quest, predicted),
            ))
        return predictions

    def _quest_adjustments(self, quest: Quest, predicted: float) -> tuple[str, ...]:
        adjustments: list[str] = []
        if predicted < 0.4:
            adjustments.append("Lower the difficulty of this quest")
            if quest.minutes > DEFAULT_PLANNED_MINUTES:
                adjustments.append("Split this quest into shorter sessions")
        elif predicted > 0.8 and quest.difficulty < 0.5:
            adjustments.append("This quest could be made more challenging")
        return tuple(adjustments)


def get_performance_analyzer() -> PerformanceAnalyzer:
    """Get a performance analyzer (stateless, safe to share)."""
    return PerformanceAnalyzer()
