"""Reports Module - weekly reports, personalized insights and motivational messages.

Usage:
    from climb_you.modules.reports import InsightAndReportSynthesizer
    synthesizer = InsightAndReportSynthesizer()
    report = synthesizer.generate_weekly_report(history, week_start)
"""

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
from climb_you.modules.reports.service import InsightAndReportSynthesizer, get_report_synthesizer

__all__ = [
    # Interface types
    "Achievement",
    "Challenge",
    "IInsightAndReportSynthesizer",
    "InsightContext",
    "NextWeekGoal",
    "PersonalizedInsight",
    "WeekRange",
    "WeeklyComparison",
    "WeeklyInsight",
    "WeeklyRecommendation",
    "WeeklyReport",
    "WeeklySummary",
    # Implementation
    "InsightAndReportSynthesizer",
    "get_report_synthesizer",
]
