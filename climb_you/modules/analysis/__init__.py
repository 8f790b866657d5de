"""Analysis Module - learning pattern statistics derived from quest history.

Usage:
    from climb_you.modules.analysis import PerformanceAnalyzer
    analyzer = PerformanceAnalyzer()
    pattern = analyzer.compute_learning_pattern(history)
"""

from climb_you.modules.analysis.interface import (
    CompletionPatterns,
    DetailedLearningAnalysis,
    DifficultyAdjustment,
    DifficultyProgression,
    IPerformanceAnalyzer,
    LearningPattern,
    PerformancePrediction,
    PredictionContext,
    StreakData,
    TimeEfficiency,
    WeeklyTrendAnalysis,
)
from climb_you.modules.analysis.service import PerformanceAnalyzer, get_performance_analyzer

__all__ = [
    # Interface types
    "CompletionPatterns",
    "DetailedLearningAnalysis",
    "DifficultyAdjustment",
    "DifficultyProgression",
    "IPerformanceAnalyzer",
    "LearningPattern",
    "PerformancePrediction",
    "PredictionContext",
    "StreakData",
    "TimeEfficiency",
    "WeeklyTrendAnalysis",
    # Implementation
    "PerformanceAnalyzer",
    "get_performance_analyzer",
]
