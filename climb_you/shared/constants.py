"""Application-wide constants.

This module centralizes the thresholds and defaults shared by the analytics,
planning and generation modules. Values that need to be configurable at
runtime should go in config.py instead.
"""

# ===================
# Normalized Ranges
# ===================

# Rates and difficulties are always expressed on [0, 1]
MIN_RATE = 0.0
MAX_RATE = 1.0

# Planner keeps difficulties away from the degenerate extremes
MIN_PLANNED_DIFFICULTY = 0.1
MAX_PLANNED_DIFFICULTY = 0.9
DIFFICULTY_RANGE_HALF_WIDTH = 0.2

# Learned preferred difficulty is clamped to this band
MIN_PREFERRED_DIFFICULTY = 0.2
MAX_PREFERRED_DIFFICULTY = 0.8


# ===================
# Learning Pattern Defaults
# ===================

DEFAULT_COMPLETION_RATE = 0.5  # neutral prior for an empty window
DEFAULT_PREFERRED_DIFFICULTY = 0.5
DEFAULT_WEEKDAY_RATE = 0.5
DEFAULT_BEST_TIME_SLOTS = (9, 14, 19)
BEST_TIME_SLOT_MIN_RATE = 0.7
MAX_BEST_TIME_SLOTS = 3
MAX_IMPROVEMENT_AREAS = 3
PATTERN_FAILURE_THRESHOLD = 2

# Python weekday() order: Monday=0 .. Sunday=6
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


# ===================
# Detailed Analysis
# ===================

MIN_ANALYSIS_SAMPLES = 5
NEW_USER_CONFIDENCE = 0.3
CONFIDENCE_SAMPLE_DENOMINATOR = 30
DEFAULT_PLANNED_MINUTES = 25
HARD_QUEST_DIFFICULTY = 0.7
EASY_QUEST_DIFFICULTY = 0.4
MAX_PRODUCTIVE_HOURS = 5
TIME_OVERRUN_RATIO = 1.3
TIME_VARIANCE_THRESHOLD = 0.25

# Plateau risk: flat difficulty growth over enough samples
PLATEAU_GROWTH_SCALE = 0.1
PLATEAU_SAMPLE_DENOMINATOR = 10
PLATEAU_DETECTION_THRESHOLD = 0.7


# ===================
# Difficulty Adjustment & Prediction
# ===================

HIGH_SUCCESS_RATE = 0.85
LOW_SUCCESS_RATE = 0.5
DIFFICULTY_STEP_UP = 0.1
DIFFICULTY_STEP_DOWN = 0.15
DIFFICULTY_NUDGE = 0.05
LOW_RATING = 3.0
HIGH_RATING = 4.0

BASELINE_PREDICTED_SUCCESS = 0.7
BASELINE_PREDICTION_CONFIDENCE = 0.3
MAX_PREDICTION_CONFIDENCE = 0.9
PREDICTION_SAMPLE_DENOMINATOR = 10
SIMILAR_DIFFICULTY_DELTA = 0.2
RECENT_PERFORMANCE_ADJUSTMENT = 0.1
MIN_PREDICTED_SUCCESS = 0.1
MAX_PREDICTED_SUCCESS = 0.9


# ===================
# Planning
# ===================

MIN_QUEST_COUNT = 1
MAX_QUEST_COUNT = 5
RECENT_PATTERN_DAYS = 7
NEW_USER_RECENT_COMPLETION_RATE = 0.7  # optimistic default for the last week
MIN_TREND_SAMPLES = 4
TREND_WINDOW = 3
HARD_DAY_RATE = 0.4
HARD_DAY_TIME_MODIFIER = 0.8


# ===================
# Quest Generation Contract
# ===================

MIN_QUEST_MINUTES = 5
MAX_QUEST_MINUTES = 240
MIN_INSTRUCTIONS = 1
MAX_INSTRUCTIONS = 10
MIN_SUCCESS_CRITERIA = 1
MAX_SUCCESS_CRITERIA = 5
MAX_GENERATION_ATTEMPTS = 3


# ===================
# Weekly Reports
# ===================

WEEK_LENGTH_DAYS = 7
TREND_RATE_DELTA = 0.1
TREND_MINUTES_DELTA = 60
REPORT_WEEK_SAMPLE_DENOMINATOR = 10
REPORT_TOTAL_SAMPLE_DENOMINATOR = 50
REPORT_ANALYSIS_WINDOW_DAYS = 14

# Achievement and challenge thresholds
ACHIEVEMENT_COMPLETION_RATE = 0.8
ACHIEVEMENT_CONSISTENCY = 0.8
ACHIEVEMENT_DIFFICULTY = 0.7
ACHIEVEMENT_STREAK_DAYS = 5
CHALLENGE_COMPLETION_RATE = 0.5
RECOMMENDATION_COMPLETION_RATE = 0.6
NEXT_WEEK_RATE_STEP = 0.1
NEXT_WEEK_MAX_RATE = 0.9


# ===================
# Personalized Insights & Motivation
# ===================

MILESTONE_STREAK = 7
INSIGHT_MIN_RECORDS = 5
INSIGHT_LOW_COMPLETION = 0.5
INSIGHT_HIGH_COMPLETION = 0.9
LATE_NIGHT_HOUR = 22
LOW_QUEST_RATING = 2
MOTIVATION_HIGH_COMPLETION = 0.8
MOTIVATION_STEADY_COMPLETION = 0.6
MOTIVATION_STREAK = 5
