"""Planning Module - adaptive quest count, difficulty and time budget."""

from climb_you.modules.planning.interface import (
    ContextualAdjustments,
    IQuestPlanner,
    QuestConfig,
    RecentPerformance,
)
from climb_you.modules.planning.service import AdaptiveQuestPlanner, get_quest_planner

__all__ = [
    "ContextualAdjustments",
    "IQuestPlanner",
    "QuestConfig",
    "RecentPerformance",
    "AdaptiveQuestPlanner",
    "get_quest_planner",
]
