"""Daily Module - orchestrates generation cycles, resolutions and reports.

Usage:
    from climb_you.shared.service_registry import get_daily_quest_service
    service = get_daily_quest_service()
    plan = await service.generate_todays_quests(user_id)
"""

from climb_you.modules.daily.interface import GenerationLock, IDailyQuestService
from climb_you.modules.daily.service import DailyQuestService, InProcessGenerationLock

__all__ = [
    "GenerationLock",
    "IDailyQuestService",
    "DailyQuestService",
    "InProcessGenerationLock",
]
