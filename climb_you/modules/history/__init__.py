"""History Module - profiles, quest resolutions and daily plans.

Usage:
    # Recommended: use the service registry (respects feature flags)
    from climb_you.shared.service_registry import get_history_store
    store = get_history_store()

    # Direct access (bypasses feature flags)
    from climb_you.modules.history import InMemoryProfileAndHistoryStore
    from climb_you.modules.history import DatabaseProfileAndHistoryStore
"""

from climb_you.modules.history.interface import (
    DailyQuestPlan,
    IProfileAndHistoryStore,
    Profile,
    Quest,
    QuestHistoryRecord,
)
from climb_you.modules.history.service import InMemoryProfileAndHistoryStore
from climb_you.modules.history.db_service import DatabaseProfileAndHistoryStore

__all__ = [
    # Interface types
    "DailyQuestPlan",
    "IProfileAndHistoryStore",
    "Profile",
    "Quest",
    "QuestHistoryRecord",
    # Implementations
    "InMemoryProfileAndHistoryStore",
    "DatabaseProfileAndHistoryStore",
]
