"""History Service - in-memory profile, history and plan store."""

from datetime import date
import logging

from climb_you.modules.history.interface import (
    DailyQuestPlan,
    IProfileAndHistoryStore,
    Profile,
    QuestHistoryRecord,
)

logger = logging.getLogger(__name__)


class InMemoryProfileAndHistoryStore(IProfileAndHistoryStore):
    """Process-local store for development and tests.

    Holds no state beyond the instance; two stores never share data.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, Profile] = {}
        self._history: dict[str, list[QuestHistoryRecord]] = {}
        self._plans: dict[tuple[str, date], DailyQuestPlan] = {}

    async def get_profile(self, user_id: str) -> Profile | None:
        return self._profiles.get(user_id)

    async def save_profile(self, profile: Profile) -> None:
        self._profiles[profile.user_id] = profile
        logger.debug(f"Saved profile for user {profile.user_id}")

    async def get_history(
        self,
        user_id: str,
        since: date | None = None,
    ) -> list[QuestHistoryRecord]:
        records = self._history.get(user_id, [])
        if since is not None:
            records = [r for r in records if r.date >= since]
        # sorted() is stable, so append order survives within a date
        return sorted(records, key=lambda r: r.date)

    async def append_history_record(self, record: QuestHistoryRecord) -> None:
        self._history.setdefault(record.user_id, []).append(record)
        logger.debug(
            f"Appended history record {record.id} for user {record.user_id} "
            f"(quest={record.quest_id}, success={record.was_successful})"
        )

    async def get_plan_for_date(
        self,
        user_id: str,
        target_date: date,
    ) -> DailyQuestPlan | None:
        return self._plans.get((user_id, target_date))

    async def save_plan(self, plan: DailyQuestPlan) -> None:
        self._plans[(plan.user_id, plan.target_date)] = plan
        logger.debug(f"Saved plan for user {plan.user_id} on {plan.target_date}")
