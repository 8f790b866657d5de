"""History repositories for data access operations.

This module implements the repository pattern for profiles, quest history
and daily plans, separating data access logic from business logic.
"""

from datetime import date
from typing import Sequence

from sqlalchemy import and_, select

from climb_you.modules.history.models import (
    DailyQuestPlanModel,
    ProfileModel,
    QuestHistoryModel,
)
from climb_you.shared.repository import BaseRepository


class ProfileRepository(BaseRepository[ProfileModel]):
    """Repository for Profile entities."""

    @property
    def _model_class(self) -> type[ProfileModel]:
        return ProfileModel

    async def get_by_user(self, user_id: str) -> ProfileModel | None:
        return await self.get_by_id(user_id)


class QuestHistoryRepository(BaseRepository[QuestHistoryModel]):
    """Repository for quest resolution entities."""

    @property
    def _model_class(self) -> type[QuestHistoryModel]:
        return QuestHistoryModel

    async def get_user_history(
        self,
        user_id: str,
        since: date | None = None,
    ) -> Sequence[QuestHistoryModel]:
        """Get a user's resolutions, oldest first.

        Args:
            user_id: User identifier
            since: Optional inclusive lower bound on the calendar date

        Returns:
            Records ordered by date, then by insertion order
        """
        conditions = [QuestHistoryModel.user_id == user_id]
        if since is not None:
            conditions.append(QuestHistoryModel.date >= since)

        result = await self._session.execute(
            select(QuestHistoryModel)
            .where(and_(*conditions))
            .order_by(QuestHistoryModel.date, QuestHistoryModel.seq)
        )
        return result.scalars().all()


class DailyQuestPlanRepository(BaseRepository[DailyQuestPlanModel]):
    """Repository for daily plan entities."""

    @property
    def _model_class(self) -> type[DailyQuestPlanModel]:
        return DailyQuestPlanModel

    async def get_for_date(
        self,
        user_id: str,
        target_date: date,
    ) -> DailyQuestPlanModel | None:
        return await self.get_by_id(DailyQuestPlanModel.make_id(user_id, target_date))
