"""History store - database-backed implementation."""

from datetime import date
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from climb_you.modules.history.interface import (
    DailyQuestPlan,
    IProfileAndHistoryStore,
    Profile,
    QuestHistoryRecord,
)
from climb_you.modules.history.models import (
    DailyQuestPlanModel,
    ProfileModel,
    QuestHistoryModel,
)
from climb_you.modules.history.repository import (
    DailyQuestPlanRepository,
    ProfileRepository,
    QuestHistoryRepository,
)
from climb_you.shared.database import get_db_session
from climb_you.shared.exceptions import StorageError

logger = logging.getLogger(__name__)


class DatabaseProfileAndHistoryStore(IProfileAndHistoryStore):
    """SQLAlchemy-backed store (PostgreSQL via asyncpg, SQLite via aiosqlite).

    Every operation runs in its own session. Driver and ORM failures are
    reported as StorageError.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self._session_factory = session_factory

    async def get_profile(self, user_id: str) -> Profile | None:
        try:
            async with get_db_session(self._session_factory) as db:
                model = await ProfileRepository(db).get_by_user(user_id)
                return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load profile for user {user_id}: {e}")
            raise StorageError("get_profile", str(e)) from e

    async def save_profile(self, profile: Profile) -> None:
        try:
            async with get_db_session(self._session_factory) as db:
                await ProfileRepository(db).merge(ProfileModel.from_domain(profile))
        except SQLAlchemyError as e:
            logger.error(f"Failed to save profile for user {profile.user_id}: {e}")
            raise StorageError("save_profile", str(e)) from e

    async def get_history(
        self,
        user_id: str,
        since: date | None = None,
    ) -> list[QuestHistoryRecord]:
        try:
            async with get_db_session(self._session_factory) as db:
                models = await QuestHistoryRepository(db).get_user_history(user_id, since)
                return [m.to_domain() for m in models]
        except SQLAlchemyError as e:
            logger.error(f"Failed to load history for user {user_id}: {e}")
            raise StorageError("get_history", str(e)) from e

    async def append_history_record(self, record: QuestHistoryRecord) -> None:
        try:
            async with get_db_session(self._session_factory) as db:
                await QuestHistoryRepository(db).create(QuestHistoryModel.from_domain(record))
        except SQLAlchemyError as e:
            logger.error(f"Failed to append history record {record.id}: {e}")
            raise StorageError("append_history_record", str(e)) from e

    async def get_plan_for_date(
        self,
        user_id: str,
        target_date: date,
    ) -> DailyQuestPlan | None:
        try:
            async with get_db_session(self._session_factory) as db:
                model = await DailyQuestPlanRepository(db).get_for_date(user_id, target_date)
                return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load plan for user {user_id} on {target_date}: {e}")
            raise StorageError("get_plan_for_date", str(e)) from e

    async def save_plan(self, plan: DailyQuestPlan) -> None:
        try:
            async with get_db_session(self._session_factory) as db:
                await DailyQuestPlanRepository(db).merge(DailyQuestPlanModel.from_domain(plan))
        except SQLAlchemyError as e:
            logger.error(f"Failed to save plan for user {plan.user_id} on {plan.target_date}: {e}")
            raise StorageError("save_plan", str(e)) from e
