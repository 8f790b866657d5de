"""Base repository pattern for data access.

Repositories wrap one SQLAlchemy model each and keep queries out of the
store implementations.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from climb_you.shared.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(ABC, Generic[ModelT]):
    """Primary-key access shared by the history repositories."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    @abstractmethod
    def _model_class(self) -> type[ModelT]:
        """Return the SQLAlchemy model class for this repository."""

    async def get_by_id(self, key: Any) -> ModelT | None:
        """Get a single entity by primary key, or None."""
        return await self._session.get(self._model_class, key)

    async def create(self, entity: ModelT) -> ModelT:
        """Insert a new entity; duplicate keys fail on flush."""
        self._session.add(entity)
        await self._session.flush()
        return entity

    async def merge(self, entity: ModelT) -> ModelT:
        """Insert or replace an entity by primary key (last write wins)."""
        merged = await self._session.merge(entity)
        await self._session.flush()
        return merged
