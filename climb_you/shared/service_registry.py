"""Unified service registry for dependency injection.

This module is the composition root: it wires the history store, the
completion provider, the generation gateway and the daily quest service,
switching between in-memory and database-backed storage based on feature
flags.

Usage:
    from climb_you.shared.service_registry import get_service_registry

    registry = get_service_registry()
    service = registry.get_daily_quest_service()
    plan = await service.generate_todays_quests(user_id)

The registry automatically:
- Returns the database store when FF_USE_DATABASE_PERSISTENCE=true
- Falls back to the in-memory store when the database store can't be built
- Caches service instances for consistent singleton behavior
- Logs service creation for debugging
"""

from functools import lru_cache
from typing import TYPE_CHECKING
import logging

from climb_you.shared.config import get_settings
from climb_you.shared.feature_flags import FeatureFlags, get_feature_flags

if TYPE_CHECKING:
    from climb_you.modules.daily.interface import IDailyQuestService
    from climb_you.modules.generation.interface import CompletionProvider, IQuestGenerationGateway
    from climb_you.modules.history.interface import IProfileAndHistoryStore

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Unified service factory with feature flag support.

    Features:
    - Lazy service instantiation
    - Feature flag-based store selection
    - Automatic fallback when the database store can't be created
    - Service instance caching
    - A replaceable completion provider (tests, alternative LLM vendors)
    """

    _instance: "ServiceRegistry | None" = None

    def __new__(cls) -> "ServiceRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._flags = get_feature_flags()
        self._history_store: "IProfileAndHistoryStore | None" = None
        self._completion_provider: "CompletionProvider | None" = None
        self._generation_gateway: "IQuestGenerationGateway | None" = None
        self._daily_quest_service: "IDailyQuestService | None" = None
        self._initialized = True
        logger.info("ServiceRegistry initialized")

    def get_history_store(self) -> "IProfileAndHistoryStore":
        """Get the profile and history store.

        Returns the database-backed store if FF_USE_DATABASE_PERSISTENCE is
        enabled, otherwise the in-memory store.
        """
        if self._history_store is None:
            self._history_store = self._create_history_store()
        return self._history_store

    def get_completion_provider(self) -> "CompletionProvider":
        """Get the completion provider (Anthropic unless one was registered).

        Raises:
            ConfigurationError: ANTHROPIC_API_KEY is missing
        """
        if self._completion_provider is None:
            from climb_you.modules.llm.provider import AnthropicCompletionProvider

            logger.info("Creating AnthropicCompletionProvider")
            self._completion_provider = AnthropicCompletionProvider()
        return self._completion_provider

    def register_completion_provider(self, provider: "CompletionProvider") -> None:
        """Use ``provider`` for generation and drop services built on the old one."""
        self._completion_provider = provider
        self._generation_gateway = None
        self._daily_quest_service = None
        logger.info(f"Registered completion provider {type(provider).__name__}")

    def get_generation_gateway(self) -> "IQuestGenerationGateway":
        """Get the quest generation gateway."""
        if self._generation_gateway is None:
            from climb_you.modules.generation.service import QuestGenerationGateway

            logger.info("Creating QuestGenerationGateway")
            self._generation_gateway = QuestGenerationGateway(
                self.get_completion_provider(),
                max_attempts=get_settings().generation_max_attempts,
            )
        return self._generation_gateway

    def get_daily_quest_service(self) -> "IDailyQuestService":
        """Get the daily quest service wired to the store and gateway."""
        if self._daily_quest_service is None:
            from climb_you.modules.daily.service import DailyQuestService

            logger.info("Creating DailyQuestService")
            self._daily_quest_service = DailyQuestService(
                store=self.get_history_store(),
                gateway=self.get_generation_gateway(),
            )
        return self._daily_quest_service

    def _create_history_store(self) -> "IProfileAndHistoryStore":
        """Create the history store based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
            try:
                from climb_you.modules.history.db_service import DatabaseProfileAndHistoryStore

                logger.info("Creating DatabaseProfileAndHistoryStore")
                return DatabaseProfileAndHistoryStore()
            except Exception as e:
                logger.warning(
                    f"Failed to create DatabaseProfileAndHistoryStore, falling back: {e}"
                )

        from climb_you.modules.history.service import InMemoryProfileAndHistoryStore

        logger.info("Creating InMemoryProfileAndHistoryStore")
        return InMemoryProfileAndHistoryStore()

    def clear_cache(self) -> None:
        """Clear all cached service instances.

        Use this when feature flags change at runtime to force
        recreation of services with new settings.
        """
        self._history_store = None
        self._completion_provider = None
        self._generation_gateway = None
        self._daily_quest_service = None
        logger.info("ServiceRegistry cache cleared")

    def get_service_info(self) -> dict[str, str]:
        """Get information about currently instantiated services.

        Returns:
            Dictionary of service names to their implementation types
        """
        info = {}
        if self._history_store:
            info["history_store"] = type(self._history_store).__name__
        if self._completion_provider:
            info["completion_provider"] = type(self._completion_provider).__name__
        if self._generation_gateway:
            info["generation_gateway"] = type(self._generation_gateway).__name__
        if self._daily_quest_service:
            info["daily_quest_service"] = type(self._daily_quest_service).__name__
        return info

    def __repr__(self) -> str:
        db_enabled = self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE)
        return f"ServiceRegistry(db_enabled={db_enabled}, services={self.get_service_info()})"


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the singleton ServiceRegistry instance."""
    return ServiceRegistry()


# Convenience functions for common service access
def get_history_store() -> "IProfileAndHistoryStore":
    """Get the history store from the registry.

    This is the recommended way to get a store instance,
    as it respects feature flags and provides fallback behavior.
    """
    return get_service_registry().get_history_store()


def get_generation_gateway() -> "IQuestGenerationGateway":
    """Get the quest generation gateway from the registry."""
    return get_service_registry().get_generation_gateway()


def get_daily_quest_service() -> "IDailyQuestService":
    """Get the daily quest service from the registry."""
    return get_service_registry().get_daily_quest_service()
