"""Generation Module - turn a quest config into concrete quests via an LLM."""

from datetime import date
from enum import Enum
from typing import Protocol, Sequence

from climb_you.modules.history.interface import DailyQuestPlan, Profile
from climb_you.modules.planning.interface import QuestConfig


class GenerationState(str, Enum):
    """States of the bounded generate/validate/retry loop."""

    ATTEMPTING = "attempting"
    VALIDATING = "validating"
    SUCCESS = "success"
    RETRYING = "retrying"
    FAILED = "failed"


class CompletionProvider(Protocol):
    """Text completion capability.

    Takes ordered ``{"role": ..., "content": ...}`` messages and returns free
    text. Nothing guarantees the text is valid JSON. Transient failures
    should raise NetworkError.
    """

    async def complete(self, messages: list[dict[str, str]]) -> str:
        ...


class IQuestGenerationGateway(Protocol):
    """Interface for quest generation."""

    async def generate(
        self,
        profile: Profile,
        quest_config: QuestConfig,
        avoid_patterns: Sequence[str] | set[str],
        target_date: date | None = None,
        rationale: Sequence[str] | None = None,
    ) -> DailyQuestPlan:
        """Generate a validated plan or raise GenerationError."""
        ...
