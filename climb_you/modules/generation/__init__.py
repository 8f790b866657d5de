"""Generation Module - LLM-backed quest generation with validation and retries.

Usage:
    from climb_you.modules.generation import QuestGenerationGateway
    gateway = QuestGenerationGateway(provider)
    plan = await gateway.generate(profile, quest_config, avoid_patterns)
"""

from climb_you.modules.generation.interface import (
    CompletionProvider,
    GenerationState,
    IQuestGenerationGateway,
)
from climb_you.modules.generation.schemas import GeneratedQuest, GeneratedQuestSet
from climb_you.modules.generation.service import QuestGenerationGateway

__all__ = [
    "CompletionProvider",
    "GenerationState",
    "IQuestGenerationGateway",
    "GeneratedQuest",
    "GeneratedQuestSet",
    "QuestGenerationGateway",
]
