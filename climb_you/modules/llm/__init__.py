"""LLM Module - Anthropic client wrapper, prompt templates and completion provider.

Usage:
    from climb_you.modules.llm import AnthropicCompletionProvider
    provider = AnthropicCompletionProvider()
    text = await provider.complete([{"role": "user", "content": "..."}])
"""

from climb_you.modules.llm.provider import AnthropicCompletionProvider
from climb_you.modules.llm.service import (
    LLMResponse,
    LLMService,
    PromptTemplate,
    load_prompt_template,
)

__all__ = [
    "AnthropicCompletionProvider",
    "LLMResponse",
    "LLMService",
    "PromptTemplate",
    "load_prompt_template",
]
