"""LLM Service - Anthropic Claude API wrapper and prompt templates."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any
import logging

from anthropic import AsyncAnthropic

from climb_you.shared.config import Settings, get_settings
from climb_you.shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

PROMPTS_DIR = Path(__file__).parent.parent.parent / "prompts"


@dataclass
class LLMResponse:
    """Response from LLM completion."""

    content: str
    model: str
    usage: dict[str, int]
    stop_reason: str | None = None


@dataclass
class PromptTemplate:
    """Loaded prompt template."""

    name: str
    system: str
    user: str
    variables: list[str]

    def format(self, **kwargs: Any) -> tuple[str, str]:
        """Format template with variables. Returns (system, user) prompts."""
        system = self.system
        user = self.user
        for key, value in kwargs.items():
            system = system.replace(f"{{{{{key}}}}}", str(value))
            user = user.replace(f"{{{{{key}}}}}", str(value))
        return system, user


def load_prompt_template(name: str, prompts_dir: Path = PROMPTS_DIR) -> PromptTemplate:
    """Load a prompt template shipped with the package.

    Template format:
        ---SYSTEM---
        system prompt here
        ---USER---
        user prompt here
        ---VARIABLES---
        var1, var2, var3

    Args:
        name: Template name (e.g., "quests/daily_generation")
        prompts_dir: Root directory holding the templates

    Returns:
        PromptTemplate instance
    """
    # Only alphanumeric, underscores, hyphens, and forward slashes for subdirectories
    if not re.match(r'^[a-zA-Z0-9_/\-]+$', name):
        raise ValueError(f"Invalid template name: {name}. Only alphanumeric, underscore, hyphen, and slash allowed.")

    if '..' in name or name.startswith('/') or name.startswith('\\'):
        raise ValueError(f"Invalid template name: {name}. Path traversal not allowed.")

    template_path = prompts_dir / f"{name}.txt"
    if not template_path.resolve().is_relative_to(prompts_dir.resolve()):
        raise ValueError(f"Invalid template path: {name}. Must be within prompts directory.")

    if not template_path.exists():
        raise FileNotFoundError(f"Prompt template not found: {name}")

    content = template_path.read_text(encoding="utf-8")

    system = ""
    user = ""
    variables: list[str] = []
    current_section = None
    for part in re.split(r"^---(SYSTEM|USER|VARIABLES)---\s*$", content, flags=re.MULTILINE):
        if part in ("SYSTEM", "USER", "VARIABLES"):
            current_section = part
        elif current_section == "SYSTEM":
            system = part.strip()
        elif current_section == "USER":
            user = part.strip()
        elif current_section == "VARIABLES":
            variables = [v.strip() for v in part.split(",") if v.strip()]

    return PromptTemplate(name=name, system=system, user=user, variables=variables)


class LLMService:
    """Service for interacting with Anthropic Claude API."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: AsyncAnthropic | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        if client is None:
            if not self._settings.anthropic_api_key:
                raise ConfigurationError("ANTHROPIC_API_KEY is not configured")
            client = AsyncAnthropic(api_key=self._settings.anthropic_api_key)
        self.client = client
        self.default_model = self._settings.default_model
        self.max_tokens = self._settings.max_tokens

    async def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Generate a completion from a single user prompt."""
        return await self.complete_with_history(
            [{"role": "user", "content": prompt}],
            system_prompt=system_prompt,
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    async def complete_with_history(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Generate completion with conversation history.

        Args:
            messages: List of {"role": "user"|"assistant", "content": "..."}
            system_prompt: Optional system prompt
            model: Model to use
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            LLMResponse with content and metadata
        """
        response = await self.client.messages.create(
            model=model or self.default_model,
            max_tokens=max_tokens or self.max_tokens,
            temperature=self._settings.temperature if temperature is None else temperature,
            system=system_prompt or "",
            messages=messages,
        )

        content = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(
            f"LLM completion: model={response.model}, "
            f"input_tokens={response.usage.input_tokens}, "
            f"output_tokens={response.usage.output_tokens}"
        )

        return LLMResponse(
            content=content,
            model=response.model,
            usage={
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            },
            stop_reason=response.stop_reason,
        )
