"""Anthropic-backed completion provider for quest generation."""

import logging

import anthropic

from climb_you.modules.llm.service import LLMService
from climb_you.shared.exceptions import NetworkError, UnknownError

logger = logging.getLogger(__name__)

# Status codes worth another attempt: rate limiting and server-side trouble
_TRANSIENT_STATUS_CODES = {408, 409, 429}


class AnthropicCompletionProvider:
    """Implements CompletionProvider on top of LLMService.

    System messages are folded into Anthropic's ``system`` parameter.
    Transport failures and retryable statuses surface as NetworkError,
    anything else from the SDK as UnknownError.
    """

    def __init__(self, llm_service: LLMService | None = None) -> None:
        self._llm = llm_service or LLMService()

    @property
    def llm(self) -> LLMService:
        return self._llm

    async def complete(self, messages: list[dict[str, str]]) -> str:
        system_parts = [m["content"] for m in messages if m["role"] == "system"]
        conversation = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]

        try:
            response = await self._llm.complete_with_history(
                conversation,
                system_prompt="\n\n".join(system_parts) or None,
            )
        except anthropic.APIConnectionError as e:
            logger.warning(f"Anthropic connection failure: {e}")
            raise NetworkError("anthropic", str(e)) from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500 or e.status_code in _TRANSIENT_STATUS_CODES:
                logger.warning(f"Anthropic transient status {e.status_code}: {e}")
                raise NetworkError("anthropic", str(e)) from e
            logger.error(f"Anthropic API error {e.status_code}: {e}")
            raise UnknownError(f"Anthropic API error: {e}", original=str(e)) from e
        except anthropic.APIError as e:
            logger.error(f"Anthropic API error: {e}")
            raise UnknownError(f"Anthropic API error: {e}", original=str(e)) from e

        return response.content
