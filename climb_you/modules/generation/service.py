"""Quest Generation Gateway - request, validate and retry LLM quest output.

The gateway runs a bounded state machine per call:

    ATTEMPTING(n) -> VALIDATING -> SUCCESS
                                -> RETRYING(n + 1)   (n < max_attempts)
                                -> FAILED            (n == max_attempts)

Unparseable output, schema or business-rule violations and network errors
all consume one attempt. Each retry resends the original request with a
refinement section describing the previous failure.
"""

import json
import re
from datetime import date
from statistics import fmean
from typing import Callable, Sequence
import logging

from pydantic import ValidationError as PydanticValidationError

from climb_you.modules.generation.interface import (
    CompletionProvider,
    GenerationState,
    IQuestGenerationGateway,
)
from climb_you.modules.generation.schemas import GeneratedQuest, GeneratedQuestSet
from climb_you.modules.history.interface import DailyQuestPlan, Profile, Quest
from climb_you.modules.llm.service import PromptTemplate, load_prompt_template
from climb_you.modules.planning.interface import QuestConfig
from climb_you.shared.constants import (
    MAX_GENERATION_ATTEMPTS,
    MAX_INSTRUCTIONS,
    MAX_QUEST_MINUTES,
    MAX_SUCCESS_CRITERIA,
    MIN_INSTRUCTIONS,
    MIN_QUEST_MINUTES,
    MIN_SUCCESS_CRITERIA,
)
from climb_you.shared.datetime_utils import utc_today
from climb_you.shared.exceptions import GenerationError, NetworkError, ResponseValidationError
from climb_you.shared.math_utils import clamp

logger = logging.getLogger(__name__)

GENERATION_TEMPLATE = "quests/daily_generation"
REFINEMENT_TEMPLATE = "quests/refinement"

# Position of each difficulty label inside the requested range
DIFFICULTY_LABEL_POSITIONS = {"easy": 0.0, "medium": 0.5, "hard": 1.0}

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


class QuestGenerationGateway(IQuestGenerationGateway):
    """Generates a DailyQuestPlan through an injected CompletionProvider."""

    def __init__(
        self,
        provider: CompletionProvider,
        max_attempts: int = MAX_GENERATION_ATTEMPTS,
        prompt_loader: Callable[[str], PromptTemplate] = load_prompt_template,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._provider = provider
        self._max_attempts = max_attempts
        self._load_prompt = prompt_loader

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    async def generate(
        self,
        profile: Profile,
        quest_config: QuestConfig,
        avoid_patterns: Sequence[str] | set[str],
        target_date: date | None = None,
        rationale: Sequence[str] | None = None,
    ) -> DailyQuestPlan:
        """Generate a plan that satisfies the quest contract.

        Args:
            profile: User profile (goal text and constraints)
            quest_config: Count, time budget and difficulty range to request
            avoid_patterns: Recently used patterns to steer away from
            target_date: Day being planned, defaults to today (UTC)
            rationale: Planner adjustments recorded on the plan

        Returns:
            DailyQuestPlan with exactly ``quest_config.quest_count`` quests

        Raises:
            GenerationError: When every attempt failed; carries all failures
        """
        target = target_date or utc_today()
        system_prompt, user_prompt = self._build_request(profile, quest_config, avoid_patterns, target)

        failures: list[str] = []
        prompt = user_prompt
        state = GenerationState.ATTEMPTING

        for attempt in range(1, self._max_attempts + 1):
            state = GenerationState.ATTEMPTING
            logger.info(
                f"Generating quests for user {profile.user_id} on {target} "
                f"(attempt {attempt}/{self._max_attempts})"
            )
            messages = [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ]

            try:
                raw = await self._provider.complete(messages)
                state = GenerationState.VALIDATING
                quest_set = self.parse_response(raw)
                self.validate_quest_set(quest_set, quest_config)
            except (ResponseValidationError, NetworkError) as e:
                failures.append(f"Attempt {attempt}: {e.message}")
                logger.warning(f"Quest generation attempt {attempt} failed in {state.value}: {e.message}")
                if attempt < self._max_attempts:
                    state = GenerationState.RETRYING
                    prompt = self._build_refinement(user_prompt, e.message, attempt + 1, quest_config)
                continue

            state = GenerationState.SUCCESS
            logger.info(f"Generated {len(quest_set.quests)} quests for user {profile.user_id} in {attempt} attempt(s)")
            return self._build_plan(profile, target, quest_set, quest_config, rationale, attempt)

        state = GenerationState.FAILED
        logger.error(f"Quest generation {state.value} for user {profile.user_id}: {failures}")
        raise GenerationError(
            f"Quest generation failed after {self._max_attempts} attempts",
            attempts=self._max_attempts,
            failures=failures,
        )

    def parse_response(self, raw: str) -> GeneratedQuestSet:
        """Parse raw completion text into a GeneratedQuestSet.

        Markdown code fences around the JSON are tolerated.
        """
        content = (raw or "").strip()
        if "```" in content:
            match = _CODE_FENCE.search(content)
            if match:
                content = match.group(1)

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ResponseValidationError(f"Response is not valid JSON: {e.msg}", raw=raw) from e

        if not isinstance(data, dict):
            raise ResponseValidationError("Response must be a JSON object", raw=raw)

        try:
            return GeneratedQuestSet.model_validate(data)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()[:5]
            )
            raise ResponseValidationError(f"Response does not match quest schema: {problems}", raw=raw) from e

    def validate_quest_set(self, quest_set: GeneratedQuestSet, quest_config: QuestConfig) -> None:
        """Check business rules; raise ResponseValidationError on the first violation."""
        count = len(quest_set.quests)
        if count != quest_config.quest_count:
            raise ResponseValidationError(f"Expected {quest_config.quest_count} quests, got {count}")

        total = sum(q.estimated_time_minutes for q in quest_set.quests)
        if total > quest_config.total_minutes:
            raise ResponseValidationError(
                f"Total estimated time ({total} min) exceeds available time ({quest_config.total_minutes} min)"
            )

        for index, quest in enumerate(quest_set.quests, start=1):
            if not MIN_QUEST_MINUTES <= quest.estimated_time_minutes <= MAX_QUEST_MINUTES:
                raise ResponseValidationError(
                    f"Quest {index} has invalid estimated time: {quest.estimated_time_minutes}"
                )
            if not MIN_INSTRUCTIONS <= len(quest.instructions) <= MAX_INSTRUCTIONS:
                raise ResponseValidationError(
                    f"Quest {index} has invalid instructions count: {len(quest.instructions)}"
                )
            if not MIN_SUCCESS_CRITERIA <= len(quest.success_criteria) <= MAX_SUCCESS_CRITERIA:
                raise ResponseValidationError(
                    f"Quest {index} has invalid success criteria count: {len(quest.success_criteria)}"
                )

    def map_difficulty(self, value: float | str, difficulty_range: tuple[float, float]) -> float:
        """Map a numeric or labelled difficulty into the requested range."""
        low, high = difficulty_range
        if isinstance(value, str):
            position = DIFFICULTY_LABEL_POSITIONS[value]
        else:
            position = clamp(float(value))
        return round(low + (high - low) * position, 3)

    def _build_request(
        self,
        profile: Profile,
        quest_config: QuestConfig,
        avoid_patterns: Sequence[str] | set[str],
        target: date,
    ) -> tuple[str, str]:
        template = self._load_prompt(GENERATION_TEMPLATE)
        low, high = quest_config.difficulty_range
        return template.format(
            long_term_goal=profile.long_term_goal,
            category=profile.category.value,
            motivation_style=profile.motivation_style.value,
            peak_hours=", ".join(f"{h}:00" for h in profile.peak_hours) or "none",
            hard_constraints="; ".join(profile.hard_constraints) or "none",
            soft_constraints="; ".join(profile.soft_constraints) or "none",
            target_date=target.isoformat(),
            quest_count=quest_config.quest_count,
            total_minutes=quest_config.total_minutes,
            difficulty_min=low,
            difficulty_max=high,
            average_difficulty=quest_config.average_difficulty,
            avoid_patterns=", ".join(sorted(avoid_patterns)) or "none",
        )

    def _build_refinement(
        self,
        original_prompt: str,
        error_details: str,
        attempt: int,
        quest_config: QuestConfig,
    ) -> str:
        template = self._load_prompt(REFINEMENT_TEMPLATE)
        _, user = template.format(
            original_prompt=original_prompt,
            error_details=error_details,
            attempt=attempt,
            quest_count=quest_config.quest_count,
            total_minutes=quest_config.total_minutes,
        )
        return user

    def _build_quest(
        self,
        generated: GeneratedQuest,
        quest_id: str,
        difficulty_range: tuple[float, float],
    ) -> Quest:
        return Quest(
            id=quest_id,
            title=generated.title,
            description=generated.description,
            pattern=generated.pattern or generated.category,
            category=generated.category,
            minutes=generated.estimated_time_minutes,
            difficulty=self.map_difficulty(generated.difficulty, difficulty_range),
            instructions=tuple(generated.instructions),
            success_criteria=tuple(generated.success_criteria),
            deliverable=generated.deliverable or "",
            goal_contribution=generated.goal_contribution,
            motivation_message=generated.motivation_message,
            tags=tuple(generated.tags),
        )

    def _build_plan(
        self,
        profile: Profile,
        target: date,
        quest_set: GeneratedQuestSet,
        quest_config: QuestConfig,
        rationale: Sequence[str] | None,
        attempts: int,
    ) -> DailyQuestPlan:
        quests = tuple(
            self._build_quest(q, f"{profile.user_id}_{target.isoformat()}_quest_{i}", quest_config.difficulty_range)
            for i, q in enumerate(quest_set.quests, start=1)
        )
        return DailyQuestPlan(
            user_id=profile.user_id,
            target_date=target,
            quests=quests,
            rationale=tuple(rationale or ()),
            estimated_difficulty=round(fmean(q.difficulty for q in quests), 3),
            daily_message=quest_set.daily_message,
            attempts=attempts,
        )
