"""Pydantic schemas for the quest generation JSON contract."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class GeneratedQuest(BaseModel):
    """One quest as returned by the completion provider."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    description: str = ""
    # Falls back as the quest pattern, so it must carry text
    category: str = Field("learning", min_length=1)
    difficulty: float | Literal["easy", "medium", "hard"] = "medium"
    estimated_time_minutes: int = Field(..., alias="estimatedTimeMinutes")
    instructions: list[str]
    success_criteria: list[str] = Field(..., alias="successCriteria")
    goal_contribution: str = Field("", alias="goalContribution")
    motivation_message: str = Field("", alias="motivationMessage")
    pattern: str | None = None
    deliverable: str | None = None
    tags: list[str] = Field(default_factory=list)


class GeneratedQuestSet(BaseModel):
    """Top-level completion payload."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    quests: list[GeneratedQuest]
    daily_message: str = Field("", alias="dailyMessage")
    total_estimated_time: int | None = Field(None, alias="totalEstimatedTime")
