"""Test configuration and fixtures."""

import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path

# Load environment variables before any imports that need them
from dotenv import load_dotenv
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")

# Ensure the package is importable without installation
sys.path.insert(0, str(project_root))

import pytest

from climb_you.modules.history.interface import Profile, QuestHistoryRecord
from climb_you.shared.exceptions import NetworkError


class FakeCompletionProvider:
    """CompletionProvider double that replays scripted responses.

    Each scripted item is either the raw completion text or an exception
    to raise. Every call's messages are kept in ``calls``.
    """

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls: list[list[dict[str, str]]] = []

    async def complete(self, messages):
        self.calls.append(messages)
        if not self._responses:
            raise AssertionError("FakeCompletionProvider ran out of scripted responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def build_quest_payload(count=3, minutes=20, difficulty="medium", daily_message="Let's climb!", **quest_overrides):
    """JSON text shaped like a well-behaved completion."""
    quests = []
    for i in range(count):
        quest = {
            "title": f"Quest {i + 1}",
            "description": f"Do focused work item {i + 1}",
            "category": "learning",
            "pattern": f"pattern_{i + 1}",
            "difficulty": difficulty,
            "estimatedTimeMinutes": minutes,
            "instructions": ["Open the material", "Work through it"],
            "successCriteria": ["Finished the material"],
            "goalContribution": "Builds the core skill",
            "motivationMessage": "You can do it",
        }
        quest.update(quest_overrides)
        quests.append(quest)
    return json.dumps({
        "quests": quests,
        "dailyMessage": daily_message,
        "totalEstimatedTime": count * minutes,
    })


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset process-wide singletons between tests."""
    from climb_you.shared.feature_flags import FeatureFlagManager, get_feature_flags
    from climb_you.shared.service_registry import ServiceRegistry, get_service_registry

    yield
    FeatureFlagManager._instance = None
    get_feature_flags.cache_clear()
    ServiceRegistry._instance = None
    get_service_registry.cache_clear()


@pytest.fixture(autouse=True)
async def reset_db_engine():
    """Dispose database engines created during a test."""
    yield
    from climb_you.shared.database import close_db
    await close_db()


@pytest.fixture
def fake_provider():
    """Factory for scripted completion providers."""
    return FakeCompletionProvider


@pytest.fixture
def quest_payload():
    """Factory for completion text holding quests."""
    return build_quest_payload


@pytest.fixture
def network_error():
    """A transient completion failure."""
    return NetworkError("anthropic", "connection reset")


@pytest.fixture
def sample_user_id():
    """Sample user id."""
    return "user-123"


@pytest.fixture
def sample_profile(sample_user_id):
    """Profile with a 60-minute budget, 20-minute sessions and tolerance 0.6."""
    return Profile(
        user_id=sample_user_id,
        long_term_goal="Reach TOEIC 800 within six months",
        time_budget_min_per_day=60,
        preferred_session_length_min=20,
        difficulty_tolerance=0.6,
        peak_hours=(7, 21),
        hard_constraints=("No study after 23:00",),
    )


@pytest.fixture
def make_record(sample_user_id):
    """Factory for history records."""
    counter = {"n": 0}

    def _make(
        day,
        was_successful=True,
        difficulty=0.5,
        pattern="read_note_q",
        planned_minutes=20,
        actual_minutes=20,
        user_rating=None,
        hour=9,
    ):
        counter["n"] += 1
        day = day if isinstance(day, date) else date.fromisoformat(day)
        completed_at = datetime(day.year, day.month, day.day, hour, 0, tzinfo=timezone.utc)
        return QuestHistoryRecord(
            user_id=sample_user_id,
            quest_id=f"quest-{counter['n']}",
            title=f"Quest {counter['n']}",
            pattern=pattern,
            difficulty=difficulty,
            was_successful=was_successful,
            date=day,
            planned_minutes=planned_minutes,
            actual_minutes=actual_minutes,
            user_rating=user_rating,
            completed_at=completed_at if was_successful else None,
        )

    return _make
