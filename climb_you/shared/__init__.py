"""Shared utilities and common code."""

from climb_you.shared.config import Settings, get_settings
from climb_you.shared.database import (
    Base,
    close_db,
    get_db_session,
    init_db,
)
from climb_you.shared.log_config import setup_logging
from climb_you.shared.exceptions import (
    ClimbYouException,
    GenerationError,
    NetworkError,
    StorageError,
    UnknownError,
    ValidationError,
    to_error_response,
)
from climb_you.shared.models import (
    BaseSchema,
    ErrorResponse,
    ErrorType,
    GoalCategory,
    MotivationStyle,
    Priority,
    Trend,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "setup_logging",
    # Database
    "Base",
    "get_db_session",
    "init_db",
    "close_db",
    # Errors
    "ClimbYouException",
    "GenerationError",
    "NetworkError",
    "StorageError",
    "UnknownError",
    "ValidationError",
    "to_error_response",
    # Models
    "BaseSchema",
    "ErrorResponse",
    "ErrorType",
    # Enums
    "GoalCategory",
    "MotivationStyle",
    "Priority",
    "Trend",
]
