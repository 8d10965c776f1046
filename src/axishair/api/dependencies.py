"""FastAPI dependencies for shared application state.

This module provides reusable FastAPI dependencies for:
- Settings access
- The generation monitor owned by the application lifespan
- A clock for time-dependent aggregates
"""

from datetime import datetime, timezone

from fastapi import Request

from axishair.core.config import Settings
from axishair.generation.monitor import GenerationMonitor


def get_settings() -> Settings:
    """Get application settings instance.

    Returns:
        Settings instance loaded from environment variables.
    """
    return Settings()  # type: ignore[call-arg]  # Pydantic loads from env vars


def get_generation_monitor(request: Request) -> GenerationMonitor:
    """Get the GenerationMonitor from app state.

    Args:
        request: FastAPI Request object (contains app.state)

    Returns:
        Monitor created in the app lifespan (tests may replace it)
    """
    return request.app.state.generation_monitor


def get_now() -> datetime:
    """Current time as naive UTC, matching how timestamps are stored.

    Overridden in tests via app.dependency_overrides to pin the dashboard clock.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
