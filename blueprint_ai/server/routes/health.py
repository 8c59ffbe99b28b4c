"""
Liveness and status routes (mounted under /api).

/api/health answers as long as the event loop is serving requests.
/api/status adds session and turn counts, the registered providers and
the process uptime.
"""

import time
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from blueprint_ai import __version__
from blueprint_ai.core.settings import get_settings_manager
from blueprint_ai.providers.registry import get_provider_registry
from blueprint_ai.server.session import get_session_manager

router = APIRouter()

_started_at: Optional[float] = None


class HealthResponse(BaseModel):
    status: str = "healthy"
    timestamp: str = Field(default_factory=lambda: datetime.now().isoformat())
    version: str = __version__


class StatusResponse(HealthResponse):
    """Health plus live counters."""

    active_sessions: int
    active_turns: int
    providers: List[str]
    default_provider: str
    uptime_seconds: Optional[float] = None


def set_server_start_time() -> None:
    """Mark process start; called from the application lifespan."""
    global _started_at
    _started_at = time.monotonic()


def get_uptime_seconds() -> Optional[float]:
    if _started_at is None:
        return None
    return round(time.monotonic() - _started_at, 3)


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse()


@router.get("/status", response_model=StatusResponse)
async def server_status() -> StatusResponse:
    sessions = get_session_manager()
    return StatusResponse(
        active_sessions=await sessions.get_session_count(),
        active_turns=await sessions.get_active_turn_count(),
        providers=get_provider_registry().available(),
        default_provider=get_settings_manager().get_default_provider(),
        uptime_seconds=get_uptime_seconds(),
    )


__all__ = ["router", "HealthResponse", "StatusResponse", "set_server_start_time"]
