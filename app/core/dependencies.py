"""
Service dependencies for FastAPI
"""

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.clock import Clock, get_clock
from app.core.config import Settings, get_settings
from app.core.database import get_session
from app.services.activity import ActivityService
from app.services.advisors import AdvisorService


async def get_advisor_service(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> AdvisorService:
    return AdvisorService(session, settings, clock)


async def get_activity_service(
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> ActivityService:
    return ActivityService(session, clock, limit=settings.ACTIVITY_LIMIT)
