"""
Activity recording: access and quotation events plus advisor counters
"""

import uuid
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from app.core.clock import Clock, utcnow
from app.core.exceptions import NotFoundError
from app.models.activity import Activity, ActivityType
from app.models.advisor import Advisor, AdvisorClient
from app.schemas.advisor import AccessCreate, QuotationCreate

logger = structlog.get_logger(__name__)

ANONYMOUS_CLIENT = "anónimo"
DEFAULT_ACTIVITY_LIMIT = 100


class ActivityService:
    """Appends events and keeps the advisor's counters in step, in one transaction"""

    def __init__(self, session: AsyncSession, clock: Clock = utcnow, limit: int = DEFAULT_ACTIVITY_LIMIT):
        self.session = session
        self.clock = clock
        self.limit = limit

    async def _advisor_id(self, slug: str) -> uuid.UUID:
        result = await self.session.exec(select(Advisor.id).where(Advisor.slug == slug))
        advisor_id = result.first()
        if advisor_id is None:
            raise NotFoundError("Asesor no encontrado")
        return advisor_id

    async def record_access(self, slug: str, data: AccessCreate, ip: Optional[str]) -> Activity:
        advisor_id = await self._advisor_id(slug)
        now = self.clock()

        activity = Activity(
            slug=slug,
            type=ActivityType.ACCESS,
            occurred_at=now,
            client_name=data.cliente_nombre or ANONYMOUS_CLIENT,
            client_email=data.cliente_email or None,
            ip=ip,
        )
        self.session.add(activity)

        await self.session.execute(
            update(Advisor)
            .where(Advisor.id == advisor_id)
            .values(total_accesses=Advisor.total_accesses + 1, last_access_at=now)
            .execution_options(synchronize_session=False)
        )
        await self._add_client(advisor_id, data.cliente_email or ip, now)
        await self.session.commit()

        logger.info(f"Access recorded for {slug}")
        return activity

    async def record_quotation(self, slug: str, data: QuotationCreate, ip: Optional[str]) -> Activity:
        """Unknown slugs are rejected before anything is written"""
        advisor_id = await self._advisor_id(slug)
        now = self.clock()

        activity = Activity(
            slug=slug,
            type=ActivityType.QUOTATION,
            occurred_at=now,
            client_name=data.cliente_nombre,
            client_email=data.cliente_email,
            plan1=None if data.plan1 is None else str(data.plan1),
            plan2=None if data.plan2 is None else str(data.plan2),
            amount=data.monto,
            ip=ip,
        )
        self.session.add(activity)

        await self.session.execute(
            update(Advisor)
            .where(Advisor.id == advisor_id)
            .values(quotes_generated=Advisor.quotes_generated + 1)
            .execution_options(synchronize_session=False)
        )
        await self._add_client(advisor_id, data.cliente_email or ip, now)
        await self.session.commit()

        logger.info(f"Quotation recorded for {slug}")
        return activity

    async def list_recent(self, slug: str) -> List[Activity]:
        """Most recent events for a slug, newest first"""
        result = await self.session.exec(
            select(Activity)
            .where(Activity.slug == slug)
            .order_by(Activity.occurred_at.desc(), Activity.id.desc())
            .limit(self.limit)
        )
        return list(result.all())

    async def _client_exists(self, advisor_id: uuid.UUID, client_key: str) -> bool:
        existing = await self.session.exec(
            select(AdvisorClient.id).where(
                AdvisorClient.advisor_id == advisor_id,
                AdvisorClient.client_key == client_key,
            )
        )
        return existing.first() is not None

    async def _add_client(self, advisor_id: uuid.UUID, client_key: Optional[str], now) -> None:
        """Add to the unique-client set; the unique constraint makes repeats a no-op"""
        if not client_key or await self._client_exists(advisor_id, client_key):
            return

        # Pending rows must not ride in the savepoint that may be rolled back
        await self.session.flush()
        try:
            async with self.session.begin_nested():
                self.session.add(AdvisorClient(advisor_id=advisor_id, client_key=client_key, first_seen_at=now))
        except IntegrityError:
            logger.debug(f"Client already registered for advisor {advisor_id}")
