"""
Advisor lifecycle: creation, validation, renewal, suspension and revocation
"""

from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import selectinload
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from app.core.clock import Clock, utcnow
from app.core.config import Settings
from app.core.exceptions import NotFoundError, StoreError, ValidationError
from app.models.advisor import (
    Advisor, AdvisorRenewal, AdvisorStatus, DEFAULT_REVOCATION_REASON
)
from app.schemas.advisor import (
    AdvisorCreate, AdvisorPublic, AdvisorRead, AdvisorValidation, RenewalRead
)
from app.services.slugs import insert_with_unique_slug

logger = structlog.get_logger(__name__)

MAX_RENEW_ATTEMPTS = 3
MAX_DAYS = 36500


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AdvisorService:
    """Operations over advisor records; each call commits its own unit of work"""

    def __init__(self, session: AsyncSession, settings: Settings, clock: Clock = utcnow):
        self.session = session
        self.settings = settings
        self.clock = clock

    async def get_by_slug(self, slug: str) -> Optional[Advisor]:
        result = await self.session.exec(
            select(Advisor)
            .where(Advisor.slug == slug)
            .execution_options(populate_existing=True)
        )
        return result.first()

    async def create(self, data: AdvisorCreate) -> AdvisorRead:
        """Create an advisor with a unique slug and a paid window starting now"""
        if any(_missing(v) for v in (data.nombre, data.email, data.telefono, data.empresa, data.dias_pagados)):
            raise ValidationError("Faltan datos requeridos")
        if not 0 < data.dias_pagados <= MAX_DAYS:
            raise ValidationError("Faltan datos requeridos", f"dias_pagados debe estar entre 1 y {MAX_DAYS}")

        now = self.clock()

        async def insert(slug: str) -> Advisor:
            advisor = Advisor(
                slug=slug,
                name=data.nombre.strip(),
                email=data.email.strip(),
                phone=data.telefono.strip(),
                company=data.empresa.strip(),
                status=AdvisorStatus.ACTIVE,
                started_at=now,
                expires_at=now + timedelta(days=data.dias_pagados),
                paid_days=data.dias_pagados,
                created_at=now,
            )
            self.session.add(advisor)
            await self.session.flush()
            return advisor

        advisor = await insert_with_unique_slug(self.session, data.nombre, insert)
        await self.session.commit()

        logger.info(f"Advisor created: {advisor.slug}")
        return AdvisorRead.from_advisor(advisor, self.settings.PUBLIC_BASE_URL)

    async def list_all(self) -> List[AdvisorRead]:
        result = await self.session.exec(
            select(Advisor)
            .options(selectinload(Advisor.clients), selectinload(Advisor.renewals))
            .order_by(Advisor.created_at)
        )
        return [
            AdvisorRead.from_advisor(
                advisor,
                self.settings.PUBLIC_BASE_URL,
                clients=[c.client_key for c in advisor.clients],
                renewals=[
                    RenewalRead(fecha=r.renewed_at, dias=r.days, nueva_expiracion=r.new_expires_at)
                    for r in advisor.renewals
                ],
            )
            for advisor in result.all()
        ]

    async def validate(self, slug: str) -> AdvisorValidation:
        """Read-time access check; invalid outcomes are results, not errors"""
        advisor = await self.get_by_slug(slug)
        if not advisor:
            return AdvisorValidation(valid=False, error="Asesor no encontrado")

        if advisor.is_expired(self.clock()):
            return AdvisorValidation(valid=False, error="Acceso expirado")

        if advisor.status != AdvisorStatus.ACTIVE:
            return AdvisorValidation(valid=False, error=f"Acceso {advisor.status.value}")

        return AdvisorValidation(
            valid=True,
            asesor=AdvisorPublic(
                nombre=advisor.name,
                email=advisor.email,
                telefono=advisor.phone,
                empresa=advisor.company,
            ),
        )

    async def renew(self, slug: str, days: Optional[int]) -> datetime:
        """
        Extend the expiration by `days` from the current expiration (not from now),
        reactivate the advisor and append a renewal entry.

        The expiration is written only if the row version is unchanged since it
        was read; a concurrent renewal makes this attempt re-read and retry.
        """
        if days is None or days <= 0:
            raise ValidationError("Especifica días")
        if days > MAX_DAYS:
            raise ValidationError("Especifica días", f"dias debe estar entre 1 y {MAX_DAYS}")

        for attempt in range(MAX_RENEW_ATTEMPTS):
            advisor = await self.get_by_slug(slug)
            if not advisor:
                raise NotFoundError("Asesor no encontrado")

            now = self.clock()
            try:
                new_expiration = advisor.expires_at + timedelta(days=days)
            except OverflowError:
                raise ValidationError("Especifica días", "La nueva expiración excede la fecha máxima")
            result = await self.session.execute(
                update(Advisor)
                .where(Advisor.id == advisor.id, Advisor.version == advisor.version)
                .values(
                    expires_at=new_expiration,
                    status=AdvisorStatus.ACTIVE,
                    cancelled_at=None,
                    cancellation_reason=None,
                    version=Advisor.version + 1,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                self.session.add(AdvisorRenewal(
                    advisor_id=advisor.id,
                    renewed_at=now,
                    days=days,
                    new_expires_at=new_expiration,
                ))
                await self.session.commit()
                logger.info(f"Advisor renewed: {slug} (+{days} days, expires {new_expiration.isoformat()})")
                return new_expiration

            await self.session.rollback()
            logger.warning(f"Concurrent renewal on {slug}, retrying (attempt {attempt + 1})")

        raise StoreError("Error renovando asesor", "Conflicto de concurrencia")

    async def suspend(self, slug: str) -> None:
        await self._update_status(slug, status=AdvisorStatus.SUSPENDED)
        logger.info(f"Advisor suspended: {slug}")

    async def activate(self, slug: str) -> None:
        await self._update_status(slug, status=AdvisorStatus.ACTIVE)
        logger.info(f"Advisor activated: {slug}")

    async def revoke(self, slug: str, reason: Optional[str] = None) -> None:
        await self._update_status(
            slug,
            status=AdvisorStatus.REVOKED,
            cancelled_at=self.clock(),
            cancellation_reason=reason or DEFAULT_REVOCATION_REASON,
        )
        logger.info(f"Advisor revoked: {slug}")

    async def _update_status(self, slug: str, **values) -> None:
        """Single conditional UPDATE; an unknown slug is reported instead of silently ignored"""
        result = await self.session.execute(
            update(Advisor)
            .where(Advisor.slug == slug)
            .values(updated_at=self.clock(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.rollback()
            raise NotFoundError("Asesor no encontrado")
        await self.session.commit()
