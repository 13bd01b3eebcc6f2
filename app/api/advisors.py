"""
Advisor (asesor) API endpoints
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from typing import List, Optional
import structlog

from app.core.dependencies import get_activity_service, get_advisor_service
from app.core.exceptions import StoreError
from app.schemas.activity import ActivityRead
from app.schemas.advisor import (
    AccessCreate, ActionResult, AdvisorCreate, AdvisorCreated, AdvisorRead,
    AdvisorRenew, AdvisorRevoke, AdvisorValidation, QuotationCreate, RenewResult,
)
from app.services.activity import ActivityService
from app.services.advisors import AdvisorService

logger = structlog.get_logger(__name__)
router = APIRouter()


def client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


@router.post("/crear", response_model=AdvisorCreated)
async def create_advisor(
    payload: AdvisorCreate,
    service: AdvisorService = Depends(get_advisor_service),
):
    """Create a new advisor"""
    try:
        advisor = await service.create(payload)
    except SQLAlchemyError as e:
        logger.error(f"Failed to create advisor: {e}")
        raise StoreError("Error creando asesor")
    return AdvisorCreated(message="Asesor creado correctamente", asesor=advisor)


@router.get("", response_model=List[AdvisorRead])
async def list_advisors(service: AdvisorService = Depends(get_advisor_service)):
    """List all advisors (admin)"""
    try:
        return await service.list_all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to list advisors: {e}")
        raise StoreError("Error obteniendo asesores")


@router.get("/{slug}", response_model=AdvisorValidation, response_model_exclude_none=True)
async def validate_advisor(
    slug: str,
    service: AdvisorService = Depends(get_advisor_service),
):
    """Check whether a landing-page slug is currently usable"""
    try:
        return await service.validate(slug)
    except SQLAlchemyError as e:
        logger.error(f"Failed to validate advisor {slug}: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"valid": False, "error": "Error validando asesor"},
        )


@router.post("/{slug}/registrar-acceso", response_model=ActionResult, response_model_exclude_none=True)
async def record_access(
    slug: str,
    request: Request,
    payload: Optional[AccessCreate] = None,
    service: ActivityService = Depends(get_activity_service),
):
    """Record a visitor access to the advisor's landing page"""
    try:
        await service.record_access(slug, payload or AccessCreate(), client_ip(request))
    except SQLAlchemyError as e:
        logger.error(f"Failed to record access for {slug}: {e}")
        raise StoreError("Error registrando acceso")
    return ActionResult()


@router.post("/{slug}/registrar-cotizacion", response_model=ActionResult, response_model_exclude_none=True)
async def record_quotation(
    slug: str,
    request: Request,
    payload: Optional[QuotationCreate] = None,
    service: ActivityService = Depends(get_activity_service),
):
    """Record a quotation generated from the advisor's landing page"""
    try:
        await service.record_quotation(slug, payload or QuotationCreate(), client_ip(request))
    except SQLAlchemyError as e:
        logger.error(f"Failed to record quotation for {slug}: {e}")
        raise StoreError("Error registrando cotización")
    return ActionResult()


@router.get("/{slug}/actividad", response_model=List[ActivityRead])
async def list_activity(
    slug: str,
    service: ActivityService = Depends(get_activity_service),
):
    """Most recent activity events for an advisor, newest first"""
    try:
        events = await service.list_recent(slug)
    except SQLAlchemyError as e:
        logger.error(f"Failed to list activity for {slug}: {e}")
        raise StoreError("Error obteniendo actividad")
    return [ActivityRead.from_activity(event) for event in events]


@router.post("/{slug}/renovar", response_model=RenewResult)
async def renew_advisor(
    slug: str,
    payload: Optional[AdvisorRenew] = None,
    service: AdvisorService = Depends(get_advisor_service),
):
    """Extend an advisor's expiration additively and reactivate it"""
    try:
        new_expiration = await service.renew(slug, payload.dias if payload else None)
    except SQLAlchemyError as e:
        logger.error(f"Failed to renew advisor {slug}: {e}")
        raise StoreError("Error renovando asesor")
    return RenewResult(message="Asesor renovado", nueva_expiracion=new_expiration)


@router.post("/{slug}/revocar", response_model=ActionResult)
async def revoke_advisor(
    slug: str,
    payload: Optional[AdvisorRevoke] = None,
    service: AdvisorService = Depends(get_advisor_service),
):
    """Revoke access, stamping the cancellation date and reason"""
    try:
        await service.revoke(slug, payload.razon if payload else None)
    except SQLAlchemyError as e:
        logger.error(f"Failed to revoke advisor {slug}: {e}")
        raise StoreError("Error revocando asesor")
    return ActionResult(message="Acceso revocado")


@router.post("/{slug}/suspender", response_model=ActionResult)
async def suspend_advisor(
    slug: str,
    service: AdvisorService = Depends(get_advisor_service),
):
    try:
        await service.suspend(slug)
    except SQLAlchemyError as e:
        logger.error(f"Failed to suspend advisor {slug}: {e}")
        raise StoreError("Error suspendiendo asesor")
    return ActionResult(message="Asesor suspendido")


@router.post("/{slug}/activar", response_model=ActionResult)
async def activate_advisor(
    slug: str,
    service: AdvisorService = Depends(get_advisor_service),
):
    try:
        await service.activate(slug)
    except SQLAlchemyError as e:
        logger.error(f"Failed to activate advisor {slug}: {e}")
        raise StoreError("Error activando asesor")
    return ActionResult(message="Asesor activado")
