"""
Request and response schemas for the advisor API
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List, Union
import uuid

from app.models.advisor import Advisor, AdvisorStatus


class AdvisorCreate(BaseModel):
    """Body of POST /api/asesores/crear (presence checked by the service)"""
    nombre: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    empresa: Optional[str] = None
    dias_pagados: Optional[int] = None


class AdvisorRenew(BaseModel):
    dias: Optional[int] = None


class AdvisorRevoke(BaseModel):
    razon: Optional[str] = None


class AccessCreate(BaseModel):
    cliente_nombre: Optional[str] = None
    cliente_email: Optional[str] = None


class QuotationCreate(BaseModel):
    cliente_nombre: Optional[str] = None
    cliente_email: Optional[str] = None
    plan1: Optional[Union[str, int]] = None
    plan2: Optional[Union[str, int]] = None
    monto: Optional[float] = None


class RenewalRead(BaseModel):
    fecha: datetime
    dias: int
    nueva_expiracion: datetime


class AdvisorRead(BaseModel):
    """Admin view of an advisor, with the client set as a list and the public URL"""
    id: uuid.UUID
    nombre: str
    email: str
    telefono: str
    empresa: str
    url_slug: str
    estado: AdvisorStatus
    fecha_inicio: datetime
    fecha_expiracion: datetime
    dias_pagados: int
    accesos_total: int
    cotizaciones_generadas: int
    clientes_unicos: List[str]
    ultimo_acceso: Optional[datetime] = None
    fecha_cancelacion: Optional[datetime] = None
    razon_cancelacion: Optional[str] = None
    renovaciones: List[RenewalRead]
    url: str

    @classmethod
    def from_advisor(
        cls,
        advisor: Advisor,
        base_url: str,
        clients: Optional[List[str]] = None,
        renewals: Optional[List[RenewalRead]] = None,
    ) -> "AdvisorRead":
        return cls(
            id=advisor.id,
            nombre=advisor.name,
            email=advisor.email,
            telefono=advisor.phone,
            empresa=advisor.company,
            url_slug=advisor.slug,
            estado=advisor.status,
            fecha_inicio=advisor.started_at,
            fecha_expiracion=advisor.expires_at,
            dias_pagados=advisor.paid_days,
            accesos_total=advisor.total_accesses,
            cotizaciones_generadas=advisor.quotes_generated,
            clientes_unicos=clients or [],
            ultimo_acceso=advisor.last_access_at,
            fecha_cancelacion=advisor.cancelled_at,
            razon_cancelacion=advisor.cancellation_reason,
            renovaciones=renewals or [],
            url=public_url(base_url, advisor.slug),
        )


class AdvisorPublic(BaseModel):
    """Reduced view returned to the landing page"""
    nombre: str
    email: str
    telefono: str
    empresa: str


class AdvisorValidation(BaseModel):
    valid: bool
    asesor: Optional[AdvisorPublic] = None
    error: Optional[str] = None


class AdvisorCreated(BaseModel):
    success: bool = True
    message: str
    asesor: AdvisorRead


class RenewResult(BaseModel):
    success: bool = True
    message: str
    nueva_expiracion: datetime


class ActionResult(BaseModel):
    success: bool = True
    message: Optional[str] = None


def public_url(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/{slug}"
