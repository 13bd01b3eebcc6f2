"""
Response schema for the activity log
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.models.activity import Activity, ActivityType


class ActivityRead(BaseModel):
    id: int
    url_slug: str
    tipo: ActivityType
    fecha: datetime
    cliente_nombre: Optional[str] = None
    cliente_email: Optional[str] = None
    ip: Optional[str] = None
    plan1: Optional[str] = None
    plan2: Optional[str] = None
    monto: Optional[float] = None

    @classmethod
    def from_activity(cls, activity: Activity) -> "ActivityRead":
        return cls(
            id=activity.id,
            url_slug=activity.slug,
            tipo=activity.type,
            fecha=activity.occurred_at,
            cliente_nombre=activity.client_name,
            cliente_email=activity.client_email,
            ip=activity.ip,
            plan1=activity.plan1,
            plan2=activity.plan2,
            monto=activity.amount,
        )
