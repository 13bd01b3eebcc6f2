"""
Activity log model (append-only visit and quotation events)
"""

from sqlmodel import Field, SQLModel
from datetime import datetime
from typing import Optional
from enum import Enum

from app.core.clock import NAIVE, utcnow


class ActivityType(str, Enum):
    """Kind of activity event"""
    ACCESS = "acceso"
    QUOTATION = "cotizacion"


class Activity(SQLModel, table=True):
    """Immutable event tied to an advisor slug (reference only, no foreign key)"""

    __tablename__ = "activity"

    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(index=True, max_length=255)
    type: ActivityType = Field(nullable=False)
    occurred_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE, index=True)

    # Client
    client_name: Optional[str] = Field(default=None, max_length=255)
    client_email: Optional[str] = Field(default=None, max_length=255)
    ip: Optional[str] = Field(default=None, max_length=64)

    # Quotation details
    plan1: Optional[str] = Field(default=None, max_length=255)
    plan2: Optional[str] = Field(default=None, max_length=255)
    amount: Optional[float] = None
