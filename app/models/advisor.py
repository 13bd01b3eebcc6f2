"""
Advisor (asesor) model with unique-client set and renewal history
"""

from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import UniqueConstraint
from datetime import datetime
from typing import Optional, List
from enum import Enum
import uuid

from app.core.clock import NAIVE, utcnow


class AdvisorStatus(str, Enum):
    """Admin-driven status of an advisor"""
    ACTIVE = "activo"
    SUSPENDED = "suspendido"
    REVOKED = "revocado"


DEFAULT_REVOCATION_REASON = "Revocado por administrador"


class Advisor(SQLModel, table=True):
    """Referral partner with a landing-page slug and a paid access window"""

    __tablename__ = "advisors"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    slug: str = Field(
        unique=True,
        index=True,
        max_length=255,
        description="URL-safe identifier derived from the advisor name"
    )

    # Contact
    name: str = Field(max_length=255, nullable=False)
    email: str = Field(max_length=255, nullable=False)
    phone: str = Field(max_length=50, nullable=False)
    company: str = Field(max_length=255, nullable=False)

    # Access window
    status: AdvisorStatus = Field(default=AdvisorStatus.ACTIVE, index=True)
    started_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE)
    expires_at: datetime = Field(sa_type=NAIVE, index=True, description="Checked lazily when the slug is validated")
    paid_days: int = Field(nullable=False)

    # Denormalized counters
    total_accesses: int = Field(default=0)
    quotes_generated: int = Field(default=0)
    last_access_at: Optional[datetime] = Field(default=None, sa_type=NAIVE, nullable=True)

    # Revocation
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=NAIVE, nullable=True)
    cancellation_reason: Optional[str] = Field(default=None, max_length=1000, nullable=True)

    # Optimistic concurrency control for renewals
    version: int = Field(default=1, description="Bumped on every expiration change")

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE)
    updated_at: Optional[datetime] = Field(default=None, sa_type=NAIVE, nullable=True)

    # Relationships
    clients: List["AdvisorClient"] = Relationship(
        back_populates="advisor",
        sa_relationship_kwargs={"order_by": "AdvisorClient.id"},
    )
    renewals: List["AdvisorRenewal"] = Relationship(
        back_populates="advisor",
        sa_relationship_kwargs={"order_by": "AdvisorRenewal.id"},
    )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class AdvisorClient(SQLModel, table=True):
    """One entry of an advisor's unique-client set (client email or IP)"""

    __tablename__ = "advisor_clients"
    __table_args__ = (
        UniqueConstraint("advisor_id", "client_key", name="uq_advisor_client"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    advisor_id: uuid.UUID = Field(foreign_key="advisors.id", index=True)
    client_key: str = Field(max_length=255, nullable=False)
    first_seen_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE)

    advisor: Optional[Advisor] = Relationship(back_populates="clients")


class AdvisorRenewal(SQLModel, table=True):
    """Renewal history entry, ordered by id"""

    __tablename__ = "advisor_renewals"

    id: Optional[int] = Field(default=None, primary_key=True)
    advisor_id: uuid.UUID = Field(foreign_key="advisors.id", index=True)
    renewed_at: datetime = Field(default_factory=utcnow, sa_type=NAIVE)
    days: int = Field(nullable=False)
    new_expires_at: datetime = Field(sa_type=NAIVE, nullable=False)

    advisor: Optional[Advisor] = Relationship(back_populates="renewals")
