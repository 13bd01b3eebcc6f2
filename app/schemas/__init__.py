"""
Schemas for API responses and requests
"""

from app.schemas.advisor import (
    AdvisorCreate, AdvisorRenew, AdvisorRevoke, AccessCreate, QuotationCreate,
    AdvisorRead, AdvisorPublic, AdvisorValidation, AdvisorCreated,
    RenewalRead, RenewResult, ActionResult,
)
from app.schemas.activity import ActivityRead

__all__ = [
    "AdvisorCreate",
    "AdvisorRenew",
    "AdvisorRevoke",
    "AccessCreate",
    "QuotationCreate",
    "AdvisorRead",
    "AdvisorPublic",
    "AdvisorValidation",
    "AdvisorCreated",
    "RenewalRead",
    "RenewResult",
    "ActionResult",
    "ActivityRead",
]
