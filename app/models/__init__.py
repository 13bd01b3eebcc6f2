from app.models.advisor import (
    Advisor, AdvisorClient, AdvisorRenewal, AdvisorStatus, DEFAULT_REVOCATION_REASON
)
from app.models.activity import Activity, ActivityType
