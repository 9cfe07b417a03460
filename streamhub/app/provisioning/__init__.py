"""Account provisioning: organization, plan tiers, profile and subscription."""

from .models import ProvisioningResult
from .repository import PostgresProvisioningRepository, ProvisioningRepository
from .service import DEFAULT_ORGANIZATION_DESCRIPTION, ProvisioningService

__all__ = [
    "DEFAULT_ORGANIZATION_DESCRIPTION",
    "PostgresProvisioningRepository",
    "ProvisioningRepository",
    "ProvisioningResult",
    "ProvisioningService",
]
