# src/newsroom_admin/services/__init__.py
"""Business logic services for the newsroom admin console.

`tickets`, `community_content` and `otp_delivery` back the reference API; the
remaining modules make up the console client.
"""

from .community_detail import CommunityDetail
from .console_api import ConsoleApiClient
from .listing import CommunityListing
from .route_guard import check_access, protect
from .session import ConsoleSession, sign_in
from .storage import JsonFileStorage, MemoryStorage
from .tickets import VerificationTicketStore
from .wizard import CommunityOnboardingWizard, WizardStep

__all__ = [
    "CommunityDetail",
    "CommunityListing",
    "CommunityOnboardingWizard",
    "ConsoleApiClient",
    "ConsoleSession",
    "JsonFileStorage",
    "MemoryStorage",
    "VerificationTicketStore",
    "WizardStep",
    "check_access",
    "protect",
    "sign_in",
]
