"""
Adapters layer - External integrations (Google Calendar API).
"""

from .credentials import (
    CredentialProvider,
    OAuthRefreshTokenProvider,
    ServiceAccountBase64Provider,
    ServiceAccountJsonProvider,
    build_credential_provider,
    refresh_credentials,
)
from .google_calendar_client import GoogleCalendarClient
from .mock_calendar_client import MockCalendarClient

__all__ = [
    "CredentialProvider",
    "GoogleCalendarClient",
    "MockCalendarClient",
    "OAuthRefreshTokenProvider",
    "ServiceAccountBase64Provider",
    "ServiceAccountJsonProvider",
    "build_credential_provider",
    "refresh_credentials",
]
