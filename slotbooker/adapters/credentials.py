"""
Google credential providers, one per supported credential scheme.

Deployments configure exactly one of:

1. A base64-encoded service account JSON document
2. A raw service account JSON document
3. An OAuth client id / client secret / refresh token triple

Each provider validates its material at construction time so a broken
deployment fails at startup, and hands out google-auth credentials with the
Calendar scope on demand.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from typing import Any, Dict, Protocol

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2 import service_account

from ..config import CredentialsConfig
from ..domain.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

_REQUIRED_SERVICE_ACCOUNT_KEYS = ("client_email", "private_key")


class CredentialProvider(Protocol):
    """Protocol describing what the calendar gateway needs from a credential source."""

    scheme: str

    def get_credentials(self) -> Any:
        """Return google-auth credentials scoped for the Calendar API."""


class ServiceAccountJsonProvider:
    """Service account credentials from a raw JSON document."""

    scheme = "service_account_json"

    def __init__(self, raw_json: str):
        self.info = self._parse_service_account(raw_json)

    @staticmethod
    def _parse_service_account(raw_json: str) -> Dict[str, Any]:
        try:
            info = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Service account credentials are not valid JSON: {exc}") from exc

        if not isinstance(info, dict):
            raise ConfigurationError("Service account credentials must be a JSON object.")

        missing = [key for key in _REQUIRED_SERVICE_ACCOUNT_KEYS if not info.get(key)]
        if missing:
            raise ConfigurationError(
                f"Service account credentials are missing: {', '.join(missing)}"
            )

        return info

    @property
    def account_email(self) -> str:
        return self.info["client_email"]

    def get_credentials(self) -> service_account.Credentials:
        """
        Build service account credentials.

        Raises:
            AuthenticationError: If google-auth rejects the key material
        """
        try:
            return service_account.Credentials.from_service_account_info(
                self.info,
                scopes=CALENDAR_SCOPES,
            )
        except (ValueError, GoogleAuthError) as exc:
            raise AuthenticationError(f"Could not load service account credentials: {exc}") from exc


class ServiceAccountBase64Provider(ServiceAccountJsonProvider):
    """Service account credentials from a base64-encoded JSON document."""

    scheme = "service_account_base64"

    def __init__(self, encoded: str):
        try:
            raw_json = base64.b64decode(encoded.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise ConfigurationError(
                f"GOOGLE_SERVICE_ACCOUNT_BASE64 is not valid base64-encoded UTF-8: {exc}"
            ) from exc
        super().__init__(raw_json)


class OAuthRefreshTokenProvider:
    """User credentials from an OAuth client and a long-lived refresh token."""

    scheme = "oauth_refresh_token"

    def __init__(self, client_id: str | None, client_secret: str | None, refresh_token: str | None):
        missing = [
            name
            for name, value in (
                ("GOOGLE_CLIENT_ID", client_id),
                ("GOOGLE_CLIENT_SECRET", client_secret),
                ("GOOGLE_REFRESH_TOKEN", refresh_token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"OAuth credentials are incomplete, missing: {', '.join(missing)}")

        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token

    def get_credentials(self) -> oauth2_credentials.Credentials:
        # No access token yet; google-auth refreshes on first use
        return oauth2_credentials.Credentials(
            token=None,
            refresh_token=self.refresh_token,
            token_uri=TOKEN_URI,
            client_id=self.client_id,
            client_secret=self.client_secret,
            scopes=CALENDAR_SCOPES,
        )


def build_credential_provider(config: CredentialsConfig) -> CredentialProvider:
    """
    Select the credential provider for the configured scheme.

    Args:
        config: Credential section of the application config

    Returns:
        The provider for the single configured scheme

    Raises:
        ConfigurationError: If no scheme or more than one scheme is configured
    """
    schemes = config.configured_schemes()

    if not schemes:
        raise ConfigurationError(
            "Missing Google credentials. Set GOOGLE_SERVICE_ACCOUNT_BASE64, "
            "GOOGLE_SERVICE_ACCOUNT_JSON, or GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET/GOOGLE_REFRESH_TOKEN."
        )

    if len(schemes) > 1:
        raise ConfigurationError(
            f"Multiple credential schemes configured ({', '.join(schemes)}); pick exactly one."
        )

    scheme = schemes[0]
    logger.info("Using %s credentials", scheme)

    if scheme == "service_account_base64":
        return ServiceAccountBase64Provider(config.service_account_base64)
    if scheme == "service_account_json":
        return ServiceAccountJsonProvider(config.service_account_json)
    return OAuthRefreshTokenProvider(
        client_id=config.client_id,
        client_secret=config.client_secret,
        refresh_token=config.refresh_token,
    )


def refresh_credentials(credentials: Any) -> Any:
    """
    Force a token refresh, proving the credentials are accepted by Google.

    Raises:
        AuthenticationError: If the token endpoint rejects the credentials
    """
    try:
        credentials.refresh(Request())
    except GoogleAuthError as exc:
        raise AuthenticationError(f"Authentication failed: {exc}") from exc
    return credentials
