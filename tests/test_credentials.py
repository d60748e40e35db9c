"""
Tests for credential provider selection.
"""

import base64
import json

import pytest

from slotbooker.adapters.credentials import (
    CALENDAR_SCOPES,
    OAuthRefreshTokenProvider,
    ServiceAccountBase64Provider,
    ServiceAccountJsonProvider,
    build_credential_provider,
)
from slotbooker.config import CredentialsConfig
from slotbooker.domain.exceptions import AuthenticationError, ConfigurationError

SERVICE_ACCOUNT = {
    "type": "service_account",
    "client_email": "booker@project.iam.gserviceaccount.com",
    "private_key": "not-a-real-key",
    "token_uri": "https://oauth2.googleapis.com/token",
}


def _encode(payload) -> str:
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


class TestBuildCredentialProvider:
    """Tests for build_credential_provider."""

    def test_no_credentials(self):
        with pytest.raises(ConfigurationError, match="Missing Google credentials"):
            build_credential_provider(CredentialsConfig())

    def test_multiple_schemes(self):
        config = CredentialsConfig(
            service_account_json=json.dumps(SERVICE_ACCOUNT),
            refresh_token="token",
        )

        with pytest.raises(ConfigurationError, match="Multiple credential schemes"):
            build_credential_provider(config)

    def test_base64_service_account(self):
        provider = build_credential_provider(
            CredentialsConfig(service_account_base64=_encode(SERVICE_ACCOUNT))
        )

        assert isinstance(provider, ServiceAccountBase64Provider)
        assert provider.scheme == "service_account_base64"
        assert provider.account_email == SERVICE_ACCOUNT["client_email"]

    def test_json_service_account(self):
        provider = build_credential_provider(
            CredentialsConfig(service_account_json=json.dumps(SERVICE_ACCOUNT))
        )

        assert isinstance(provider, ServiceAccountJsonProvider)
        assert provider.scheme == "service_account_json"

    def test_oauth_refresh_token(self):
        provider = build_credential_provider(
            CredentialsConfig(client_id="id", client_secret="secret", refresh_token="refresh")
        )

        assert isinstance(provider, OAuthRefreshTokenProvider)
        credentials = provider.get_credentials()
        assert credentials.refresh_token == "refresh"
        assert credentials.client_id == "id"
        assert credentials.token is None
        assert list(credentials.scopes) == CALENDAR_SCOPES

    def test_incomplete_oauth(self):
        with pytest.raises(ConfigurationError, match="GOOGLE_REFRESH_TOKEN"):
            build_credential_provider(CredentialsConfig(client_id="id", client_secret="secret"))


class TestServiceAccountProviders:
    """Tests for service account payload validation."""

    def test_invalid_base64(self):
        with pytest.raises(ConfigurationError, match="base64"):
            ServiceAccountBase64Provider("%%% not base64 %%%")

    def test_base64_of_invalid_json(self):
        encoded = base64.b64encode(b"{not json").decode("ascii")

        with pytest.raises(ConfigurationError, match="not valid JSON"):
            ServiceAccountBase64Provider(encoded)

    def test_missing_fields(self):
        with pytest.raises(ConfigurationError, match="private_key"):
            ServiceAccountJsonProvider(json.dumps({"client_email": "a@b.c"}))

    def test_non_object_json(self):
        with pytest.raises(ConfigurationError, match="JSON object"):
            ServiceAccountJsonProvider("[1, 2, 3]")

    def test_unusable_private_key(self):
        provider = ServiceAccountJsonProvider(json.dumps(SERVICE_ACCOUNT))

        with pytest.raises(AuthenticationError):
            provider.get_credentials()
