"""
Tests for Configuration

Tests settings validation and credential checks.
"""

import pytest
from pydantic import ValidationError

from deploy_relay.errors import ConfigurationError
from deploy_relay.logging_config import filter_sensitive_data
from tests.conftest import make_settings


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self):
        settings = make_settings()

        assert settings.vercel_api_base == "https://api.vercel.com"
        assert settings.github_api_base == "https://api.github.com"
        assert settings.max_log_lines == 50
        assert settings.max_log_chars == 4000

    def test_trailing_slash_stripped(self):
        settings = make_settings(github_api_base="https://github.example.com/api/v3/")

        assert settings.github_api_base == "https://github.example.com/api/v3"

    def test_log_level_normalized(self):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            make_settings(log_level="chatty")

    def test_configured(self):
        settings = make_settings()

        assert settings.is_configured
        settings.require_credentials()

    def test_missing_credentials(self):
        settings = make_settings(vercel_client_secret=None, github_token="")

        assert not settings.is_configured
        assert settings.missing_credentials() == {
            "VERCEL_CLIENT_SECRET": True,
            "VERCEL_API_TOKEN": False,
            "GITHUB_TOKEN": True,
        }

        with pytest.raises(ConfigurationError) as exc_info:
            settings.require_credentials()

        assert "VERCEL_CLIENT_SECRET" in str(exc_info.value)
        assert "GITHUB_TOKEN" in str(exc_info.value)
        assert exc_info.value.missing["GITHUB_TOKEN"] is True


class TestSensitiveDataFilter:
    """Tests for log redaction."""

    def test_sensitive_keys_redacted(self):
        event = filter_sensitive_data(None, "info", {
            "event": "Received webhook",
            "signature": "abc123",
            "github_token": "ghp_secret",
            "deployment_id": "dpl_1",
        })

        assert event["signature"] == "[REDACTED]"
        assert event["github_token"] == "[REDACTED]"
        assert event["deployment_id"] == "dpl_1"

    def test_token_values_redacted(self):
        event = filter_sensitive_data(None, "info", {"event": "x", "value": "ghp_abcdef"})

        assert event["value"] == "[REDACTED]"
