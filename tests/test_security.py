"""
Tests for Webhook Security

Tests HMAC-SHA1 signature computation and verification.
"""

import hashlib
import hmac

import pytest
from hypothesis import given, settings as hypothesis_settings, strategies as st

from deploy_relay.errors import ConfigurationError
from deploy_relay.webhook.security import (
    compute_signature,
    validate_webhook_event,
    verify_signature,
)

HEX_DIGITS = "0123456789abcdef"


class TestComputeSignature:
    """Tests for signature computation."""

    def test_matches_hmac_sha1(self):
        body = b'{"type": "deployment-error"}'
        expected = hmac.new(b"s3cret", body, hashlib.sha1).hexdigest()

        assert compute_signature("s3cret", body) == expected

    def test_hex_digest_format(self):
        signature = compute_signature("s3cret", b"payload")

        assert len(signature) == 40  # SHA-1 produces 40 hex chars
        assert all(c in HEX_DIGITS for c in signature)

    def test_empty_secret_is_configuration_error(self):
        with pytest.raises(ConfigurationError) as exc_info:
            compute_signature("", b"payload")

        assert exc_info.value.missing == {"VERCEL_CLIENT_SECRET": True}


class TestVerifySignature:
    """Tests for signature verification."""

    def test_valid_signature(self):
        body = b'{"id": "evt_1"}'
        assert verify_signature("s3cret", body, compute_signature("s3cret", body))

    def test_missing_signature(self):
        assert verify_signature("s3cret", b"body", None) is False
        assert verify_signature("s3cret", b"body", "") is False

    def test_non_ascii_signature(self):
        body = b'{"id": "evt_1"}'

        assert verify_signature("s3cret", body, "\u00e9" * 40) is False

    def test_wrong_secret(self):
        body = b'{"id": "evt_1"}'
        assert not verify_signature("s3cret", body, compute_signature("other", body))

    def test_reserialized_body_does_not_verify(self):
        """Whitespace changes from re-serialization break the signature."""
        raw = b'{"id":"evt_1","type":"deployment-error"}'
        reserialized = b'{"id": "evt_1", "type": "deployment-error"}'

        assert not verify_signature("s3cret", reserialized, compute_signature("s3cret", raw))

    @hypothesis_settings(max_examples=100)
    @given(body=st.binary(max_size=512), secret=st.text(min_size=1, max_size=64))
    def test_signed_body_always_verifies(self, body, secret):
        assert verify_signature(secret, body, compute_signature(secret, body))

    @hypothesis_settings(max_examples=100)
    @given(
        body=st.binary(min_size=1, max_size=512),
        secret=st.text(min_size=1, max_size=64),
        data=st.data()
    )
    def test_body_mutation_fails(self, body, secret, data):
        signature = compute_signature(secret, body)
        index = data.draw(st.integers(min_value=0, max_value=len(body) - 1))
        mutated = bytearray(body)
        mutated[index] ^= data.draw(st.integers(min_value=1, max_value=255))

        assert not verify_signature(secret, bytes(mutated), signature)

    @hypothesis_settings(max_examples=100)
    @given(
        body=st.binary(max_size=512),
        secret=st.text(min_size=1, max_size=64),
        data=st.data()
    )
    def test_signature_mutation_fails(self, body, secret, data):
        signature = compute_signature(secret, body)
        index = data.draw(st.integers(min_value=0, max_value=len(signature) - 1))
        replacement = data.draw(
            st.sampled_from([c for c in HEX_DIGITS if c != signature[index]])
        )
        mutated = signature[:index] + replacement + signature[index + 1:]

        assert not verify_signature(secret, body, mutated)


class TestEventValidation:
    """Tests for event type filtering."""

    def test_deployment_error_accepted(self):
        assert validate_webhook_event("deployment-error") is True

    @pytest.mark.parametrize(
        "event_type",
        ["deployment.created", "deployment-succeeded", "deployment.error", "", None]
    )
    def test_other_events_ignored(self, event_type):
        assert validate_webhook_event(event_type) is False
