"""
Webhook Security Module

This module handles secure verification of Vercel webhook payloads.
Vercel signs every delivery with an HMAC-SHA1 of the raw request body,
keyed with the integration's client secret, and sends the hex digest in
the x-vercel-signature header.

Design Decisions:
- Verify against the exact raw body bytes, never a re-serialized object
- Use constant-time comparison to prevent timing attacks
- Verify signature before any payload processing
"""

import hashlib
import hmac
from typing import Optional

from fastapi import Request

from deploy_relay.errors import AuthenticationError, ConfigurationError
from deploy_relay.logging_config import get_logger
from deploy_relay.models import DEPLOYMENT_ERROR_EVENT

logger = get_logger(__name__)

SIGNATURE_HEADER = "x-vercel-signature"


def compute_signature(secret: str, body: bytes) -> str:
    """
    Compute the hex HMAC-SHA1 digest Vercel sends for a body.

    Raises:
        ConfigurationError: If the secret is empty
    """
    if not secret:
        raise ConfigurationError(
            "VERCEL_CLIENT_SECRET not configured",
            missing={"VERCEL_CLIENT_SECRET": True}
        )
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha1).hexdigest()


def verify_signature(secret: str, body: bytes, signature: Optional[str]) -> bool:
    """
    Check a signature against the raw body.

    Args:
        secret: Shared webhook secret
        body: Raw request body bytes
        signature: Hex digest from the signature header

    Returns:
        True only if the signature matches exactly
    """
    expected = compute_signature(secret, body)
    if not signature:
        return False
    # Header values arrive latin-1 decoded; compare bytes so any character is a mismatch
    return hmac.compare_digest(
        expected.encode("ascii"),
        signature.encode("utf-8", "surrogateescape")
    )


def verify_webhook_signature(
    request: Request,
    raw_body: bytes,
    secret: str
) -> None:
    """
    Verify the Vercel webhook signature of an incoming request.

    Args:
        request: FastAPI request object
        raw_body: Raw request body bytes
        secret: Shared webhook secret

    Raises:
        AuthenticationError: If the signature is missing or invalid
    """
    signature = request.headers.get(SIGNATURE_HEADER)
    remote_addr = request.client.host if request.client else "unknown"

    if not signature:
        logger.warning("Missing webhook signature header", remote_addr=remote_addr)
        raise AuthenticationError("Missing signature")

    if not verify_signature(secret, raw_body, signature):
        logger.warning("Webhook signature mismatch", remote_addr=remote_addr)
        raise AuthenticationError("Invalid signature")

    logger.debug("Webhook signature verified successfully")


def validate_webhook_event(event_type: Optional[str]) -> bool:
    """
    Validate that we should process this webhook event.

    Only deployment-error events are relayed; everything else
    is acknowledged and dropped.
    """
    if event_type != DEPLOYMENT_ERROR_EVENT:
        logger.debug("Ignoring webhook event", event_type=event_type)
        return False
    return True
