"""
Webhook Handler Module

This module defines the FastAPI endpoint that receives Vercel webhooks.
It checks the method, configuration and signature, filters the event type,
and runs the relay for deployment-error events.

Design Decisions:
- Process synchronously so the response reports the actual outcome; Vercel
  redelivers failed webhooks, which is the only retry mechanism
- Answer non-POST methods ourselves with a JSON 405
- No repository / no PR / other event types answer 200 so Vercel does not
  keep redelivering events we will never act on
"""

import json
from typing import Any, AsyncIterator, Dict

import httpx
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from deploy_relay.config import Settings, get_settings
from deploy_relay.errors import AuthenticationError, NetworkError, UpstreamFetchError
from deploy_relay.logging_config import get_logger
from deploy_relay.models import DeploymentErrorPayload, RelayState, WebhookEvent
from deploy_relay.webhook.processor import process_deployment_error
from deploy_relay.webhook.security import validate_webhook_event, verify_webhook_signature

logger = get_logger(__name__)

# Create router for webhook endpoints
router = APIRouter(prefix="/api", tags=["webhook"])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def get_http_client(
    settings: Settings = Depends(get_settings)
) -> AsyncIterator[httpx.AsyncClient]:
    """Provide one HTTP client for all outbound calls of a request."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        yield client


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


@router.api_route("/vercel-webhook", methods=ALL_METHODS)
async def vercel_webhook(
    request: Request,
    settings: Settings = Depends(get_settings),
    http_client: httpx.AsyncClient = Depends(get_http_client)
) -> Any:
    """
    Vercel webhook endpoint.

    Receives Vercel webhook deliveries and, for deployment-error events,
    posts the failing build's error logs to the associated pull request.

    Args:
        request: FastAPI request object
        settings: Application settings
        http_client: HTTP client for Vercel and GitHub calls

    Returns:
        JSON response naming the outcome
    """
    if request.method != "POST":
        return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")

    logger.info(
        "Received Vercel webhook",
        state=RelayState.RECEIVED.value,
        remote_addr=request.client.host if request.client else "unknown"
    )

    # Step 1: Refuse to run without credentials
    if not settings.is_configured:
        missing = settings.missing_credentials()
        logger.error(
            "Missing required environment variables",
            missing=[name for name, absent in missing.items() if absent]
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Server configuration error",
            missing=missing
        )

    # Step 2: Verify webhook signature against the raw body
    raw_body = await request.body()
    try:
        verify_webhook_signature(request, raw_body, settings.vercel_client_secret)
    except AuthenticationError as e:
        logger.info("Rejected webhook", state=RelayState.REJECTED.value, reason=str(e))
        return _error(status.HTTP_401_UNAUTHORIZED, str(e))

    logger.debug("Webhook authenticated", state=RelayState.SIGNATURE_CHECKED.value)

    # Step 3: Parse the envelope
    try:
        event = WebhookEvent.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        logger.error("Failed to parse webhook payload", error=str(e))
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON payload")

    # Step 4: Only deployment errors are relayed
    if not validate_webhook_event(event.type):
        logger.info(
            "Ignoring event type",
            state=RelayState.IGNORED.value,
            event_type=event.type,
            event_id=event.id
        )
        return {"message": "Event type not handled"}

    logger.debug("Event type accepted", state=RelayState.TYPE_FILTERED.value, event_id=event.id)

    try:
        payload = DeploymentErrorPayload.model_validate(event.payload)
    except ValidationError as e:
        logger.error("Invalid deployment-error payload", error=str(e), event_id=event.id)
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid payload", message=str(e))

    # Step 5: Resolve, fetch logs, comment
    try:
        result = await process_deployment_error(settings, http_client, payload)
    except (UpstreamFetchError, NetworkError) as e:
        logger.error(
            "Error processing webhook",
            state=RelayState.FAILED.value,
            event_id=event.id,
            error=str(e),
            error_type=type(e).__name__
        )
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            message=str(e)
        )

    if result.state == RelayState.IGNORED:
        response: Dict[str, Any] = {"message": result.message}
        if result.meta is not None:
            response["meta"] = result.meta
        return response

    target = result.target
    return {
        "success": True,
        "message": result.message,
        "pr": {
            "owner": target.owner,
            "repo": target.repo,
            "number": target.pr_number
        },
        "logs": result.log_status.value if result.log_status else None
    }


@router.get("/health")
async def webhook_health() -> Dict[str, str]:
    """
    Health check endpoint for the webhook service.

    Returns:
        Simple health status
    """
    return {"status": "healthy", "service": "webhook"}
