"""
Vercel API Client Module

This module provides a thin async client for the two Vercel REST endpoints
the relay needs: deployment details and the deployment event stream.

Design Decisions:
- Use httpx for async HTTP requests
- The HTTP client is injected so one connection pool serves a whole request
- Apply a per-call timeout from settings; no retries (Vercel redelivers
  failed webhooks itself)
"""

from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from deploy_relay.config import Settings
from deploy_relay.errors import NetworkError, UpstreamFetchError
from deploy_relay.logging_config import get_logger
from deploy_relay.models import DeploymentDetails, DeploymentRef

logger = get_logger(__name__)

TEAM_HEADER = "x-vercel-team-id"


class VercelAPIError(UpstreamFetchError):
    """Raised when the Vercel API answers with a non-2xx status."""
    pass


class VercelClient:
    """
    Async Vercel API client.

    Usage:
        async with httpx.AsyncClient() as http:
            client = VercelClient(settings, http)
            details = await client.get_deployment(DeploymentRef(id="dpl_123"))
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client

    def _get_headers(self, team_id: Optional[str]) -> Dict[str, str]:
        """Get authenticated headers, scoped to a team when one is given."""
        headers = {
            "Authorization": f"Bearer {self.settings.vercel_api_token}",
            "Accept": "application/json",
        }
        if team_id:
            headers[TEAM_HEADER] = team_id
        return headers

    async def _get(
        self,
        endpoint: str,
        ref: DeploymentRef,
        failure_message: str
    ) -> Any:
        """
        Make an authenticated GET request and decode the JSON body.

        Args:
            endpoint: API endpoint (without base URL)
            ref: Deployment being queried, for the team header
            failure_message: Prefix for the error raised on non-2xx

        Raises:
            VercelAPIError: On a non-2xx status or undecodable body
            NetworkError: If the request could not be completed
        """
        url = f"{self.settings.vercel_api_base}{endpoint}"

        try:
            response = await self.http.get(
                url,
                headers=self._get_headers(ref.team_id),
                timeout=self.settings.http_timeout
            )
        except httpx.HTTPError as e:
            logger.error(
                "Vercel API request failed",
                endpoint=endpoint,
                error=str(e),
                error_type=type(e).__name__
            )
            raise NetworkError(f"{failure_message}: {e}", url=url) from e

        if not response.is_success:
            logger.error(
                "Vercel API error",
                status_code=response.status_code,
                endpoint=endpoint,
                error=response.text[:500]
            )
            raise VercelAPIError(
                f"{failure_message}: {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                url=url
            )

        try:
            return response.json()
        except ValueError as e:
            raise VercelAPIError(
                f"{failure_message}: invalid JSON body",
                status_code=response.status_code,
                response_body=response.text[:500],
                url=url
            ) from e

    async def get_deployment(self, ref: DeploymentRef) -> DeploymentDetails:
        """
        Fetch the full deployment record.

        Args:
            ref: Deployment to fetch

        Returns:
            DeploymentDetails with meta and git source
        """
        logger.debug("Fetching deployment details", deployment_id=ref.id)

        data = await self._get(
            f"/v13/deployments/{ref.id}",
            ref,
            "Failed to fetch deployment details"
        )
        try:
            return DeploymentDetails.model_validate(data)
        except ValidationError as e:
            raise VercelAPIError(
                f"Failed to fetch deployment details: unexpected response shape ({e.error_count()} errors)"
            ) from e

    async def get_deployment_events(self, ref: DeploymentRef) -> List[Dict[str, Any]]:
        """
        Fetch the build event stream of a deployment.

        Args:
            ref: Deployment to fetch events for

        Returns:
            Events in the order Vercel emitted them
        """
        logger.debug("Fetching deployment events", deployment_id=ref.id)

        data = await self._get(
            f"/v3/deployments/{ref.id}/events",
            ref,
            "Failed to fetch logs"
        )

        if isinstance(data, dict):
            data = data.get("events", [])
        if not isinstance(data, list):
            raise VercelAPIError("Failed to fetch logs: unexpected response shape")

        return [event for event in data if isinstance(event, dict)]
