"""
Deployment Error Relay Processor

This module orchestrates handling of one deployment-error event:
resolve the deployment to a pull request, fetch its error logs, and post
the failure comment.

Design Decisions:
- Strictly sequential: each step needs the previous step's output
- No repository / no PR are successful no-ops, not errors
- Resolution and publishing failures propagate; log fetching degrades
- Log every state transition for debugging
"""

import httpx

from deploy_relay.config import Settings
from deploy_relay.errors import NetworkError, UpstreamFetchError
from deploy_relay.logging_config import get_logger
from deploy_relay.models import (
    DeploymentErrorPayload,
    DeploymentRef,
    RelayResult,
    RelayState,
    ResolutionStatus,
)
from deploy_relay.services.comment_publisher import UNKNOWN_PROJECT, CommentPublisher
from deploy_relay.services.deployment_resolver import DeploymentResolver
from deploy_relay.services.github_client import GitHubClient
from deploy_relay.services.log_fetcher import LogFetcher
from deploy_relay.services.vercel_client import VercelClient

logger = get_logger(__name__)


NO_REPOSITORY_MESSAGE = "No repository info found"
NO_PULL_REQUEST_MESSAGE = "No PR associated with this deployment"


class DeploymentErrorRelay:
    """
    Relays one failed deployment to its pull request.

    This is the main coordinator that:
    1. Resolves the deployment to a GitHub PR
    2. Fetches the deployment's error logs
    3. Posts the failure comment

    Usage:
        relay = DeploymentErrorRelay(settings, http_client)
        result = await relay.process(payload)
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        """
        Initialize the relay.

        Args:
            settings: Application settings with credentials
            http_client: HTTP client shared by all outbound calls of the request
        """
        self.settings = settings
        vercel_client = VercelClient(settings, http_client)
        self.resolver = DeploymentResolver(vercel_client)
        self.log_fetcher = LogFetcher(
            vercel_client,
            max_lines=settings.max_log_lines,
            max_chars=settings.max_log_chars
        )
        self.publisher = CommentPublisher(GitHubClient(settings, http_client))
        self.state = RelayState.TYPE_FILTERED

    def _transition(self, state: RelayState, **context) -> None:
        logger.debug("Relay state transition", previous=self.state.value, state=state.value, **context)
        self.state = state

    async def process(self, payload: DeploymentErrorPayload) -> RelayResult:
        """
        Execute the relay pipeline.

        Returns:
            RelayResult describing the terminal state

        Raises:
            UpstreamFetchError: If deployment details or the comment post fail
            NetworkError: If Vercel or GitHub cannot be reached for those calls
        """
        ref = DeploymentRef(id=payload.deployment.id, team_id=payload.team_id)

        logger.info(
            "Processing deployment error",
            deployment_id=ref.id,
            team_id=ref.team_id
        )

        try:
            resolution = await self.resolver.resolve(ref)
            self._transition(RelayState.DEPLOYMENT_RESOLVED, deployment_id=ref.id)

            if resolution.status == ResolutionStatus.NO_REPOSITORY:
                self._transition(RelayState.IGNORED, reason=resolution.status.value)
                return RelayResult(
                    state=RelayState.IGNORED,
                    message=NO_REPOSITORY_MESSAGE,
                    target=resolution.target,
                    meta=resolution.details.meta
                )

            if resolution.status == ResolutionStatus.NO_PULL_REQUEST:
                self._transition(RelayState.IGNORED, reason=resolution.status.value)
                return RelayResult(
                    state=RelayState.IGNORED,
                    message=NO_PULL_REQUEST_MESSAGE,
                    target=resolution.target
                )

            target = resolution.target
            self._transition(RelayState.TARGET_RESOLVED, pr=target.reference)

            excerpt = await self.log_fetcher.fetch(ref)
            self._transition(
                RelayState.LOGS_FETCHED,
                log_status=excerpt.status.value,
                line_count=excerpt.line_count
            )

            deployment_name = (
                resolution.details.name
                or payload.deployment.name
                or UNKNOWN_PROJECT
            )
            await self.publisher.publish(
                target,
                excerpt.text,
                payload.deployment_url,
                deployment_name
            )
            self._transition(RelayState.COMMENT_POSTED, pr=target.reference)

        except (UpstreamFetchError, NetworkError) as e:
            logger.error(
                "Deployment error relay failed",
                deployment_id=ref.id,
                state=self.state.value,
                error=str(e),
                error_type=type(e).__name__
            )
            self.state = RelayState.FAILED
            raise

        logger.info(
            "Successfully posted error comment",
            deployment_id=ref.id,
            pr=target.reference
        )

        return RelayResult(
            state=RelayState.COMMENT_POSTED,
            message=f"Posted comment to {target.reference}",
            target=target,
            log_status=excerpt.status
        )


async def process_deployment_error(
    settings: Settings,
    http_client: httpx.AsyncClient,
    payload: DeploymentErrorPayload
) -> RelayResult:
    """
    Convenience function to relay one deployment-error event.

    Args:
        settings: Application settings
        http_client: HTTP client for outbound calls
        payload: Parsed deployment-error payload

    Returns:
        RelayResult describing the terminal state
    """
    relay = DeploymentErrorRelay(settings, http_client)
    return await relay.process(payload)
