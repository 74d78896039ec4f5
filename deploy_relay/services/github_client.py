"""
GitHub API Client Module

This module provides a client for the one GitHub operation the relay needs:
creating a comment on a pull request (through the issues comments API).

Design Decisions:
- Use httpx for async HTTP requests
- Authenticate with a static token from settings
- Surface the status and body of any non-2xx response to the caller
- No retries; a failed post fails the webhook request
"""

from typing import Any, Dict

import httpx

from deploy_relay.config import Settings
from deploy_relay.errors import NetworkError, UpstreamFetchError
from deploy_relay.logging_config import get_logger

logger = get_logger(__name__)


class GitHubAPIError(UpstreamFetchError):
    """Raised when the GitHub API answers with a non-2xx status."""
    pass


class GitHubClient:
    """
    Async GitHub API client.

    Usage:
        client = GitHubClient(settings, http_client)
        comment = await client.create_issue_comment("acme", "widgets", "42", body)
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http = http_client

    def _get_headers(self) -> Dict[str, str]:
        """Get authenticated headers for API requests."""
        return {
            "Authorization": f"Bearer {self.settings.github_token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs
    ) -> httpx.Response:
        """
        Make an authenticated request to the GitHub API.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments to pass to httpx

        Returns:
            httpx.Response object

        Raises:
            GitHubAPIError: If GitHub answers with a non-2xx status
            NetworkError: If the request could not be completed
        """
        url = f"{self.settings.github_api_base}{endpoint}"

        try:
            response = await self.http.request(
                method,
                url,
                headers=self._get_headers(),
                timeout=self.settings.http_timeout,
                **kwargs
            )
        except httpx.HTTPError as e:
            logger.error(
                "GitHub API request failed",
                endpoint=endpoint,
                error=str(e),
                error_type=type(e).__name__
            )
            raise NetworkError(f"GitHub API request failed: {e}", url=url) from e

        if not response.is_success:
            error_body = response.text
            logger.error(
                "GitHub API error",
                status_code=response.status_code,
                endpoint=endpoint,
                error=error_body[:500]  # Limit error length
            )
            raise GitHubAPIError(
                f"Failed to post GitHub comment: {response.status_code} - {error_body}",
                status_code=response.status_code,
                response_body=error_body,
                url=url
            )

        return response

    async def create_issue_comment(
        self,
        owner: str,
        repo: str,
        pr_number: str,
        body: str
    ) -> Dict[str, Any]:
        """
        Create a comment on a pull request.

        Pull request conversation comments live under the issues API,
        so the PR number is used as the issue number.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number
            body: Markdown comment body

        Returns:
            The created comment as returned by GitHub
        """
        endpoint = f"/repos/{owner}/{repo}/issues/{pr_number}/comments"

        response = await self._request("POST", endpoint, json={"body": body})

        try:
            comment = response.json()
        except ValueError:
            comment = {}

        logger.info(
            "Comment posted successfully",
            owner=owner,
            repo=repo,
            pr_number=pr_number,
            comment_id=comment.get("id") if isinstance(comment, dict) else None
        )

        return comment if isinstance(comment, dict) else {}
