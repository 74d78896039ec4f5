"""
Comment Publisher Module

This module formats the deployment failure comment and posts it to the
pull request through the GitHub client.

Design Decisions:
- One new comment per failed deployment; no lookup or deduplication of
  earlier comments, so redelivered webhooks post again
- Logs go in a collapsible block to keep the PR conversation readable
- The timestamp is always rendered in UTC
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from deploy_relay.logging_config import get_logger
from deploy_relay.models import GitHubTarget
from deploy_relay.services.github_client import GitHubClient

logger = get_logger(__name__)

UNKNOWN_PROJECT = "Unknown"

_BACKTICK_RUN = re.compile(r"`{3,}")


def format_timestamp(now: datetime) -> str:
    """Render a timestamp like "Oct 18, 2026, 09:05 AM UTC"."""
    now = now.astimezone(timezone.utc)
    return f"{now:%b} {now.day}, {now:%Y, %I:%M %p} UTC"


def _code_fence(text: str) -> str:
    """Pick a fence longer than any backtick run inside the text."""
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=2)
    return "`" * max(3, longest + 1)


def format_comment(
    error_logs: str,
    deployment_url: str,
    deployment_name: Optional[str] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Build the Markdown body of a deployment failure comment.

    Args:
        error_logs: Error excerpt (or placeholder) to show
        deployment_url: Link to the deployment in the Vercel dashboard
        deployment_name: Project name, "Unknown" when absent
        now: Time to stamp the comment with (defaults to current UTC time)

    Returns:
        Markdown comment body
    """
    timestamp = format_timestamp(now or datetime.now(timezone.utc))
    fence = _code_fence(error_logs)

    return f"""## ❌ Vercel Deployment Failed

**Project:** {deployment_name or UNKNOWN_PROJECT}
**Time:** {timestamp}
**Deployment:** [View in Vercel Dashboard]({deployment_url})

### Error Details

<details>
<summary>Click to view build error logs</summary>

{fence}
{error_logs}
{fence}

</details>

---
<sub>Posted automatically when deployment fails • [View Vercel Deployment]({deployment_url})</sub>"""


class CommentPublisher:
    """
    Posts deployment failure comments to GitHub pull requests.

    Usage:
        publisher = CommentPublisher(github_client)
        await publisher.publish(target, excerpt.text, deployment_url, "my-app")
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    async def publish(
        self,
        target: GitHubTarget,
        error_logs: str,
        deployment_url: str,
        deployment_name: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Format and post the failure comment.

        Raises:
            GitHubAPIError: If GitHub rejects the comment
            NetworkError: If GitHub cannot be reached
        """
        body = format_comment(error_logs, deployment_url, deployment_name, now)

        logger.info(
            "Posting deployment failure comment",
            pr=target.reference,
            body_length=len(body)
        )

        return await self.client.create_issue_comment(
            target.owner,
            target.repo,
            target.pr_number,
            body
        )
