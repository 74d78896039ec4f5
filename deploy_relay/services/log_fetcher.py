"""
Log Fetcher Module

This module turns a deployment's build event stream into a short error
excerpt suitable for a pull request comment.

Design Decisions:
- Keep stderr events and any line that looks like an error
- Bound the excerpt to the last N lines and M characters (GitHub limits
  comment size, and the tail of a failed build is where the cause is)
- Log retrieval is best-effort: failures produce a degraded excerpt with a
  placeholder instead of failing the webhook
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from deploy_relay.errors import NetworkError, UpstreamFetchError
from deploy_relay.logging_config import get_logger
from deploy_relay.models import DeploymentRef, LogExcerpt, LogStatus
from deploy_relay.services.vercel_client import VercelClient

logger = get_logger(__name__)


STDERR_EVENT_TYPE = "stderr"
ERROR_KEYWORDS = ("error", "failed")
ERROR_MARKERS = ("✘", "ERROR")

DEFAULT_MAX_LINES = 50
DEFAULT_MAX_CHARS = 4000
TRUNCATION_MARKER = "\n\n... (truncated)"

NO_ERROR_LOGS_MESSAGE = (
    "Build failed but no specific error logs were found. "
    "Check the Vercel dashboard for details."
)
LOGS_UNAVAILABLE_MESSAGE = (
    "Error logs could not be retrieved. Please check the Vercel dashboard."
)


def event_text(event: Dict[str, Any]) -> Optional[str]:
    """Get the text of a build event, if it carries any."""
    payload = event.get("payload")
    if isinstance(payload, dict) and payload.get("text"):
        return str(payload["text"])
    if event.get("text"):
        return str(event["text"])
    return None


def is_error_event(event: Dict[str, Any]) -> bool:
    """
    Check whether a build event is error-relevant.

    An event qualifies if it was written to stderr, or its text mentions
    "error" or "failed" in any case, or contains a failure glyph.
    """
    if event.get("type") == STDERR_EVENT_TYPE:
        return True

    text = event_text(event)
    if not text:
        return False

    lowered = text.lower()
    if any(keyword in lowered for keyword in ERROR_KEYWORDS):
        return True
    return any(marker in text for marker in ERROR_MARKERS)


def filter_error_lines(events: Iterable[Dict[str, Any]]) -> List[str]:
    """
    Project error-relevant events to log lines, preserving order.

    Events without text are rendered as JSON so nothing retained is lost.
    """
    lines: List[str] = []
    for event in events:
        if not is_error_event(event):
            continue
        text = event_text(event)
        lines.append(text if text is not None else json.dumps(event, default=str))
    return lines


def build_excerpt(
    lines: List[str],
    max_lines: int = DEFAULT_MAX_LINES,
    max_chars: int = DEFAULT_MAX_CHARS
) -> str:
    """
    Join the tail of the error lines into a bounded excerpt.

    Args:
        lines: Error lines in original order
        max_lines: Number of trailing lines to keep
        max_chars: Character limit after joining

    Returns:
        Newline-joined excerpt, hard-truncated with a marker if too long
    """
    output = "\n".join(lines[-max_lines:])
    if len(output) > max_chars:
        return output[:max_chars] + TRUNCATION_MARKER
    return output


class LogFetcher:
    """
    Fetches and condenses a deployment's error logs.

    Usage:
        fetcher = LogFetcher(vercel_client, max_lines=50, max_chars=4000)
        excerpt = await fetcher.fetch(DeploymentRef(id="dpl_123"))
    """

    def __init__(
        self,
        client: VercelClient,
        max_lines: int = DEFAULT_MAX_LINES,
        max_chars: int = DEFAULT_MAX_CHARS
    ):
        self.client = client
        self.max_lines = max_lines
        self.max_chars = max_chars

    async def fetch(self, ref: DeploymentRef) -> LogExcerpt:
        """
        Fetch the event stream and produce an error excerpt.

        Never raises for upstream failures; the excerpt status says
        whether real logs were found.
        """
        try:
            events = await self.client.get_deployment_events(ref)
        except (UpstreamFetchError, NetworkError) as e:
            logger.warning(
                "Error fetching deployment logs",
                deployment_id=ref.id,
                error=str(e),
                error_type=type(e).__name__
            )
            return LogExcerpt(text=LOGS_UNAVAILABLE_MESSAGE, status=LogStatus.DEGRADED)

        lines = filter_error_lines(events)

        logger.info(
            "Fetched deployment logs",
            deployment_id=ref.id,
            total_events=len(events),
            error_lines=len(lines)
        )

        if not lines:
            return LogExcerpt(text=NO_ERROR_LOGS_MESSAGE, status=LogStatus.EMPTY)

        return LogExcerpt(
            text=build_excerpt(lines, self.max_lines, self.max_chars),
            status=LogStatus.OK,
            line_count=len(lines)
        )
