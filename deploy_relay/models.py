"""
Data Models Module

This module defines all Pydantic models used throughout the application.
Strong typing ensures data integrity and provides clear contracts between components.

Design Decisions:
- Use Pydantic models for all data transfer objects
- Tolerate unknown fields from Vercel, whose payloads vary by integration
- Express non-error terminal outcomes (no repo, no PR, degraded logs) as
  explicit status fields rather than exceptions
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEPLOYMENT_ERROR_EVENT = "deployment-error"


# =============================================================================
# Enums
# =============================================================================

class ResolutionStatus(str, Enum):
    """Outcome of mapping a deployment to a GitHub pull request."""
    RESOLVED = "resolved"
    NO_REPOSITORY = "no_repository"
    NO_PULL_REQUEST = "no_pull_request"


class LogStatus(str, Enum):
    """Outcome of fetching a deployment's error logs."""
    OK = "ok"
    EMPTY = "empty"
    DEGRADED = "degraded"


class RelayState(str, Enum):
    """States a webhook request moves through."""
    RECEIVED = "received"
    SIGNATURE_CHECKED = "signature_checked"
    TYPE_FILTERED = "type_filtered"
    DEPLOYMENT_RESOLVED = "deployment_resolved"
    TARGET_RESOLVED = "target_resolved"
    LOGS_FETCHED = "logs_fetched"
    COMMENT_POSTED = "comment_posted"
    REJECTED = "rejected"
    IGNORED = "ignored"
    FAILED = "failed"


# =============================================================================
# Vercel Webhook Models
# =============================================================================

class WebhookEvent(BaseModel):
    """Envelope of every Vercel webhook delivery."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = None
    type: str
    created_at: Optional[Union[int, str]] = Field(default=None, alias="createdAt")
    payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_deployment_error(self) -> bool:
        """Check if this is the only event type the relay acts on."""
        return self.type == DEPLOYMENT_ERROR_EVENT


class WebhookDeployment(BaseModel):
    """Deployment section of a webhook payload."""
    model_config = ConfigDict(extra="ignore")

    id: str
    meta: Dict[str, Any] = Field(default_factory=dict)
    url: Optional[str] = None
    name: Optional[str] = None

    @field_validator("meta", mode="before")
    @classmethod
    def default_meta(cls, v: Any) -> Any:
        return v or {}


class WebhookTeam(BaseModel):
    """Team owning the deployment, absent for personal accounts."""
    id: Optional[str] = None


class WebhookLinks(BaseModel):
    """Dashboard links included in the webhook."""
    deployment: Optional[str] = None
    project: Optional[str] = None


class WebhookProject(BaseModel):
    id: Optional[str] = None


class DeploymentErrorPayload(BaseModel):
    """Payload of a deployment-error webhook event."""
    model_config = ConfigDict(extra="ignore")

    deployment: WebhookDeployment
    team: Optional[WebhookTeam] = None
    links: Optional[WebhookLinks] = None
    project: Optional[WebhookProject] = None

    @property
    def team_id(self) -> Optional[str]:
        return self.team.id if self.team else None

    @property
    def deployment_url(self) -> str:
        """
        Get the dashboard URL for the deployment.

        Falls back to the deployment's own URL when the webhook
        carries no dashboard link.
        """
        if self.links and self.links.deployment:
            return self.links.deployment
        if self.deployment.url:
            url = self.deployment.url
            return url if url.startswith("http") else f"https://{url}"
        return ""


# =============================================================================
# Vercel API Models
# =============================================================================

class DeploymentRef(BaseModel):
    """Identifies the deployment to query on the Vercel API."""
    id: str = Field(min_length=1)
    team_id: Optional[str] = None


class GitSource(BaseModel):
    """
    Git source of a deployment as reported by Vercel.

    Attributes:
        type: Provider type, e.g. "github"
        ref: Branch or ref name the deployment was built from
        repo_id: Repository identifier; numeric for GitHub, sometimes "org/repo"
        org: Repository owner, when reported
        repo: Repository name, when reported
        pr_id: Pull request number, when reported
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: Optional[str] = None
    ref: Optional[str] = None
    repo_id: Optional[Union[int, str]] = Field(default=None, alias="repoId")
    org: Optional[str] = None
    repo: Optional[str] = None
    pr_id: Optional[Union[int, str]] = Field(default=None, alias="prId")


class DeploymentDetails(BaseModel):
    """
    Deployment record returned by the Vercel API.

    Only the fields used for PR resolution are typed; everything
    else is kept as extra data.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    meta: Dict[str, Any] = Field(default_factory=dict)
    git_source: Optional[GitSource] = Field(default=None, alias="gitSource")

    @field_validator("meta", mode="before")
    @classmethod
    def default_meta(cls, v: Any) -> Any:
        return v or {}


# =============================================================================
# GitHub Models
# =============================================================================

class GitHubTarget(BaseModel):
    """
    Pull request coordinate derived from deployment metadata.

    Every field stays optional until resolution completes; a missing
    field is a legitimate outcome, not an error.
    """
    owner: Optional[str] = None
    repo: Optional[str] = None
    pr_number: Optional[str] = None

    @property
    def has_repository(self) -> bool:
        return bool(self.owner and self.repo)

    @property
    def full_name(self) -> str:
        """Get the full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @property
    def reference(self) -> str:
        """Get the PR reference (owner/repo#number)."""
        return f"{self.full_name}#{self.pr_number}"


class TargetResolution(BaseModel):
    """Result of resolving a deployment to a GitHub pull request."""
    status: ResolutionStatus
    target: GitHubTarget = Field(default_factory=GitHubTarget)
    details: DeploymentDetails

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


# =============================================================================
# Relay Processing Models
# =============================================================================

class LogExcerpt(BaseModel):
    """
    Error excerpt of a deployment's build output.

    Attributes:
        text: Text to place in the comment; a placeholder unless status is OK
        status: Whether logs were found, empty, or could not be fetched
        line_count: Number of matching lines before truncation
    """
    text: str
    status: LogStatus
    line_count: int = Field(default=0, ge=0)

    @property
    def is_degraded(self) -> bool:
        return self.status == LogStatus.DEGRADED


class RelayResult(BaseModel):
    """Final outcome of handling one deployment-error event."""
    state: RelayState
    message: str
    target: Optional[GitHubTarget] = None
    meta: Optional[Dict[str, Any]] = None
    log_status: Optional[LogStatus] = None
