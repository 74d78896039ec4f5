"""
Deployment Resolver Module

This module maps a Vercel deployment to the GitHub pull request it was
built for.

Vercel's Git integrations have used several metadata key names for the
same fields over time, so each field is resolved by walking an ordered
list of lookup rules; the first rule that yields a value wins.

Precedence:
1. Explicit metadata fields (every known alias)
2. For the PR number, the refs/pull/<number>/merge ref pattern
3. For owner/repo, splitting a combined "org/repo" identifier

Values that cannot be used as a GitHub path segment are skipped.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple

from deploy_relay.logging_config import get_logger
from deploy_relay.models import (
    DeploymentDetails,
    DeploymentRef,
    GitHubTarget,
    ResolutionStatus,
    TargetResolution,
)
from deploy_relay.services.vercel_client import VercelClient

logger = get_logger(__name__)


# Ref GitHub creates for the merge commit of a pull request
PULL_REF_PATTERN = re.compile(r"refs/pull/(\d+)/merge")

# Characters GitHub allows in owner and repository names
GITHUB_NAME_PATTERN = re.compile(r"[A-Za-z0-9_.-]+")


@dataclass(frozen=True)
class LookupRule:
    """One place in the deployment details a value may be found."""
    source: str
    extract: Callable[[DeploymentDetails], Optional[str]]

    def __call__(self, details: DeploymentDetails) -> Optional[str]:
        return self.extract(details)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def is_github_name(value: str) -> bool:
    """Check that a value is safe to use as an owner or repo path segment."""
    return bool(GITHUB_NAME_PATTERN.fullmatch(value)) and value not in (".", "..")


def is_pr_number(value: str) -> bool:
    return value.isascii() and value.isdigit()


def meta_key(key: str) -> LookupRule:
    return LookupRule(f"meta.{key}", lambda d: _clean(d.meta.get(key)))


def git_source_field(field: str) -> LookupRule:
    def extract(details: DeploymentDetails) -> Optional[str]:
        if details.git_source is None:
            return None
        return _clean(getattr(details.git_source, field, None))

    return LookupRule(f"gitSource.{field}", extract)


def pull_ref(rule: LookupRule) -> LookupRule:
    """Wrap a rule so it yields the PR number embedded in a pull ref."""
    def extract(details: DeploymentDetails) -> Optional[str]:
        return parse_pull_ref(rule(details))

    return LookupRule(f"{rule.source}~refs/pull", extract)


OWNER_RULES: Tuple[LookupRule, ...] = (
    meta_key("githubOrg"),
    meta_key("githubCommitOrg"),
    meta_key("github-org"),
    git_source_field("org"),
)

REPO_RULES: Tuple[LookupRule, ...] = (
    meta_key("githubRepo"),
    meta_key("githubCommitRepo"),
    meta_key("github-repo"),
    git_source_field("repo"),
)

REPO_IDENTIFIER_RULES: Tuple[LookupRule, ...] = (
    git_source_field("repo_id"),
    meta_key("githubRepoFullName"),
)

PR_NUMBER_RULES: Tuple[LookupRule, ...] = (
    meta_key("githubPrId"),
    meta_key("github-pr-id"),
    meta_key("githubPullRequestId"),
    git_source_field("pr_id"),
    pull_ref(meta_key("githubCommitRef")),
    pull_ref(git_source_field("ref")),
)


def first_match(
    rules: Sequence[LookupRule],
    details: DeploymentDetails,
    accept: Optional[Callable[[str], bool]] = None
) -> Tuple[Optional[str], Optional[str]]:
    """
    Evaluate rules in priority order.

    Values the accept check refuses are skipped so a later rule can
    still supply a usable one.

    Returns:
        Tuple of (value, rule source), or (None, None) if no rule matched
    """
    for rule in rules:
        value = rule(details)
        if not value:
            continue
        if accept is not None and not accept(value):
            logger.warning("Ignoring malformed metadata value", source=rule.source, value=value)
            continue
        return value, rule.source
    return None, None


def parse_pull_ref(ref: Optional[str]) -> Optional[str]:
    """Extract the PR number from a refs/pull/<number>/merge ref."""
    if not ref:
        return None
    match = PULL_REF_PATTERN.search(ref)
    return match.group(1) if match else None


def split_repo_identifier(identifier: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a combined repository identifier into owner and repo.

    Accepts "org/repo" as well as longer paths or URLs, in which case
    the last two segments are used.
    """
    if not identifier or "/" not in identifier:
        return None

    parts = [part for part in identifier.strip().strip("/").split("/") if part]
    if len(parts) < 2:
        return None

    owner, repo = parts[-2], parts[-1]
    if repo.endswith(".git"):
        repo = repo[:-4]
    if not is_github_name(owner) or not is_github_name(repo):
        return None
    return owner, repo


def extract_github_target(details: DeploymentDetails) -> GitHubTarget:
    """
    Derive the GitHub owner, repo and PR number from deployment details.

    Args:
        details: Deployment record from the Vercel API

    Returns:
        GitHubTarget with whichever fields could be resolved
    """
    owner, owner_source = first_match(OWNER_RULES, details, is_github_name)
    repo, repo_source = first_match(REPO_RULES, details, is_github_name)

    if not owner or not repo:
        for rule in REPO_IDENTIFIER_RULES:
            split = split_repo_identifier(rule(details))
            if split:
                owner, repo = split
                owner_source = repo_source = rule.source
                break

    pr_number, pr_source = first_match(PR_NUMBER_RULES, details, is_pr_number)

    logger.debug(
        "Extracted GitHub target",
        owner=owner,
        owner_source=owner_source,
        repo=repo,
        repo_source=repo_source,
        pr_number=pr_number,
        pr_source=pr_source
    )

    return GitHubTarget(owner=owner, repo=repo, pr_number=pr_number)


class DeploymentResolver:
    """
    Resolves a deployment to the GitHub pull request it belongs to.

    Usage:
        resolver = DeploymentResolver(vercel_client)
        resolution = await resolver.resolve(DeploymentRef(id="dpl_123"))
        if resolution.is_resolved:
            ...
    """

    def __init__(self, client: VercelClient):
        self.client = client

    async def resolve(self, ref: DeploymentRef) -> TargetResolution:
        """
        Fetch deployment details and resolve the GitHub target.

        A missing repository or PR is a terminal, non-error outcome
        reported through the resolution status.

        Raises:
            VercelAPIError: If the deployment details cannot be fetched
            NetworkError: If the Vercel API cannot be reached
        """
        details = await self.client.get_deployment(ref)
        target = extract_github_target(details)

        if not target.has_repository:
            logger.info(
                "Could not extract repository info from deployment",
                deployment_id=ref.id,
                meta_keys=sorted(details.meta.keys())
            )
            status = ResolutionStatus.NO_REPOSITORY
        elif not target.pr_number:
            logger.info(
                "Deployment not associated with a PR",
                deployment_id=ref.id,
                repository=target.full_name
            )
            status = ResolutionStatus.NO_PULL_REQUEST
        else:
            logger.info(
                "Found PR for deployment",
                deployment_id=ref.id,
                pr=target.reference
            )
            status = ResolutionStatus.RESOLVED

        return TargetResolution(status=status, target=target, details=details)
