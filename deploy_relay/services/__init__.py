"""
Services Package

This package contains the service modules for the deployment relay:
- vercel_client: Vercel API client
- github_client: GitHub API client
- deployment_resolver: Deployment to pull request resolution
- log_fetcher: Build log filtering and truncation
- comment_publisher: PR comment formatting and posting
"""

from deploy_relay.services.comment_publisher import CommentPublisher, format_comment
from deploy_relay.services.deployment_resolver import DeploymentResolver, extract_github_target
from deploy_relay.services.github_client import GitHubAPIError, GitHubClient
from deploy_relay.services.log_fetcher import LogFetcher, build_excerpt, filter_error_lines
from deploy_relay.services.vercel_client import VercelAPIError, VercelClient


__all__ = [
    "CommentPublisher",
    "format_comment",
    "DeploymentResolver",
    "extract_github_target",
    "GitHubAPIError",
    "GitHubClient",
    "LogFetcher",
    "build_excerpt",
    "filter_error_lines",
    "VercelAPIError",
    "VercelClient",
]
