"""
Vercel Deployment Error Relay

A small backend service that receives Vercel deployment-error webhooks,
collects the failing build's error logs, and posts them as a comment on
the GitHub pull request that triggered the deployment.
"""

__version__ = "1.0.0"
__author__ = "Deploy Relay Team"
