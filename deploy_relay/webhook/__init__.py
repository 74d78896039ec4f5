"""
Webhook Package

This package contains webhook handling components:
- handler: FastAPI route handlers
- security: Webhook signature verification
- processor: Deployment error relay logic
"""

from deploy_relay.webhook.handler import router

__all__ = ["router"]
