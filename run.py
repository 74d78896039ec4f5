"""
Application Runner

Starts the deployment relay under uvicorn.
Use: python run.py  (or the deploy-relay console script)
"""

import uvicorn

from deploy_relay.config import get_settings


def main():
    """Run the relay with uvicorn using the configured bind address."""
    settings = get_settings()

    uvicorn.run(
        "deploy_relay.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level=settings.log_level.lower(),
        access_log=settings.log_requests
    )


if __name__ == "__main__":
    main()
