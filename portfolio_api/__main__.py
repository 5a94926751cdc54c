"""
Serve the API with uvicorn on the configured port.
"""

from __future__ import annotations

import logging

import uvicorn

from portfolio_api.config import get_settings


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    uvicorn.run(
        "portfolio_api.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
