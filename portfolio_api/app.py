"""
FastAPI application entry point for the portfolio backend.

Run with `python -m portfolio_api` or
`uvicorn portfolio_api.app:create_app --factory`.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portfolio_api.bootstrap import seed_site_settings
from portfolio_api.config import Settings, get_settings
from portfolio_api.db import DbClient
from portfolio_api.dependencies import build_db_client, build_notifier
from portfolio_api.errors import register_error_handlers
from portfolio_api.middleware import (
    BodySizeLimitMiddleware,
    FixedWindowRateLimiter,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
)
from portfolio_api.notifications import Notifier
from portfolio_api.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    if not settings.admin_password:
        raise RuntimeError("ADMIN_PASSWORD is not set; refusing to start.")
    seed_site_settings(app.state.db)
    logger.info("Portfolio API ready on port %s", settings.port)
    yield


def create_app(
    settings: Optional[Settings] = None,
    *,
    db: Optional[DbClient] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Portfolio Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db if db is not None else build_db_client(settings)
    app.state.notifier = notifier if notifier is not None else build_notifier(settings)

    # Starlette runs the last-added middleware first.
    app.add_middleware(
        RateLimitMiddleware,
        limiter=FixedWindowRateLimiter(
            settings.rate_limit_max, settings.rate_limit_window_seconds
        ),
    )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization", "password"],
    )
    app.add_middleware(SecurityHeadersMiddleware)

    register_error_handlers(app)
    app.include_router(router, prefix=settings.api_prefix)
    return app
