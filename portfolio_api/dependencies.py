"""
Dependency wiring for the FastAPI app.

Backends are built once per application in `create_app` and kept on
`app.state`; route dependencies read them back from the request.
"""

from __future__ import annotations

from fastapi import Request

from portfolio_api.config import Settings
from portfolio_api.db import DbClient, InMemoryDbClient, SqlDbClient
from portfolio_api.notifications import DiscordWebhookNotifier, Notifier, NullNotifier


def build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends:
        return InMemoryDbClient()
    return SqlDbClient(settings.database_url)


def build_notifier(settings: Settings) -> Notifier:
    if not settings.discord_webhook_url:
        return NullNotifier()
    return DiscordWebhookNotifier(
        url=settings.discord_webhook_url,
        timeout=settings.webhook_timeout_seconds,
    )


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db_client(request: Request) -> DbClient:
    return request.app.state.db


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
