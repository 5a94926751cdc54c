"""
Startup seeding of the site settings record.
"""

from __future__ import annotations

import logging

from portfolio_api.db import DbClient, StoreError
from portfolio_api.records import DEFAULT_SITE_NAME

logger = logging.getLogger(__name__)

DEFAULT_SITE_SETTINGS = {
    "name": DEFAULT_SITE_NAME,
    "bio": "Frontend Developer crafting high-performance, visually stunning web experiences.",
    "email": "vaibhavsharma993@gmail.com",
    "address": "Ghaziabad, India",
}


def seed_site_settings(db: DbClient) -> bool:
    """
    Create the default settings record when the store has none.

    Returns True if a record was created. Store failures are logged and not
    retried so the API still starts.
    """
    try:
        if db.count_site_settings() > 0:
            return False
        db.create_site_settings(dict(DEFAULT_SITE_SETTINGS))
    except StoreError:
        logger.exception("Seeding site settings failed")
        return False
    logger.info("Database seeded with default settings")
    return True
