"""
Contact notifications delivered to a Discord-compatible webhook.

Delivery is best effort: failures are logged and never reach the request
that triggered them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Protocol

import requests

logger = logging.getLogger(__name__)

EMBED_TITLE = "🚀 New Signal Received"
EMBED_COLOR = 0x00F3FF  # Neon cyan
EMBED_FOOTER = "Portfolio System Notification"


class Notifier(Protocol):
    """Sends a notification for a newly stored contact message."""

    def notify_contact(self, contact: dict) -> None:
        ...


# (label, contact key, inline)
EMBED_FIELDS = (
    ("Name", "name", True),
    ("Email", "email", True),
    ("Message", "message", False),
)


def build_contact_embed(contact: dict, now: Optional[datetime] = None) -> dict:
    """Discord rejects empty field values, so fields the visitor left out are skipped."""
    now = now or datetime.now(timezone.utc)
    fields = []
    for label, key, inline in EMBED_FIELDS:
        value = contact.get(key)
        if value is None or value == "":
            continue
        field_entry = {"name": label, "value": str(value)}
        if inline:
            field_entry["inline"] = True
        fields.append(field_entry)
    return {
        "embeds": [
            {
                "title": EMBED_TITLE,
                "color": EMBED_COLOR,
                "fields": fields,
                "footer": {"text": EMBED_FOOTER},
                "timestamp": now.isoformat(),
            }
        ]
    }


class NullNotifier:
    """Used when no webhook is configured."""

    def notify_contact(self, contact: dict) -> None:
        return None


@dataclass
class InMemoryNotifier:
    """Test double that keeps every payload it would have sent."""

    sent: list[dict] = field(default_factory=list)

    def notify_contact(self, contact: dict) -> None:
        self.sent.append(build_contact_embed(contact))


@dataclass
class DiscordWebhookNotifier:
    url: str
    timeout: float = 10.0

    def notify_contact(self, contact: dict) -> None:
        payload = build_contact_embed(contact)
        try:
            response = requests.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.error("Discord webhook delivery failed: %s", exc)
            return
        logger.info("Contact notification delivered for id %s", contact.get("id"))
