"""
Record kinds stored by the backend and their field typing.

Each kind is a pydantic model that applies defaults and lax type coercion
before a document is persisted. Settings, projects and blogs drop unknown
fields; contacts keep everything the visitor submitted.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_SITE_NAME = "Vaibhav Kumar"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordKind(str, Enum):
    PROJECT = "project"
    BLOG = "blog"
    CONTACT = "contact"


class SiteSettingsRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = DEFAULT_SITE_NAME
    bio: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class ProjectRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    category: str = "web"
    img: Optional[str] = None
    desc: Optional[str] = None
    link: Optional[str] = None


class _DatedRecord(BaseModel):
    date: datetime = Field(default_factory=_utcnow)

    @field_validator("date")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps would not compare against aware ones when sorting.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class BlogRecord(_DatedRecord):
    model_config = ConfigDict(extra="ignore")

    id: int
    title: str
    content: str
    img: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    link: Optional[str] = None


class ContactRecord(_DatedRecord):
    model_config = ConfigDict(extra="allow")

    id: int
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None


RECORD_MODELS: dict[RecordKind, type[BaseModel]] = {
    RecordKind.PROJECT: ProjectRecord,
    RecordKind.BLOG: BlogRecord,
    RecordKind.CONTACT: ContactRecord,
}

# Kinds served newest first.
DATE_SORTED_KINDS = frozenset({RecordKind.BLOG, RecordKind.CONTACT})


def to_document(record: BaseModel) -> dict:
    """
    Serialize a record to its JSON document.

    Optional fields nobody supplied are omitted; a field explicitly set to
    null stays null so a later merge does not bring its default back.
    """
    document = record.model_dump(mode="json")
    return {
        key: value
        for key, value in document.items()
        if value is not None or key in record.model_fields_set
    }


class TimestampIdGenerator:
    """
    Issues record ids as epoch milliseconds.

    Two calls within the same millisecond would collide, so each id is bumped
    to at least one past the previous one.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return candidate


next_record_id = TimestampIdGenerator()
