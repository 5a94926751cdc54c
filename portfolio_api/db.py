"""
Document store abstraction with a SQLAlchemy and an in-memory implementation.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Protocol

from pydantic import BaseModel, ValidationError
from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    Float,
    Integer,
    String,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_api.records import (
    DATE_SORTED_KINDS,
    RECORD_MODELS,
    RecordKind,
    SiteSettingsRecord,
    next_record_id,
    to_document,
)

SITE_SETTINGS_KEY = "site"


class StoreError(RuntimeError):
    """Any persistence or record-typing failure."""


class DbClient(Protocol):
    """Interface for document storage."""

    def get_site_settings(self) -> Optional[dict]:
        ...

    def count_site_settings(self) -> int:
        ...

    def create_site_settings(self, fields: dict) -> dict:
        ...

    def upsert_site_settings(self, fields: dict) -> dict:
        ...

    def list_records(self, kind: RecordKind) -> list[dict]:
        ...

    def create_record(self, kind: RecordKind, fields: dict) -> dict:
        ...

    def update_record(self, kind: RecordKind, record_id: Any, fields: dict) -> bool:
        ...

    def delete_record(self, kind: RecordKind, record_id: Any) -> bool:
        ...


def _validate(model: type[BaseModel], payload: dict) -> BaseModel:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise StoreError(
            f"{model.__name__} failed validation with {exc.error_count()} error(s)"
        ) from exc


def _coerce_record_id(record_id: Any) -> int:
    try:
        return int(record_id)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"Cast to integer failed for id {record_id!r}") from exc


def _new_record(kind: RecordKind, fields: dict) -> BaseModel:
    # Caller-supplied fields, including an explicit id, win over the generated one.
    return _validate(RECORD_MODELS[kind], {"id": next_record_id(), **fields})


def _record_timestamp(record: BaseModel) -> Optional[float]:
    date = getattr(record, "date", None)
    return date.timestamp() if date else None


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.site_settings: Optional[SiteSettingsRecord] = None
        self.records: Dict[RecordKind, list[BaseModel]] = {
            kind: [] for kind in RecordKind
        }
        self._lock = threading.Lock()

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.site_settings = None
            for items in self.records.values():
                items.clear()

    def get_site_settings(self) -> Optional[dict]:
        if self.site_settings is None:
            return None
        return to_document(self.site_settings)

    def count_site_settings(self) -> int:
        return 0 if self.site_settings is None else 1

    def create_site_settings(self, fields: dict) -> dict:
        record = _validate(SiteSettingsRecord, fields)
        with self._lock:
            if self.site_settings is not None:
                raise StoreError("Site settings already exist")
            self.site_settings = record
        return to_document(record)

    def upsert_site_settings(self, fields: dict) -> dict:
        with self._lock:
            current = to_document(self.site_settings) if self.site_settings else {}
            record = _validate(SiteSettingsRecord, {**current, **fields})
            self.site_settings = record
        return to_document(record)

    def list_records(self, kind: RecordKind) -> list[dict]:
        with self._lock:
            items = list(self.records[kind])
        if kind in DATE_SORTED_KINDS:
            # Stable sort over the reversed list puts later inserts first on ties.
            items = sorted(reversed(items), key=lambda r: r.date, reverse=True)
        return [to_document(item) for item in items]

    def create_record(self, kind: RecordKind, fields: dict) -> dict:
        record = _new_record(kind, fields)
        with self._lock:
            self.records[kind].append(record)
        return to_document(record)

    def _find_index(self, kind: RecordKind, record_id: int) -> Optional[int]:
        for index, record in enumerate(self.records[kind]):
            if record.id == record_id:
                return index
        return None

    def update_record(self, kind: RecordKind, record_id: Any, fields: dict) -> bool:
        target = _coerce_record_id(record_id)
        with self._lock:
            index = self._find_index(kind, target)
            if index is None:
                return False
            current = to_document(self.records[kind][index])
            self.records[kind][index] = _validate(
                RECORD_MODELS[kind], {**current, **fields}
            )
        return True

    def delete_record(self, kind: RecordKind, record_id: Any) -> bool:
        target = _coerce_record_id(record_id)
        with self._lock:
            index = self._find_index(kind, target)
            if index is None:
                return False
            del self.records[kind][index]
        return True


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite).

    Documents are stored as JSON; the id and date are mirrored into indexed
    columns for lookups and ordering.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise StoreError(str(exc)) from exc

    def get_site_settings(self) -> Optional[dict]:
        with self._session() as session:
            row = session.get(SiteSettingsRow, SITE_SETTINGS_KEY)
            return dict(row.data) if row else None

    def count_site_settings(self) -> int:
        with self._session() as session:
            return session.scalar(
                select(func.count()).select_from(SiteSettingsRow)
            ) or 0

    def create_site_settings(self, fields: dict) -> dict:
        document = to_document(_validate(SiteSettingsRecord, fields))
        with self._session() as session:
            session.add(SiteSettingsRow(key=SITE_SETTINGS_KEY, data=document))
            session.commit()
        return document

    def upsert_site_settings(self, fields: dict) -> dict:
        with self._session() as session:
            row = session.get(SiteSettingsRow, SITE_SETTINGS_KEY)
            current = dict(row.data) if row else {}
            document = to_document(
                _validate(SiteSettingsRecord, {**current, **fields})
            )
            if row:
                row.data = document
            else:
                session.add(SiteSettingsRow(key=SITE_SETTINGS_KEY, data=document))
            session.commit()
        return document

    def list_records(self, kind: RecordKind) -> list[dict]:
        row_type = ROW_TYPES[kind]
        stmt = select(row_type)
        if kind in DATE_SORTED_KINDS:
            stmt = stmt.order_by(row_type.date.desc(), row_type.pk.desc())
        else:
            stmt = stmt.order_by(row_type.pk.asc())
        with self._session() as session:
            rows = session.execute(stmt).scalars().all()
            return [dict(row.data) for row in rows]

    def create_record(self, kind: RecordKind, fields: dict) -> dict:
        record = _new_record(kind, fields)
        document = to_document(record)
        with self._session() as session:
            session.add(
                ROW_TYPES[kind](
                    record_id=record.id,
                    date=_record_timestamp(record),
                    data=document,
                )
            )
            session.commit()
        return document

    def _first_row(self, session: Session, kind: RecordKind, record_id: int):
        row_type = ROW_TYPES[kind]
        stmt = (
            select(row_type)
            .where(row_type.record_id == record_id)
            .order_by(row_type.pk.asc())
            .limit(1)
        )
        return session.execute(stmt).scalar_one_or_none()

    def update_record(self, kind: RecordKind, record_id: Any, fields: dict) -> bool:
        target = _coerce_record_id(record_id)
        with self._session() as session:
            row = self._first_row(session, kind, target)
            if not row:
                return False
            record = _validate(RECORD_MODELS[kind], {**row.data, **fields})
            row.record_id = record.id
            row.date = _record_timestamp(record)
            row.data = to_document(record)
            session.commit()
        return True

    def delete_record(self, kind: RecordKind, record_id: Any) -> bool:
        target = _coerce_record_id(record_id)
        with self._session() as session:
            row = self._first_row(session, kind, target)
            if not row:
                return False
            session.delete(row)
            session.commit()
        return True


Base = declarative_base()


class SiteSettingsRow(Base):
    __tablename__ = "site_settings"

    key = Column(String, primary_key=True)
    data = Column(JSON, nullable=False)


class _DocumentColumns:
    pk = Column(Integer, primary_key=True, autoincrement=True)
    record_id = Column(BigInteger, nullable=False, index=True)
    date = Column(Float, nullable=True, index=True)
    data = Column(JSON, nullable=False)


class ProjectRow(_DocumentColumns, Base):
    __tablename__ = "projects"


class BlogRow(_DocumentColumns, Base):
    __tablename__ = "blogs"


class ContactRow(_DocumentColumns, Base):
    __tablename__ = "contacts"


ROW_TYPES = {
    RecordKind.PROJECT: ProjectRow,
    RecordKind.BLOG: BlogRow,
    RecordKind.CONTACT: ContactRow,
}
