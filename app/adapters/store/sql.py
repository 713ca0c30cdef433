"""SQLAlchemy-backed waitlist store.

Works with any SQLAlchemy dialect; production typically points
``STORE_DATABASE_URL`` at PostgreSQL, development and tests at SQLite.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Engine, String, create_engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from app.adapters.store.base import AbstractWaitlistStore, WaitlistEntry, WaitlistStatus
from app.core.errors import DuplicateEmailError, StoreAppError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class WaitlistRecord(Base):
    __tablename__ = "waitlist"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    experience: Mapped[str | None] = mapped_column(String(32), nullable=True)
    updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=WaitlistStatus.PENDING.value)
    confirmation_token: Mapped[str | None] = mapped_column(String(64), index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_entry(record: WaitlistRecord) -> WaitlistEntry:
    return WaitlistEntry(
        id=record.id,
        email=record.email,
        role=record.role,
        experience=record.experience,
        updates=record.updates,
        status=WaitlistStatus(record.status),
        confirmation_token=record.confirmation_token,
        created_at=_as_utc(record.created_at),
        confirmed_at=_as_utc(record.confirmed_at),
    )


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Create an engine, sharing one connection for in-memory SQLite."""

    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


class SqlWaitlistStore(AbstractWaitlistStore):
    """Waitlist store on a relational database via SQLAlchemy ORM."""

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(engine, autoflush=False, expire_on_commit=False)
        if create_schema:
            Base.metadata.create_all(engine)

    def create(self, entry: WaitlistEntry) -> WaitlistEntry:
        record = WaitlistRecord(
            id=entry.id,
            email=entry.email,
            role=entry.role,
            experience=entry.experience,
            updates=entry.updates,
            status=entry.status.value,
            confirmation_token=entry.confirmation_token,
            created_at=entry.created_at,
            confirmed_at=entry.confirmed_at,
        )
        try:
            with self._session_factory.begin() as session:
                session.add(record)
        except IntegrityError as exc:
            raise DuplicateEmailError(
                code="duplicate_email",
                message="Email is already on the waitlist",
            ) from exc
        except SQLAlchemyError as exc:
            raise self._store_error("create", exc) from exc
        return _to_entry(record)

    def find_by_email(self, email: str) -> WaitlistEntry | None:
        return self._find_one(select(WaitlistRecord).where(WaitlistRecord.email == email), "find_by_email")

    def find_by_token(self, token: str) -> WaitlistEntry | None:
        return self._find_one(
            select(WaitlistRecord).where(WaitlistRecord.confirmation_token == token),
            "find_by_token",
        )

    def mark_confirmed(self, entry_id: str, confirmed_at: datetime) -> WaitlistEntry:
        try:
            with self._session_factory.begin() as session:
                record = session.get(WaitlistRecord, entry_id)
                if record is None:
                    raise StoreAppError(
                        code="entry_missing",
                        message="Failed to confirm registration. Please try again.",
                    )
                record.status = WaitlistStatus.CONFIRMED.value
                record.confirmed_at = confirmed_at
                record.confirmation_token = None
                entry = _to_entry(record)
        except SQLAlchemyError as exc:
            raise self._store_error("mark_confirmed", exc) from exc
        return entry

    def delete(self, entry_id: str) -> bool:
        try:
            with self._session_factory.begin() as session:
                result = session.execute(delete(WaitlistRecord).where(WaitlistRecord.id == entry_id))
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            raise self._store_error("delete", exc) from exc

    def _find_one(self, statement, operation: str) -> WaitlistEntry | None:
        try:
            with self._session_factory() as session:
                record = session.scalars(statement).first()
                return _to_entry(record) if record is not None else None
        except SQLAlchemyError as exc:
            raise self._store_error(operation, exc) from exc

    @staticmethod
    def _store_error(operation: str, exc: Exception) -> StoreAppError:
        logger.error(
            "store.operation_failed",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        return StoreAppError(
            code="store_unavailable",
            message="Service temporarily unavailable",
        )
