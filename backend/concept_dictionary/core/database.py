"""Database configuration and session management."""

from collections.abc import Generator
from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, String, create_engine
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from concept_dictionary.core.config import settings

# Create async engine (used by the lifespan hooks)
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    future=True,
)

# Lazy initialized sync engine (for services, RQ workers and scripts)
_sync_engine = None
_sync_session_maker: sessionmaker[Session] | None = None


def get_sync_engine():
    """Get or create sync engine for services and background jobs.

    Lazily creates the sync engine on first use to avoid import errors
    when psycopg is not installed (e.g., in test environments).
    """
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = create_engine(
            settings.sync_database_url,
            echo=settings.debug,
            future=True,
        )
    return _sync_engine


def get_sync_session_maker() -> sessionmaker[Session]:
    """Get or create the sync session factory bound to the sync engine."""
    global _sync_session_maker
    if _sync_session_maker is None:
        _sync_session_maker = sessionmaker(
            bind=get_sync_engine(),
            expire_on_commit=False,
            autoflush=False,
        )
    return _sync_session_maker


def utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Dictionary tables use integer primary keys named after the table
    (concept_id, drug_id, ...), so the base declares no columns. Shared
    columns come from the mixins below.
    """


class CreatorMixin:
    """Who created the row and when."""

    creator: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class ChangeMixin:
    """Who last changed the row and when."""

    changed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_changed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class RetireMixin:
    """Soft-delete columns. Retired rows stay in the table."""

    retired: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    retired_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_retired: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    retire_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def retire(self, reason: str, retired_by: str | None) -> None:
        self.retired = True
        self.retire_reason = reason
        self.retired_by = retired_by
        self.date_retired = utcnow()


def get_session() -> Generator[Session, None, None]:
    """Dependency to get a sync database session.

    The concept service commits or rolls back its own work, so the
    dependency only has to close the session.

    Usage in FastAPI:
        @router.get("/items")
        def get_items(session: Session = Depends(get_session)):
            ...
    """
    session = get_sync_session_maker()()
    try:
        yield session
    finally:
        session.close()


async def init_db() -> None:
    """Initialize database tables.

    For development only - use Alembic migrations in production.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
    if _sync_engine is not None:
        _sync_engine.dispose()
