"""
Database engine and schema for the artwork record store.

Wraps an SQLAlchemy async engine and separates "the database cannot be
reached" (StoreUnavailableError) from "a query failed" (StoreError).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

from sqlalchemy import BigInteger, DateTime, Integer, String, text
from sqlalchemy.exc import ArgumentError, DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.middleware import StoreError, StoreUnavailableError

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class ArtworkRow(Base):
    __tablename__ = "artworks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # sha256 hex, no 0x prefix
    content_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    prompt_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    creator_address: Mapped[str] = mapped_column(String(42), index=True, nullable=False)
    ipfs_cid: Mapped[str] = mapped_column(String(128), nullable=False)
    model_used: Mapped[str] = mapped_column(String(255), nullable=False)
    metadata_uri: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    certificate_token_id: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, index=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


# Errors raised while opening a connection mean the store is unreachable
_CONNECT_ERRORS = (DBAPIError, OSError, asyncio.TimeoutError)


def _describe(error: BaseException) -> str:
    message = str(getattr(error, "orig", None) or error)
    return message.splitlines()[0] if message else type(error).__name__


class Database:
    """
    Async database handle.

    An empty URL leaves the handle unconfigured; every session() call then
    raises StoreUnavailableError.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        self._unavailable_reason = "DATABASE_URL is not set"

        if not url:
            logger.warning("DATABASE_URL is not set; artwork records will not be persisted")
            return

        try:
            self._engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        except (ArgumentError, ImportError) as e:
            self._unavailable_reason = f"invalid DATABASE_URL: {e}"
            logger.error(f"Could not create database engine: {e}")
            return

        self._sessionmaker = async_sessionmaker(self._engine, expire_on_commit=False)

    @property
    def configured(self) -> bool:
        return self._engine is not None

    @property
    def dialect_name(self) -> str | None:
        return self._engine.dialect.name if self._engine is not None else None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session in a transaction, committed on success.

        Raises:
            StoreUnavailableError: If unconfigured or the connection cannot be opened
            StoreError: If a statement fails for any other reason
        """
        if self._sessionmaker is None:
            raise StoreUnavailableError(self._unavailable_reason)

        async with self._sessionmaker() as session:
            try:
                await session.connection()
            except _CONNECT_ERRORS as e:
                raise StoreUnavailableError(_describe(e)) from e

            try:
                yield session
                await session.commit()
            except DBAPIError as e:
                if e.connection_invalidated:
                    raise StoreUnavailableError(_describe(e)) from e
                raise StoreError(_describe(e)) from e
            except SQLAlchemyError as e:
                raise StoreError(_describe(e)) from e

    async def create_schema(self) -> bool:
        """Create tables if missing. Returns False when the store is unavailable."""
        if self._engine is None:
            return False
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except _CONNECT_ERRORS as e:
            logger.warning(f"Skipping schema creation, database unavailable: {_describe(e)}")
            return False
        logger.info("Artwork schema ready")
        return True

    async def ping(self) -> bool:
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except (StoreUnavailableError, StoreError):
            return False

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
