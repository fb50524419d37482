"""
Database handle, primitive executor, and declarative base.

This module owns the single connection handle to the embedded store. Key
components:

  - Database: explicit context object wrapping one lazily created SQLAlchemy
    AsyncEngine (aiosqlite driver). Repositories receive it by reference.
  - TransactionScope: one atomic unit of work (begin / execute / commit /
    rollback), obtained from Database.transaction().
  - CommandResult: rows affected and last insert id of a write.
  - Base: declarative base for the table definitions in ledger.models.

Statement format:
  Repositories build SQL with positional placeholders ($1, $2, ...). The
  executor rewrites them to SQLAlchemy named binds (:p1, :p2, ...) so that one
  placeholder may be referenced several times in a statement while being bound
  once. Values are always bound, never interpolated.

Lifecycle:
  The engine is created on first use. close() disposes it; the next call
  creates a fresh one.
"""

import logging
import os
import re
import uuid
from collections.abc import Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ledger.config import settings
from ledger.exceptions import (
    ConstraintViolationError,
    QueryFailedError,
    StoreError,
    StoreUnavailableError,
    TransactionError,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER = re.compile(r"\$(\d+)")

Params = Sequence[Any] | None


def generate_id() -> str:
    """New primary key for any entity."""
    return str(uuid.uuid4())


def now_iso() -> str:
    """Current UTC time as stored in created_at / updated_at columns."""
    return datetime.now(timezone.utc).isoformat()


class Base(DeclarativeBase):
    """Declarative base for all table definitions."""
    pass


@dataclass(frozen=True)
class CommandResult:
    """Outcome of an INSERT / UPDATE / DELETE."""
    rows_affected: int
    last_insert_id: int | None = None


def bind_positional(sql: str, params: Params = None) -> tuple[str, dict[str, Any]]:
    """
    Rewrite $n placeholders into :pn named binds.

    Returns the rewritten statement and the bind dictionary. Every $n in the
    statement must have a matching positional value.
    """
    values = list(params or [])
    binds = {f"p{index}": value for index, value in enumerate(values, start=1)}
    return _PLACEHOLDER.sub(lambda m: f":p{m.group(1)}", sql), binds


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ships with foreign key enforcement off, per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


async def _run(conn: AsyncConnection, sql: str, params: Params):
    """Execute one statement on `conn`, translating driver errors."""
    statement, binds = bind_positional(sql, params)
    try:
        return await conn.execute(text(statement), binds)
    except IntegrityError as exc:
        logger.error("Constraint violation: %s", " ".join(sql.split()))
        raise ConstraintViolationError(f"Constraint violation: {exc.orig}", exc) from exc
    except DBAPIError as exc:
        logger.error("Statement execution failed: %s", " ".join(sql.split()))
        raise QueryFailedError(f"Statement execution failed: {exc.orig}", exc) from exc
    except SQLAlchemyError as exc:
        logger.error("Statement could not be prepared: %s", " ".join(sql.split()))
        raise QueryFailedError(f"Statement could not be prepared: {exc}", exc) from exc


class TransactionScope:
    """
    A single atomic unit of work on one connection.

    Statements run strictly in the order they are executed. The owning
    Database.transaction() context commits when the block exits normally and
    rolls back otherwise; callers never commit by hand.
    """

    def __init__(self, conn: AsyncConnection):
        self._conn = conn
        self._transaction = None
        self.results: list[CommandResult] = []

    async def begin(self) -> None:
        self._transaction = await self._conn.begin()

    async def execute(self, sql: str, params: Params = None) -> CommandResult:
        result = await _run(self._conn, sql, params)
        outcome = CommandResult(
            rows_affected=result.rowcount,
            last_insert_id=result.lastrowid,
        )
        self.results.append(outcome)
        return outcome

    async def query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Read inside the unit, seeing its uncommitted writes."""
        result = await _run(self._conn, sql, params)
        return [dict(row) for row in result.mappings().all()]

    async def commit(self) -> None:
        await self._transaction.commit()

    async def rollback(self) -> None:
        await self._transaction.rollback()


class Database:
    """
    Explicit handle to the embedded store.

    Usage:
        db = Database("sqlite+aiosqlite:///./data/ledger.db")
        rows = await db.execute_query("SELECT * FROM accounts WHERE id = $1", [account_id])
        await db.close()
    """

    def __init__(self, url: str | None = None, echo: bool | None = None):
        self.url = url or settings.DATABASE_URL
        self.echo = settings.DEBUG if echo is None else echo
        self._engine: AsyncEngine | None = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def get_engine(self) -> AsyncEngine:
        """Return the engine, creating it on first use."""
        if self._engine is None:
            try:
                url = make_url(self.url)
                if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
                    os.makedirs(os.path.dirname(os.path.abspath(url.database)), exist_ok=True)
                engine = create_async_engine(self.url, echo=self.echo)
            except (SQLAlchemyError, OSError) as exc:
                logger.error("Failed to open database %s: %s", self.url, exc)
                raise StoreUnavailableError(self.url, exc) from exc
            event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
            self._engine = engine
            logger.info("Database engine created for %s", self.url)
        return self._engine

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        """Check a connection out of the engine's pool."""
        engine = self.get_engine()
        try:
            conn = await engine.connect()
        except (DBAPIError, OSError) as exc:
            logger.error("Failed to connect to database %s: %s", self.url, exc)
            raise StoreUnavailableError(self.url, exc) from exc
        try:
            yield conn
        finally:
            await conn.close()

    async def close(self) -> None:
        """Dispose the engine; the next call re-establishes it."""
        if self._engine is not None:
            engine, self._engine = self._engine, None
            await engine.dispose()
            logger.info("Database engine disposed for %s", self.url)

    # ------------------------------------------------------------------
    # Primitive executor
    # ------------------------------------------------------------------

    async def execute_query(self, sql: str, params: Params = None) -> list[dict[str, Any]]:
        """Run a SELECT and return its rows as plain dictionaries."""
        async with self.connect() as conn:
            result = await _run(conn, sql, params)
            return [dict(row) for row in result.mappings().all()]

    async def execute_command(self, sql: str, params: Params = None) -> CommandResult:
        """Run a single write statement in its own transaction."""
        async with self.connect() as conn:
            result = await _run(conn, sql, params)
            await conn.commit()
            return CommandResult(
                rows_affected=result.rowcount,
                last_insert_id=result.lastrowid,
            )

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[TransactionScope]:
        """
        Open an atomic unit of work.

        Commits when the block exits normally. On any failure the unit is
        rolled back and a TransactionError is raised; if the rollback fails as
        well, the TransactionError carries both errors.
        """
        async with self.connect() as conn:
            scope = TransactionScope(conn)
            await scope.begin()
            try:
                yield scope
                await scope.commit()
            except Exception as exc:
                try:
                    await scope.rollback()
                except Exception as rollback_exc:
                    logger.error(
                        "Failed to roll back transaction: %s (original error: %s)",
                        rollback_exc,
                        exc,
                    )
                    raise TransactionError(exc, rollback_exc) from exc
                logger.error("Transaction rolled back: %s", exc)
                if isinstance(exc, TransactionError):
                    raise
                raise TransactionError(exc) from exc

    async def execute_transaction(
        self, statements: Iterable[tuple[str, Params]]
    ) -> list[CommandResult]:
        """Apply every statement in order as one unit, or none of them."""
        async with self.transaction() as scope:
            for sql, params in statements:
                await scope.execute(sql, params)
        return scope.results

    # ------------------------------------------------------------------
    # Health / bootstrap
    # ------------------------------------------------------------------

    async def is_connected(self) -> bool:
        """Probe the store with a trivial query."""
        try:
            await self.execute_query("SELECT 1 AS ok")
        except StoreError as exc:
            logger.warning("Database connection test failed: %s", exc)
            return False
        return True

    async def get_version(self) -> int:
        """Schema version recorded in PRAGMA user_version."""
        rows = await self.execute_query("PRAGMA user_version")
        if not rows:
            return 0
        return int(next(iter(rows[0].values())) or 0)

    async def create_schema(self) -> None:
        """
        Create any missing tables and seed the default account types.

        This is a bootstrap for empty databases (tests, first run). It never
        alters existing tables.
        """
        from ledger.models import DEFAULT_ACCOUNT_TYPES

        engine = self.get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            for account_type in DEFAULT_ACCOUNT_TYPES:
                await _run(
                    conn,
                    "INSERT OR IGNORE INTO account_types (id, name, description, is_asset, created_at) "
                    "VALUES ($1, $2, $3, $4, $5)",
                    [
                        account_type["id"],
                        account_type["name"],
                        account_type["description"],
                        account_type["is_asset"],
                        now_iso(),
                    ],
                )


