"""
Tests for the database handle and primitive executor.

These tests verify:
  - $n placeholders are rewritten to named binds, values never interpolated
  - Commands report rows affected; queries return plain dictionaries
  - transaction() commits on success and rolls everything back on failure
  - A failed rollback is reported together with the original error
  - Driver errors surface as the package's own exception types
  - close() is idempotent and the next call reopens the engine
"""

import pytest

from ledger.database import Database, TransactionScope, bind_positional, generate_id, now_iso
from ledger.exceptions import (
    ConstraintViolationError,
    QueryFailedError,
    StoreUnavailableError,
    TransactionError,
)


async def _count_users(db: Database) -> int:
    rows = await db.execute_query("SELECT COUNT(*) AS total FROM users")
    return rows[0]["total"]


def _user_insert(username: str) -> tuple[str, list]:
    now = now_iso()
    return (
        "INSERT INTO users (id, username, email, created_at, updated_at) "
        "VALUES ($1, $2, $3, $4, $5)",
        [generate_id(), username, f"{username}@example.com", now, now],
    )


class TestBindPositional:
    def test_rewrites_placeholders(self):
        sql, binds = bind_positional("SELECT * FROM t WHERE a = $1 AND b = $2", ["x", 2])
        assert sql == "SELECT * FROM t WHERE a = :p1 AND b = :p2"
        assert binds == {"p1": "x", "p2": 2}

    def test_repeated_placeholder_binds_once(self):
        sql, binds = bind_positional("a LIKE $1 OR b LIKE $1", ["%x%"])
        assert sql == "a LIKE :p1 OR b LIKE :p1"
        assert binds == {"p1": "%x%"}

    def test_no_params(self):
        assert bind_positional("SELECT 1") == ("SELECT 1", {})

    def test_two_digit_placeholders(self):
        params = list(range(1, 12))
        sql, binds = bind_positional("VALUES ($1, $11)", params)
        assert sql == "VALUES (:p1, :p11)"
        assert binds["p11"] == 11


class TestExecutor:
    async def test_query_returns_dicts(self, db):
        rows = await db.execute_query("SELECT id, is_asset FROM account_types WHERE id = $1", ["loan"])
        assert rows == [{"id": "loan", "is_asset": 0}]

    async def test_default_account_types_are_seeded(self, db):
        rows = await db.execute_query("SELECT id FROM account_types ORDER BY id")
        assert {row["id"] for row in rows} >= {"checking", "savings", "credit_card", "loan"}

    async def test_create_schema_is_repeatable(self, db):
        await db.create_schema()
        rows = await db.execute_query("SELECT COUNT(*) AS total FROM account_types")
        assert rows[0]["total"] == 8

    async def test_command_reports_rows_affected(self, db):
        result = await db.execute_command(*_user_insert("carol"))
        assert result.rows_affected == 1

        result = await db.execute_command(
            "UPDATE users SET email = $1 WHERE username = $2", ["new@example.com", "nobody"]
        )
        assert result.rows_affected == 0

    async def test_values_are_bound_not_interpolated(self, db):
        sql, params = _user_insert("robert'); DROP TABLE users; --")
        await db.execute_command(sql, params)
        rows = await db.execute_query("SELECT username FROM users")
        assert rows == [{"username": "robert'); DROP TABLE users; --"}]

    async def test_constraint_violation(self, db):
        await db.execute_command(*_user_insert("carol"))
        with pytest.raises(ConstraintViolationError):
            await db.execute_command(*_user_insert("carol"))

    async def test_foreign_keys_are_enforced(self, db):
        now = now_iso()
        with pytest.raises(ConstraintViolationError):
            await db.execute_command(
                "INSERT INTO accounts (id, user_id, account_type_id, name, created_at, updated_at) "
                "VALUES ($1, $2, $3, $4, $5, $6)",
                [generate_id(), "no-such-user", "checking", "Orphan", now, now],
            )

    async def test_malformed_statement(self, db):
        with pytest.raises(QueryFailedError):
            await db.execute_query("SELECT * FROM no_such_table")


class TestTransaction:
    async def test_commits_on_success(self, db):
        async with db.transaction() as scope:
            await scope.execute(*_user_insert("carol"))
            await scope.execute(*_user_insert("dave"))
        assert await _count_users(db) == 2
        assert [r.rows_affected for r in scope.results] == [1, 1]

    async def test_scope_sees_its_own_writes(self, db):
        async with db.transaction() as scope:
            await scope.execute(*_user_insert("carol"))
            rows = await scope.query("SELECT COUNT(*) AS total FROM users")
        assert rows[0]["total"] == 1

    async def test_rolls_back_on_failure(self, db):
        with pytest.raises(TransactionError) as exc_info:
            async with db.transaction() as scope:
                await scope.execute(*_user_insert("carol"))
                await scope.execute(*_user_insert("carol"))

        assert isinstance(exc_info.value.original, ConstraintViolationError)
        assert exc_info.value.rollback_error is None
        assert await _count_users(db) == 0

    async def test_non_store_error_is_wrapped(self, db):
        with pytest.raises(TransactionError, match="Transaction failed: boom"):
            async with db.transaction() as scope:
                await scope.execute(*_user_insert("carol"))
                raise ValueError("boom")
        assert await _count_users(db) == 0

    async def test_rollback_failure_reports_both_errors(self, db, monkeypatch):
        async def broken_rollback(self):
            raise RuntimeError("rollback exploded")

        monkeypatch.setattr(TransactionScope, "rollback", broken_rollback)

        with pytest.raises(TransactionError) as exc_info:
            async with db.transaction():
                raise ValueError("original failure")

        error = exc_info.value
        assert isinstance(error.original, ValueError)
        assert isinstance(error.rollback_error, RuntimeError)
        assert "original failure" in str(error)
        assert "rollback also failed: rollback exploded" in str(error)

    async def test_execute_transaction_all_or_nothing(self, db):
        results = await db.execute_transaction([_user_insert("carol"), _user_insert("dave")])
        assert len(results) == 2
        assert await _count_users(db) == 2

        with pytest.raises(TransactionError):
            await db.execute_transaction([_user_insert("erin"), _user_insert("erin")])
        assert await _count_users(db) == 2


class TestLifecycle:
    async def test_is_connected(self, db):
        assert await db.is_connected() is True

    async def test_close_and_reopen(self, db):
        assert db.is_open
        await db.close()
        assert not db.is_open
        await db.close()

        rows = await db.execute_query("SELECT 1 AS ok")
        assert rows == [{"ok": 1}]
        assert db.is_open

    async def test_get_version(self, db):
        assert await db.get_version() == 0
        await db.execute_command("PRAGMA user_version = 3")
        assert await db.get_version() == 3

    async def test_unreachable_store(self, tmp_path):
        # A directory cannot be opened as a database file
        db = Database(f"sqlite+aiosqlite:///{tmp_path}", echo=False)
        try:
            with pytest.raises(StoreUnavailableError) as exc_info:
                await db.execute_query("SELECT 1")
            assert exc_info.value.url == db.url
            assert await db.is_connected() is False
        finally:
            await db.close()

    async def test_creates_missing_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "ledger.db"
        db = Database(f"sqlite+aiosqlite:///{path}", echo=False)
        try:
            assert await db.is_connected() is True
        finally:
            await db.close()
        assert path.parent.is_dir()
