"""
Test fixtures for the ledger test suite.

This module provides shared fixtures used across all test files:

  - db: A Database handle on a fresh SQLite file with the schema bootstrapped
  - user_id / other_user_id: Rows in the users table to own test data
  - accounts / transactions / categories: Repositories bound to `db`
  - checking_account: An active asset account opened with 1000.00
  - category: An expense category owned by `user_id`

Key design decisions:
  - A temporary SQLite *file* (not :memory:) is used so that concurrent
    reads, like a page query and its COUNT, each get their own pooled
    connection, exactly as in production.
  - Each test gets a completely fresh database, so no state leaks between tests.
"""

import pytest
import pytest_asyncio

from ledger.database import Database, generate_id, now_iso
from ledger.repositories import AccountRepository, CategoryRepository, TransactionRepository


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh database with every table and the default account types."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'ledger_test.db'}", echo=False)
    await database.create_schema()
    yield database
    await database.close()


async def _insert_user(db: Database, username: str) -> str:
    user_id = generate_id()
    now = now_iso()
    await db.execute_command(
        "INSERT INTO users (id, username, email, created_at, updated_at) "
        "VALUES ($1, $2, $3, $4, $5)",
        [user_id, username, f"{username}@example.com", now, now],
    )
    return user_id


@pytest_asyncio.fixture
async def user_id(db):
    return await _insert_user(db, "alice")


@pytest_asyncio.fixture
async def other_user_id(db):
    return await _insert_user(db, "bob")


@pytest.fixture
def accounts(db):
    return AccountRepository(db)


@pytest.fixture
def transactions(db):
    return TransactionRepository(db)


@pytest.fixture
def categories(db):
    return CategoryRepository(db)


@pytest_asyncio.fixture
async def checking_account(accounts, user_id):
    return await accounts.create({
        "user_id": user_id,
        "account_type_id": "checking",
        "name": "Everyday Checking",
        "initial_balance": 1000.0,
        "currency": "USD",
    })


@pytest_asyncio.fixture
async def category(categories, user_id):
    return await categories.create({
        "user_id": user_id,
        "name": "Groceries",
        "color": "#22aa22",
        "is_income": False,
    })


@pytest.fixture
def transaction_input(user_id, checking_account):
    """Factory for create-payloads: a completed expense, with per-test overrides."""

    def build(**overrides) -> dict:
        data = {
            "user_id": user_id,
            "account_id": checking_account.id,
            "amount": -50.0,
            "description": "Weekly shop",
            "transaction_date": "2024-03-15",
            "transaction_type": "expense",
            "status": "completed",
        }
        data.update(overrides)
        return data

    return build
