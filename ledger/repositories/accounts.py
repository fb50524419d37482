"""
Account repository — financial accounts, their type dimension, and the
balance aggregates built on them.

Balance rules:
  current_balance is not on the updatable allow-list. It changes only through
  update_balance() (an explicit balance set) or through
  TransactionRepository.create_with_balance_update(). New accounts start with
  current_balance equal to initial_balance unless the caller supplies one.

Net worth:
  Asset accounts contribute SUM(current_balance); liability accounts
  contribute SUM(ABS(current_balance)), whatever sign the stored balance
  uses. Only active accounts are counted.
"""

import asyncio
import logging
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from ledger.database import Database, now_iso
from ledger.exceptions import RecordNotFoundError, RetrievalFailedError
from ledger.money import from_cents, to_cents
from ledger.repositories.base import Repository
from ledger.repositories.entity import EntityConfig
from ledger.repositories.query_builder import Conditions
from ledger.schemas.account import (
    Account,
    AccountBalance,
    AccountFilters,
    AccountType,
    AccountWithType,
)
from ledger.schemas.common import QueryOptions, QueryResult

logger = logging.getLogger(__name__)

ACCOUNT_COLUMNS = (
    "id",
    "user_id",
    "account_type_id",
    "name",
    "description",
    "initial_balance",
    "current_balance",
    "currency",
    "is_active",
    "institution_name",
    "account_number",
    "created_at",
    "updated_at",
)

ACCOUNT_CONFIG = EntityConfig(
    table="accounts",
    columns=ACCOUNT_COLUMNS,
    record=Account,
    sortable=frozenset({
        "id",
        "name",
        "description",
        "initial_balance",
        "current_balance",
        "currency",
        "is_active",
        "institution_name",
        "account_number",
        "created_at",
        "updated_at",
    }),
    filterable=frozenset(ACCOUNT_COLUMNS),
    creatable=frozenset({
        "user_id",
        "account_type_id",
        "name",
        "description",
        "initial_balance",
        "current_balance",
        "currency",
        "is_active",
        "institution_name",
        "account_number",
    }),
    updatable=frozenset({
        "account_type_id",
        "name",
        "description",
        "currency",
        "is_active",
        "institution_name",
        "account_number",
    }),
    money=frozenset({"initial_balance", "current_balance"}),
)


class AccountRepository(Repository[Account]):
    def __init__(self, db: Database):
        super().__init__(db, ACCOUNT_CONFIG)

    async def create(self, data: Mapping[str, Any]) -> Account:
        data = dict(data)
        if "current_balance" not in data and "initial_balance" in data:
            data["current_balance"] = data["initial_balance"]
        return await super().create(data)

    async def find_with_type(
        self,
        user_id: str,
        filters: AccountFilters | None = None,
        options: QueryOptions | None = None,
    ) -> QueryResult[AccountWithType]:
        """
        A user's accounts joined with their account type.

        Optional equality predicates (account_type_id, is_active, currency)
        are appended after the user predicate; the page and its count are
        fetched concurrently.
        """
        filters = filters or AccountFilters()
        options = options or QueryOptions()

        conditions = Conditions().add("a.user_id = {}", user_id)
        if filters.account_type_id:
            conditions.add("a.account_type_id = {}", filters.account_type_id)
        if filters.is_active is not None:
            conditions.add("a.is_active = {}", filters.is_active)
        if filters.currency:
            conditions.add("a.currency = {}", filters.currency)

        limit_index = conditions.next_index
        query = f"""
            SELECT
                a.id, a.user_id, a.account_type_id, a.name, a.description,
                a.initial_balance, a.current_balance, a.currency, a.is_active,
                a.institution_name, a.account_number, a.created_at, a.updated_at,
                at.name AS account_type_name,
                at.description AS account_type_description,
                at.is_asset AS account_type_is_asset,
                at.created_at AS account_type_created_at
            FROM accounts a
            JOIN account_types at ON a.account_type_id = at.id
            {conditions.sql}
            {self.builder.order_by(options.sort, "a")}
            LIMIT ${limit_index} OFFSET ${limit_index + 1}
        """
        count_query = f"SELECT COUNT(*) AS total FROM accounts a {conditions.sql}"

        rows, count_rows = await asyncio.gather(
            self.db.execute_query(query, [*conditions.params, options.limit, options.offset]),
            self.db.execute_query(count_query, conditions.params),
        )

        return QueryResult(
            data=[self._to_account_with_type(row) for row in rows],
            total=count_rows[0]["total"] if count_rows else 0,
            page=options.page,
            limit=options.limit,
        )

    @staticmethod
    def _to_account_with_type(row: Mapping[str, Any]) -> AccountWithType:
        account = ACCOUNT_CONFIG.from_store({column: row[column] for column in ACCOUNT_COLUMNS})
        account["account_type"] = AccountType(
            id=row["account_type_id"],
            name=row["account_type_name"],
            description=row["account_type_description"],
            is_asset=row["account_type_is_asset"],
            created_at=row["account_type_created_at"],
        )
        return AccountWithType.model_validate(account)

    async def find_by_user_id(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[Account]:
        return await self.find_by("user_id", user_id, options)

    async def get_account_balances(self, user_id: str) -> list[AccountBalance]:
        """Balances of the user's active accounts, ordered by name."""
        rows = await self.db.execute_query(
            """
            SELECT
                a.id AS account_id,
                a.name AS account_name,
                a.current_balance,
                a.currency
            FROM accounts a
            WHERE a.user_id = $1 AND a.is_active = 1
            ORDER BY a.name
            """,
            [user_id],
        )
        return [AccountBalance.model_validate(ACCOUNT_CONFIG.from_store(row)) for row in rows]

    async def update_balance(self, account_id: str, new_balance: Decimal | float | str) -> Account:
        """
        Overwrite current_balance.

        This bypasses the transaction ledger: use it for reconciliation, not
        for recording money movement.

        Raises:
            RecordNotFoundError: If the account does not exist.
        """
        result = await self.db.execute_command(
            "UPDATE accounts SET current_balance = $1, updated_at = $2 WHERE id = $3",
            [to_cents(new_balance), now_iso(), account_id],
        )
        if result.rows_affected == 0:
            raise RecordNotFoundError(self.table, account_id)

        updated = await self.find_by_id(account_id)
        if updated is None:
            raise RetrievalFailedError(self.table, account_id)
        return updated

    async def get_total_assets(self, user_id: str) -> Decimal:
        rows = await self.db.execute_query(
            """
            SELECT COALESCE(SUM(a.current_balance), 0) AS total
            FROM accounts a
            JOIN account_types at ON a.account_type_id = at.id
            WHERE a.user_id = $1 AND a.is_active = 1 AND at.is_asset = 1
            """,
            [user_id],
        )
        return from_cents(rows[0]["total"] if rows else 0)

    async def get_total_liabilities(self, user_id: str) -> Decimal:
        rows = await self.db.execute_query(
            """
            SELECT COALESCE(SUM(ABS(a.current_balance)), 0) AS total
            FROM accounts a
            JOIN account_types at ON a.account_type_id = at.id
            WHERE a.user_id = $1 AND a.is_active = 1 AND at.is_asset = 0
            """,
            [user_id],
        )
        return from_cents(rows[0]["total"] if rows else 0)

    async def get_net_worth(self, user_id: str) -> Decimal:
        assets, liabilities = await asyncio.gather(
            self.get_total_assets(user_id),
            self.get_total_liabilities(user_id),
        )
        return assets - liabilities

    async def find_by_type(
        self,
        user_id: str,
        account_type_id: str,
        options: QueryOptions | None = None,
    ) -> list[Account]:
        options = options or QueryOptions()
        conditions = (
            Conditions()
            .add("user_id = {}", user_id)
            .add("account_type_id = {}", account_type_id)
        )
        rows = await self.db.execute_query(
            f"SELECT {self.config.select_list} FROM accounts "
            f"{conditions.sql} {self.builder.order_by(options.sort)} "
            f"LIMIT ${conditions.next_index}",
            [*conditions.params, options.limit],
        )
        return [self._to_record(row) for row in rows]

    async def toggle_active(self, account_id: str) -> Account:
        """
        Flip is_active.

        Raises:
            RecordNotFoundError: If the account does not exist.
        """
        account = await self.find_by_id(account_id)
        if account is None:
            raise RecordNotFoundError(self.table, account_id)
        return await self.update(account_id, {"is_active": not account.is_active})
