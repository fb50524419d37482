"""
Transaction repository — the ledger of money movement.

THIS IS THE MOST CRITICAL FILE IN THE PACKAGE. It holds the one genuinely
multi-statement write, create_with_balance_update():

Atomicity:
  The transaction INSERT and the account balance UPDATE run inside the same
  Database.transaction() scope. Either both apply or neither does; a failure
  in either statement rolls the scope back and surfaces as TransactionError.
  This is what keeps

      accounts.current_balance == initial_balance + sum(applied amounts)

  true. There is no row locking and no retry: two concurrent writers to the
  same account are serialized only as far as SQLite serializes writes.

Balance reversal:
  Plain update() and delete() never touch the account balance, so editing the
  amount of, or deleting, a balance-adjusting transaction leaves the account
  where it was. delete_with_balance_reversal() is the explicit, atomic way to
  remove a transaction together with its balance effect.

Status:
  pending -> completed | cancelled; completed and cancelled are terminal.
  update() rejects any other change. Only completed rows count towards
  income, expense, and category aggregates.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from ledger.database import Database, generate_id, now_iso
from ledger.exceptions import (
    InvalidStatusTransitionError,
    RecordNotFoundError,
    TransactionCreateFailedError,
)
from ledger.models.transaction import TransactionStatus, TransactionType
from ledger.money import from_cents, to_cents
from ledger.repositories.accounts import ACCOUNT_CONFIG
from ledger.repositories.base import Repository
from ledger.repositories.entity import EntityConfig
from ledger.repositories.query_builder import Conditions
from ledger.schemas.category import CategorySpending
from ledger.schemas.common import QueryOptions, QueryResult
from ledger.schemas.transaction import (
    MonthlySpending,
    Transaction,
    TransactionFilters,
    TransactionWithDetails,
)

logger = logging.getLogger(__name__)

TRANSACTION_COLUMNS = (
    "id",
    "user_id",
    "account_id",
    "category_id",
    "amount",
    "description",
    "notes",
    "transaction_date",
    "transaction_type",
    "status",
    "reference_number",
    "payee",
    "tags",
    "created_at",
    "updated_at",
)

TRANSACTION_CONFIG = EntityConfig(
    table="transactions",
    columns=TRANSACTION_COLUMNS,
    record=Transaction,
    sortable=frozenset({
        "id",
        "amount",
        "description",
        "notes",
        "transaction_date",
        "transaction_type",
        "status",
        "reference_number",
        "payee",
        "created_at",
        "updated_at",
    }),
    filterable=frozenset(TRANSACTION_COLUMNS),
    creatable=frozenset({
        "user_id",
        "account_id",
        "category_id",
        "amount",
        "description",
        "notes",
        "transaction_date",
        "transaction_type",
        "status",
        "reference_number",
        "payee",
        "tags",
    }),
    updatable=frozenset({
        "account_id",
        "category_id",
        "amount",
        "description",
        "notes",
        "transaction_date",
        "transaction_type",
        "status",
        "reference_number",
        "payee",
        "tags",
    }),
    money=frozenset({"amount"}),
)

STATUS_TRANSITIONS = {
    TransactionStatus.PENDING.value: {
        TransactionStatus.COMPLETED.value,
        TransactionStatus.CANCELLED.value,
    },
    TransactionStatus.COMPLETED.value: set(),
    TransactionStatus.CANCELLED.value: set(),
}

_DETAILS_SELECT = """
    SELECT
        t.id, t.user_id, t.account_id, t.category_id, t.amount, t.description, t.notes,
        t.transaction_date, t.transaction_type, t.status, t.reference_number, t.payee, t.tags,
        t.created_at, t.updated_at,
        a.user_id AS account_user_id, a.account_type_id AS account_account_type_id,
        a.name AS account_name, a.description AS account_description,
        a.initial_balance AS account_initial_balance,
        a.current_balance AS account_current_balance,
        a.currency AS account_currency, a.is_active AS account_is_active,
        a.institution_name AS account_institution_name,
        a.account_number AS account_account_number,
        a.created_at AS account_created_at, a.updated_at AS account_updated_at,
        c.user_id AS category_user_id, c.name AS category_name,
        c.description AS category_description, c.color AS category_color,
        c.icon AS category_icon, c.parent_category_id AS category_parent_category_id,
        c.is_income AS category_is_income, c.is_active AS category_is_active,
        c.created_at AS category_created_at, c.updated_at AS category_updated_at
    FROM transactions t
    JOIN accounts a ON t.account_id = a.id
    LEFT JOIN categories c ON t.category_id = c.id
"""

_ACCOUNT_FIELDS = (
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

_CATEGORY_FIELDS = (
    "user_id",
    "name",
    "description",
    "color",
    "icon",
    "parent_category_id",
    "is_income",
    "is_active",
    "created_at",
    "updated_at",
)


def _to_transaction_with_details(row: Mapping[str, Any]) -> TransactionWithDetails:
    record = TRANSACTION_CONFIG.from_store({column: row[column] for column in TRANSACTION_COLUMNS})
    record["account"] = ACCOUNT_CONFIG.from_store({
        "id": row["account_id"],
        **{field: row[f"account_{field}"] for field in _ACCOUNT_FIELDS},
    })
    # LEFT JOIN miss: every category column is NULL, including its owner
    if row["category_id"] and row["category_user_id"]:
        category = {"id": row["category_id"]}
        category.update({field: row[f"category_{field}"] for field in _CATEGORY_FIELDS})
        if category["is_income"] is None:
            category["is_income"] = False
        if category["is_active"] is None:
            category["is_active"] = True
        record["category"] = category
    else:
        record["category"] = None
    return TransactionWithDetails.model_validate(record)


class TransactionRepository(Repository[Transaction]):
    def __init__(self, db: Database):
        super().__init__(db, TRANSACTION_CONFIG)

    async def find_with_details(
        self,
        user_id: str,
        filters: TransactionFilters | None = None,
        options: QueryOptions | None = None,
    ) -> QueryResult[TransactionWithDetails]:
        """
        A user's transactions joined with their account and category.

        Every filter is optional and independent. Without an explicit sort
        the newest transaction_date comes first, ties broken by created_at.
        """
        filters = filters or TransactionFilters()
        options = options or QueryOptions()

        conditions = Conditions().add("t.user_id = {}", user_id)
        if filters.account_id:
            conditions.add("t.account_id = {}", filters.account_id)
        if filters.category_id:
            conditions.add("t.category_id = {}", filters.category_id)
        if filters.transaction_type:
            conditions.add("t.transaction_type = {}", filters.transaction_type)
        if filters.status:
            conditions.add("t.status = {}", filters.status)
        if filters.start_date:
            conditions.add("t.transaction_date >= {}", filters.start_date)
        if filters.end_date:
            conditions.add("t.transaction_date <= {}", filters.end_date)
        if filters.min_amount is not None:
            conditions.add("ABS(t.amount) >= {}", to_cents(filters.min_amount))
        if filters.max_amount is not None:
            conditions.add("ABS(t.amount) <= {}", to_cents(filters.max_amount))
        if filters.search:
            conditions.add(
                "(t.description LIKE {0} OR t.notes LIKE {0} OR t.payee LIKE {0})",
                f"%{filters.search}%",
            )

        if options.sort is not None:
            order_clause = self.builder.order_by(options.sort, "t")
        else:
            order_clause = "ORDER BY t.transaction_date DESC, t.created_at DESC"

        limit_index = conditions.next_index
        query = (
            f"{_DETAILS_SELECT} {conditions.sql} {order_clause} "
            f"LIMIT ${limit_index} OFFSET ${limit_index + 1}"
        )
        count_query = f"SELECT COUNT(*) AS total FROM transactions t {conditions.sql}"

        rows, count_rows = await asyncio.gather(
            self.db.execute_query(query, [*conditions.params, options.limit, options.offset]),
            self.db.execute_query(count_query, conditions.params),
        )

        return QueryResult(
            data=[_to_transaction_with_details(row) for row in rows],
            total=count_rows[0]["total"] if count_rows else 0,
            page=options.page,
            limit=options.limit,
        )

    async def create_with_balance_update(self, data: Mapping[str, Any]) -> Transaction:
        """
        Insert a transaction and add its amount to the account balance, atomically.

        Status defaults to completed. The amount is added as-is, so an
        expense must carry a negative amount.

        Raises:
            TransactionError: If either statement fails (nothing is applied),
                              or the account does not exist.
            TransactionCreateFailedError: If the committed row cannot be read back.
        """
        validated = self.validator.validate_create_input(data)
        validated.setdefault("status", TransactionStatus.COMPLETED.value)

        transaction_id = generate_id()
        now = now_iso()
        values = self.config.to_store(
            {"id": transaction_id, "created_at": now, "updated_at": now, **validated}
        )
        account_id = values.get("account_id")

        async with self.db.transaction() as scope:
            await scope.execute(*self.builder.insert(values))
            adjusted = await scope.execute(
                "UPDATE accounts SET current_balance = current_balance + $1, updated_at = $2 "
                "WHERE id = $3",
                [values.get("amount"), now, account_id],
            )
            if adjusted.rows_affected == 0:
                raise RecordNotFoundError("accounts", str(account_id))

        logger.info(
            "Transaction %s applied %s cents to account %s",
            transaction_id,
            values.get("amount"),
            account_id,
        )

        created = await self.find_by_id(transaction_id)
        if created is None:
            raise TransactionCreateFailedError(transaction_id)
        return created

    async def delete_with_balance_reversal(self, transaction_id: str) -> bool:
        """
        Delete a transaction and subtract its amount from its account, atomically.

        Returns False (and changes nothing) when the transaction does not exist,
        including when a concurrent call deleted it first: only the caller
        whose DELETE removed the row reverses the balance.
        """
        async with self.db.transaction() as scope:
            rows = await scope.query(
                "SELECT account_id, amount FROM transactions WHERE id = $1",
                [transaction_id],
            )
            if not rows:
                return False
            deleted = await scope.execute(*self.builder.delete(transaction_id))
            if deleted.rows_affected == 0:
                return False
            await scope.execute(
                "UPDATE accounts SET current_balance = current_balance - $1, updated_at = $2 "
                "WHERE id = $3",
                [rows[0]["amount"], now_iso(), rows[0]["account_id"]],
            )
        return True

    async def update(self, record_id: str, data: Mapping[str, Any]) -> Transaction:
        """
        Update a transaction, enforcing the status lifecycle.

        A status change is written with `AND status = <status checked>` in
        its WHERE clause, so it cannot land on a row whose status moved after
        the check. When that happens the check is repeated against the new
        status; since statuses only ever leave `pending`, this settles after
        one retry.

        Raises:
            InvalidStatusTransitionError: If the requested status is not
                                          reachable from the current one.
            RecordNotFoundError: If no transaction has this id.
        """
        requested = data.get("status")
        if requested is None:
            return await super().update(record_id, data)

        current = await self.find_by_id(record_id)
        if current is None:
            raise RecordNotFoundError(self.table, record_id)
        requested = getattr(requested, "value", requested)
        if requested != current.status and requested not in STATUS_TRANSITIONS[current.status]:
            raise InvalidStatusTransitionError(record_id, current.status, requested)

        data = {**data, "status": requested}
        validated = self.validator.validate_update_input(data)
        result = await self._execute_update(record_id, validated, {"status": current.status})
        if result.rows_affected == 0:
            logger.info(
                "Status of transaction %s changed concurrently; re-checking transition",
                record_id,
            )
            return await self.update(record_id, data)
        return await self._read_back(record_id)

    async def get_recent(self, user_id: str, limit: int = 10) -> list[TransactionWithDetails]:
        result = await self.find_with_details(user_id, None, QueryOptions(limit=limit))
        return result.data

    async def find_by_account(
        self, account_id: str, options: QueryOptions | None = None
    ) -> list[Transaction]:
        return await self.find_by("account_id", account_id, options)

    async def find_by_category(
        self, category_id: str, options: QueryOptions | None = None
    ) -> list[Transaction]:
        return await self.find_by("category_id", category_id, options)

    async def get_category_spending(
        self,
        user_id: str,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> list[CategorySpending]:
        """Completed expense totals per category, largest first."""
        conditions = (
            Conditions()
            .add("t.user_id = {}", user_id)
            .add("t.transaction_type = {}", TransactionType.EXPENSE.value)
            .add("t.status = {}", TransactionStatus.COMPLETED.value)
        )
        if start_date:
            conditions.add("t.transaction_date >= {}", start_date)
        if end_date:
            conditions.add("t.transaction_date <= {}", end_date)

        rows = await self.db.execute_query(
            f"""
            SELECT
                c.id AS category_id,
                c.name AS category_name,
                SUM(ABS(t.amount)) AS total_spent,
                COUNT(t.id) AS transaction_count
            FROM transactions t
            JOIN categories c ON t.category_id = c.id
            {conditions.sql}
            GROUP BY c.id, c.name
            ORDER BY total_spent DESC
            """,
            conditions.params,
        )
        return [
            CategorySpending.model_validate({**row, "total_spent": from_cents(row["total_spent"])})
            for row in rows
        ]

    async def get_monthly_spending(
        self, user_id: str, year: int | None = None
    ) -> list[MonthlySpending]:
        """
        Completed income, expenses, and net per month of `year`.

        `year` defaults to the current year. Transfers count towards neither
        side.
        """
        year = year or date.today().year
        rows = await self.db.execute_query(
            """
            SELECT
                strftime('%Y-%m', t.transaction_date) AS month,
                COALESCE(SUM(CASE WHEN t.transaction_type = 'income'
                             THEN t.amount ELSE 0 END), 0) AS total_income,
                COALESCE(SUM(CASE WHEN t.transaction_type = 'expense'
                             THEN ABS(t.amount) ELSE 0 END), 0) AS total_expenses,
                COALESCE(SUM(CASE WHEN t.transaction_type = 'income' THEN t.amount
                                  WHEN t.transaction_type = 'expense' THEN -ABS(t.amount)
                                  ELSE 0 END), 0) AS net_income
            FROM transactions t
            WHERE t.user_id = $1
              AND strftime('%Y', t.transaction_date) = $2
              AND t.status = 'completed'
            GROUP BY strftime('%Y-%m', t.transaction_date)
            ORDER BY month
            """,
            [user_id, str(year)],
        )
        money = ("total_income", "total_expenses", "net_income")
        return [
            MonthlySpending.model_validate(
                {**row, **{field: from_cents(row[field]) for field in money}}
            )
            for row in rows
        ]

    async def get_total_income(self, user_id: str, start_date: str, end_date: str) -> Decimal:
        rows = await self.db.execute_query(
            """
            SELECT COALESCE(SUM(amount), 0) AS total
            FROM transactions
            WHERE user_id = $1
              AND transaction_type = 'income'
              AND transaction_date BETWEEN $2 AND $3
              AND status = 'completed'
            """,
            [user_id, start_date, end_date],
        )
        return from_cents(rows[0]["total"] if rows else 0)

    async def get_total_expenses(self, user_id: str, start_date: str, end_date: str) -> Decimal:
        rows = await self.db.execute_query(
            """
            SELECT COALESCE(SUM(ABS(amount)), 0) AS total
            FROM transactions
            WHERE user_id = $1
              AND transaction_type = 'expense'
              AND transaction_date BETWEEN $2 AND $3
              AND status = 'completed'
            """,
            [user_id, start_date, end_date],
        )
        return from_cents(rows[0]["total"] if rows else 0)
