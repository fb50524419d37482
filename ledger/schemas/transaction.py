"""
Transaction records, filters, and monthly aggregates.

`amount` is a signed Decimal with two places: negative for expenses,
positive for income and transfers in.
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel

from ledger.schemas.account import Account
from ledger.schemas.category import Category


class Transaction(BaseModel):
    """Public representation of a transaction row."""
    id: str
    user_id: str
    account_id: str
    category_id: str | None = None
    amount: Decimal
    description: str
    notes: str | None = None
    transaction_date: str
    transaction_type: Literal["income", "expense", "transfer"]
    status: Literal["pending", "completed", "cancelled"]
    reference_number: str | None = None
    payee: str | None = None
    tags: str | None = None
    created_at: str
    updated_at: str


class TransactionWithDetails(Transaction):
    """Transaction joined with its account and, when present, its category."""
    account: Account
    category: Category | None = None


class TransactionFilters(BaseModel):
    """
    Optional predicates for TransactionRepository.find_with_details.

    Date bounds are inclusive. Amount bounds compare against ABS(amount), so
    min_amount=10 matches both a 10.00 income and a -10.00 expense. `search`
    is matched with LIKE against description, notes, and payee.
    """
    account_id: str | None = None
    category_id: str | None = None
    transaction_type: Literal["income", "expense", "transfer"] | None = None
    status: Literal["pending", "completed", "cancelled"] | None = None
    start_date: str | None = None
    end_date: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    search: str | None = None


class MonthlySpending(BaseModel):
    """Completed income/expense totals for one YYYY-MM bucket."""
    month: str
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
