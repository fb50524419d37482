"""
Account records.

Balances are Decimal amounts with two places; the store keeps them as integer
cents and the repositories convert (see ledger.money). Booleans come back
from the store as 0/1 and are coerced by pydantic.
"""

from decimal import Decimal

from pydantic import BaseModel


class AccountType(BaseModel):
    id: str
    name: str
    description: str | None = None
    is_asset: bool
    created_at: str


class Account(BaseModel):
    """Public representation of a financial account."""
    id: str
    user_id: str
    account_type_id: str
    name: str
    description: str | None = None
    initial_balance: Decimal
    current_balance: Decimal
    currency: str
    is_active: bool
    institution_name: str | None = None
    account_number: str | None = None
    created_at: str
    updated_at: str


class AccountWithType(Account):
    """Account joined with its account-type dimension."""
    account_type: AccountType


class AccountBalance(BaseModel):
    """Balance summary row for one active account."""
    account_id: str
    account_name: str
    current_balance: Decimal
    currency: str


class AccountFilters(BaseModel):
    """Optional equality predicates for AccountRepository.find_with_type."""
    account_type_id: str | None = None
    is_active: bool | None = None
    currency: str | None = None
