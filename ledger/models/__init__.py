"""
Table definitions for the embedded store.

Repositories never go through the ORM: they issue parameterized SQL via the
primitive executor. These declarative classes exist so that
Database.create_schema() can bootstrap an empty database, and so the column
layout of every table is written down in one place.

All models are imported here so Base.metadata sees every table.
"""

from ledger.models.user import User  # noqa: F401
from ledger.models.account_type import AccountType, DEFAULT_ACCOUNT_TYPES  # noqa: F401
from ledger.models.account import Account  # noqa: F401
from ledger.models.category import Category  # noqa: F401
from ledger.models.transaction import (  # noqa: F401
    Transaction,
    TransactionStatus,
    TransactionType,
)
