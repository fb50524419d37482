"""
Pydantic records returned by the repositories, plus query option models.

Rows come back from the executor as plain dictionaries; each repository
validates them into these models before handing them to callers.
"""

from ledger.schemas.common import QueryOptions, QueryResult, SortOptions  # noqa: F401
from ledger.schemas.account import (  # noqa: F401
    Account,
    AccountBalance,
    AccountFilters,
    AccountType,
    AccountWithType,
)
from ledger.schemas.category import Category, CategorySpending  # noqa: F401
from ledger.schemas.transaction import (  # noqa: F401
    MonthlySpending,
    Transaction,
    TransactionFilters,
    TransactionWithDetails,
)
