"""
Repository layer: allow-list validated, parameterized data access.

Repositories take a Database handle and never build SQL from unchecked
caller strings; see validation.py for the allow-list policy.
"""

from ledger.repositories.accounts import ACCOUNT_CONFIG, AccountRepository  # noqa: F401
from ledger.repositories.base import Repository  # noqa: F401
from ledger.repositories.categories import CATEGORY_CONFIG, CategoryRepository  # noqa: F401
from ledger.repositories.entity import EntityConfig  # noqa: F401
from ledger.repositories.query_builder import Conditions, QueryBuilder, Statement  # noqa: F401
from ledger.repositories.transactions import (  # noqa: F401
    TRANSACTION_CONFIG,
    TransactionRepository,
)
from ledger.repositories.validation import FieldValidator  # noqa: F401
