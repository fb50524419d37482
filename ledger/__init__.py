"""
Ledger data-access layer.

Generic, allow-list validated repositories over an embedded SQLite store,
plus the account and transaction repositories used by the finance app.

Typical wiring:

    from ledger.database import Database
    from ledger.repositories import AccountRepository, TransactionRepository

    db = Database()
    accounts = AccountRepository(db)
    transactions = TransactionRepository(db)
    ...
    await db.close()
"""

__version__ = "0.1.0"
