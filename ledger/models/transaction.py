"""
Transaction model — one financial event against an account.

Amounts are signed: negative for expenses, positive for income and
transfers in, stored as INTEGER cents. The sign is what a balance-adjusting
creation adds to the account's current_balance.

Status lifecycle:
  pending -> completed
  pending -> cancelled
  completed and cancelled are terminal. Only completed rows count towards
  income, expense, and category aggregates. Nothing in the data-access layer
  moves a status on its own; it changes only through an explicit update.
"""

import enum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint(
            "transaction_type IN ('income', 'expense', 'transfer')",
            name="ck_transactions_type",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'cancelled')",
            name="ck_transactions_status",
        ),
        # Tags are stored as a JSON array
        CheckConstraint(
            "tags IS NULL OR json_valid(tags)",
            name="ck_transactions_tags_json",
        ),
        Index("idx_transactions_account_date", "account_id", "transaction_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    )

    category_id: Mapped[str | None] = mapped_column(
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )

    # Signed, in cents
    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    description: Mapped[str] = mapped_column(String(255), nullable=False)

    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # YYYY-MM-DD
    transaction_date: Mapped[str] = mapped_column(String(40), nullable=False, index=True)

    transaction_type: Mapped[str] = mapped_column(String(10), nullable=False)

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        server_default=TransactionStatus.COMPLETED.value,
    )

    # Check number, confirmation number, etc.
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)

    payee: Mapped[str | None] = mapped_column(String(255), nullable=True)

    tags: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False)
