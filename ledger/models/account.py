"""
Account model — a financial account owned by a user.

Balance management:
  `current_balance` is a stored running balance. It starts equal to
  `initial_balance` and is changed only by a balance-adjusting transaction
  (TransactionRepository.create_with_balance_update) or by an explicit
  AccountRepository.update_balance call, so that

      current_balance == initial_balance + sum(amount of applied transactions)

  Both balances are stored as INTEGER cents (10.50 is stored as 1050), so
  the in-SQL `current_balance + amount` and SUM() aggregates are exact.
  See ledger.money.

  There is no version column: concurrent updates are last-write-wins.
"""

from sqlalchemy import Boolean, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    account_type_id: Mapped[str] = mapped_column(
        ForeignKey("account_types.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Balances in cents
    initial_balance: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    current_balance: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    # ISO 4217 currency code
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="USD")

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("1"))

    institution_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    account_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False)
