"""
AccountType model — the asset/liability dimension of an account.

Net worth is computed from this flag: balances of asset accounts are summed,
balances of liability accounts are summed by absolute value and subtracted.
The default rows below are seeded by Database.create_schema().
"""

from sqlalchemy import Boolean, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class AccountType(Base):
    __tablename__ = "account_types"

    # Short slug ("checking", "credit_card", ...) rather than a UUID
    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_asset: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("1"))

    created_at: Mapped[str] = mapped_column(String(40), nullable=False)


DEFAULT_ACCOUNT_TYPES = [
    {"id": "checking", "name": "Checking Account",
     "description": "Standard checking account for daily transactions", "is_asset": True},
    {"id": "savings", "name": "Savings Account",
     "description": "Savings account for storing money", "is_asset": True},
    {"id": "credit_card", "name": "Credit Card",
     "description": "Credit card account", "is_asset": False},
    {"id": "investment", "name": "Investment Account",
     "description": "Investment and brokerage accounts", "is_asset": True},
    {"id": "loan", "name": "Loan Account",
     "description": "Loan and debt accounts", "is_asset": False},
    {"id": "cash", "name": "Cash",
     "description": "Physical cash", "is_asset": True},
    {"id": "other_asset", "name": "Other Asset",
     "description": "Other asset accounts", "is_asset": True},
    {"id": "other_liability", "name": "Other Liability",
     "description": "Other liability accounts", "is_asset": False},
]
