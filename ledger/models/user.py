"""
User model — the owner of accounts, categories, and transactions.

Authentication lives elsewhere; this table only anchors the user_id foreign
keys so ownership is enforced by the store.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    # ISO-8601 UTC strings, written by the repositories
    created_at: Mapped[str] = mapped_column(String(40), nullable=False)
    updated_at: Mapped[str] = mapped_column(String(40), nullable=False)
