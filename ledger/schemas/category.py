"""Category records and the per-category spending aggregate."""

from decimal import Decimal

from pydantic import BaseModel


class Category(BaseModel):
    id: str
    user_id: str
    name: str
    description: str | None = None
    color: str | None = None
    icon: str | None = None
    parent_category_id: str | None = None
    is_income: bool = False
    is_active: bool = True
    created_at: str
    updated_at: str | None = None


class CategorySpending(BaseModel):
    """Completed expense total for one category."""
    category_id: str
    category_name: str
    total_spent: Decimal
    transaction_count: int
