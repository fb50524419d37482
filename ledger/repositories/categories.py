"""
Category repository.

Categories need nothing beyond generic CRUD, so this is the plain
config-driven Repository with one convenience lookup.
"""

from ledger.database import Database
from ledger.repositories.base import Repository
from ledger.repositories.entity import EntityConfig
from ledger.schemas.category import Category
from ledger.schemas.common import QueryOptions

CATEGORY_COLUMNS = (
    "id",
    "user_id",
    "name",
    "description",
    "color",
    "icon",
    "parent_category_id",
    "is_income",
    "is_active",
    "created_at",
    "updated_at",
)

CATEGORY_CONFIG = EntityConfig(
    table="categories",
    columns=CATEGORY_COLUMNS,
    record=Category,
    sortable=frozenset({"id", "name", "is_income", "is_active", "created_at", "updated_at"}),
    filterable=frozenset(CATEGORY_COLUMNS),
    creatable=frozenset({
        "user_id",
        "name",
        "description",
        "color",
        "icon",
        "parent_category_id",
        "is_income",
        "is_active",
    }),
    updatable=frozenset({
        "name",
        "description",
        "color",
        "icon",
        "parent_category_id",
        "is_income",
        "is_active",
    }),
)


class CategoryRepository(Repository[Category]):
    def __init__(self, db: Database):
        super().__init__(db, CATEGORY_CONFIG)

    async def find_by_user_id(
        self, user_id: str, options: QueryOptions | None = None
    ) -> list[Category]:
        return await self.find_by("user_id", user_id, options)
