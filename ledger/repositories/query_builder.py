"""
Query builder — turns validated filters, sorting, and pagination into
parameterized statements.

Every statement is a (sql, params) pair using positional placeholders
$1..$n. Identifiers are taken only from the entity config: filter and input
keys must already have passed the FieldValidator, and quote() refuses any
name that is not one of the entity's columns.
"""

from collections.abc import Mapping
from typing import Any, NamedTuple

from ledger.repositories.entity import EntityConfig
from ledger.repositories.validation import DEFAULT_SORT_FIELD, FieldValidator
from ledger.schemas.common import QueryOptions, SortOptions


class Statement(NamedTuple):
    sql: str
    params: list[Any]


class Conditions:
    """
    AND-joined WHERE predicates with incrementing placeholders.

    Each predicate template receives its placeholder through str.format, so a
    template may reference it more than once ("a LIKE {0} OR b LIKE {0}")
    while the value is bound a single time.
    """

    def __init__(self):
        self.clauses: list[str] = []
        self.params: list[Any] = []

    def add(self, template: str, value: Any) -> "Conditions":
        self.params.append(value)
        self.clauses.append(template.format(f"${len(self.params)}"))
        return self

    def add_literal(self, clause: str) -> "Conditions":
        """Predicate with no bound value (constant SQL only)."""
        self.clauses.append(clause)
        return self

    @property
    def next_index(self) -> int:
        return len(self.params) + 1

    @property
    def sql(self) -> str:
        if not self.clauses:
            return ""
        return "WHERE " + " AND ".join(self.clauses)


class QueryBuilder:
    """Statement factory for one entity."""

    def __init__(self, config: EntityConfig, validator: FieldValidator | None = None):
        self.config = config
        self.validator = validator or FieldValidator(config)

    def quote(self, column: str, alias: str | None = None) -> str:
        if not self.config.is_column(column):
            raise ValueError(f"{column!r} is not a column of {self.config.table}")
        prefix = f"{alias}." if alias else ""
        return f'{prefix}"{column}"'

    def order_by(self, sort: SortOptions | None = None, alias: str | None = None) -> str:
        """ORDER BY clause; created_at DESC when no sort is requested."""
        prefix = f"{alias}." if alias else ""
        if sort is None:
            return f"ORDER BY {prefix}{DEFAULT_SORT_FIELD} DESC"
        field = self.validator.validate_sort_field(sort.field)
        direction = self.validator.validate_sort_direction(sort.direction)
        return f'ORDER BY {prefix}"{field}" {direction}'

    def equality_conditions(self, filters: Mapping[str, Any]) -> Conditions:
        """
        One `"column" = $n` predicate per filter with a non-None value.

        `filters` must already be validated against the filterable allow-list.
        """
        conditions = Conditions()
        for column, value in filters.items():
            if value is not None:
                conditions.add(f"{self.quote(column)} = {{}}", value)
        return conditions

    def select_by_id(self, record_id: str) -> Statement:
        return Statement(
            f"SELECT {self.config.select_list} FROM {self.config.table} WHERE id = $1",
            [record_id],
        )

    def exists(self, record_id: str) -> Statement:
        return Statement(
            f"SELECT 1 AS found FROM {self.config.table} WHERE id = $1 LIMIT 1",
            [record_id],
        )

    def select_page(
        self, filters: Mapping[str, Any], options: QueryOptions
    ) -> tuple[Statement, Statement]:
        """
        Paginated SELECT and its COUNT(*) companion.

        Both share the same WHERE clause and parameter prefix; only the
        SELECT carries LIMIT/OFFSET.
        """
        conditions = self.equality_conditions(filters)
        limit_index = conditions.next_index
        select = Statement(
            f"SELECT {self.config.select_list} FROM {self.config.table} "
            f"{conditions.sql} {self.order_by(options.sort)} "
            f"LIMIT ${limit_index} OFFSET ${limit_index + 1}",
            [*conditions.params, options.limit, options.offset],
        )
        return select, self.count(filters, conditions)

    def count(self, filters: Mapping[str, Any], conditions: Conditions | None = None) -> Statement:
        conditions = conditions or self.equality_conditions(filters)
        return Statement(
            f"SELECT COUNT(*) AS total FROM {self.config.table} {conditions.sql}",
            list(conditions.params),
        )

    def select_by_field(
        self, field: str, value: Any, limit: int, sort: SortOptions | None = None
    ) -> Statement:
        return Statement(
            f"SELECT {self.config.select_list} FROM {self.config.table} "
            f"WHERE {self.quote(field)} = $1 {self.order_by(sort)} LIMIT $2",
            [value, limit],
        )

    def insert(self, values: Mapping[str, Any]) -> Statement:
        columns = list(values)
        placeholders = ", ".join(f"${index}" for index in range(1, len(columns) + 1))
        return Statement(
            f"INSERT INTO {self.config.table} "
            f"({', '.join(self.quote(column) for column in columns)}) "
            f"VALUES ({placeholders})",
            list(values.values()),
        )

    def update(
        self,
        record_id: str,
        values: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> Statement:
        """
        UPDATE by id. `expected` adds `AND "column" = $n` guards, so the
        write only applies while the row still holds those values.
        """
        columns = list(values)
        assignments = ", ".join(
            f"{self.quote(column)} = ${index}" for index, column in enumerate(columns, start=1)
        )
        params = [*values.values(), record_id]
        where = f"WHERE id = ${len(params)}"
        for column, value in (expected or {}).items():
            params.append(value)
            where += f" AND {self.quote(column)} = ${len(params)}"
        return Statement(f"UPDATE {self.config.table} SET {assignments} {where}", params)

    def delete(self, record_id: str) -> Statement:
        return Statement(f"DELETE FROM {self.config.table} WHERE id = $1", [record_id])
