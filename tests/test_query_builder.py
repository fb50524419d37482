"""
Tests for statement construction.

These tests verify:
  - ORDER BY defaults to created_at DESC and quotes validated identifiers
  - Injected sort fields never reach the statement text
  - WHERE predicates get incrementing placeholders and bound values
  - Page and COUNT statements share the same WHERE clause and parameter prefix
  - INSERT/UPDATE place values in parameters, not in SQL text
"""

import pytest

from ledger.repositories.accounts import ACCOUNT_CONFIG
from ledger.repositories.query_builder import Conditions, QueryBuilder
from ledger.schemas.common import QueryOptions, SortOptions


@pytest.fixture
def builder():
    return QueryBuilder(ACCOUNT_CONFIG)


class TestOrderBy:
    def test_default(self, builder):
        assert builder.order_by(None) == "ORDER BY created_at DESC"

    def test_default_with_alias(self, builder):
        assert builder.order_by(None, "a") == "ORDER BY a.created_at DESC"

    def test_valid_field_is_quoted(self, builder):
        sort = SortOptions(field="name", direction="asc")
        assert builder.order_by(sort, "a") == 'ORDER BY a."name" ASC'

    def test_injected_field_falls_back(self, builder):
        sort = SortOptions(field="name; DROP TABLE x", direction="asc")
        clause = builder.order_by(sort)
        assert clause == 'ORDER BY "created_at" ASC'
        assert "DROP" not in clause

    def test_injected_field_with_default_direction(self, builder):
        sort = SortOptions(field="name; DROP TABLE x")
        assert builder.order_by(sort) == 'ORDER BY "created_at" DESC'

    def test_injected_direction_becomes_desc(self, builder):
        sort = SortOptions(field="name", direction="ASC; DROP TABLE accounts")
        assert builder.order_by(sort) == 'ORDER BY "name" DESC'


class TestConditions:
    def test_empty(self):
        assert Conditions().sql == ""
        assert Conditions().next_index == 1

    def test_placeholders_increment(self):
        conditions = Conditions().add("a = {}", 1).add("b >= {}", 2)
        assert conditions.sql == "WHERE a = $1 AND b >= $2"
        assert conditions.params == [1, 2]
        assert conditions.next_index == 3

    def test_shared_placeholder_is_bound_once(self):
        conditions = Conditions().add("user_id = {}", "u1")
        conditions.add("(x LIKE {0} OR y LIKE {0} OR z LIKE {0})", "%rent%")
        assert conditions.sql == "WHERE user_id = $1 AND (x LIKE $2 OR y LIKE $2 OR z LIKE $2)"
        assert conditions.params == ["u1", "%rent%"]


class TestStatements:
    def test_select_page_and_count_share_where(self, builder):
        options = QueryOptions(page=3, limit=10)
        select, count = builder.select_page({"user_id": "u1", "currency": "USD"}, options)

        assert 'WHERE "user_id" = $1 AND "currency" = $2' in select.sql
        assert select.sql.endswith("LIMIT $3 OFFSET $4")
        assert select.params == ["u1", "USD", 10, 20]

        assert count.sql == 'SELECT COUNT(*) AS total FROM accounts WHERE "user_id" = $1 AND "currency" = $2'
        assert count.params == ["u1", "USD"]

    def test_none_filters_are_skipped(self, builder):
        select, count = builder.select_page({"user_id": "u1", "currency": None}, QueryOptions())
        assert "currency" not in count.sql
        assert count.params == ["u1"]

    def test_insert(self, builder):
        statement = builder.insert({"id": "a1", "name": "O'Brien's; DROP TABLE x"})
        assert statement.sql == 'INSERT INTO accounts ("id", "name") VALUES ($1, $2)'
        assert statement.params == ["a1", "O'Brien's; DROP TABLE x"]

    def test_update(self, builder):
        statement = builder.update("a1", {"name": "New", "updated_at": "now"})
        assert statement.sql == 'UPDATE accounts SET "name" = $1, "updated_at" = $2 WHERE id = $3'
        assert statement.params == ["New", "now", "a1"]

    def test_quote_refuses_unknown_columns(self, builder):
        with pytest.raises(ValueError, match="not a column of accounts"):
            builder.quote("password_hash")

    def test_select_by_field(self, builder):
        statement = builder.select_by_field("user_id", "u1", 5)
        assert 'WHERE "user_id" = $1 ORDER BY created_at DESC LIMIT $2' in statement.sql
        assert statement.params == ["u1", 5]

    def test_update_with_expected_values(self, builder):
        statement = builder.update("a1", {"name": "New"}, {"is_active": True})
        assert statement.sql == 'UPDATE accounts SET "name" = $1 WHERE id = $2 AND "is_active" = $3'
        assert statement.params == ["New", "a1", True]
