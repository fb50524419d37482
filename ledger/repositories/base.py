"""
Generic repository — entity-agnostic CRUD on top of the query builder.

A Repository is configured, not subclassed for its allow-lists: pass the
Database handle and an EntityConfig and every operation below works for that
table. Specialized repositories (accounts, transactions) add domain queries
on top but reuse the same config-driven core.

Flow of every call:
  caller input -> FieldValidator (strip unknown names, log them)
               -> QueryBuilder (parameterized statement)
               -> Database primitive executor
               -> rows validated into the entity's record model

Money columns (EntityConfig.money) are converted to integer cents on the
way in and back to Decimal on the way out.

Deletion:
  delete() removes the row outright. Older documentation of this layer talks
  about soft deletion; there is no deleted flag anywhere and the removal is
  permanent.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, Generic

from ledger.database import CommandResult, Database, generate_id, now_iso
from ledger.exceptions import CreateFailedError, RecordNotFoundError, RetrievalFailedError
from ledger.repositories.entity import EntityConfig, RecordT
from ledger.repositories.query_builder import QueryBuilder
from ledger.repositories.validation import FieldValidator
from ledger.schemas.common import QueryOptions, QueryResult

logger = logging.getLogger(__name__)


class Repository(Generic[RecordT]):
    """CRUD operations for the table described by `config`."""

    def __init__(self, db: Database, config: EntityConfig[RecordT]):
        self.db = db
        self.config = config
        self.validator = FieldValidator(config)
        self.builder = QueryBuilder(config, self.validator)

    @property
    def table(self) -> str:
        return self.config.table

    def _to_record(self, row: Mapping[str, Any]) -> RecordT:
        return self.config.record.model_validate(self.config.from_store(row))

    async def find_by_id(self, record_id: str) -> RecordT | None:
        rows = await self.db.execute_query(*self.builder.select_by_id(record_id))
        return self._to_record(rows[0]) if rows else None

    async def exists(self, record_id: str) -> bool:
        rows = await self.db.execute_query(*self.builder.exists(record_id))
        return bool(rows)

    async def find_all(
        self,
        filters: Mapping[str, Any] | None = None,
        options: QueryOptions | None = None,
    ) -> QueryResult[RecordT]:
        """
        One page of rows matching all equality filters.

        Filter keys outside the filterable allow-list are dropped (and
        logged). The page and its total count are fetched concurrently.
        """
        options = options or QueryOptions()
        validated = self.config.to_store(self.validator.validate_filter_fields(filters or {}))
        select, count = self.builder.select_page(validated, options)

        rows, count_rows = await asyncio.gather(
            self.db.execute_query(*select),
            self.db.execute_query(*count),
        )

        return QueryResult(
            data=[self._to_record(row) for row in rows],
            total=count_rows[0]["total"] if count_rows else 0,
            page=options.page,
            limit=options.limit,
        )

    async def create(self, data: Mapping[str, Any]) -> RecordT:
        """
        Insert a row built from the creatable subset of `data`.

        The id and a single shared created_at/updated_at timestamp are
        generated here. The row is read back by id so callers always get the
        stored representation.

        Raises:
            CreateFailedError: If the inserted row cannot be read back.
            ConstraintViolationError: If the store rejects the row.
        """
        validated = self.validator.validate_create_input(data)
        record_id = generate_id()
        now = now_iso()
        values = {"id": record_id, "created_at": now, "updated_at": now, **validated}

        await self.db.execute_command(*self.builder.insert(self.config.to_store(values)))

        created = await self.find_by_id(record_id)
        if created is None:
            raise CreateFailedError(self.table)
        return created

    async def update(self, record_id: str, data: Mapping[str, Any]) -> RecordT:
        """
        Update the updatable subset of `data` and refresh updated_at.

        Raises:
            RecordNotFoundError: If no row has this id.
            RetrievalFailedError: If the row vanished before it could be read back.
        """
        validated = self.validator.validate_update_input(data)
        result = await self._execute_update(record_id, validated)
        if result.rows_affected == 0:
            raise RecordNotFoundError(self.table, record_id)
        return await self._read_back(record_id)

    async def _execute_update(
        self,
        record_id: str,
        validated: Mapping[str, Any],
        expected: Mapping[str, Any] | None = None,
    ) -> CommandResult:
        values = self.config.to_store({**validated, "updated_at": now_iso()})
        statement = self.builder.update(record_id, values, self.config.to_store(expected or {}))
        return await self.db.execute_command(*statement)

    async def _read_back(self, record_id: str) -> RecordT:
        updated = await self.find_by_id(record_id)
        if updated is None:
            raise RetrievalFailedError(self.table, record_id)
        return updated

    async def delete(self, record_id: str) -> bool:
        """Hard-delete a row. Returns False if nothing was removed."""
        result = await self.db.execute_command(*self.builder.delete(record_id))
        return result.rows_affected > 0

    async def count(self, filters: Mapping[str, Any] | None = None) -> int:
        validated = self.config.to_store(self.validator.validate_filter_fields(filters or {}))
        rows = await self.db.execute_query(*self.builder.count(validated))
        return rows[0]["total"] if rows else 0

    async def find_by(
        self,
        field: str,
        value: Any,
        options: QueryOptions | None = None,
    ) -> list[RecordT]:
        """
        Rows where `field` equals `value`.

        An unlisted field is rejected before any statement is built: the
        call logs a warning and returns an empty list.
        """
        if not self.validator.is_filterable(field):
            logger.warning(
                "Invalid filter field attempted in find_by on %s: %r",
                self.table,
                field,
            )
            return []
        options = options or QueryOptions()
        value = self.config.to_store({field: value})[field]
        statement = self.builder.select_by_field(field, value, options.limit, options.sort)
        rows = await self.db.execute_query(*statement)
        return [self._to_record(row) for row in rows]

    async def find_first(self, filters: Mapping[str, Any] | None = None) -> RecordT | None:
        result = await self.find_all(filters, QueryOptions(limit=1))
        return result.data[0] if result.data else None
