"""
Entity configuration — the per-table description every repository runs on.

An EntityConfig is plain data: the table name, the columns a SELECT returns,
the record model rows are validated into, and four explicit allow-lists
(sortable, filterable, creatable, updatable). `money` names the columns
stored as integer cents. Nothing here is derived from caller input or from
schema introspection.

Python has no way to make an unlisted column name fail to type-check, so the
config verifies its own contents instead: every column must be a plain
lower-case identifier, and every allow-listed name must be one of the
columns. The query builder then refuses to quote any name outside that set.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from ledger.money import from_cents, to_cents

RecordT = TypeVar("RecordT", bound=BaseModel)

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


@dataclass(frozen=True)
class EntityConfig(Generic[RecordT]):
    table: str
    columns: tuple[str, ...]
    record: type[RecordT]
    sortable: frozenset[str] = field(default_factory=frozenset)
    filterable: frozenset[str] = field(default_factory=frozenset)
    creatable: frozenset[str] = field(default_factory=frozenset)
    updatable: frozenset[str] = field(default_factory=frozenset)
    # Columns holding integer cents; see ledger.money
    money: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self):
        for name in (self.table, *self.columns):
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid SQL identifier in {self.table} config: {name!r}")
        known = set(self.columns)
        for label in ("sortable", "filterable", "creatable", "updatable", "money"):
            unknown = getattr(self, label) - known
            if unknown:
                raise ValueError(
                    f"{self.table} {label} allow-list names unknown columns: "
                    f"{', '.join(sorted(unknown))}"
                )

    @property
    def select_list(self) -> str:
        return ", ".join(self.columns)

    def is_column(self, name: str) -> bool:
        return name in self.columns

    def to_store(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Copy of `values` with money columns converted to cents."""
        return {
            key: to_cents(value) if key in self.money else value
            for key, value in values.items()
        }

    def from_store(self, row: Mapping[str, Any]) -> dict[str, Any]:
        """Copy of a stored row with money columns converted back to Decimal."""
        return {
            key: from_cents(value) if key in self.money else value
            for key, value in row.items()
        }
