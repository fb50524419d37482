"""
Field validation — the allow-list gate between caller input and SQL text.

No caller-supplied string may become part of a statement as an identifier
(column name, sort direction) unless it first matches an entry in the
entity's allow-list exactly. Values never go through here; they are always
bound as parameters.

Policy for rejected names is fail-open: sort fields fall back to created_at,
and unknown input/filter keys are dropped from the mapping. Every rejection
is logged as a warning with the offending names, so client bugs leave a
trace even though the call proceeds.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Literal

from ledger.repositories.entity import EntityConfig

logger = logging.getLogger(__name__)

DEFAULT_SORT_FIELD = "created_at"


class FieldValidator:
    """Allow-list checks for one entity."""

    def __init__(self, config: EntityConfig):
        self.config = config

    def validate_sort_field(self, field: str) -> str:
        """Return `field` when it is sortable, otherwise created_at."""
        if isinstance(field, str) and field in self.config.sortable:
            return field
        logger.warning(
            "Invalid sort field attempted on %s: %r. Using default sort.",
            self.config.table,
            field,
        )
        return DEFAULT_SORT_FIELD

    @staticmethod
    def validate_sort_direction(direction: Any) -> Literal["ASC", "DESC"]:
        """'asc' in any case maps to ASC; anything else, including None, to DESC."""
        if isinstance(direction, str) and direction.lower() == "asc":
            return "ASC"
        return "DESC"

    def validate_input_fields(
        self,
        data: Mapping[str, Any],
        allowed: Iterable[str],
        operation: str,
    ) -> dict[str, Any]:
        """Copy of `data` restricted to keys in `allowed`."""
        allowed = frozenset(allowed)
        accepted = {key: value for key, value in data.items() if key in allowed}
        rejected = [key for key in data if key not in allowed]
        if rejected:
            logger.warning(
                "Invalid fields attempted in %s operation on %s: %s. Allowed fields: %s",
                operation,
                self.config.table,
                ", ".join(str(key) for key in rejected),
                ", ".join(sorted(allowed)),
            )
        return accepted

    def validate_filter_fields(self, filters: Mapping[str, Any]) -> dict[str, Any]:
        return self.validate_input_fields(filters, self.config.filterable, "filter")

    def validate_create_input(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self.validate_input_fields(data, self.config.creatable, "create")

    def validate_update_input(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return self.validate_input_fields(data, self.config.updatable, "update")

    def is_filterable(self, field: str) -> bool:
        return field in self.config.filterable
