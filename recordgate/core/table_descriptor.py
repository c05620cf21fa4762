"""Table Descriptor — immutable schema metadata for one modeled table.

Invariants:
    - keys is non-empty, ordered as configured, names unique, every key is a column
    - autoincrement is True iff exactly one key column exists
    - Capability flags are computed once in build() from the column list, never later

Design Decisions:
    - Frozen dataclass: safe to share between records and threads once built
    - Flags instead of runtime introspection: every optional-column branch reads a bool
"""

from dataclasses import dataclass
from typing import Iterable

from recordgate.core.domain_types import (
    ACCESS_COLUMN,
    CHECKED_OUT_COLUMN,
    CHECKED_OUT_TIME_COLUMN,
    HITS_COLUMN,
    ORDERING_COLUMN,
    PUBLISHED_COLUMN,
    ColumnInfo,
)
from recordgate.core.errors import UnknownFieldError
from recordgate.core.primary_keys import normalize_keys


@dataclass(frozen=True)
class TableDescriptor:
    """Schema metadata plus derived capability flags."""

    table_name: str
    keys: tuple[str, ...]
    columns: tuple[ColumnInfo, ...]
    has_ordering_column: bool = False
    has_checkout_columns: bool = False
    has_hits_column: bool = False
    has_published_column: bool = False
    has_access_column: bool = False

    @classmethod
    def build(
        cls, table_name: str, keys: str | Iterable[str], columns: Iterable[ColumnInfo],
    ) -> "TableDescriptor":
        columns = tuple(columns)
        names = {c.name for c in columns}
        normalized = normalize_keys(table_name, keys)
        for key in normalized:
            if key not in names:
                raise UnknownFieldError(table_name, key)
        return cls(
            table_name=table_name,
            keys=normalized,
            columns=columns,
            has_ordering_column=ORDERING_COLUMN in names,
            has_checkout_columns=(
                CHECKED_OUT_COLUMN in names and CHECKED_OUT_TIME_COLUMN in names
            ),
            has_hits_column=HITS_COLUMN in names,
            has_published_column=PUBLISHED_COLUMN in names,
            has_access_column=ACCESS_COLUMN in names,
        )

    @property
    def autoincrement(self) -> bool:
        return len(self.keys) == 1

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def has_column(self, name: str) -> bool:
        return any(c.name == name for c in self.columns)

    def defaults(self) -> dict:
        """Column name -> default value, in column order."""
        return {c.name: c.default for c in self.columns}
