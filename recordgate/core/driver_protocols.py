"""Boundary Protocols — contract between the record gateway and its database driver.

Invariants:
    - Core NEVER imports a concrete driver: dependency arrows point inward only
    - Statements are opaque to core; the driver decides how to run them
    - Every method that talks to the database raises on connection/SQL failure

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no inheritance
    - Synchronous methods: one blocking round-trip per call, timeouts owned by the driver
"""

from typing import Any, Iterable, Protocol

from recordgate.core.domain_types import ColumnInfo


class Driver(Protocol):
    """Structural contract for the database driver consumed by records."""

    def columns_of(self, table: str) -> list[ColumnInfo]: ...

    def quote(self, value: Any) -> str: ...

    def quote_name(self, identifier: str) -> str: ...

    def execute(self, statement: Any) -> int: ...

    def load_single_row(self, statement: Any) -> dict | None: ...

    def load_rows(self, statement: Any) -> list[dict]: ...

    def load_scalar(self, statement: Any) -> Any: ...

    def insert_record(
        self, table: str, fields: dict, key_columns: Iterable[str],
    ) -> bool: ...

    def update_record(
        self, table: str, fields: dict, key_columns: Iterable[str],
        update_nulls: bool = False,
    ) -> bool: ...

    def lock_table(self, table: str) -> None: ...

    def unlock_all(self) -> None: ...

    def null_date(self) -> str: ...
