"""Record Base — field storage, key helpers, error log and query primitives of a record.

Invariants:
    - The field map holds exactly the table's columns; undeclared names are rejected
    - Capability flags come from the shared TableDescriptor, computed once per table
    - Filters (where) are None, a column->value mapping, a SQLAlchemy clause, or a raw SQL fragment
    - Attribute access (record.title) and get()/set() read and write the same field map

Design Decisions:
    - Mixins per concern (persistence, locking, ordering, publishing) on top of this base:
      one file per algorithm, a single object for callers
    - table()/column() clause built once per record from the descriptor's column list
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import text
from sqlalchemy.sql import ColumnElement

from recordgate.config import Settings, get_settings
from recordgate.core.domain_types import ACCESS_COLUMN
from recordgate.core.driver_protocols import Driver
from recordgate.core.error_log import ErrorEntry, ErrorLog
from recordgate.core.errors import UnknownFieldError
from recordgate.core.table_descriptor import TableDescriptor
from recordgate.infrastructure.sqlalchemy_driver import table_clause
from recordgate.services.schema_cache import SchemaCache, schema_cache

logger = logging.getLogger(__name__)

Filter = Mapping[str, Any] | ColumnElement | str | None

SQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class RecordBase:
    """State shared by every record mixin."""

    def __init__(
        self,
        table_name: str,
        key: str | Iterable[str],
        driver: Driver,
        *,
        cache: SchemaCache | None = None,
        settings: Settings | None = None,
    ):
        self._driver = driver
        self._settings = settings or get_settings()
        self._cache = cache or schema_cache
        self._descriptor = self._cache.descriptor(table_name, key, driver)
        self._fields: dict[str, Any] = {
            name: None for name in self._descriptor.column_names
        }
        self._table = table_clause(table_name, self._descriptor.column_names)
        self._errors = ErrorLog()
        self._locked = False

        if self._descriptor.has_access_column:
            self._fields[ACCESS_COLUMN] = self._settings.default_access

    # ─── Field access ────────────────────────────────────────────

    def __getattr__(self, name: str) -> Any:
        fields = self.__dict__.get("_fields")
        if fields is not None and name in fields:
            return fields[name]
        raise AttributeError(
            f"{type(self).__name__!r} object has no attribute {name!r}",
        )

    def __setattr__(self, name: str, value: Any) -> None:
        fields = self.__dict__.get("_fields")
        if fields is not None and name in fields:
            fields[name] = value
        else:
            object.__setattr__(self, name, value)

    def get(self, name: str, default: Any = None) -> Any:
        value = self._fields.get(name)
        return default if value is None else value

    def set(self, name: str, value: Any) -> Any:
        """Assign a declared field and return its previous value."""
        if name not in self._fields:
            raise UnknownFieldError(self.get_table_name(), name)
        previous = self._fields[name]
        self._fields[name] = value
        return previous

    def properties(self) -> dict:
        """Public field values (copy)."""
        return {k: v for k, v in self._fields.items() if not k.startswith("_")}

    # ─── Schema / identity ───────────────────────────────────────

    @property
    def descriptor(self) -> TableDescriptor:
        return self._descriptor

    @property
    def has_ordering_column(self) -> bool:
        return self._descriptor.has_ordering_column

    @property
    def has_checkout_columns(self) -> bool:
        return self._descriptor.has_checkout_columns

    @property
    def has_hits_column(self) -> bool:
        return self._descriptor.has_hits_column

    def get_table_name(self) -> str:
        return self._descriptor.table_name

    def get_fields(self) -> tuple:
        """Column metadata of the modeled table (memoized)."""
        return self._cache.columns(self.get_table_name(), self._driver)

    def key_name(self, multiple: bool = False) -> str | list[str]:
        keys = self._descriptor.keys
        return list(keys) if multiple else keys[0]

    @property
    def driver(self) -> Driver:
        return self._driver

    def set_driver(self, driver: Driver) -> None:
        self._driver = driver

    # ─── Error log ───────────────────────────────────────────────

    def set_error(self, error: str | BaseException) -> None:
        self._errors.append(error)

    def get_error(self, index: int | None = None, as_text: bool = True) -> Any:
        """Entry at index (default: last), formatted unless as_text is False."""
        entry = self._errors.entry(index)
        if entry is None:
            return None
        if as_text:
            return entry.format()
        return entry.cause if entry.cause is not None else entry.message

    def get_errors(self) -> list[str]:
        return self._errors.messages()

    @property
    def errors(self) -> list[ErrorEntry]:
        return list(self._errors.entries)

    # ─── Query primitives ────────────────────────────────────────

    def _column(self, name: str):
        if not self._descriptor.has_column(name):
            raise UnknownFieldError(self.get_table_name(), name)
        return self._table.c[name]

    def _key_clause(self, pk: Mapping[str, Any]) -> list:
        return [self._table.c[k] == pk.get(k) for k in self._descriptor.keys]

    def _filter_clause(self, where: Filter) -> list:
        if where is None or (isinstance(where, (str, Mapping)) and not where):
            return []
        if isinstance(where, str):
            return [text(where)]
        if isinstance(where, Mapping):
            return [self._column(name) == value for name, value in where.items()]
        return [where]

    def _current_key(self) -> dict:
        return {k: self._fields.get(k) for k in self._descriptor.keys}

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).strftime(SQL_DATETIME_FORMAT)
