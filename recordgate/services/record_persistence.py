"""Persistence Engine — bind, load, store, delete and save a record.

Invariants:
    - load() with every key field empty returns True without a query
    - store() routes by has_primary_key(): in-memory for autoincrement, COUNT(*) lookup for composite keys
    - store() releases a held table lock on every exit path
    - save() stops at the first failing step: bind, check, store, check_in, reorder
    - Misuse errors propagate; soft failures return False and append to the error log

Design Decisions:
    - has_primary_key() asymmetry kept on purpose: a pre-populated composite key with no row
      behind it is inserted, a pre-populated autoincrement key is always updated
    - check() is the subclass hook for sanity rules; it reports problems via set_error(),
      a silent rejection gets a generic entry from save()
"""

import logging
from typing import Any, Iterable

from sqlalchemy import func, select

from recordgate.core.domain_types import HITS_COLUMN, is_empty
from recordgate.core.primary_keys import (
    complete_primary_key,
    key_matches,
    resolve_match_fields,
    resolve_primary_key,
)
from recordgate.core.record_binder import bindable_values
from recordgate.services.record_base import RecordBase

logger = logging.getLogger(__name__)


class PersistenceMixin(RecordBase):
    """Row lifecycle operations."""

    def bind(self, source: Any, ignore: str | Iterable[str] | None = None) -> None:
        """Copy matching values from a mapping or object onto declared fields."""
        values = bindable_values(
            self._fields, source, ignore, record_type=type(self).__name__,
        )
        self._fields.update(values)

    def reset(self) -> None:
        """Restore non-key fields to their column defaults."""
        keys = self._descriptor.keys
        for name, default in self._descriptor.defaults().items():
            if name not in keys and not name.startswith("_"):
                self._fields[name] = default

    def primary_key(self, keys: dict | None = None) -> dict:
        return complete_primary_key(self._descriptor.keys, self._fields, keys)

    def load(self, keys: Any = None, reset: bool = True) -> bool:
        """Load a row by key value(s) or arbitrary field matches.

        Returns False when no row matches.
        """
        table_name = self.get_table_name()
        fields = resolve_match_fields(
            table_name, self._descriptor.keys, self._fields, keys,
        )
        if fields is None:
            return True

        conditions = [self._column(name) == value for name, value in fields.items()]
        if reset:
            self.reset()

        row = self._driver.load_single_row(select(self._table).where(*conditions))
        if not row:
            return False
        self.bind(row)
        return True

    def check(self) -> bool:
        """Sanity hook run by save() before storing. Override in subclasses."""
        return True

    def has_primary_key(self) -> bool:
        keys = self._descriptor.keys
        if self._descriptor.autoincrement:
            return not any(is_empty(self._fields.get(k)) for k in keys)

        stmt = (
            select(func.count())
            .select_from(self._table)
            .where(*self._key_clause(self._fields))
        )
        return self._driver.load_scalar(stmt) == 1

    def store(self, update_nulls: bool = False) -> bool:
        """Insert or update the row from the current field values."""
        table_name = self.get_table_name()
        keys = self._descriptor.keys
        try:
            if self.has_primary_key():
                stored = self._driver.update_record(
                    table_name, self._fields, keys, update_nulls,
                )
            else:
                stored = self._driver.insert_record(table_name, self._fields, keys)
            if not stored:
                self.set_error(f"{type(self).__name__}: store failed for {table_name}")
                logger.warning(
                    f"Store failed for {table_name}",
                    extra={"table_name": table_name, "operation": "store"},
                )
                return False
            return True
        finally:
            if self._locked:
                self.unlock()

    def delete(self, pk: Any = None) -> bool:
        """Delete a row by primary key (default: the record's own key)."""
        resolved = resolve_primary_key(
            self.get_table_name(), self._descriptor.keys, self._fields, pk,
        )
        self._fields.update(resolved)
        self._driver.execute(self._table.delete().where(*self._key_clause(resolved)))
        return True

    def save(
        self,
        source: Any,
        ordering_filter: str | None = None,
        ignore: str | Iterable[str] | None = None,
    ) -> bool:
        """Bind, check, store and check in; then compact the ordering partition."""
        self.bind(source, ignore)

        reported = len(self._errors)
        if not self.check():
            if len(self._errors) == reported:
                self.set_error(
                    f"{type(self).__name__}: check failed for {self.get_table_name()}",
                )
            logger.warning(
                f"Check rejected {self.get_table_name()}: {self.get_error()}",
                extra={"table_name": self.get_table_name(), "operation": "check"},
            )
            return False

        if not self.store():
            return False

        if not self.check_in():
            return False

        if ordering_filter:
            self.reorder({ordering_filter: self._fields.get(ordering_filter)})

        return True

    def hit(self, pk: Any = None) -> bool:
        """Increment the hits counter if the table has one."""
        if not self._descriptor.has_hits_column:
            return True

        resolved = resolve_primary_key(
            self.get_table_name(), self._descriptor.keys, self._fields, pk,
        )
        hits = self._table.c[HITS_COLUMN]
        self._driver.execute(
            self._table.update()
            .where(*self._key_clause(resolved))
            .values({HITS_COLUMN: hits + 1})
        )
        if key_matches(self._descriptor.keys, self._fields, resolved):
            self._fields[HITS_COLUMN] = int(self._fields.get(HITS_COLUMN) or 0) + 1
        return True
