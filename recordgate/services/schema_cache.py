"""Schema Cache — per-table column metadata, fetched once, memoized for process lifetime.

Invariants:
    - The driver is asked for a table's columns at most once per cache instance
    - Zero reported columns raise SchemaLookupError and nothing is cached
    - Cached entries are never invalidated automatically (stale schema is accepted)
    - Descriptors are immutable and shared between all records of the same table + key spec

Design Decisions:
    - Explicit cache object instead of a function-level static: injectable per record,
      process-scoped default instance below, reset() reserved for tests
    - Double-checked lock around the first build: concurrent readers never block on a hit
"""

import logging
import threading
from typing import Iterable

from recordgate.core.domain_types import ColumnInfo
from recordgate.core.driver_protocols import Driver
from recordgate.core.errors import SchemaLookupError
from recordgate.core.primary_keys import normalize_keys
from recordgate.core.table_descriptor import TableDescriptor

logger = logging.getLogger(__name__)


class SchemaCache:
    """Memoizes column metadata and table descriptors by table name."""

    def __init__(self):
        self._columns: dict[str, tuple[ColumnInfo, ...]] = {}
        self._descriptors: dict[tuple[str, tuple[str, ...]], TableDescriptor] = {}
        self._lock = threading.Lock()

    def columns(self, table_name: str, driver: Driver) -> tuple[ColumnInfo, ...]:
        cached = self._columns.get(table_name)
        if cached is not None:
            return cached
        with self._lock:
            cached = self._columns.get(table_name)
            if cached is None:
                cached = tuple(driver.columns_of(table_name))
                if not cached:
                    raise SchemaLookupError(table_name)
                self._columns[table_name] = cached
                logger.debug(
                    f"Cached {len(cached)} columns for {table_name}",
                    extra={"table_name": table_name},
                )
        return cached

    def descriptor(
        self, table_name: str, keys: str | Iterable[str], driver: Driver,
    ) -> TableDescriptor:
        normalized = normalize_keys(table_name, keys)
        cache_key = (table_name, normalized)
        cached = self._descriptors.get(cache_key)
        if cached is not None:
            return cached
        columns = self.columns(table_name, driver)
        descriptor = TableDescriptor.build(table_name, normalized, columns)
        with self._lock:
            return self._descriptors.setdefault(cache_key, descriptor)

    def is_cached(self, table_name: str) -> bool:
        return table_name in self._columns

    def reset(self) -> None:
        """Forget everything. Test-only: production code relies on stale-forever semantics."""
        with self._lock:
            self._columns.clear()
            self._descriptors.clear()


# Process-scoped default, shared by records that are not given their own cache
schema_cache = SchemaCache()
