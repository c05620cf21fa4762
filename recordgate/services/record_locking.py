"""Lock Manager — advisory row checkout/checkin and the table-level write lock.

Invariants:
    - check_out()/check_in() are no-op successes on tables without checked_out + checked_out_time
    - A checked-in row has checked_out = 0 and checked_out_time = the driver's null-date sentinel
    - is_checked_out() is False for unlocked rows and for rows held by the asking actor
    - A held table lock is released by unlock(), store(), close() or leaving table_lock()

Design Decisions:
    - Checkout is cooperative: store() never consults it, callers ask is_checked_out() first
    - Holder liveness checked via the configured session table: a holder without a session
      no longer blocks anyone
    - In-memory lock columns only follow a write that targets this record's own row
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import column, func, select, table

from recordgate.core.domain_types import (
    CHECKED_OUT_COLUMN,
    CHECKED_OUT_TIME_COLUMN,
    UNLOCKED_ACTOR,
)
from recordgate.core.primary_keys import key_matches, resolve_primary_key
from recordgate.services.record_base import RecordBase

logger = logging.getLogger(__name__)


class LockingMixin(RecordBase):
    """Checkout bookkeeping and table locks."""

    def check_out(self, actor_id: int, pk: Any = None) -> bool:
        if not self._descriptor.has_checkout_columns:
            return True

        table_name = self.get_table_name()
        resolved = resolve_primary_key(
            table_name, self._descriptor.keys, self._fields, pk,
        )
        actor_id = int(actor_id)
        now = self._now()
        self._driver.execute(
            self._table.update()
            .where(*self._key_clause(resolved))
            .values({CHECKED_OUT_COLUMN: actor_id, CHECKED_OUT_TIME_COLUMN: now})
        )
        if key_matches(self._descriptor.keys, self._fields, resolved):
            self._fields[CHECKED_OUT_COLUMN] = actor_id
            self._fields[CHECKED_OUT_TIME_COLUMN] = now

        logger.info(
            f"Checked out {table_name} {resolved}",
            extra={"table_name": table_name, "actor_id": actor_id, "operation": "check_out"},
        )
        return True

    def check_in(self, pk: Any = None) -> bool:
        if not self._descriptor.has_checkout_columns:
            return True

        table_name = self.get_table_name()
        resolved = resolve_primary_key(
            table_name, self._descriptor.keys, self._fields, pk,
        )
        null_date = self._driver.null_date()
        self._driver.execute(
            self._table.update()
            .where(*self._key_clause(resolved))
            .values({CHECKED_OUT_COLUMN: UNLOCKED_ACTOR, CHECKED_OUT_TIME_COLUMN: null_date})
        )
        if key_matches(self._descriptor.keys, self._fields, resolved):
            self._fields[CHECKED_OUT_COLUMN] = UNLOCKED_ACTOR
            self._fields[CHECKED_OUT_TIME_COLUMN] = null_date

        logger.info(
            f"Checked in {table_name} {resolved}",
            extra={"table_name": table_name, "operation": "check_in"},
        )
        return True

    def is_checked_out(self, by_actor: int = 0, against: int | None = None) -> bool:
        """True if the row is held by another actor who still has a session."""
        if against is None:
            against = self._fields.get(CHECKED_OUT_COLUMN)
        if not against or int(against) == int(by_actor):
            return False

        user_column = self._settings.session_user_column
        sessions = table(self._settings.session_table, column(user_column))
        stmt = (
            select(func.count(sessions.c[user_column]))
            .where(sessions.c[user_column] == int(against))
        )
        return bool(self._driver.load_scalar(stmt))

    # ─── Table lock ──────────────────────────────────────────────

    def lock(self) -> bool:
        self._driver.lock_table(self.get_table_name())
        self._locked = True
        return True

    def unlock(self) -> bool:
        try:
            self._driver.unlock_all()
        finally:
            self._locked = False
        return True

    @property
    def is_locked(self) -> bool:
        return self._locked

    @contextmanager
    def table_lock(self) -> Iterator["LockingMixin"]:
        """Hold the table lock for the enclosed block; always released."""
        self.lock()
        try:
            yield self
        finally:
            if self._locked:
                self.unlock()

    def close(self) -> None:
        if self._locked:
            self.unlock()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
