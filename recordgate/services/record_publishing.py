"""Publish-State Manager — batched published-state transition that respects checkouts.

Invariants:
    - Without targets, the record's own key is used; an incomplete own key returns False
    - With checkout columns, rows held by another actor are excluded by the WHERE clause
    - Automatic checkin runs only if total affected rows == number of targets
    - The in-memory published value changes only if the record's own key is a target
    - Zero affected rows under the checkout clause is a soft failure (False + error entry)

Design Decisions:
    - Affected-row comparison kept exactly as counted by the driver; MySQL via SQLAlchemy
      reports matched rows (CLIENT_FOUND_ROWS), so unchanged rows still count
"""

import logging
from typing import Any, Iterable

from sqlalchemy import or_

from recordgate.core.domain_types import (
    CHECKED_OUT_COLUMN,
    PUBLISHED_COLUMN,
    UNLOCKED_ACTOR,
    is_empty,
)
from recordgate.core.errors import NullPrimaryKeyError, UnsupportedOperationError
from recordgate.core.primary_keys import key_matches, key_value_map
from recordgate.services.record_base import RecordBase

logger = logging.getLogger(__name__)


class PublishingMixin(RecordBase):
    """Published-state transitions."""

    def _publish_targets(self, pks: Iterable[Any] | None) -> list[dict] | None:
        table_name = self.get_table_name()
        keys = self._descriptor.keys
        targets = [key_value_map(table_name, keys, pk) for pk in (pks or [])]
        if not targets:
            own = self._current_key()
            if any(is_empty(v) for v in own.values()):
                return None
            targets = [own]
        for target in targets:
            for key in keys:
                if target.get(key) is None:
                    raise NullPrimaryKeyError(table_name, key)
        return targets

    def publish(
        self, pks: Iterable[Any] | None = None, state: int = 1, actor_id: int = 0,
    ) -> bool:
        table_name = self.get_table_name()
        if not self._descriptor.has_published_column:
            raise UnsupportedOperationError(table_name, "publish", PUBLISHED_COLUMN)

        state = int(state)
        actor_id = int(actor_id)
        targets = self._publish_targets(pks)
        if targets is None:
            self.set_error(f"{type(self).__name__}: no primary key to publish in {table_name}")
            return False

        checkin = self._descriptor.has_checkout_columns
        checked_out = self._table.c[CHECKED_OUT_COLUMN] if checkin else None
        affected = 0
        for pk in targets:
            stmt = (
                self._table.update()
                .where(*self._key_clause(pk))
                .values({PUBLISHED_COLUMN: state})
            )
            if checkin:
                stmt = stmt.where(or_(
                    checked_out == UNLOCKED_ACTOR, checked_out == actor_id,
                ))
            affected += self._driver.execute(stmt)

        logger.info(
            f"Published {table_name}: state={state}, {affected}/{len(targets)} rows",
            extra={
                "table_name": table_name, "actor_id": actor_id,
                "affected_rows": affected, "operation": "publish",
            },
        )

        if checkin and affected == 0:
            self.set_error(
                f"{type(self).__name__}: no rows updated in {table_name} "
                "(missing or checked out by another actor)",
            )
            return False

        if checkin and affected == len(targets):
            for pk in targets:
                self.check_in(pk)

        keys = self._descriptor.keys
        if any(key_matches(keys, self._fields, pk) for pk in targets):
            self._fields[PUBLISHED_COLUMN] = state
        return True
