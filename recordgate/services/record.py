"""Record — live in-memory representation of one table row.

Invariants:
    - One Record per modeled row; field values set by bind()/load(), persisted by store()/save()
    - Table-specific behavior comes only from subclasses (check(), constructor arguments)

Design Decisions:
    - Composed from one mixin per concern: PersistenceMixin, LockingMixin, OrderingMixin,
      PublishingMixin; each file owns one algorithm
    - Usable as a context manager: leaving the block releases a held table lock

Example:
    class ContentTable(Record):
        def __init__(self, driver):
            super().__init__("content", "id", driver)

        def check(self):
            if not self.title:
                self.set_error("Content must have a title")
                return False
            return True
"""

from recordgate.services.record_locking import LockingMixin
from recordgate.services.record_ordering import OrderingMixin
from recordgate.services.record_persistence import PersistenceMixin
from recordgate.services.record_publishing import PublishingMixin


class Record(PersistenceMixin, LockingMixin, OrderingMixin, PublishingMixin):
    """Table-agnostic record gateway."""

    def __repr__(self) -> str:
        keys = ", ".join(f"{k}={self._fields.get(k)!r}" for k in self._descriptor.keys)
        return f"<{type(self).__name__} {self.get_table_name()} {keys}>"
