"""Table Registry — static mapping of table type names to record factories.

Invariants:
    - Type names are sanitized to [A-Za-z0-9_.-] and matched case-insensitively
    - Unknown type names raise TableNotRegisteredError (and log a warning), never return None
    - No filesystem scanning or dynamic imports: the application registers every table at startup

Design Decisions:
    - Explicit registration instead of include-path discovery (ADR: no auto-discovery)
    - Factories receive the driver; without one, the process-wide db_manager is used
"""

import logging
import re
from typing import Callable

from recordgate.config import get_settings
from recordgate.core.driver_protocols import Driver
from recordgate.core.errors import TableNotRegisteredError
from recordgate.infrastructure.database import get_db_manager
from recordgate.infrastructure.sqlalchemy_driver import SqlAlchemyDriver
from recordgate.services.record import Record

logger = logging.getLogger(__name__)

RecordFactory = Callable[[Driver], Record]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")


def normalize_type_name(type_name: str) -> str:
    return _UNSAFE_CHARS.sub("", type_name).lower()


class TableRegistry:
    """Type name -> record factory."""

    def __init__(self):
        self._factories: dict[str, RecordFactory] = {}

    def register(self, type_name: str, factory: RecordFactory) -> RecordFactory:
        name = normalize_type_name(type_name)
        if not name:
            raise ValueError(f"Invalid table type name: {type_name!r}")
        self._factories[name] = factory
        return factory

    def is_registered(self, type_name: str) -> bool:
        return normalize_type_name(type_name) in self._factories

    def registered(self) -> list[str]:
        return sorted(self._factories)

    def get_instance(self, type_name: str, driver: Driver | None = None) -> Record:
        factory = self._factories.get(normalize_type_name(type_name))
        if factory is None:
            logger.warning(f"Table type not registered: {type_name}")
            raise TableNotRegisteredError(type_name)
        if driver is None:
            driver = SqlAlchemyDriver(get_db_manager(), null_date=get_settings().null_date)
        return factory(driver)

    def clear(self) -> None:
        self._factories.clear()


# Process-scoped registry, populated during application startup
table_registry = TableRegistry()


def register_table(type_name: str, registry: TableRegistry | None = None):
    """Class decorator: register a Record subclass whose constructor takes the driver."""
    def decorator(cls):
        (registry or table_registry).register(type_name, cls)
        return cls
    return decorator
