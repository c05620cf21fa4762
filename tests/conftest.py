"""Root conftest — temporary SQLite database, driver and statement-log fixtures.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - The process-wide schema cache is reset around every test
    - sql_log captures every statement sent to the DBAPI cursor (PRAGMAs included)

Design Decisions:
    - File-backed SQLite instead of :memory:, the table lock pins its own connection,
      and an in-memory database is private to one connection
    - Statements captured through SQLAlchemy's before_cursor_execute event, not mocks:
      assertions see the SQL that actually ran
"""

import os

import pytest
from sqlalchemy import create_engine, event

# Ensure tests never pick up a developer's database
os.environ.setdefault("RECORDGATE_DATABASE_URL", "sqlite://")

from recordgate.infrastructure.database import DatabaseEngineManager  # noqa: E402
from recordgate.infrastructure.sqlalchemy_driver import SqlAlchemyDriver  # noqa: E402
from recordgate.services.schema_cache import schema_cache  # noqa: E402
from tests.support import ContentTable, ContentTagTable, metadata  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema_cache():
    schema_cache.reset()
    yield
    schema_cache.reset()


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'records.db'}")
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def manager(engine):
    return DatabaseEngineManager(engine=engine)


@pytest.fixture
def driver(manager):
    return SqlAlchemyDriver(manager)


@pytest.fixture
def sql_log(engine):
    """SQL statements executed on the engine during the test."""
    statements: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    yield statements
    event.remove(engine, "before_cursor_execute", _record)


@pytest.fixture
def content_record(driver):
    return ContentTable(driver)


@pytest.fixture
def tag_link_record(driver):
    return ContentTagTable(driver)
