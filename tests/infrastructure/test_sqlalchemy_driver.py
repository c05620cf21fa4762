"""SQLAlchemy Driver — tests against a real SQLite database.

Tests cover:
    - Column reflection with parsed server defaults
    - Literal and identifier quoting
    - insert_record() key write-back, update_record() null handling
    - Error mapping and pinned table-lock transactions
"""

from types import SimpleNamespace

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import OperationalError

from recordgate.core.errors import DatabaseError
from recordgate.infrastructure.sqlalchemy_driver import SqlAlchemyDriver, parse_server_default
from tests.support import content, content_tags, count_statements, fetch_all, insert_rows, tags


# --- parse_server_default --------------------------------------------------------

@pytest.mark.parametrize("raw, expected", [
    (None, None),
    ("0", 0),
    ("-3", -3),
    ("(0)", 0),
    ("1.5", 1.5),
    ("''", ""),
    ("'abc'", "abc"),
    ("'it''s'", "it's"),
    ("'x'::character varying", "x"),
    ("CURRENT_TIMESTAMP", None),
    ("nextval('content_id_seq'::regclass)", None),
    (7, 7),
])
def test_parse_server_default(raw, expected):
    assert parse_server_default(raw) == expected


# --- columns_of ------------------------------------------------------------------

def test_columns_of_reports_columns_in_table_order(driver):
    names = [c.name for c in driver.columns_of("content")]
    assert names == [
        "id", "title", "catid", "ordering", "published",
        "checked_out", "checked_out_time", "hits", "access",
    ]


def test_columns_of_parses_defaults(driver):
    cols = {c.name: c for c in driver.columns_of("content")}
    assert cols["id"].default is None
    assert cols["title"].default == ""
    assert cols["ordering"].default == 0
    assert cols["checked_out_time"].default == "1970-01-01 00:00:00"
    assert cols["title"].nullable is False


def test_columns_of_missing_table_is_empty(driver):
    assert driver.columns_of("no_such_table") == []


# --- quoting ---------------------------------------------------------------------

def test_quote_renders_literals(driver):
    assert driver.quote("O'Brien") == "'O''Brien'"
    assert driver.quote(5) == "5"
    assert driver.quote(None) == "NULL"


def test_quote_name_quotes_each_part(driver):
    assert driver.quote_name("content") == '"content"'
    assert driver.quote_name("main.content") == '"main"."content"'


# --- writes ----------------------------------------------------------------------

def test_insert_writes_generated_key_back(driver, engine):
    fields = {"id": None, "title": "Hello", "catid": 2}
    assert driver.insert_record("content", fields, ["id"])
    assert fields["id"] == 1
    (row,) = fetch_all(engine, content)
    assert row["title"] == "Hello"
    assert row["ordering"] == 0


def test_insert_composite_key_generates_nothing(driver, engine):
    fields = {"content_id": 4, "tag_id": 9, "note": None}
    assert driver.insert_record("content_tags", fields, ["content_id", "tag_id"])
    assert fields == {"content_id": 4, "tag_id": 9, "note": None}
    (row,) = fetch_all(engine, content_tags, order_by="content_id")
    assert (row["content_id"], row["tag_id"]) == (4, 9)


def test_update_skips_nulls_by_default(driver, engine):
    insert_rows(engine, content, [{"id": 1, "title": "a", "catid": 3}])
    driver.update_record("content", {"id": 1, "title": None, "catid": 4}, ["id"])
    (row,) = fetch_all(engine, content)
    assert (row["title"], row["catid"]) == ("a", 4)


def test_update_nulls_writes_none(driver, engine):
    insert_rows(engine, tags, [{"id": 1, "title": "news"}])
    driver.update_record("tags", {"id": 1, "title": None}, ["id"], update_nulls=True)
    (row,) = fetch_all(engine, tags)
    assert row["title"] is None


def test_update_with_nothing_to_set_issues_no_query(driver, sql_log):
    assert driver.update_record("content", {"id": 1, "title": None}, ["id"])
    assert count_statements(sql_log, "UPDATE") == 0


def test_execute_returns_affected_rows(driver, engine):
    insert_rows(engine, content, [{"id": 1}, {"id": 2}, {"id": 3}])
    assert driver.execute(text("UPDATE content SET hits = 5 WHERE id > 1")) == 2


def test_load_helpers(driver, engine):
    insert_rows(engine, content, [{"id": 1, "title": "a"}, {"id": 2, "title": "b"}])
    assert driver.load_single_row(select(content).where(content.c.id == 2))["title"] == "b"
    assert driver.load_single_row(select(content).where(content.c.id == 9)) is None
    assert len(driver.load_rows(select(content))) == 2
    assert driver.load_scalar(select(func.count()).select_from(content)) == 2


# --- errors ----------------------------------------------------------------------

def test_driver_failures_become_database_error(driver):
    with pytest.raises(DatabaseError) as exc:
        driver.execute(text("SELECT * FROM missing_table"))
    assert isinstance(exc.value.__cause__, OperationalError)
    assert exc.value.operation == "execute"


# --- table locks -----------------------------------------------------------------

def test_lock_pins_until_unlock(driver, engine):
    driver.lock_table("content")
    assert driver.manager.is_pinned
    driver.execute(text("INSERT INTO content (title) VALUES ('locked')"))
    driver.unlock_all()
    assert not driver.manager.is_pinned
    assert [r["title"] for r in fetch_all(engine, content)] == ["locked"]


def test_failure_while_locked_rolls_back(driver, engine):
    driver.lock_table("content")
    driver.execute(text("INSERT INTO content (title) VALUES ('lost')"))
    with pytest.raises(DatabaseError):
        driver.execute(text("SELECT * FROM missing_table"))
    driver.unlock_all()
    assert fetch_all(engine, content) == []


def test_unlock_without_lock_is_noop(driver):
    driver.unlock_all()
    assert not driver.manager.is_pinned


# --- null date -------------------------------------------------------------------

def test_null_date_sentinels(driver):
    assert driver.null_date() == "1970-01-01 00:00:00"
    mysql = SqlAlchemyDriver(SimpleNamespace(dialect_name="mysql"))
    assert mysql.null_date() == "0000-00-00 00:00:00"


def test_null_date_override(manager):
    assert SqlAlchemyDriver(manager, null_date="1000-01-01 00:00:00").null_date() == (
        "1000-01-01 00:00:00"
    )
