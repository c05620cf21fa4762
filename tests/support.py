"""Shared test schema, record subclasses and row helpers.

Tables:
    - content: autoincrement key plus every optional column (ordering, checkout, hits,
      published, access)
    - content_tags: composite key (content_id, tag_id), ordering, published, checkout
    - plain_items: single key and published only
    - tags: single key, no optional columns
    - session: who is currently signed in (checkout liveness)
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, insert, text

from recordgate.services.record import Record


metadata = MetaData()

content = Table(
    "content", metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(255), nullable=False, server_default=""),
    Column("catid", Integer, nullable=False, server_default=text("0")),
    Column("ordering", Integer, nullable=False, server_default=text("0")),
    Column("published", Integer, nullable=False, server_default=text("0")),
    Column("checked_out", Integer, nullable=False, server_default=text("0")),
    Column(
        "checked_out_time", String(19), nullable=False,
        server_default="1970-01-01 00:00:00",
    ),
    Column("hits", Integer, nullable=False, server_default=text("0")),
    Column("access", Integer, nullable=False, server_default=text("0")),
)

content_tags = Table(
    "content_tags", metadata,
    Column("content_id", Integer, primary_key=True, autoincrement=False),
    Column("tag_id", Integer, primary_key=True, autoincrement=False),
    Column("note", String(255), nullable=True),
    Column("ordering", Integer, nullable=False, server_default=text("0")),
    Column("published", Integer, nullable=False, server_default=text("0")),
    Column("checked_out", Integer, nullable=False, server_default=text("0")),
    Column(
        "checked_out_time", String(19), nullable=False,
        server_default="1970-01-01 00:00:00",
    ),
)

plain_items = Table(
    "plain_items", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=True),
    Column("published", Integer, nullable=False, server_default=text("0")),
)

tags = Table(
    "tags", metadata,
    Column("id", Integer, primary_key=True),
    Column("title", String(100), nullable=True),
)

session = Table(
    "session", metadata,
    Column("session_id", String(64), primary_key=True),
    Column("userid", Integer, nullable=False),
)


class ContentTable(Record):
    """Record for `content`; rejects an empty title."""

    def __init__(self, driver, **kwargs):
        super().__init__("content", "id", driver, **kwargs)

    def check(self) -> bool:
        if not self.title:
            self.set_error("Content must have a title")
            return False
        return True


class ContentTagTable(Record):
    def __init__(self, driver, **kwargs):
        super().__init__("content_tags", ["content_id", "tag_id"], driver, **kwargs)


class PlainItemTable(Record):
    def __init__(self, driver, **kwargs):
        super().__init__("plain_items", "id", driver, **kwargs)


class TagTable(Record):
    def __init__(self, driver, **kwargs):
        super().__init__("tags", "id", driver, **kwargs)


def insert_rows(engine, table: Table, rows: list[dict]) -> None:
    with engine.begin() as conn:
        conn.execute(insert(table), rows)


def fetch_all(engine, table: Table, order_by: str = "id") -> list[dict]:
    with engine.connect() as conn:
        result = conn.execute(table.select().order_by(table.c[order_by]))
        return [dict(r) for r in result.mappings()]


def fetch_by_id(engine, table: Table) -> dict[int, dict]:
    return {row["id"]: row for row in fetch_all(engine, table)}


def count_statements(statements: list[str], verb: str) -> int:
    return sum(1 for s in statements if s.lstrip().upper().startswith(verb))
