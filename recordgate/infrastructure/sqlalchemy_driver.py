"""SQLAlchemy Driver — the record gateway's database boundary on top of SQLAlchemy Core.

Invariants:
    - Satisfies core.driver_protocols.Driver structurally (no inheritance)
    - Statements are SQLAlchemy Core constructs or text(); parameters are always bound
    - insert_record() writes a generated single-column key back into the given field map
    - Null values are skipped on insert, and on update unless update_nulls is set
    - A missing table reports zero columns; the schema cache turns that into SchemaLookupError

Design Decisions:
    - Lightweight table()/column() clauses instead of reflected Table objects: the record
      already knows its columns, no MetaData bookkeeping needed
    - RETURNING for generated keys where the dialect supports it, cursor.lastrowid otherwise
    - Table locks map to LOCK TABLES (MySQL) / LOCK TABLE ... EXCLUSIVE (PostgreSQL);
      other dialects rely on the pinned transaction alone
"""

import logging
import re
from typing import Any, Iterable

from sqlalchemy import column, insert, inspect, literal, table, text, update
from sqlalchemy.exc import NoSuchTableError
from sqlalchemy.sql import TableClause

from recordgate.config import Settings, get_settings
from recordgate.core.domain_types import ColumnInfo, is_empty
from recordgate.infrastructure.database import DatabaseEngineManager

logger = logging.getLogger(__name__)

_MYSQL_DIALECTS = ("mysql", "mariadb")
_MYSQL_NULL_DATE = "0000-00-00 00:00:00"
_DEFAULT_NULL_DATE = "1970-01-01 00:00:00"

_QUOTED_DEFAULT = re.compile(r"^'(.*)'(::[\w\s\"]+)?$", re.DOTALL)
_INT_DEFAULT = re.compile(r"^[+-]?\d+$")
_FLOAT_DEFAULT = re.compile(r"^[+-]?\d*\.\d+$")


def parse_server_default(raw: Any) -> Any:
    """Turn a reflected server default ("0", "'abc'", "'x'::varchar") into a value.

    Expressions such as CURRENT_TIMESTAMP or nextval(...) have no static value: None.
    """
    if raw is None:
        return None
    if not isinstance(raw, str):
        return raw
    value = raw.strip()
    while value.startswith("(") and value.endswith(")"):
        value = value[1:-1].strip()
    match = _QUOTED_DEFAULT.match(value)
    if match:
        return match.group(1).replace("''", "'")
    if _INT_DEFAULT.match(value):
        return int(value)
    if _FLOAT_DEFAULT.match(value):
        return float(value)
    return None


def table_clause(name: str, column_names: Iterable[str]) -> TableClause:
    return table(name, *(column(c) for c in column_names))


class SqlAlchemyDriver:
    """Driver backed by a DatabaseEngineManager."""

    def __init__(self, manager: DatabaseEngineManager, null_date: str | None = None):
        self.manager = manager
        self._null_date = null_date

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "SqlAlchemyDriver":
        settings = settings or get_settings()
        manager = DatabaseEngineManager(
            settings.database_url,
            echo=settings.database_echo,
            pool_pre_ping=settings.database_pool_pre_ping,
        )
        return cls(manager, null_date=settings.null_date)

    @property
    def engine(self):
        return self.manager.engine

    # ─── Schema ──────────────────────────────────────────────────

    def columns_of(self, table_name: str) -> list[ColumnInfo]:
        with self.manager.connection("columns") as conn:
            try:
                reflected = inspect(conn).get_columns(table_name)
            except NoSuchTableError:
                return []
        return [
            ColumnInfo(
                name=c["name"],
                default=parse_server_default(c.get("default")),
                nullable=bool(c.get("nullable", True)),
            )
            for c in reflected
        ]

    # ─── Quoting ─────────────────────────────────────────────────

    def quote(self, value: Any) -> str:
        """Render a value as an SQL literal for hand-written filter fragments."""
        if value is None:
            return "NULL"
        compiled = literal(value).compile(
            dialect=self.engine.dialect, compile_kwargs={"literal_binds": True},
        )
        return str(compiled)

    def quote_name(self, identifier: str) -> str:
        preparer = self.engine.dialect.identifier_preparer
        return ".".join(preparer.quote_identifier(part) for part in identifier.split("."))

    # ─── Statement execution ─────────────────────────────────────

    def execute(self, statement: Any) -> int:
        logger.debug(f"execute: {statement}")
        with self.manager.connection("execute") as conn:
            result = conn.execute(statement)
            return result.rowcount

    def load_single_row(self, statement: Any) -> dict | None:
        logger.debug(f"load_single_row: {statement}")
        with self.manager.connection("query") as conn:
            row = conn.execute(statement).mappings().first()
        return dict(row) if row is not None else None

    def load_rows(self, statement: Any) -> list[dict]:
        logger.debug(f"load_rows: {statement}")
        with self.manager.connection("query") as conn:
            return [dict(row) for row in conn.execute(statement).mappings()]

    def load_scalar(self, statement: Any) -> Any:
        logger.debug(f"load_scalar: {statement}")
        with self.manager.connection("query") as conn:
            return conn.execute(statement).scalar()

    # ─── Record writes ───────────────────────────────────────────

    def insert_record(
        self, table_name: str, fields: dict, key_columns: Iterable[str],
    ) -> bool:
        keys = list(key_columns)
        values = {
            name: value for name, value in fields.items()
            if value is not None and not name.startswith("_")
        }
        generated = None
        if len(keys) == 1 and is_empty(fields.get(keys[0])):
            generated = keys[0]
            values.pop(generated, None)

        names = list(values)
        if generated:
            names.append(generated)
        target = table_clause(table_name, names)
        stmt = insert(target).values(values)
        returning = generated is not None and self.engine.dialect.insert_returning
        if returning:
            stmt = stmt.returning(target.c[generated])

        logger.debug(f"insert_record: {stmt}", extra={"table_name": table_name})
        with self.manager.connection("insert") as conn:
            result = conn.execute(stmt)
            if returning:
                new_id = result.scalar_one()
            elif generated:
                new_id = result.lastrowid
            else:
                new_id = None
        if generated and new_id is not None:
            fields[generated] = new_id
        return True

    def update_record(
        self,
        table_name: str,
        fields: dict,
        key_columns: Iterable[str],
        update_nulls: bool = False,
    ) -> bool:
        keys = list(key_columns)
        values = {
            name: value for name, value in fields.items()
            if name not in keys and not name.startswith("_")
            and (update_nulls or value is not None)
        }
        if not values:
            return True
        target = table_clause(table_name, [*keys, *values])
        stmt = update(target).values(values)
        for key in keys:
            stmt = stmt.where(target.c[key] == fields.get(key))
        self.execute(stmt)
        return True

    # ─── Table locks ─────────────────────────────────────────────

    def lock_table(self, table_name: str) -> None:
        self.manager.pin()
        dialect = self.manager.dialect_name
        if dialect in _MYSQL_DIALECTS:
            stmt = text(f"LOCK TABLES {self.quote_name(table_name)} WRITE")
        elif dialect == "postgresql":
            stmt = text(f"LOCK TABLE {self.quote_name(table_name)} IN EXCLUSIVE MODE")
        else:
            stmt = None
        if stmt is not None:
            try:
                self.execute(stmt)
            except Exception:
                self.manager.release()
                raise
        logger.debug(
            f"Table {table_name} locked", extra={"table_name": table_name},
        )

    def unlock_all(self) -> None:
        if not self.manager.is_pinned:
            return
        try:
            if self.manager.dialect_name in _MYSQL_DIALECTS:
                self.execute(text("UNLOCK TABLES"))
        finally:
            self.manager.release()
        logger.debug("Tables unlocked")

    # ─── Sentinels ───────────────────────────────────────────────

    def null_date(self) -> str:
        if self._null_date is not None:
            return self._null_date
        if self.manager.dialect_name in _MYSQL_DIALECTS:
            return _MYSQL_NULL_DATE
        return _DEFAULT_NULL_DATE
