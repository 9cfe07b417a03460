"""Connection and transaction helpers shared by the PostgreSQL repositories."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple

import psycopg2
import psycopg2.errors
import psycopg2.extras
from psycopg2 import sql
from psycopg2.extensions import connection as PgConnection
from psycopg2.extensions import cursor as PgCursor

from .errors import StoreUnavailable

try:  # pragma: no cover - resolve connection helper when imported from FastAPI app
    from streamhub.app_context import get_conn
except ModuleNotFoundError as exc:  # pragma: no cover
    if exc.name != "streamhub":
        raise
    from ..app_context import get_conn  # type: ignore[no-redef]


@contextmanager
def managed_connection(conn: Optional[PgConnection] = None):
    """Context manager that manages transaction boundaries for optional connections."""

    if conn is not None:
        yield conn, False
        return

    try:
        connection = get_conn()
    except psycopg2.OperationalError as exc:
        raise StoreUnavailable() from exc
    try:
        yield connection, True
        connection.commit()
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.close()


class PostgresRepository:
    """Base class giving repositories a dict cursor and an optional shared transaction."""

    def __init__(self, *, conn: Optional[PgConnection] = None) -> None:
        self._conn = conn
        self._local = threading.local()

    def _bound_connection(self) -> Optional[PgConnection]:
        return self._conn or getattr(self._local, "conn", None)

    @contextmanager
    def _cursor(self) -> Iterator[PgCursor]:
        with managed_connection(self._bound_connection()) as (connection, managed):
            cursor = connection.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            try:
                yield cursor
                if managed:
                    connection.commit()
            except psycopg2.OperationalError as exc:
                if managed:
                    connection.rollback()
                raise StoreUnavailable() from exc
            except psycopg2.errors.InvalidTextRepresentation as exc:
                if managed:
                    connection.rollback()
                raise LookupError("Malformed identifier") from exc
            except Exception:
                if managed:
                    connection.rollback()
                raise
            finally:
                cursor.close()

    @contextmanager
    def atomic(self) -> Iterator[None]:
        """Run every repository call made inside the block in one transaction."""

        if self._bound_connection() is not None:
            yield
            return
        with managed_connection() as (connection, _):
            self._local.conn = connection
            try:
                yield
            finally:
                self._local.conn = None


def build_update(
    table: str,
    changes: Mapping[str, Any],
    key_value: Any,
    *,
    allowed: Iterable[str],
    key: str = "id",
    touch_updated_at: bool = False,
) -> Tuple[sql.Composed, Dict[str, Any]]:
    """Compose an ``UPDATE ... RETURNING *`` for the whitelisted columns in ``changes``."""

    allowed_columns = set(allowed)
    columns: Sequence[str] = [column for column in changes if column in allowed_columns]
    if not columns:
        raise ValueError("No changes provided")

    assignments = [
        sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder(column))
        for column in columns
    ]
    if touch_updated_at:
        assignments.append(sql.SQL("updated_at = NOW()"))

    statement = sql.SQL("UPDATE {table} SET {assignments} WHERE {key} = {key_value} RETURNING *").format(
        table=sql.Identifier(table),
        assignments=sql.SQL(", ").join(assignments),
        key=sql.Identifier(key),
        key_value=sql.Placeholder("__key"),
    )
    params = {column: changes[column] for column in columns}
    params["__key"] = key_value
    return statement, params


__all__ = ["PostgresRepository", "build_update", "managed_connection"]
