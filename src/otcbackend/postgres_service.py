"""PostgreSQL implementation of BackendService."""

import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Any, Iterator

import psycopg2
import psycopg2.extras

from otcbackend.service import BackendService
from otcbackend.types import BackendError, Match, Params, Row


def _backend_error(e: psycopg2.Error) -> BackendError:
    diag = getattr(e, "diag", None)
    message = (diag and diag.message_primary) or str(e).strip()
    return BackendError(
        message,
        code=e.pgcode,
        details=diag.message_detail if diag else None,
        hint=diag.message_hint if diag else None,
    )


class PostgresBackendService(BackendService):
    """Direct connection to the Postgres database behind the hosted backend.

    Thread-safe via a connection pool (Queue). Remote procedures are called
    as SQL functions with named arguments.
    """

    dialect = "postgresql"

    def __init__(self, dsn: str, pool_size: int = 4):
        self._dsn = dsn
        self._pool_size = pool_size
        self._pool: Queue = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = psycopg2.connect(self._dsn)
            conn.autocommit = False
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self):
        return self._pool.get(timeout=30)

    def _release(self, conn) -> None:
        self._pool.put(conn)

    def _get_conn(self):
        conn = getattr(self._local, "conn", None)
        if conn is not None:
            return conn
        raise RuntimeError(
            "No active transaction. Wrap calls in a `with service.transaction():` block."
        )

    @contextmanager
    def transaction(self) -> Iterator[None]:
        conn = self._acquire()
        self._local.conn = conn
        try:
            yield
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            self._release(conn)

    def execute(self, sql: str, params: Params | None = None) -> list[Row]:
        conn = self._get_conn()
        with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
            cur.execute(sql, params or ())
            if cur.description is None:
                return []
            return [dict(row) for row in cur.fetchall()]

    def execute_ddl(self, sql: str) -> None:
        # Sent as one script so function bodies containing ';' survive.
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                cur.execute(sql)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self._release(conn)

    def _run(self, sql: str, params: Params | None = None) -> list[Row]:
        try:
            with self.transaction():
                return self.execute(sql, params)
        except psycopg2.Error as e:
            raise _backend_error(e) from e

    def select(
        self,
        table: str,
        match: Match | None = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Row]:
        sql = f"SELECT * FROM {table}"
        params: list[Any] = []
        if match:
            sql += " WHERE " + " AND ".join(f"{col} = %s" for col in match)
            params = list(match.values())
        if order_by:
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        return self._run(sql, params)

    def insert(self, table: str, records: list[Row]) -> None:
        if not records:
            return
        columns = list(dict.fromkeys(key for record in records for key in record))
        cols = ", ".join(columns)
        rows = [tuple(record.get(col) for col in columns) for record in records]
        sql = f"INSERT INTO {table} ({cols}) VALUES %s"
        try:
            with self.transaction():
                with self._get_conn().cursor() as cur:
                    psycopg2.extras.execute_values(cur, sql, rows)
        except psycopg2.Error as e:
            raise _backend_error(e) from e

    def update(self, table: str, values: Row, match: Match) -> None:
        if not values:
            return
        set_clause = ", ".join(f"{col} = %s" for col in values)
        where = " AND ".join(f"{col} = %s" for col in match)
        sql = f"UPDATE {table} SET {set_clause} WHERE {where}"
        self._run(sql, [*values.values(), *match.values()])

    def delete(self, table: str, match: Match | None = None) -> None:
        sql = f"DELETE FROM {table}"
        params: list[Any] = []
        if match:
            sql += " WHERE " + " AND ".join(f"{col} = %s" for col in match)
            params = list(match.values())
        self._run(sql, params)

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        params = params or {}
        args = ", ".join(f"{name} => %({name})s" for name in params)
        rows = self._run(f"SELECT {function}({args}) AS result", params)
        return rows[0]["result"] if rows else None
