"""SQLite implementation of BackendService."""

import sqlite3
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Any, Iterator

from otcbackend.service import BackendService
from otcbackend.types import BackendError, Match, Params, Row


def _backend_error(e: sqlite3.Error) -> BackendError:
    return BackendError(str(e), code=getattr(e, "sqlite_errorname", None))


class SQLiteBackendService(BackendService):
    """Local backend using stdlib sqlite3.

    Thread-safe via a connection pool (Queue). Every public operation runs in
    its own transaction on a pooled connection. Remote procedures are
    emulated by SQL scripts registered with register_procedure().
    """

    dialect = "sqlite"

    def __init__(self, db_path: str, pool_size: int = 4):
        self._db_path = db_path
        self._pool_size = pool_size
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()
        self._procedures: dict[str, str] = {}

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA foreign_keys=ON")
            self._pool.put(conn)

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break

    def _acquire(self) -> sqlite3.Connection:
        return self._pool.get(timeout=30)

    def _release(self, conn: sqlite3.Connection) -> None:
        self._pool.put(conn)

    def _get_conn(self) -> sqlite3.Connection:
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
        cursor = conn.execute(sql, params or ())
        if cursor.description is None:
            return []
        columns = [desc[0] for desc in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            self._release(conn)

    def register_procedure(self, name: str, sql: str) -> None:
        """Register a `;`-separated SQL script callable through rpc(name).

        Statements use named placeholders (`:project_uuid`) bound from the
        rpc params.
        """
        self._procedures[name] = sql

    def _run(self, sql: str, params: Params | None = None) -> list[Row]:
        try:
            with self.transaction():
                return self.execute(sql, params)
        except sqlite3.Error as e:
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
            sql += " WHERE " + " AND ".join(f"{col} = ?" for col in match)
            params = list(match.values())
        if order_by:
            sql += f" ORDER BY {order_by} {'DESC' if descending else 'ASC'}"
        return self._run(sql, params)

    def insert(self, table: str, records: list[Row]) -> None:
        if not records:
            return
        columns = list(dict.fromkeys(key for record in records for key in record))
        cols = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"
        rows = [tuple(record.get(col) for col in columns) for record in records]
        conn = self._acquire()
        try:
            conn.executemany(sql, rows)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise _backend_error(e) from e
        finally:
            self._release(conn)

    def update(self, table: str, values: Row, match: Match) -> None:
        if not values:
            return
        set_clause = ", ".join(f"{col} = ?" for col in values)
        where = " AND ".join(f"{col} = ?" for col in match)
        sql = f"UPDATE {table} SET {set_clause} WHERE {where}"
        self._run(sql, [*values.values(), *match.values()])

    def delete(self, table: str, match: Match | None = None) -> None:
        sql = f"DELETE FROM {table}"
        params: list[Any] = []
        if match:
            sql += " WHERE " + " AND ".join(f"{col} = ?" for col in match)
            params = list(match.values())
        self._run(sql, params)

    def rpc(self, function: str, params: dict[str, Any] | None = None) -> Any:
        script = self._procedures.get(function)
        if script is None:
            raise BackendError(
                f"Could not find the function public.{function}",
                code="PGRST202",
                hint="Register the procedure on the local backend first.",
                status=404,
            )
        result: list[Row] = []
        try:
            with self.transaction():
                for statement in script.split(";"):
                    statement = statement.strip()
                    if statement:
                        result = self.execute(statement, params or {})
        except sqlite3.Error as e:
            raise _backend_error(e) from e
        return result or None
