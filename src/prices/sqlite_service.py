"""SQLite implementation of DatabaseService."""

import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from queue import Empty, Queue
from typing import Iterator

from prices.service import DatabaseService
from prices.types import Params, ParamsList, Row

# sqlite3 has no native DECIMAL/DATE; store their text forms.
sqlite3.register_adapter(Decimal, str)
sqlite3.register_adapter(date, date.isoformat)


class SQLiteDatabaseService(DatabaseService):
    """SQLite backend using stdlib sqlite3.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit. Concurrent
    writers serialize on SQLite's database lock, waiting up to
    ``busy_timeout`` seconds.
    """

    dialect = "sqlite"

    def __init__(self, db_path: str, pool_size: int = 4, busy_timeout: float = 30.0):
        self._db_path = db_path
        self._pool_size = pool_size
        self._busy_timeout = busy_timeout
        self._pool: Queue[sqlite3.Connection] = Queue(maxsize=pool_size)
        self._local = threading.local()

    def connect(self) -> None:
        for _ in range(self._pool_size):
            conn = sqlite3.connect(
                self._db_path, timeout=self._busy_timeout, check_same_thread=False
            )
            conn.execute("PRAGMA journal_mode=WAL")
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
        """Get the connection bound to the current thread's transaction."""
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

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        conn.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            conn.executescript(sql)
            conn.commit()
        finally:
            self._release(conn)

    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> None:
        if not rows:
            return
        cols = ", ".join(columns)
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({cols}) VALUES ({placeholders})"
        self.execute_many(sql, rows)

    def ping(self) -> None:
        conn = self._acquire()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            self._release(conn)
