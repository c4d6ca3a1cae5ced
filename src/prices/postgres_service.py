"""PostgreSQL implementation of DatabaseService."""

import logging
import threading
from contextlib import contextmanager
from queue import Empty, Queue
from typing import Iterator

import psycopg2
import psycopg2.extras

from prices.service import DatabaseService
from prices.types import Params, ParamsList, Row

logger = logging.getLogger(__name__)


class PostgresDatabaseService(DatabaseService):
    """PostgreSQL backend using psycopg2.

    Thread-safe via a connection pool (Queue). Each transaction() call
    acquires a dedicated connection and returns it on exit. A connection
    that psycopg2 reports as closed (server restart, dropped socket) is
    never handed out again: its pool slot is emptied and reopened on the
    next acquire, so one outage does not poison the pool.

    psycopg2 adapts ``Decimal`` and ``date`` natively, so NUMERIC and DATE
    columns round-trip without conversion.
    """

    dialect = "postgresql"

    def __init__(self, dsn: str, pool_size: int = 4):
        self._dsn = dsn
        self._pool_size = pool_size
        # Slots hold a live connection, or None when it must be (re)opened.
        self._pool: Queue = Queue(maxsize=pool_size)
        self._local = threading.local()

    def _open(self):
        conn = psycopg2.connect(self._dsn)
        conn.autocommit = False
        return conn

    def connect(self) -> None:
        for _ in range(self._pool_size):
            self._pool.put(self._open())

    def close(self) -> None:
        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
            except Empty:
                break
            if conn is not None:
                conn.close()

    def _acquire(self):
        conn = self._pool.get(timeout=30)
        if conn is not None and not conn.closed:
            return conn
        if conn is not None:
            logger.warning("Discarding closed database connection")
        try:
            return self._open()
        except Exception:
            self._pool.put(None)
            raise

    def _release(self, conn) -> None:
        self._pool.put(None if conn.closed else conn)

    def _rollback(self, conn) -> None:
        # Must not mask the error that triggered the rollback.
        if conn.closed:
            return
        try:
            conn.rollback()
        except psycopg2.Error:
            logger.warning("Rollback failed", exc_info=True)

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
            self._rollback(conn)
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

    def execute_many(self, sql: str, params_list: ParamsList) -> None:
        conn = self._get_conn()
        with conn.cursor() as cur:
            cur.executemany(sql, params_list)

    def execute_ddl(self, sql: str) -> None:
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                for statement in filter(None, (s.strip() for s in sql.split(";"))):
                    cur.execute(statement)
            conn.commit()
        except Exception:
            self._rollback(conn)
            raise
        finally:
            self._release(conn)

    def batch_insert(self, table: str, columns: list[str], rows: list[tuple]) -> None:
        if not rows:
            return
        sql = "INSERT INTO {} ({}) VALUES ({})".format(
            table, ", ".join(columns), ", ".join(["%s"] * len(columns))
        )
        self.execute_many(sql, rows)

    def ping(self) -> None:
        conn = self._acquire()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
            conn.rollback()
        finally:
            self._release(conn)
