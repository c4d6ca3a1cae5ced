"""Connection pool behaviour of the PostgreSQL service, against in-memory fake connections."""

import psycopg2
import pytest

from prices import postgres_service
from prices.postgres_service import PostgresDatabaseService


class FakeCursor:
    def __init__(self, conn):
        self._conn = conn
        self.description = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=None):
        if self._conn.drop_on_execute:
            # Server went away: psycopg2 marks the connection closed (2).
            self._conn.closed = 2
            raise psycopg2.OperationalError("server closed the connection unexpectedly")
        self._conn.statements.append(sql)
        self.description = [("value",)]

    def executemany(self, sql, params_list):
        for params in params_list:
            self.execute(sql, params)

    def fetchall(self):
        return [{"value": 1}]

    def fetchone(self):
        return (1,)


class FakeConnection:
    def __init__(self):
        self.closed = 0
        self.autocommit = True
        self.drop_on_execute = False
        self.fail_rollback = False
        self.statements = []
        self.commits = 0
        self.rollbacks = 0

    def _check(self):
        if self.closed:
            raise psycopg2.InterfaceError("connection already closed")

    def cursor(self, cursor_factory=None):
        self._check()
        return FakeCursor(self)

    def commit(self):
        self._check()
        self.commits += 1

    def rollback(self):
        self._check()
        if self.fail_rollback:
            raise psycopg2.OperationalError("rollback failed")
        self.rollbacks += 1

    def close(self):
        self.closed = 1


class FakeServer:
    """Stands in for psycopg2.connect and records every connection opened."""

    def __init__(self):
        self.opened = []
        self.refuse = False

    def connect(self, dsn):
        if self.refuse:
            raise psycopg2.OperationalError("could not connect to server")
        conn = FakeConnection()
        self.opened.append(conn)
        return conn


@pytest.fixture
def server(monkeypatch):
    fake = FakeServer()
    monkeypatch.setattr(postgres_service.psycopg2, "connect", fake.connect)
    return fake


@pytest.fixture
def pg_service(server):
    service = PostgresDatabaseService("postgresql://app@db/prices", pool_size=1)
    service.connect()
    yield service
    service.close()


class TestConnectionPool:
    def test_connect_fills_pool(self, server, pg_service):
        assert len(server.opened) == 1
        assert server.opened[0].autocommit is False

    def test_transaction_commits(self, server, pg_service):
        with pg_service.transaction():
            rows = pg_service.execute("SELECT 1 AS value")
        assert rows == [{"value": 1}]
        assert server.opened[0].commits == 1

    def test_closed_connection_is_reopened(self, server, pg_service):
        server.opened[0].close()

        with pg_service.transaction():
            rows = pg_service.execute("SELECT 1 AS value")

        assert rows == [{"value": 1}]
        assert len(server.opened) == 2
        assert server.opened[1].commits == 1

        # The replacement stays in the pool and is reused.
        with pg_service.transaction():
            pg_service.execute("SELECT 1 AS value")
        assert len(server.opened) == 2
        assert server.opened[1].commits == 2

    def test_connection_lost_mid_transaction_raises_original_error(self, server, pg_service):
        server.opened[0].drop_on_execute = True

        with pytest.raises(psycopg2.OperationalError, match="server closed"):
            with pg_service.transaction():
                pg_service.execute("INSERT INTO prices (name) VALUES ('Tea')")

        with pg_service.transaction():
            pg_service.execute("SELECT 1 AS value")
        assert len(server.opened) == 2
        assert server.opened[1].commits == 1

    def test_failed_rollback_keeps_original_error(self, server, pg_service):
        server.opened[0].fail_rollback = True

        with pytest.raises(ValueError, match="boom"):
            with pg_service.transaction():
                pg_service.execute("SELECT 1 AS value")
                raise ValueError("boom")

    def test_rollback_on_error(self, server, pg_service):
        with pytest.raises(ValueError):
            with pg_service.transaction():
                raise ValueError("boom")
        assert server.opened[0].rollbacks == 1
        assert server.opened[0].commits == 0

    def test_failed_reopen_keeps_slot(self, server, pg_service):
        server.opened[0].close()
        server.refuse = True

        with pytest.raises(psycopg2.OperationalError, match="could not connect"):
            with pg_service.transaction():
                pass

        server.refuse = False
        with pg_service.transaction():
            rows = pg_service.execute("SELECT 1 AS value")
        assert rows == [{"value": 1}]
        assert len(server.opened) == 2

    def test_ping_reopens_closed_connection(self, server, pg_service):
        server.opened[0].close()
        pg_service.ping()
        assert len(server.opened) == 2
        assert not server.opened[1].closed

    def test_ddl_failure_on_lost_connection(self, server, pg_service):
        server.opened[0].drop_on_execute = True
        with pytest.raises(psycopg2.OperationalError):
            pg_service.execute_ddl("CREATE TABLE t (id INTEGER)")

        pg_service.execute_ddl("CREATE TABLE t (id INTEGER)")
        assert server.opened[1].statements == ["CREATE TABLE t (id INTEGER)"]
