"""Shared test fixtures."""

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from prices import create_service
from prices.api import create_app
from prices.schema import ensure_prices_schema

HEADER = "id,name,category,price,create_date"


@pytest.fixture
def db_service(tmp_path):
    """Provide a fresh SQLite DatabaseService for each test."""
    db_path = tmp_path / "test.db"
    service = create_service(f"sqlite:///{db_path}")
    service.connect()
    yield service
    service.close()


@pytest.fixture
def prices_service(db_service):
    """A DatabaseService with the prices table in place."""
    ensure_prices_schema(db_service)
    return db_service


@pytest.fixture
def client(prices_service):
    with TestClient(create_app(prices_service)) as test_client:
        yield test_client


@pytest.fixture
def make_archive():
    """Factory: build a zip holding one CSV (header first unless header=None)."""

    def _make(rows, header=HEADER, name="data.csv", extra=None):
        lines = ([header] if header is not None else []) + list(rows)
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            for extra_name, extra_content in (extra or {}).items():
                archive.writestr(extra_name, extra_content)
            archive.writestr(name, "\n".join(lines) + "\n")
        return buffer.getvalue()

    return _make


@pytest.fixture
def count_prices(prices_service):
    """Callable returning the current number of rows in the prices table."""

    def _count() -> int:
        with prices_service.transaction():
            rows = prices_service.execute("SELECT COUNT(*) AS cnt FROM prices")
        return rows[0]["cnt"]

    return _count
