"""Export of the prices table as a zipped CSV."""

import csv
import io
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from prices.archive import build_archive
from prices.errors import PriceServiceError, QueryFailed, SerializationFailed
from prices.parser import CENT
from prices.schema import (
    CSV_COLUMNS,
    DATE_FORMAT,
    EXPORT_DATA_FILE,
    PRICE_EXPORT_COLUMNS,
    PRICES_TABLE,
)
from prices.service import DatabaseService

logger = logging.getLogger(__name__)

SELECT_ALL_PRICES = (
    f"SELECT {', '.join(PRICE_EXPORT_COLUMNS)} FROM {PRICES_TABLE} ORDER BY id"
)


def format_price(value: Any) -> str:
    """Render a stored price with exactly two fractional digits.

    psycopg2 returns Decimal; SQLite hands back int or float for NUMERIC
    columns, which go through str() so 19.99 stays 19.99.
    """
    try:
        price = value if isinstance(value, Decimal) else Decimal(str(value))
        return str(price.quantize(CENT))
    except (InvalidOperation, ValueError) as e:
        raise SerializationFailed(f"Cannot format price {value!r}") from e


def format_date(value: Any) -> str:
    """Render a stored date as YYYY-MM-DD (accepts date, datetime or ISO text)."""
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    try:
        return datetime.fromisoformat(str(value)).strftime(DATE_FORMAT)
    except ValueError as e:
        raise SerializationFailed(f"Cannot format date {value!r}") from e


def render_csv(rows: Iterable[dict[str, Any]], has_header: bool = True) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    if has_header:
        writer.writerow(CSV_COLUMNS)
    for row in rows:
        formatted = {
            "id": str(row["id"]),
            "name": row["name"],
            "category": row["category"],
            "price": format_price(row["price"]),
            "create_date": format_date(row["create_date"]),
        }
        writer.writerow([formatted[column] for column in CSV_COLUMNS])
    return buffer.getvalue()


def export_prices(service: DatabaseService, has_header: bool = True) -> bytes:
    """Read the whole prices table and return it as a zip holding data.csv.

    The archive is built fully in memory, so a failure never produces
    partial output.
    """
    try:
        with service.transaction():
            rows = service.execute(SELECT_ALL_PRICES)
    except Exception as e:
        raise QueryFailed(f"Failed to query database: {e}") from e

    try:
        content = render_csv(rows, has_header=has_header).encode("utf-8")
        archive = build_archive(EXPORT_DATA_FILE, content)
    except PriceServiceError:
        raise
    except (csv.Error, KeyError, OSError) as e:
        raise SerializationFailed(f"Failed to write CSV archive: {e}") from e

    logger.info("Exported %d rows (%d bytes)", len(rows), len(archive))
    return archive
