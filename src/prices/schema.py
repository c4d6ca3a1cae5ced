"""Prices table schema and CSV layout."""

import logging

from prices.service import DatabaseService

logger = logging.getLogger(__name__)

PRICES_TABLE = "prices"

_PRICES_COLUMNS_DDL = """
    name          VARCHAR(255)  NOT NULL,
    category      VARCHAR(255)  NOT NULL,
    price         DECIMAL(10,2) NOT NULL,
    create_date   DATE          NOT NULL
"""

PRICES_TABLE_DDL = {
    "postgresql": f"""
CREATE TABLE IF NOT EXISTS prices (
    id            SERIAL        PRIMARY KEY,{_PRICES_COLUMNS_DDL});
""",
    "sqlite": f"""
CREATE TABLE IF NOT EXISTS prices (
    id            INTEGER       PRIMARY KEY AUTOINCREMENT,{_PRICES_COLUMNS_DDL});
""",
}

# Columns written by an import; id is assigned by the database.
PRICE_INSERT_COLUMNS = ["name", "category", "price", "create_date"]
# Columns read back by an export, in CSV order.
PRICE_EXPORT_COLUMNS = ["id", "name", "category", "price", "create_date"]

# Position of each field in a CSV row (both directions).
CSV_COLUMNS = ("id", "name", "category", "price", "create_date")
CSV_WIDTH = len(CSV_COLUMNS)
DATE_FORMAT = "%Y-%m-%d"

EXPORT_ARCHIVE_NAME = "data.zip"
EXPORT_DATA_FILE = "data.csv"


def ensure_prices_schema(service: DatabaseService) -> None:
    """Create the prices table if it doesn't exist."""
    try:
        ddl = PRICES_TABLE_DDL[service.dialect]
    except KeyError:
        raise ValueError(f"No prices schema for dialect {service.dialect!r}") from None
    service.execute_ddl(ddl)
    logger.info("Ensured %s table (%s)", PRICES_TABLE, service.dialect)
