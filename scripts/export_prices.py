"""CLI entry point for exporting the prices table to a zip archive on disk.

Usage:
    python -m scripts.export_prices --db-url sqlite:///prices.db --out data.zip
"""

import argparse
import logging
import sys
from pathlib import Path

from prices import create_service
from prices.config import get_settings
from prices.errors import PriceServiceError
from prices.exporter import export_prices
from prices.schema import EXPORT_ARCHIVE_NAME, ensure_prices_schema

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Export the prices table as a zipped CSV")
    parser.add_argument(
        "--db-url",
        default=get_settings().db_url,
        help="Database URL (sqlite:/// or postgresql://); defaults to the environment",
    )
    parser.add_argument("--out", default=EXPORT_ARCHIVE_NAME, help="Output archive path")
    parser.add_argument("--no-header", action="store_true", help="Omit the CSV header line")
    args = parser.parse_args()

    service = create_service(args.db_url)
    service.connect()
    try:
        ensure_prices_schema(service)
        archive = export_prices(service, has_header=not args.no_header)
    except PriceServiceError as e:
        logger.error("Export failed: %s", e)
        sys.exit(1)
    finally:
        service.close()

    Path(args.out).write_bytes(archive)
    logger.info("Done. Wrote %s (%d bytes).", args.out, len(archive))


if __name__ == "__main__":
    main()
