"""CLI entry point for importing a zipped price CSV without the HTTP server.

Usage:
    python -m scripts.import_prices --db-url sqlite:///prices.db --file data.zip [--no-header]
"""

import argparse
import logging
import sys
from pathlib import Path

from prices import create_service
from prices.config import get_settings
from prices.errors import PriceServiceError
from prices.loader import import_archive
from prices.schema import ensure_prices_schema

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> None:
    parser = argparse.ArgumentParser(description="Import a zipped price CSV into the database")
    parser.add_argument(
        "--db-url",
        default=get_settings().db_url,
        help="Database URL (sqlite:/// or postgresql://); defaults to the environment",
    )
    parser.add_argument("--file", required=True, help="Path to the zip archive")
    parser.add_argument("--data-file", help="Exact archive entry to read (default: first .csv)")
    parser.add_argument("--no-header", action="store_true", help="The CSV has no header line")
    args = parser.parse_args()

    payload = Path(args.file).read_bytes()

    service = create_service(args.db_url)
    service.connect()
    try:
        ensure_prices_schema(service)
        stats = import_archive(
            service, payload, has_header=not args.no_header, data_file=args.data_file
        )
    except PriceServiceError as e:
        logger.error("Import of %s failed: %s", args.file, e)
        sys.exit(1)
    finally:
        service.close()

    logger.info(
        "Done. %d rows, %d categories, total price %s.",
        stats.total_items,
        stats.total_categories,
        stats.total_price,
    )


if __name__ == "__main__":
    main()
