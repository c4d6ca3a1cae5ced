"""HTTP server entry point.

Usage:
    python -m scripts.serve [--host 0.0.0.0] [--port 8080] [--db-url postgresql://...]

Defaults come from the environment (DB_USER, DB_PASSWORD, DB_NAME, DB_HOST,
DB_PORT, DATABASE_URL, HOST, PORT). Failing to reach the database or to
create the schema aborts startup.
"""

import argparse
import logging

import uvicorn

from prices import create_service
from prices.api import create_app
from prices.config import get_settings
from prices.schema import ensure_prices_schema

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Serve the prices import/export API")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to listen on")
    parser.add_argument(
        "--db-url", default=settings.db_url, help="Database URL (sqlite:/// or postgresql://)"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    service = create_service(args.db_url, settings.db_pool_size)
    service.connect()
    try:
        service.ping()
        ensure_prices_schema(service)
        logger.info("Server starting on %s:%d", args.host, args.port)
        uvicorn.run(create_app(service), host=args.host, port=args.port, log_config=None)
    finally:
        service.close()
        logger.info("Database connections closed")


if __name__ == "__main__":
    main()
