"""Atomic bulk load of validated price rows, and the archive import pipeline."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from itertools import islice
from typing import Iterable, Iterator

from prices.archive import open_data_file
from prices.errors import PriceServiceError, StorageFailed
from prices.parser import PriceReader
from prices.schema import CSV_COLUMNS, PRICE_INSERT_COLUMNS, PRICES_TABLE
from prices.service import DatabaseService
from prices.types import PriceRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportStats:
    """Aggregates over one import batch (not the whole table)."""

    total_items: int
    total_categories: int
    total_price: Decimal


def chunked(records: Iterable[PriceRecord], chunk_size: int) -> Iterator[list[PriceRecord]]:
    """Yield lists of at most chunk_size records without materializing the input."""
    iterator = iter(records)
    while chunk := list(islice(iterator, chunk_size)):
        yield chunk


def load_prices(
    service: DatabaseService,
    records: Iterable[PriceRecord],
    chunk_size: int = 500,
) -> ImportStats:
    """Insert every record in one transaction and return batch aggregates.

    All-or-nothing: a validation error raised while ``records`` is being
    consumed, or any database error, rolls back every row of the batch.
    Validation errors propagate as-is; database errors become StorageFailed.

    If ``records`` exposes a ``categories`` set (as PriceReader does), it
    supplies the distinct-category count; otherwise it is computed here.
    """
    total_items = 0
    total_price = Decimal("0")
    seen_categories: set[str] = set()

    try:
        with service.transaction():
            for chunk in chunked(records, chunk_size):
                service.batch_insert(PRICES_TABLE, PRICE_INSERT_COLUMNS, chunk)
                total_items += len(chunk)
                total_price += sum((r.price for r in chunk), Decimal("0"))
                seen_categories.update(r.category for r in chunk)
                logger.debug("Staged %d rows (total: %d)", len(chunk), total_items)
    except PriceServiceError:
        raise
    except Exception as e:
        raise StorageFailed(f"Failed to insert records: {e}") from e

    categories = getattr(records, "categories", seen_categories)
    return ImportStats(
        total_items=total_items,
        total_categories=len(categories),
        total_price=total_price,
    )


def import_archive(
    service: DatabaseService,
    payload: bytes,
    has_header: bool = True,
    columns: tuple[str, ...] = CSV_COLUMNS,
    data_file: str | None = None,
) -> ImportStats:
    """Extract the CSV entry from a zip payload, validate it and bulk-load it."""
    with open_data_file(payload, data_file) as stream:
        reader = PriceReader(stream, has_header=has_header, columns=columns)
        stats = load_prices(service, reader)

    logger.info(
        "Imported %d rows in %d categories (total price %s)",
        stats.total_items,
        stats.total_categories,
        stats.total_price,
    )
    return stats
