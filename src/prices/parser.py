"""CSV parsing and validation for price imports."""

import csv
import io
import logging
import re
import zipfile
import zlib
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import IO, Iterator

from prices.errors import (
    BadRequest,
    EmptyBatch,
    InvalidArchive,
    InvalidDate,
    InvalidPrice,
    MalformedRow,
)
from prices.schema import CSV_COLUMNS, CSV_WIDTH, DATE_FORMAT
from prices.types import PriceRecord

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
# Largest magnitude DECIMAL(10,2) can hold.
MAX_PRICE = Decimal("99999999.99")
# ASCII digits only: no "_" separators, NaN/Infinity or other Unicode digits.
PRICE_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")


def parse_price(value: str) -> Decimal:
    """Parse a price into a Decimal with two fractional digits."""
    text = value.strip()
    if not PRICE_PATTERN.fullmatch(text):
        raise InvalidPrice(f"Invalid price format: {value!r}")
    price = Decimal(text)
    if abs(price) > MAX_PRICE:
        raise InvalidPrice(f"Price out of range: {value!r}")
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD date (zero-padded, nothing else)."""
    value = value.strip()
    try:
        parsed = datetime.strptime(value, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDate(f"Invalid date format (expected YYYY-MM-DD): {value!r}") from None
    # strptime also accepts unpadded forms like 2024-1-5
    if parsed.strftime(DATE_FORMAT) != value:
        raise InvalidDate(f"Invalid date format (expected YYYY-MM-DD): {value!r}")
    return parsed


def parse_row(row: list[str], columns: tuple[str, ...] = CSV_COLUMNS) -> PriceRecord:
    """Validate one CSV row and convert it to a PriceRecord.

    ``columns`` names the field held at each position. The id field is
    checked for presence only; ids are assigned by the database.
    """
    if len(row) != CSV_WIDTH:
        raise MalformedRow(
            f"Invalid CSV row length (expected {CSV_WIDTH} columns, got {len(row)})"
        )
    fields = dict(zip(columns, (cell.strip() for cell in row)))

    name = fields["name"]
    category = fields["category"]
    if not name:
        raise MalformedRow("Empty name")
    if not category:
        raise MalformedRow("Empty category")

    return PriceRecord(
        name=name,
        category=category,
        price=parse_price(fields["price"]),
        create_date=parse_date(fields["create_date"]),
    )


class PriceReader:
    """Lazy, single-pass reader of validated PriceRecords from a CSV stream.

    Iterating yields one PriceRecord per data row and raises on the first
    invalid row. Distinct categories and the row count are tracked as the
    rows go by, so they are complete once iteration finishes. An input with
    no data rows raises EmptyBatch at the end of iteration.
    """

    def __init__(
        self,
        stream: IO[bytes],
        has_header: bool = True,
        columns: tuple[str, ...] = CSV_COLUMNS,
        delimiter: str = ",",
    ):
        if sorted(columns) != sorted(CSV_COLUMNS):
            raise ValueError(f"columns must be a permutation of {CSV_COLUMNS}, got {columns}")
        self._stream = stream
        self._has_header = has_header
        self._columns = columns
        self._delimiter = delimiter
        self._started = False
        self.categories: set[str] = set()
        self.rows_read = 0

    def __iter__(self) -> Iterator[PriceRecord]:
        if self._started:
            raise RuntimeError("PriceReader can only be iterated once")
        self._started = True
        return self._read()

    def _read(self) -> Iterator[PriceRecord]:
        text = io.TextIOWrapper(self._stream, encoding="utf-8-sig", newline="")
        reader = csv.reader(text, delimiter=self._delimiter)
        skip_header = self._has_header
        try:
            for row in reader:
                if not row or all(cell.strip() == "" for cell in row):
                    continue
                if skip_header:
                    skip_header = False
                    continue
                try:
                    record = parse_row(row, self._columns)
                except BadRequest as e:
                    raise type(e)(f"line {reader.line_num}: {e}") from None
                self.categories.add(record.category)
                self.rows_read += 1
                yield record
        except UnicodeDecodeError as e:
            raise MalformedRow(f"CSV is not valid UTF-8: {e}") from e
        except csv.Error as e:
            raise MalformedRow(f"Failed to parse CSV at line {reader.line_num}: {e}") from e
        except (zipfile.BadZipFile, zlib.error, EOFError) as e:
            raise InvalidArchive(f"Corrupt archive entry: {e}") from e

        if self.rows_read == 0:
            raise EmptyBatch("No data rows found in CSV")
        logger.debug(
            "Parsed %d rows in %d categories", self.rows_read, len(self.categories)
        )
