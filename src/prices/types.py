"""Shared types for the prices package."""

from datetime import date
from decimal import Decimal
from typing import Any, NamedTuple

Row = dict[str, Any]
Params = tuple | list | dict
ParamsList = list[tuple] | list[list]


class PriceRecord(NamedTuple):
    """One validated CSV row, in PRICE_INSERT_COLUMNS order."""

    name: str
    category: str
    price: Decimal
    create_date: date
