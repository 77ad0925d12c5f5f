"""
Item Extractor
Reads the repeating "Product N / Amount N / Price N" column blocks of an
order row into line items.
"""

from __future__ import annotations

from typing import List, Mapping

from .exceptions import IncompleteItemError
from .models import LineItem

PRODUCT_PREFIX = 'Product '
AMOUNT_PREFIX = 'Amount '
PRICE_PREFIX = 'Price '


def _cell(row: Mapping[str, object], header: str) -> str:
    value = row.get(header)
    return '' if value is None else str(value).strip()


def extract_items(
    row: Mapping[str, object],
    row_index: int,
    product_prefix: str = PRODUCT_PREFIX,
    amount_prefix: str = AMOUNT_PREFIX,
    price_prefix: str = PRICE_PREFIX,
) -> List[LineItem]:
    """
    Scan item blocks from suffix 1 upwards.

    An all-blank block (or a suffix whose columns do not exist) ends the list.
    A block with one or two blanks raises IncompleteItemError; partial blocks
    are never dropped or defaulted.

    Args:
        row: Header-keyed order row
        row_index: 0-based data row, used in error messages
        product_prefix / amount_prefix / price_prefix: column name prefixes

    Returns:
        Line items in column order (possibly empty)
    """
    items: List[LineItem] = []
    index = 1
    while True:
        product_id = _cell(row, f"{product_prefix}{index}")
        amount = _cell(row, f"{amount_prefix}{index}")
        price = _cell(row, f"{price_prefix}{index}")

        filled = [bool(product_id), bool(amount), bool(price)]
        if not any(filled):
            break
        if not all(filled):
            raise IncompleteItemError(row_index, index, product_id, amount, price)

        items.append(LineItem(product_id=product_id, amount=amount, unit_price=price))
        index += 1

    return items
