"""
Invoice Numbering Engine
Builds orders from sheet rows, checks their arithmetic and assigns invoice
ids and dates.

Ids are `YYYYMM` + a two-digit sequence per calendar month. Rows must be fed
in sheet order: uniqueness and the "never lower than the previous row" rules
for ids and dates are checked against the state of the rows before.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from .currency import EURO, CurrencyCodec
from .entity_mapper import map_order_fields, row_position
from .exceptions import (
    DuplicateInvoiceIdError,
    InvalidAmountError,
    InvalidDateError,
    NonMonotonicDateError,
    NonMonotonicIdError,
    SequenceOverflowError,
    ZeroSubtotalError,
)
from .item_extractor import extract_items
from .logger import get_logger
from .models import NumberingResult, NumberingState, Order

DATE_FORMAT = '%d.%m.%Y'
BUCKET_FORMAT = '%Y%m'
MAX_SEQUENCE = 99

_AMOUNT = re.compile(r'^\d+$')


def parse_sheet_date(value: str, row_index: int = 0, header: str = 'Invoice Date') -> date:
    """Parse a DD.MM.YYYY cell."""
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(row_index, header, value)


def format_sheet_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def build_orders(rows: Iterable[Mapping[str, object]]) -> List[Order]:
    """Map every order row and its item blocks, in sheet order."""
    orders = []
    for position, row in enumerate(rows):
        row_index = row_position(row, position)
        order = map_order_fields(row, row_index)
        order.items = extract_items(row, row_index)
        orders.append(order)
    return orders


class InvoiceNumberingEngine:
    """Validate and number a batch of orders."""

    def __init__(self, today: Optional[date] = None, codec: CurrencyCodec = EURO):
        self.today = today
        self.codec = codec
        self.logger = get_logger()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def number_batch(self, orders: Iterable[Order]) -> NumberingResult:
        """Number every order with one fresh state; the first failure aborts."""
        state = NumberingState()
        result = NumberingResult()

        for order in orders:
            self.number_order(order, state)
            result.orders.append(order)
            if order.selected:
                result.selected.append(order)

        self.logger.info(
            f"Numbered {len(result.orders)} orders, {len(result.selected)} selected for invoicing",
            component="Numbering",
        )
        return result

    def number_order(self, order: Order, state: NumberingState) -> Order:
        """Total, date, id and ordering checks for one row; updates `state`."""
        self.compute_total(order)

        parse_sheet_date(order.execution_date, order.row_index, 'Execution Date')
        invoice_date = self.resolve_invoice_date(order)
        invoice_id = self.resolve_invoice_id(order, invoice_date, state)

        if invoice_id in state.seen_ids:
            raise DuplicateInvoiceIdError(invoice_id)

        numeric_id = int(invoice_id) if invoice_id.isdecimal() else None
        if (
            numeric_id is not None
            and state.previous_id is not None
            and numeric_id < state.previous_id
        ):
            raise NonMonotonicIdError(state.previous_id, invoice_id)

        if state.previous_date is not None and invoice_date < state.previous_date:
            raise NonMonotonicDateError(
                format_sheet_date(state.previous_date), order.invoice_date
            )

        state.previous_id = numeric_id
        state.previous_date = invoice_date
        state.seen_ids.add(invoice_id)

        self.logger.debug(
            f"Row {order.row_index}: invoice {invoice_id} dated {order.invoice_date}, "
            f"total {order.total}",
            component="Numbering",
        )
        return order

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def compute_total(self, order: Order) -> str:
        """Sum price x amount over the items and store the formatted total."""
        total = Decimal(0)
        for item_index, item in enumerate(order.items, start=1):
            subtotal = self.item_subtotal(item.unit_price, item.amount, order.row_index, item_index)
            if subtotal == 0:
                raise ZeroSubtotalError(order.row_index, item_index)
            total += subtotal

        order.total = self.codec.format(total)
        return order.total

    def item_subtotal(self, unit_price: str, amount: str, row_index: int = 0, item_index: int = 1) -> Decimal:
        text = amount.strip()
        if not _AMOUNT.match(text):
            raise InvalidAmountError(row_index, item_index, amount)
        return self.codec.parse(unit_price) * int(text)

    def resolve_invoice_date(self, order: Order) -> date:
        """Default a blank invoice date to the run date."""
        if not order.invoice_date:
            order.invoice_date = format_sheet_date(self.today or date.today())
            order.date_assigned = True
        return parse_sheet_date(order.invoice_date, order.row_index, 'Invoice Date')

    def resolve_invoice_id(self, order: Order, invoice_date: date, state: NumberingState) -> str:
        """Keep an explicit id; otherwise take the next number of the month bucket."""
        if order.invoice_id:
            return order.invoice_id

        bucket = invoice_date.strftime(BUCKET_FORMAT)
        suffix = state.registry.get(bucket, 0) + 1
        if suffix > MAX_SEQUENCE:
            raise SequenceOverflowError(bucket)
        state.registry[bucket] = suffix

        order.invoice_id = f"{bucket}{suffix:02d}"
        order.id_assigned = True
        return order.invoice_id
