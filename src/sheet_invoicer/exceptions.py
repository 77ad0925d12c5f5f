"""
Invoice batch errors.

Every error below is fatal to the batch that raised it: invoices are legal
documents, so a batch either numbers every row cleanly or emits nothing.
"""
from __future__ import annotations

from typing import Optional


class InvoiceBatchError(Exception):
    """Base class for all batch-fatal invoice errors."""


class CurrencyFormatError(InvoiceBatchError, ValueError):
    """A money string could not be read in the fixed euro convention."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Error: Invalid currency value '{value}'")


class MissingFieldError(InvoiceBatchError):
    """A required column is absent or blank."""

    def __init__(self, kind: str, field: str, header: str, row_index: int):
        self.kind = kind
        self.field = field
        self.header = header
        self.row_index = row_index
        super().__init__(f"Error: Missing {kind} '{header}' in row: {row_index}")


class IncompleteItemError(InvoiceBatchError):
    """Only one or two of the product/amount/price columns are filled."""

    def __init__(self, row_index: int, item_index: int, product_id="", amount="", price=""):
        self.row_index = row_index
        self.item_index = item_index
        super().__init__(
            f"Error: Incomplete item {item_index} '{product_id}' '{amount}' '{price}' "
            f"in row: {row_index}"
        )


class ZeroSubtotalError(InvoiceBatchError):
    def __init__(self, row_index: int, item_index: int):
        self.row_index = row_index
        self.item_index = item_index
        super().__init__(f"Error: Subtotal of item {item_index} is zero in row: {row_index}")


class InvalidAmountError(InvoiceBatchError):
    def __init__(self, row_index: int, item_index: int, amount: str):
        self.row_index = row_index
        self.item_index = item_index
        self.amount = amount
        super().__init__(
            f"Error: Amount '{amount}' of item {item_index} is not a positive integer "
            f"in row: {row_index}"
        )


class InvalidDateError(InvoiceBatchError):
    def __init__(self, row_index: int, header: str, value: str):
        self.row_index = row_index
        self.header = header
        self.value = value
        super().__init__(
            f"Error: '{header}' value '{value}' is not a DD.MM.YYYY date in row: {row_index}"
        )


class SequenceOverflowError(InvoiceBatchError):
    def __init__(self, bucket: str):
        self.bucket = bucket
        super().__init__(f"Error: More than 99 invoices in one month ({bucket}).")


class DuplicateInvoiceIdError(InvoiceBatchError):
    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"Error: Duplicated invoice ID: {invoice_id}")


class NonMonotonicIdError(InvoiceBatchError):
    def __init__(self, previous_id: int, invoice_id: str):
        self.previous_id = previous_id
        self.invoice_id = invoice_id
        super().__init__(
            f"Error: Current invoice ID is lower than previous invoice: "
            f"{previous_id} > {invoice_id}"
        )


class NonMonotonicDateError(InvoiceBatchError):
    def __init__(self, previous_date: str, invoice_date: str):
        self.previous_date = previous_date
        self.invoice_date = invoice_date
        super().__init__(
            f"Error: The invoice date is before the previous invoice: "
            f"{previous_date} > {invoice_date}"
        )


class UnresolvedReferenceError(InvoiceBatchError):
    """A line item's product or an order's customer has no matching record."""

    def __init__(self, kind: str, reference_id: str, invoice_id: Optional[str] = None):
        self.kind = kind
        self.reference_id = reference_id
        self.invoice_id = invoice_id
        where = f" in invoice {invoice_id}" if invoice_id else ""
        super().__init__(f"Error: Unknown {kind} '{reference_id}'{where}")
