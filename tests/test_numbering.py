"""
Invoice numbering engine tests
==============================

Verifies totals, default dates, per-month id sequences and the uniqueness
and ordering checks across the rows of one batch.
"""
import sys
import unittest
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from sheet_invoicer.exceptions import (
    DuplicateInvoiceIdError,
    IncompleteItemError,
    InvalidAmountError,
    InvalidDateError,
    NonMonotonicDateError,
    NonMonotonicIdError,
    SequenceOverflowError,
    ZeroSubtotalError,
)
from sheet_invoicer.models import LineItem, NumberingState, Order
from sheet_invoicer.numbering import (
    InvoiceNumberingEngine,
    build_orders,
    format_sheet_date,
    parse_sheet_date,
)

TODAY = date(2024, 3, 20)


def _row(invoice_id="", invoice_date="", run="TRUE", price="10,50", amount="3", **extra):
    row = {
        "Run": run,
        "Invoice ID": invoice_id,
        "Invoice Date": invoice_date,
        "Execution Date": "15.03.2024",
        "Customer": "C1",
        "Product 1": "P1",
        "Amount 1": amount,
        "Price 1": price,
    }
    row.update(extra)
    return row


def _number(rows):
    engine = InvoiceNumberingEngine(today=TODAY)
    return engine.number_batch(build_orders(rows))


class TestSheetDates(unittest.TestCase):

    def test_parse_and_format(self):
        self.assertEqual(parse_sheet_date("05.03.2024"), date(2024, 3, 5))
        self.assertEqual(format_sheet_date(date(2024, 3, 5)), "05.03.2024")

    def test_parse_rejects_other_formats(self):
        with self.assertRaises(InvalidDateError):
            parse_sheet_date("2024-03-05", 2)


class TestTotals(unittest.TestCase):

    def setUp(self):
        self.engine = InvoiceNumberingEngine(today=TODAY)

    def test_price_times_amount(self):
        order = Order(customer_id="C1", execution_date="15.03.2024",
                      items=[LineItem("P1", "3", "10,50")])
        self.assertEqual(self.engine.compute_total(order), "31,50 €")
        self.assertEqual(order.total, "31,50 €")

    def test_sum_of_items_with_grouping(self):
        order = Order(customer_id="C1", execution_date="15.03.2024", items=[
            LineItem("P1", "10", "99,99"),
            LineItem("P2", "1", "1 000,01 €"),
        ])
        self.assertEqual(self.engine.compute_total(order), "1 999,91 €")

    def test_no_items_totals_zero(self):
        order = Order(customer_id="C1", execution_date="15.03.2024")
        self.assertEqual(self.engine.compute_total(order), "0,00 €")

    def test_zero_subtotal_rejected(self):
        order = Order(customer_id="C1", execution_date="15.03.2024", row_index=4,
                      items=[LineItem("P1", "2", "5,00"), LineItem("P2", "2", "0,00")])
        with self.assertRaises(ZeroSubtotalError) as ctx:
            self.engine.compute_total(order)
        self.assertEqual(ctx.exception.item_index, 2)

    def test_zero_amount_rejected(self):
        order = Order(customer_id="C1", execution_date="15.03.2024",
                      items=[LineItem("P1", "0", "5,00")])
        with self.assertRaises(ZeroSubtotalError):
            self.engine.compute_total(order)

    def test_fractional_amount_rejected(self):
        order = Order(customer_id="C1", execution_date="15.03.2024",
                      items=[LineItem("P1", "1,5", "5,00")])
        with self.assertRaises(InvalidAmountError):
            self.engine.compute_total(order)


class TestNumberBatch(unittest.TestCase):

    def test_sequential_ids_within_month(self):
        result = _number([_row(invoice_date="10.03.2024"), _row(invoice_date="12.03.2024")])
        self.assertEqual([o.invoice_id for o in result.orders], ["20240301", "20240302"])
        self.assertTrue(all(o.id_assigned for o in result.orders))

    def test_new_month_restarts_sequence(self):
        result = _number([
            _row(invoice_date="30.03.2024"),
            _row(invoice_date="01.04.2024"),
            _row(invoice_date="02.04.2024"),
        ])
        self.assertEqual(
            [o.invoice_id for o in result.orders], ["20240301", "20240401", "20240402"]
        )

    def test_blank_date_defaults_to_today(self):
        result = _number([_row()])
        order = result.orders[0]
        self.assertEqual(order.invoice_date, "20.03.2024")
        self.assertTrue(order.date_assigned)
        self.assertEqual(order.invoice_id, "20240301")

    def test_explicit_id_and_date_kept(self):
        result = _number([_row(invoice_id="20240207", invoice_date="28.02.2024")])
        order = result.orders[0]
        self.assertEqual(order.invoice_id, "20240207")
        self.assertFalse(order.id_assigned)
        self.assertFalse(order.date_assigned)

    def test_total_is_stored(self):
        result = _number([_row(price="10,50", amount="3")])
        self.assertEqual(result.orders[0].total, "31,50 €")

    def test_selected_follows_run_flag(self):
        result = _number([
            _row(invoice_date="01.03.2024", run="FALSE"),
            _row(invoice_date="02.03.2024", run="TRUE"),
        ])
        self.assertEqual(len(result.orders), 2)
        self.assertEqual([o.invoice_id for o in result.selected], ["20240302"])

    def test_unselected_rows_still_validated(self):
        with self.assertRaises(IncompleteItemError):
            _number([_row(run="FALSE", price="")])

    def test_hundredth_order_overflows(self):
        rows = [_row(invoice_date="01.03.2024") for _ in range(100)]
        with self.assertRaises(SequenceOverflowError) as ctx:
            _number(rows)
        self.assertEqual(ctx.exception.bucket, "202403")

    def test_ninety_nine_orders_fit(self):
        result = _number([_row(invoice_date="01.03.2024") for _ in range(99)])
        self.assertEqual(result.orders[-1].invoice_id, "20240399")

    def test_earlier_date_rejected(self):
        with self.assertRaises(NonMonotonicDateError):
            _number([_row(invoice_date="15.03.2024"), _row(invoice_date="10.03.2024")])

    def test_same_date_allowed(self):
        result = _number([_row(invoice_date="15.03.2024"), _row(invoice_date="15.03.2024")])
        self.assertEqual(len(result.orders), 2)

    def test_duplicate_explicit_id_rejected(self):
        with self.assertRaises(DuplicateInvoiceIdError) as ctx:
            _number([
                _row(invoice_id="20240301", invoice_date="01.03.2024"),
                _row(invoice_id="20240301", invoice_date="01.03.2024"),
            ])
        self.assertEqual(ctx.exception.invoice_id, "20240301")

    def test_lower_explicit_id_rejected(self):
        with self.assertRaises(NonMonotonicIdError):
            _number([
                _row(invoice_id="20240305", invoice_date="01.03.2024"),
                _row(invoice_id="20240301", invoice_date="01.03.2024"),
            ])

    def test_non_numeric_id_skips_order_check(self):
        result = _number([
            _row(invoice_id="20240305", invoice_date="01.03.2024"),
            _row(invoice_id="GUTSCHRIFT-1", invoice_date="01.03.2024"),
            _row(invoice_id="20240304", invoice_date="01.03.2024"),
        ])
        self.assertEqual(len(result.orders), 3)

    def test_bad_execution_date_rejected(self):
        with self.assertRaises(InvalidDateError) as ctx:
            _number([_row(**{"Execution Date": "März 2024"})])
        self.assertEqual(ctx.exception.header, "Execution Date")

    def test_each_batch_starts_fresh(self):
        first = _number([_row(invoice_date="01.03.2024")])
        second = _number([_row(invoice_date="01.03.2024")])
        self.assertEqual(first.orders[0].invoice_id, second.orders[0].invoice_id)


class TestNumberOrder(unittest.TestCase):

    def test_state_is_updated(self):
        engine = InvoiceNumberingEngine(today=TODAY)
        state = NumberingState()
        order = build_orders([_row(invoice_date="01.03.2024")])[0]
        engine.number_order(order, state)
        self.assertEqual(state.registry, {"202403": 1})
        self.assertEqual(state.seen_ids, {"20240301"})
        self.assertEqual(state.previous_id, 20240301)
        self.assertEqual(state.previous_date, date(2024, 3, 1))


if __name__ == "__main__":
    unittest.main()
