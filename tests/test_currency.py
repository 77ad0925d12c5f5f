"""
Euro currency codec tests
=========================

Verifies parsing and formatting of "1 234,56 €" style money strings,
half-up rounding to cents and rejection of malformed input.
"""
import sys
import unittest
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from sheet_invoicer.currency import EURO, CurrencyCodec, format_euro, parse_euro
from sheet_invoicer.exceptions import CurrencyFormatError, InvoiceBatchError


class TestParse(unittest.TestCase):

    def test_plain_comma_decimal(self):
        self.assertEqual(EURO.parse("10,50"), Decimal("10.50"))

    def test_grouped_with_symbol(self):
        self.assertEqual(EURO.parse("1 234,56 €"), Decimal("1234.56"))

    def test_no_break_space_grouping(self):
        self.assertEqual(EURO.parse("1\u00a0234,56\u00a0€"), Decimal("1234.56"))

    def test_integer_string(self):
        self.assertEqual(EURO.parse("7"), Decimal("7.00"))

    def test_blank_is_zero(self):
        self.assertEqual(EURO.parse(""), Decimal("0.00"))
        self.assertEqual(EURO.parse("   "), Decimal("0.00"))

    def test_negative_forms(self):
        self.assertEqual(EURO.parse("-3,00 €"), Decimal("-3.00"))
        self.assertEqual(EURO.parse("(5,00 €)"), Decimal("-5.00"))

    def test_numbers_pass_through(self):
        self.assertEqual(EURO.parse(Decimal("1.005")), Decimal("1.01"))
        self.assertEqual(EURO.parse(2.675), Decimal("2.68"))
        self.assertEqual(EURO.parse(3), Decimal("3.00"))

    def test_rounds_half_up(self):
        self.assertEqual(EURO.parse("0,005"), Decimal("0.01"))
        self.assertEqual(EURO.parse("0,004"), Decimal("0.00"))

    def test_garbage_rejected(self):
        for value in ("abc", "12,3x", "€", "1,2,3"):
            with self.subTest(value=value):
                with self.assertRaises(CurrencyFormatError):
                    EURO.parse(value)

    def test_foreign_currency_code_rejected(self):
        with self.assertRaises(CurrencyFormatError):
            EURO.parse("10,50 EUR")
        with self.assertRaises(CurrencyFormatError):
            EURO.parse("USD 10,50")

    def test_symbol_position_does_not_matter(self):
        self.assertEqual(EURO.parse("€ 10,50"), Decimal("10.50"))
        self.assertEqual(EURO.parse("10,50€"), Decimal("10.50"))

    def test_error_is_batch_error_and_value_error(self):
        with self.assertRaises(InvoiceBatchError):
            EURO.parse("n/a")
        with self.assertRaises(ValueError):
            EURO.parse("n/a")


class TestFormat(unittest.TestCase):

    def test_two_decimals_and_symbol(self):
        self.assertEqual(EURO.format(Decimal("31.5")), "31,50 €")

    def test_thousands_grouping(self):
        self.assertEqual(EURO.format(Decimal("1234567.8")), "1 234 567,80 €")
        self.assertEqual(EURO.format(Decimal("999")), "999,00 €")
        self.assertEqual(EURO.format(Decimal("1000")), "1 000,00 €")

    def test_zero(self):
        self.assertEqual(EURO.format(0), "0,00 €")

    def test_negative(self):
        self.assertEqual(EURO.format(Decimal("-1234.56")), "-1 234,56 €")

    def test_format_rounds_half_up(self):
        self.assertEqual(EURO.format(Decimal("2.675")), "2,68 €")

    def test_format_accepts_money_string(self):
        self.assertEqual(EURO.format("10,5"), "10,50 €")

    def test_parse_reads_back_formatted_amounts(self):
        for amount in (Decimal("0.01"), Decimal("31.50"), Decimal("1234567.89"), Decimal("-42.10")):
            with self.subTest(amount=amount):
                self.assertEqual(EURO.parse(EURO.format(amount)), amount)

    def test_module_helpers(self):
        self.assertEqual(parse_euro("1 000,00 €"), Decimal("1000.00"))
        self.assertEqual(format_euro(Decimal("1000")), "1 000,00 €")

    def test_custom_convention(self):
        codec = CurrencyCodec(separator=".", decimal=",", symbol="EUR")
        self.assertEqual(codec.format(Decimal("1234.5")), "1.234,50 EUR")
        self.assertEqual(codec.parse("1.234,50 EUR"), Decimal("1234.50"))


if __name__ == "__main__":
    unittest.main()
