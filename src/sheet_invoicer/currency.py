"""
Euro Currency Codec
Reads and writes money strings in the fixed invoice convention:
space as thousands separator, comma as decimal separator, trailing symbol
("1 234,50 €"). Amounts are Decimals rounded half-up to cents.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

from .exceptions import CurrencyFormatError

Amount = Union[str, int, float, Decimal]

# Regular, no-break and narrow no-break spaces all count as group separators
_SPACES = (' ', '\u00a0', '\u202f')
_NUMERIC = re.compile(r'^-?\d*(\.\d*)?$')


class CurrencyCodec:
    """Parse/format money strings with a fixed (not locale-derived) convention."""

    def __init__(
        self,
        separator: str = ' ',
        decimal: str = ',',
        symbol: str = '€',
        precision: int = 2,
    ):
        self.separator = separator
        self.decimal = decimal
        self.symbol = symbol
        self.quantum = Decimal(1).scaleb(-precision)

    def quantize(self, value: Decimal) -> Decimal:
        return value.quantize(self.quantum, rounding=ROUND_HALF_UP)

    def parse(self, value: Amount) -> Decimal:
        """Read a money string or number as a Decimal rounded to cents."""
        if isinstance(value, Decimal):
            return self.quantize(value)
        if isinstance(value, (int, float)):
            return self.quantize(Decimal(str(value)))

        text = (value or '').strip()
        if not text:
            return self.quantize(Decimal(0))

        negative = text.startswith('(') and text.endswith(')')
        text = text.replace(self.symbol, '')
        for space in _SPACES + (self.separator,):
            text = text.replace(space, '')
        text = text.strip('()').replace(self.decimal, '.')

        if not text or not _NUMERIC.match(text) or text in ('-', '.', '-.'):
            raise CurrencyFormatError(value)
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise CurrencyFormatError(value)
        return self.quantize(-amount if negative else amount)

    def format(self, amount: Amount) -> str:
        """Write an amount as e.g. '1 234,50 €'."""
        value = self.parse(amount)
        sign = '-' if value < 0 else ''
        units, cents = f"{abs(value):.{-self.quantum.as_tuple().exponent}f}".split('.')

        groups = []
        while len(units) > 3:
            groups.insert(0, units[-3:])
            units = units[:-3]
        groups.insert(0, units)

        return f"{sign}{self.separator.join(groups)}{self.decimal}{cents} {self.symbol}"


EURO = CurrencyCodec()


def parse_euro(value: Amount) -> Decimal:
    return EURO.parse(value)


def format_euro(amount: Amount) -> str:
    return EURO.format(amount)
