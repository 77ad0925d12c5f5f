"""
Google Sheets Row Source
========================

Reads the four tabs of the invoicing workbook as header-keyed rows:

1. Products   - Product Id | Product Description DE | Product Unit
2. Customers  - Customer Id | Customer Name | Business Name | Address | CP | ...
3. Company    - one row describing the invoice issuer
4. Orders     - Run | Invoice ID | Invoice Date | Execution Date | Customer |
                Product 1 | Amount 1 | Price 1 | Product 2 | ...

Each tab is read with a single get_all_values() call; cells stay strings.
Order rows can be written back cell by cell through SheetRow.save().

For tests, inject a fake spreadsheet via `from_spreadsheet(spreadsheet)`.
"""
from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence

import gspread
from oauth2client.service_account import ServiceAccountCredentials

from . import config
from .logger import get_logger

SCOPE = [
    "https://spreadsheets.google.com/feeds",
    "https://www.googleapis.com/auth/drive",
]


def get_column_letter(col_num: int) -> str:
    """
    Convert column number to A1 column letter
    1 -> A, 26 -> Z, 27 -> AA, etc.
    """
    result = ""
    while col_num > 0:
        col_num -= 1
        result = chr(col_num % 26 + 65) + result
        col_num //= 26
    return result


def _get_client():
    """Authorize gspread with the configured service account or ADC."""
    creds_path = config.get_credentials_path()
    if creds_path:
        creds = ServiceAccountCredentials.from_json_keyfile_name(creds_path, SCOPE)
        return gspread.authorize(creds)
    else:
        import google.auth

        credentials, _ = google.auth.default(scopes=SCOPE)
        return gspread.authorize(credentials)


class SheetRow:
    """
    One data row of a tab, addressable by column header.

    Assigning a header marks that cell dirty; save() writes the dirty cells
    back in one batch_update call.
    """

    def __init__(self, worksheet, headers: Sequence[str], values: Sequence[str], row_index: int):
        self.worksheet = worksheet
        self.headers = list(headers)
        self.row_index = row_index  # 0-based, header row excluded
        self._values: Dict[str, str] = {}
        for col, header in enumerate(self.headers):
            # get_all_values() trims trailing empty cells per row
            self._values.setdefault(header, values[col] if col < len(values) else '')
        self._dirty: Dict[str, str] = {}

    @property
    def sheet_row(self) -> int:
        """1-based row number in the worksheet."""
        return self.row_index + 2

    def __getitem__(self, header: str) -> str:
        return self._values[header]

    def __setitem__(self, header: str, value) -> None:
        if header not in self._values:
            raise KeyError(f"Column '{header}' not found in sheet")
        self._values[header] = str(value)
        self._dirty[header] = str(value)

    def __contains__(self, header: object) -> bool:
        return header in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get(self, header: str, default=None):
        return self._values.get(header, default)

    def keys(self):
        return self._values.keys()

    @property
    def dirty(self) -> bool:
        return bool(self._dirty)

    def save(self) -> bool:
        """Write changed cells back to the sheet; False when nothing changed."""
        if not self._dirty:
            return False

        updates = []
        for header, value in self._dirty.items():
            col = self.headers.index(header) + 1
            updates.append({
                'range': f'{get_column_letter(col)}{self.sheet_row}',
                'values': [[value]],
            })
        self.worksheet.batch_update(updates, value_input_option='USER_ENTERED')
        get_logger().debug(
            f"Saved {len(updates)} cell(s) in row {self.sheet_row}", component="Sheets"
        )
        self._dirty.clear()
        return True

    def __repr__(self) -> str:
        return f"SheetRow(row_index={self.row_index}, values={self._values!r})"


class SheetsRowSource:
    """
    Header-keyed access to the Products, Customers, Company and Orders tabs.

    For tests, you can inject a fake spreadsheet via the alternate constructor
    `from_spreadsheet(spreadsheet)`, avoiding any real API calls.
    """

    def __init__(self, spreadsheet: Optional[object] = None):
        if spreadsheet is not None:
            self.spreadsheet = spreadsheet
        else:
            if not config.SPREADSHEET_ID:
                raise ValueError("SPREADSHEET_ID must be set")
            client = _get_client()
            self.spreadsheet = client.open_by_key(config.SPREADSHEET_ID)
        self.logger = get_logger()

    @classmethod
    def from_spreadsheet(cls, spreadsheet: object) -> "SheetsRowSource":
        """Helper for unit tests to inject a fake spreadsheet."""
        return cls(spreadsheet=spreadsheet)

    # ─────────────────────────────────────────────────────────────
    # Tabs
    # ─────────────────────────────────────────────────────────────

    def products(self) -> List[SheetRow]:
        return self._read_rows(config.PRODUCTS_SHEET)

    def customers(self) -> List[SheetRow]:
        return self._read_rows(config.CUSTOMERS_SHEET)

    def company(self) -> List[SheetRow]:
        return self._read_rows(config.COMPANY_SHEET)

    def orders(self) -> List[SheetRow]:
        return self._read_rows(config.ORDERS_SHEET)

    # ─────────────────────────────────────────────────────────────
    # Internal helpers
    # ─────────────────────────────────────────────────────────────

    def _read_rows(self, title: str) -> List[SheetRow]:
        ws = self.spreadsheet.worksheet(title)
        values = ws.get_all_values()
        if not values:
            self.logger.warning(f"Sheet '{title}' is empty", component="Sheets")
            return []

        headers = [h.strip() for h in values[0]]
        rows = []
        for row_index, row_values in enumerate(values[1:]):
            # Fully blank rows below the data are not records
            if not any(str(v).strip() for v in row_values):
                continue
            rows.append(SheetRow(ws, headers, row_values, row_index))

        self.logger.info(f"Loaded {len(rows)} rows from '{title}'", component="Sheets")
        return rows
