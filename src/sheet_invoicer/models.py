"""
Sheet Invoicer Data Models
Dataclasses for structured data passing between pipeline components.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional, Set


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class VatProcedure(Enum):
    """Billing regime selecting the legal notice printed on the invoice."""
    REVERSE_CHARGE = 'Reverse Charge'
    KLEINUNTERNEHMER = 'Kleinunternehmerregelung'
    OTHER = 'Other'

    @classmethod
    def from_label(cls, label: str) -> 'VatProcedure':
        """Classify the raw sheet text; unknown labels become OTHER."""
        text = (label or '').strip()
        for procedure in (cls.REVERSE_CHARGE, cls.KLEINUNTERNEHMER):
            if text == procedure.value:
                return procedure
        return cls.OTHER


@dataclass(frozen=True)
class Product:
    id: str
    description: str
    unit: str


@dataclass(frozen=True)
class Customer:
    id: str
    customer_name: str
    business_name: str
    address: str
    cp: str
    city: str
    country: str
    vat_procedure: str
    vat_id: str = ''

    @property
    def procedure(self) -> VatProcedure:
        return VatProcedure.from_label(self.vat_procedure)


@dataclass(frozen=True)
class Company:
    name: str
    address: str
    cp: str
    city: str
    country: str
    telephone: str
    mail: str
    bank: str
    iban: str
    bic: str
    vat_id: str


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LineItem:
    """One product/amount/price column block of an order row."""
    product_id: str
    amount: str
    unit_price: str


@dataclass
class Order:
    """An order row plus its items; invoice id/date may be filled by numbering."""
    customer_id: str
    execution_date: str
    run: str = ''
    invoice_id: str = ''
    invoice_date: str = ''
    items: List[LineItem] = field(default_factory=list)
    total: str = ''

    # Metadata (not from the sheet)
    row_index: int = 0  # 0-based data row in the Orders tab
    id_assigned: bool = False
    date_assigned: bool = False

    @property
    def selected(self) -> bool:
        """True when the run-flag checkbox is ticked."""
        return self.run.strip().lower() in ('true', '1', 'yes')


# ---------------------------------------------------------------------------
# Numbering state
# ---------------------------------------------------------------------------

@dataclass
class NumberingState:
    """Per-batch numbering state; rebuilt for every run."""
    registry: Dict[str, int] = field(default_factory=dict)  # bucket -> last suffix
    seen_ids: Set[str] = field(default_factory=set)
    previous_id: Optional[int] = 0
    previous_date: Optional[date] = None


@dataclass
class NumberingResult:
    """All numbered orders of a batch plus those selected by their run flag."""
    orders: List[Order] = field(default_factory=list)
    selected: List[Order] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Output models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderedInvoice:
    """A rendered PDF held in memory."""
    invoice_id: str
    file_name: str
    content: bytes
    mime_type: str = 'application/pdf'


@dataclass
class BatchResult:
    """Outcome of one pipeline run."""
    invoice_ids: List[str] = field(default_factory=list)
    file_paths: List[str] = field(default_factory=list)
    upload_results: List[str] = field(default_factory=list)
    uploaded: bool = False
    warnings: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.invoice_ids)

    @property
    def summary(self) -> str:
        if not self.invoice_ids:
            return (
                "Nothing to generate, run again after marking the 'Run' checkbox "
                "in some orders of the spreadsheet."
            )
        plural = '' if self.count == 1 else 's'
        suffix = ' and uploaded' if self.uploaded else ''
        return f"{self.count} invoice{plural} generated{suffix}"

    def to_dict(self) -> dict:
        return {
            'summary': self.summary,
            'invoice_ids': list(self.invoice_ids),
            'file_paths': list(self.file_paths),
            'upload_results': list(self.upload_results),
            'warnings': list(self.warnings),
        }
