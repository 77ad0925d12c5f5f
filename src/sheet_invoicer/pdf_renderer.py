"""
Invoice PDF Renderer
=====================

Renders one numbered order as a fixed-layout A4 invoice:

- Header: issuer name/address/contact and the one-line sender summary
- Customer address block
- Invoice metadata: Rechnungs-Nr. | Rechnungsdatum | Leistungsdatum
- Items table: Bezeichnung | Anzahl | Einheit | Einzelpreis | Gesamtpreis,
  followed by the Rechnungsbetrag total row (header repeats on every page)
- VAT notice, payment term and closing
- Footer on every page: bank details and the issuer's VAT id

Output is deterministic (reportlab invariant mode): the same order always
yields the same bytes.
"""
from __future__ import annotations

import io
import os
from typing import Dict, List, Mapping, Optional, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from . import config
from .currency import EURO, CurrencyCodec
from .exceptions import UnresolvedReferenceError
from .logger import get_logger
from .models import Company, Customer, Order, Product, RenderedInvoice, VatProcedure
from .numbering import parse_sheet_date

# Page geometry in points: [left, top, right, bottom]
PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN_LEFT = 47.5
MARGIN_TOP = 69
MARGIN_RIGHT = 47.5
MARGIN_BOTTOM = 120

BASE_FONT_SIZE = 10.3
LEADING = BASE_FONT_SIZE * 1.15
NUMBER_COLUMN_WIDTH = 75

GERMAN_MONTHS = (
    'Januar', 'Februar', 'März', 'April', 'Mai', 'Juni',
    'Juli', 'August', 'September', 'Oktober', 'November', 'Dezember',
)

VAT_NOTICES: Dict[VatProcedure, str] = {
    VatProcedure.REVERSE_CHARGE: (
        "Reverse Charge: Die Steuerschuldnerschaft geht auf den Leistungsempfänger über."
    ),
    VatProcedure.KLEINUNTERNEHMER: "Gemäß § 19 UStG wird keine Umsatzsteuer berechnet.",
}

PAYMENT_TERM = "Bitte überweisen Sie den Rechnungsbetrag innerhalb von 14 Tagen."
CLOSING = ("Ich danke Ihnen für die gute Zusammenarbeit.", "Mit freundlichen Grüßen")


def vat_notice(procedure) -> Optional[str]:
    """Legal notice for a VAT procedure (label or enum); None when unknown."""
    if not isinstance(procedure, VatProcedure):
        procedure = VatProcedure.from_label(procedure)
    return VAT_NOTICES.get(procedure)


def format_execution_month(value: str, row_index: int = 0) -> str:
    """'15.03.2024' -> 'März 2024'."""
    parsed = parse_sheet_date(value, row_index, 'Execution Date')
    return f"{GERMAN_MONTHS[parsed.month - 1]} {parsed.year}"


def resolve_customer(order: Order, customers: Mapping[str, Customer]) -> Customer:
    customer = customers.get(order.customer_id)
    if customer is None:
        raise UnresolvedReferenceError('customer', order.customer_id, order.invoice_id)
    return customer


def resolve_products(order: Order, products: Mapping[str, Product]) -> List[Product]:
    """Product of every line item, in item order."""
    resolved = []
    for item in order.items:
        product = products.get(item.product_id)
        if product is None:
            raise UnresolvedReferenceError('product', item.product_id, order.invoice_id)
        resolved.append(product)
    return resolved


def _register_fonts(font_dir: Optional[str]) -> Tuple[str, str]:
    """Use Arial from `font_dir` when both faces are present, else Helvetica."""
    if font_dir:
        regular = os.path.join(font_dir, 'Arial.ttf')
        bold = os.path.join(font_dir, 'Arial-Bold.ttf')
        if os.path.exists(regular) and os.path.exists(bold):
            try:
                pdfmetrics.registerFont(TTFont('InvoiceArial', regular))
                pdfmetrics.registerFont(TTFont('InvoiceArial-Bold', bold))
                return 'InvoiceArial', 'InvoiceArial-Bold'
            except TTFError as e:
                get_logger().warning(
                    f"Could not load fonts from {font_dir}, using Helvetica: {e}",
                    component="Generate",
                )
    return 'Helvetica', 'Helvetica-Bold'


class InvoicePdfRenderer:
    """Builds the invoice PDF for a numbered order."""

    def __init__(self, font_dir: Optional[str] = None, codec: CurrencyCodec = EURO):
        self.codec = codec
        self.font, self.bold_font = _register_fonts(
            font_dir if font_dir is not None else config.FONT_DIR
        )
        self.styles = self._build_styles()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(
        self,
        order: Order,
        customer: Customer,
        company: Company,
        products: Mapping[str, Product],
    ) -> RenderedInvoice:
        """Render the order to PDF bytes named `{invoice_id}.pdf`."""
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            leftMargin=MARGIN_LEFT,
            rightMargin=MARGIN_RIGHT,
            topMargin=MARGIN_TOP,
            bottomMargin=MARGIN_BOTTOM,
            title=f"Rechnung {order.invoice_id}",
            author=company.name,
            invariant=1,
        )

        elements = self.build_story(order, customer, company, products, doc.width)

        def draw_footer(canvas, _doc):
            self._draw_footer(canvas, company)

        doc.build(elements, onFirstPage=draw_footer, onLaterPages=draw_footer)
        return RenderedInvoice(
            invoice_id=order.invoice_id,
            file_name=f"{order.invoice_id}.pdf",
            content=buffer.getvalue(),
        )

    def build_story(
        self,
        order: Order,
        customer: Customer,
        company: Company,
        products: Mapping[str, Product],
        frame_width: float = PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT,
    ) -> list:
        """Flowables of the invoice body, top to bottom."""
        item_products = resolve_products(order, products)
        s = self.styles
        elements = []

        # ── Header ──────────────────────────────────────────────────
        elements.append(Paragraph(escape(company.name), s['company']))
        elements.append(Paragraph(
            '<br/>'.join([
                escape(company.address),
                escape(f"{company.cp} {company.city}, {company.country}"),
                escape(f"Tel: {company.telephone}"),
                escape(f"Mail: {company.mail}"),
            ]),
            s['right'],
        ))
        elements.append(Spacer(1, LEADING))
        elements.append(Paragraph(f"<u>{escape(sender_line(company))}</u>", s['sender']))
        elements.append(Spacer(1, LEADING))

        # ── Customer ────────────────────────────────────────────────
        customer_lines = [
            customer.business_name,
            customer.address,
            f"{customer.cp} {customer.city}",
            customer.country,
        ]
        if customer.vat_id:
            customer_lines.append(customer.vat_id)
        elements.append(Paragraph('<br/>'.join(escape(l) for l in customer_lines), s['body']))
        elements.append(Spacer(1, LEADING))

        # ── Invoice metadata ────────────────────────────────────────
        elements.append(Paragraph(
            '<br/>'.join([
                f"Rechnungs-Nr.: <b>{escape(order.invoice_id)}</b>",
                f"Rechnungsdatum: <b>{escape(order.invoice_date)}</b>",
                "Leistungsdatum: "
                f"<b>{format_execution_month(order.execution_date, order.row_index)}</b>",
            ]),
            s['right'],
        ))
        elements.append(Spacer(1, 2 * LEADING))
        elements.append(Paragraph("<b>Rechnung</b>", s['title']))
        elements.append(Spacer(1, LEADING))

        # ── Items table ─────────────────────────────────────────────
        elements.append(self._items_table(order, item_products, frame_width))
        elements.append(Spacer(1, LEADING))

        # ── Notice and closing ──────────────────────────────────────
        notice = vat_notice(customer.vat_procedure)
        if notice:
            elements.append(Paragraph(escape(notice), s['notice']))
        elements.append(Paragraph(escape(PAYMENT_TERM), s['notice']))
        elements.append(Spacer(1, LEADING))
        elements.append(Paragraph('<br/>'.join(CLOSING), s['notice']))
        elements.append(Paragraph(escape(company.name), s['body']))

        return elements

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _items_table(self, order: Order, item_products: List[Product], frame_width: float) -> Table:
        s = self.styles
        table_data = [[
            Paragraph("<b>Bezeichnung</b>", s['cell']),
            "Anzahl", "Einheit", "Einzelpreis", "Gesamtpreis",
        ]]

        for item, product in zip(order.items, item_products):
            unit_price = self.codec.parse(item.unit_price)
            table_data.append([
                Paragraph(escape(product.description), s['cell']),
                item.amount,
                product.unit,
                self.codec.format(unit_price),
                self.codec.format(unit_price * int(item.amount)),
            ])

        table_data.append(["Rechnungsbetrag", "", "", "", order.total])

        description_width = frame_width - 4 * NUMBER_COLUMN_WIDTH
        col_widths = [description_width] + [NUMBER_COLUMN_WIDTH] * 4
        table = Table(table_data, colWidths=col_widths, repeatRows=1)

        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), self.font),
            ("FONTSIZE", (0, 0), (-1, -1), BASE_FONT_SIZE),
            ("TOPPADDING", (0, 0), (-1, -1), 4.2),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4.2),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),

            # Header row
            ("FONTNAME", (0, 0), (-1, 0), self.bold_font),
            ("ALIGN", (1, 0), (-1, 0), "CENTER"),

            # Numbers centered
            ("ALIGN", (1, 1), (-1, -1), "CENTER"),

            # Total row
            ("SPAN", (0, -1), (3, -1)),
            ("FONTNAME", (0, -1), (-1, -1), self.bold_font),
            ("ALIGN", (0, -1), (3, -1), "LEFT"),

            ("GRID", (0, 0), (-1, -1), 0.7, colors.black),
        ]))
        return table

    def _draw_footer(self, canvas, company: Company) -> None:
        """Bank details and VAT id below a grey rule, on every page."""
        canvas.saveState()

        top = MARGIN_BOTTOM - 10
        canvas.setStrokeColor(colors.HexColor("#a5a5a5"))
        canvas.setLineWidth(1.5)
        canvas.line(45, top, PAGE_WIDTH - 45, top)

        y = top - 2 * LEADING
        right_x = PAGE_WIDTH - MARGIN_RIGHT - 170

        canvas.setFont(self.bold_font, BASE_FONT_SIZE)
        canvas.drawString(MARGIN_LEFT, y, "Bankverbindung:")
        canvas.setFont(self.font, BASE_FONT_SIZE)
        canvas.drawString(right_x, y, company.name)

        bank_lines = [
            f"Bank: {company.bank}",
            f"IBAN: {company.iban}",
            f"BIC: {company.bic}",
        ]
        for offset, line in enumerate(bank_lines, start=1):
            canvas.drawString(MARGIN_LEFT, y - offset * LEADING, line)
        canvas.drawString(right_x, y - LEADING, f"USt-IdNr.: {company.vat_id}")

        canvas.restoreState()

    def _build_styles(self) -> Dict[str, ParagraphStyle]:
        base = getSampleStyleSheet()["Normal"]
        body = ParagraphStyle(
            "InvoiceBody",
            parent=base,
            fontName=self.font,
            fontSize=BASE_FONT_SIZE,
            leading=LEADING,
            alignment=TA_LEFT,
        )
        return {
            'body': body,
            'right': ParagraphStyle("InvoiceRight", parent=body, alignment=TA_RIGHT),
            'company': ParagraphStyle(
                "InvoiceCompany", parent=body, fontSize=12, leading=12 * 1.15, alignment=TA_RIGHT,
            ),
            'sender': ParagraphStyle("InvoiceSender", parent=body, fontSize=8.6, leading=8.6 * 1.15),
            'title': ParagraphStyle(
                "InvoiceTitle", parent=body, fontName=self.bold_font, fontSize=14, leading=14 * 1.15,
            ),
            'cell': ParagraphStyle("InvoiceCell", parent=body),
            'notice': ParagraphStyle("InvoiceNotice", parent=body, spaceAfter=LEADING),
        }


def sender_line(company: Company) -> str:
    """One-line return address printed above the customer block."""
    return (
        f"{company.name} - {company.address} - {company.cp} {company.city} - {company.country}"
    )


def write_invoice(rendered: RenderedInvoice, out_folder: str) -> str:
    """Write a rendered invoice into `out_folder`; returns the absolute path."""
    os.makedirs(out_folder, exist_ok=True)
    path = os.path.join(out_folder, rendered.file_name)
    with open(path, 'wb') as f:
        f.write(rendered.content)
    return os.path.abspath(path)
