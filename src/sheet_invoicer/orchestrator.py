"""
Invoice Pipeline Orchestrator
=============================

Runs one invoicing batch:
1. Load: products, customers, company and order rows from the row source
2. Number: build every order, compute totals, assign ids and dates
3. Resolve: customers and products of the selected orders
4. Write back: clear the run flag, store assigned ids and dates
5. Render: one PDF per selected order, written to the out folder
6. Deliver: upload every PDF when an uploader is configured

Guardrails:
- Steps 1-3 cover the whole batch before anything is written; any error
  there leaves the sheet, the out folder and Drive untouched.
- Every batch builds a fresh numbering state.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from . import config
from .entity_mapper import load_company, load_customers, load_products
from .exceptions import InvoiceBatchError
from .logger import get_logger
from .models import BatchResult, Customer, Order, VatProcedure
from .numbering import InvoiceNumberingEngine, build_orders
from .pdf_renderer import InvoicePdfRenderer, resolve_customer, resolve_products, write_invoice

RUN_FLAG_HEADER = 'Run'
INVOICE_ID_HEADER = 'Invoice ID'
INVOICE_DATE_HEADER = 'Invoice Date'
RUN_FLAG_CLEARED = 'FALSE'


class InvoicePipeline:
    """
    Orchestrates a batch from spreadsheet rows to delivered PDFs.

    Args:
        source: Row source with products(), customers(), company() and orders()
        uploader: Optional DriveUploader; None keeps the PDFs local
        renderer: InvoicePdfRenderer (created on first use when omitted)
        engine: InvoiceNumberingEngine (created when omitted)
        out_folder: Folder for the PDFs (config.OUTPUT_FOLDER when omitted)
    """

    def __init__(
        self,
        source,
        uploader=None,
        renderer: Optional[InvoicePdfRenderer] = None,
        engine: Optional[InvoiceNumberingEngine] = None,
        out_folder: Optional[str] = None,
        mode: str = "local",
    ):
        self.source = source
        self.uploader = uploader
        self.renderer = renderer
        self.engine = engine or InvoiceNumberingEngine()
        self.out_folder = out_folder or config.OUTPUT_FOLDER
        self.mode = mode
        self.logger = get_logger()

    def run(self) -> BatchResult:
        """
        Run one batch.

        Returns:
            BatchResult with ids, file paths and upload messages

        Raises:
            InvoiceBatchError: the batch was rejected; nothing was written
        """
        try:
            return self._run()
        except InvoiceBatchError as e:
            self.logger.log_batch_error(type(e).__name__, str(e))
            raise

    # ─────────────────────────────────────────────────────────────
    # Steps
    # ─────────────────────────────────────────────────────────────

    def _run(self) -> BatchResult:
        result = BatchResult()

        # Step 1: Load
        products = load_products(self.source.products())
        customers = load_customers(self.source.customers())
        company = load_company(self.source.company())
        rows = self.source.orders()
        self.logger.log_batch_start(self.mode, len(rows))

        # Step 2: Number
        orders = build_orders(rows)
        numbering = self.engine.number_batch(orders)
        if not numbering.selected:
            self.logger.info(result.summary, component="Pipeline")
            return result

        # Step 3: Resolve
        resolved = self._resolve(numbering.selected, customers, products)
        for order, customer in resolved:
            if customer.procedure is VatProcedure.OTHER:
                warning = (
                    f"Invoice {order.invoice_id} - Unknown VAT procedure "
                    f"'{customer.vat_procedure}', no VAT notice printed"
                )
                self.logger.warning(warning, component="Pipeline")
                result.warnings.append(warning)

        # Step 4: Write back
        rows_by_order = {id(order): row for order, row in zip(orders, rows)}
        for order in numbering.selected:
            self._write_back(order, rows_by_order[id(order)])

        # Step 5: Render
        renderer = self.renderer or InvoicePdfRenderer()
        rendered = []
        for order, customer in resolved:
            invoice = renderer.render(order, customer, company, products)
            path = write_invoice(invoice, self.out_folder)
            self.logger.log_invoice_ready(invoice.invoice_id, path)
            result.invoice_ids.append(invoice.invoice_id)
            result.file_paths.append(path)
            rendered.append(invoice)

        # Step 6: Deliver
        if self.uploader is not None:
            for invoice in rendered:
                message = self.uploader.upload(invoice.file_name, invoice.content, invoice.mime_type)
                self.logger.log_upload(invoice.invoice_id, message)
                result.upload_results.append(message)
            result.uploaded = True

        self.logger.info(result.summary, component="Pipeline")
        return result

    def _resolve(
        self,
        selected: List[Order],
        customers: Dict[str, Customer],
        products,
    ) -> List[Tuple[Order, Customer]]:
        resolved = []
        for order in selected:
            customer = resolve_customer(order, customers)
            resolve_products(order, products)
            resolved.append((order, customer))
        return resolved

    def _write_back(self, order: Order, row) -> None:
        """Clear the run flag and persist any id/date the engine assigned."""
        row[RUN_FLAG_HEADER] = RUN_FLAG_CLEARED
        if order.id_assigned:
            row[INVOICE_ID_HEADER] = order.invoice_id
        if order.date_assigned:
            row[INVOICE_DATE_HEADER] = order.invoice_date
        row.save()
