"""
Entity Mapper
Maps header-keyed sheet rows to typed records using one static
(field, header, required) table per record kind.
"""

from __future__ import annotations

from typing import Dict, List, Mapping, NamedTuple, Sequence, Tuple

from .exceptions import MissingFieldError
from .logger import get_logger
from .models import Company, Customer, Order, Product


class FieldSpec(NamedTuple):
    field: str
    header: str
    required: bool = True


# Column headers as they appear in each tab of the spreadsheet
PRODUCT_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec('id', 'Product Id'),
    FieldSpec('description', 'Product Description DE'),
    FieldSpec('unit', 'Product Unit'),
)

CUSTOMER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec('id', 'Customer Id'),
    FieldSpec('customer_name', 'Customer Name'),
    FieldSpec('business_name', 'Business Name'),
    FieldSpec('address', 'Address'),
    FieldSpec('cp', 'CP'),
    FieldSpec('country', 'Country'),
    FieldSpec('city', 'City'),
    FieldSpec('vat_id', 'Vat ID', required=False),
    FieldSpec('vat_procedure', 'Vat Procedure'),
)

COMPANY_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec('name', 'Name'),
    FieldSpec('address', 'Address'),
    FieldSpec('cp', 'CP'),
    FieldSpec('city', 'City'),
    FieldSpec('country', 'Country'),
    FieldSpec('vat_id', 'Vat ID'),
    FieldSpec('telephone', 'Telephone'),
    FieldSpec('mail', 'Mail'),
    FieldSpec('bank', 'Bank'),
    FieldSpec('iban', 'IBAN'),
    FieldSpec('bic', 'BIC'),
)

# Invoice ID and date are filled by the numbering engine when blank
ORDER_FIELDS: Tuple[FieldSpec, ...] = (
    FieldSpec('run', 'Run'),
    FieldSpec('invoice_id', 'Invoice ID', required=False),
    FieldSpec('invoice_date', 'Invoice Date', required=False),
    FieldSpec('execution_date', 'Execution Date'),
    FieldSpec('customer_id', 'Customer'),
)


def _cell(row: Mapping[str, object], header: str) -> str:
    value = row.get(header)
    if value is None:
        return ''
    return str(value).strip()


def row_position(row: Mapping[str, object], position: int) -> int:
    """The row's own data-row index when it carries one, else its list position."""
    return getattr(row, 'row_index', position)


def map_record(
    fields: Sequence[FieldSpec],
    row: Mapping[str, object],
    row_index: int,
    kind: str,
) -> Dict[str, str]:
    """Map one row through a field table; all-or-fail.

    Raises:
        MissingFieldError: on the first required column that is absent or blank.
    """
    record: Dict[str, str] = {}
    for spec in fields:
        value = _cell(row, spec.header)
        if not value and spec.required:
            raise MissingFieldError(kind, spec.field, spec.header, row_index)
        record[spec.field] = value
    return record


def map_product(row: Mapping[str, object], row_index: int) -> Product:
    return Product(**map_record(PRODUCT_FIELDS, row, row_index, 'product'))


def map_customer(row: Mapping[str, object], row_index: int) -> Customer:
    return Customer(**map_record(CUSTOMER_FIELDS, row, row_index, 'customer'))


def map_company(row: Mapping[str, object], row_index: int) -> Company:
    return Company(**map_record(COMPANY_FIELDS, row, row_index, 'company'))


def map_order_fields(row: Mapping[str, object], row_index: int) -> Order:
    """Map the scalar order columns; items are filled by the item extractor."""
    record = map_record(ORDER_FIELDS, row, row_index, 'order')
    return Order(row_index=row_index, **record)


# ---------------------------------------------------------------------------
# Collection loaders
# ---------------------------------------------------------------------------

def load_products(rows: List[Mapping[str, object]]) -> Dict[str, Product]:
    """Map the Products tab into a dict keyed by product id."""
    logger = get_logger()
    logger.info(f"Parsing {len(rows)} products", component="Parse")

    products: Dict[str, Product] = {}
    for position, row in enumerate(rows):
        row_index = row_position(row, position)
        product = map_product(row, row_index)
        if product.id in products:
            logger.warning(
                f"Duplicated product id '{product.id}' in row: {row_index}, keeping the later row",
                component="Parse",
            )
        products[product.id] = product
    return products


def load_customers(rows: List[Mapping[str, object]]) -> Dict[str, Customer]:
    """Map the Customers tab into a dict keyed by customer id."""
    logger = get_logger()
    logger.info(f"Parsing {len(rows)} customers", component="Parse")

    customers: Dict[str, Customer] = {}
    for position, row in enumerate(rows):
        row_index = row_position(row, position)
        customer = map_customer(row, row_index)
        if customer.id in customers:
            logger.warning(
                f"Duplicated customer id '{customer.id}' in row: {row_index}, keeping the later row",
                component="Parse",
            )
        customers[customer.id] = customer
    return customers


def load_company(rows: List[Mapping[str, object]]) -> Company:
    """The Company tab holds a single row describing the invoice issuer."""
    if not rows:
        first = COMPANY_FIELDS[0]
        raise MissingFieldError('company', first.field, first.header, 0)
    if len(rows) > 1:
        get_logger().warning(
            f"Company sheet has {len(rows)} rows, using the first one", component="Parse"
        )
    return map_company(rows[0], row_position(rows[0], 0))
