"""Line item construction shared by invoice creation and item replacement"""

from typing import List, Sequence
from src.domain.invoice_item import InvoiceItem
from src.domain import money
from .dtos import InvoiceItemInputDTO


def build_line_items(invoice_id: str, items: Sequence[InvoiceItemInputDTO]) -> List[InvoiceItem]:
    """
    Normalize submitted items into InvoiceItem rows, in submission order

    Raises:
        money.InvalidLineItem: If an item has a negative quantity
    """
    rows = []
    for position, item in enumerate(items):
        quantity = money.validate_quantity(item.quantity)
        unit_price = money.normalize_unit_price(item.unit_price)
        rows.append(
            InvoiceItem(
                invoice_id=invoice_id,
                description=money.normalize_description(item.description),
                quantity=quantity,
                unit_price=unit_price,
                unit=(item.unit or "").strip(),
                line_total=money.line_total(quantity, unit_price),
                sort_order=position,
            )
        )
    return rows
