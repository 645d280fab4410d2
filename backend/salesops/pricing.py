"""Line-item arithmetic.

Amounts are integer cents, so ``quantity * unit_price_cents`` and the sum of
subtotals are exact.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from salesops.catalog import resolve_unit_price
from salesops.errors import NotFoundError, ValidationFailure


@dataclass(frozen=True)
class LineRequest:
    product_id: int
    quantity: int
    unit_price_cents: Optional[int] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class PricedLine:
    product_id: int
    quantity: int
    unit_price_cents: int
    subtotal_cents: int
    description: Optional[str] = None

    def row(self, position: int) -> dict:
        return {
            "product_id": self.product_id,
            "position": position,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "subtotal_cents": self.subtotal_cents,
            "description": self.description,
        }


def line_subtotal(quantity: int, unit_price_cents: int) -> int:
    return int(quantity) * int(unit_price_cents)


def document_total(lines: Iterable[PricedLine]) -> int:
    return sum(line.subtotal_cents for line in lines)


def validate_lines(items: Sequence) -> None:
    if not items:
        raise ValidationFailure("At least one item is required")
    for idx, item in enumerate(items):
        if item.quantity is None or int(item.quantity) < 1:
            raise ValidationFailure(f"items[{idx}].quantity must be a positive integer")
        if item.unit_price_cents is not None and int(item.unit_price_cents) < 0:
            raise ValidationFailure(f"items[{idx}].unit_price_cents must not be negative")


def price_lines(items: Sequence, products: dict[int, dict]) -> list[PricedLine]:
    """Fill default unit prices from ``products`` and compute subtotals."""
    validate_lines(items)
    priced = []
    for item in items:
        product = products.get(int(item.product_id))
        if product is None:
            raise NotFoundError.for_id("Product", item.product_id)
        unit = resolve_unit_price(product, item.unit_price_cents)
        priced.append(PricedLine(
            product_id=int(item.product_id),
            quantity=int(item.quantity),
            unit_price_cents=unit,
            subtotal_cents=line_subtotal(item.quantity, unit),
            description=item.description,
        ))
    return priced
