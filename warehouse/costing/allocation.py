"""Spreading a purchase order's delivery charge over its lines.

The per-unit share is rounded to cents *before* it is added to each line,
so the sum of line totals can be a few cents away from
``items total + delivery cost``. That drift is accepted; do not "fix" it by
rounding after totalling.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from warehouse.costing.errors import InvalidInputError
from warehouse.costing.ledger import require_positive_quantity
from warehouse.costing.money import ZERO, quantize_money, to_decimal


@dataclass(frozen=True)
class PurchaseLine:
    sku: str
    quantity: int
    unit_cost: Decimal
    name: str | None = None


@dataclass(frozen=True)
class AllocatedLine:
    sku: str
    name: str | None
    quantity: int
    unit_cost: Decimal
    delivery_cost_per_unit: Decimal
    total_cost: Decimal

    @property
    def landed_unit_cost(self) -> Decimal:
        return self.unit_cost + self.delivery_cost_per_unit


def delivery_cost_per_unit(lines: Iterable[PurchaseLine], delivery_cost) -> Decimal:
    total_quantity = sum(line.quantity for line in lines)
    delivery = to_decimal(delivery_cost, field="delivery_cost")
    if delivery < ZERO:
        raise InvalidInputError("delivery_cost must not be negative")
    if total_quantity <= 0:
        return quantize_money(ZERO)
    return quantize_money(delivery / total_quantity)


def allocate_delivery_cost(lines: Iterable[PurchaseLine], delivery_cost) -> list[AllocatedLine]:
    lines = list(lines)
    for line in lines:
        require_positive_quantity(line.quantity)
        if to_decimal(line.unit_cost, field="unit_cost") < ZERO:
            raise InvalidInputError(f"unit_cost for {line.sku} must not be negative")
    per_unit = delivery_cost_per_unit(lines, delivery_cost)

    allocated = []
    for line in lines:
        unit_cost = to_decimal(line.unit_cost, field="unit_cost")
        allocated.append(
            AllocatedLine(
                sku=line.sku,
                name=line.name,
                quantity=line.quantity,
                unit_cost=unit_cost,
                delivery_cost_per_unit=per_unit,
                total_cost=quantize_money((unit_cost + per_unit) * line.quantity),
            )
        )
    return allocated


def purchase_order_total(lines: Iterable[PurchaseLine], delivery_cost) -> Decimal:
    items_total = sum(
        (to_decimal(line.unit_cost, field="unit_cost") * line.quantity for line in lines),
        ZERO,
    )
    return quantize_money(items_total + to_decimal(delivery_cost, field="delivery_cost"))
