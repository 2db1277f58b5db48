from decimal import Decimal

import pytest

from warehouse.costing import InvalidInputError, PurchaseLine, allocate_delivery_cost, delivery_cost_per_unit
from warehouse.costing.allocation import purchase_order_total

LINES = [
    PurchaseLine(sku="CHAIR", quantity=50, unit_cost=75.0),
    PurchaseLine(sku="DESK", quantity=25, unit_cost=120.0),
    PurchaseLine(sku="LAMP", quantity=100, unit_cost=15.0),
]


def test_delivery_cost_is_spread_per_unit_and_rounded():
    assert delivery_cost_per_unit(LINES, 250.0) == Decimal("1.43")


def test_every_line_carries_the_same_delivery_share():
    allocated = allocate_delivery_cost(LINES, 250.0)

    assert [line.landed_unit_cost for line in allocated] == [
        Decimal("76.43"),
        Decimal("121.43"),
        Decimal("16.43"),
    ]
    assert allocated[0].total_cost == Decimal("3821.50")


def test_rounding_drift_against_order_total_is_kept():
    allocated = allocate_delivery_cost(LINES, 250.0)

    assert sum(line.total_cost for line in allocated) == Decimal("8500.25")
    assert purchase_order_total(LINES, 250.0) == Decimal("8500.00")


def test_no_units_means_no_delivery_share():
    assert delivery_cost_per_unit([], Decimal("40")) == Decimal("0.00")


def test_negative_delivery_cost_is_rejected():
    with pytest.raises(InvalidInputError):
        allocate_delivery_cost(LINES, Decimal("-5"))
