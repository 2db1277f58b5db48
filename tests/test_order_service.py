from datetime import datetime
from decimal import Decimal

from warehouse.costing import LayerOrigin
from warehouse.db.database import utcnow
from warehouse.models.inventory import SalesOrder, SalesOrderItem, SalesOrderStatus
from warehouse.services.orders import cancel_order, fulfill_order


def _line(sku, quantity, **fields):
    return SalesOrderItem(
        sku=sku,
        quantity=quantity,
        unit_price=Decimal("10"),
        total_price=Decimal("10") * quantity,
        shortfall_quantity=fields.pop("shortfall_quantity", 0),
        **fields,
    )


def _save(db, items, **fields):
    order = SalesOrder(store_name="Main Street", external_order_id="EXT-1", items=items, **fields)
    db.add(order)
    db.flush()
    return order


def test_fulfillment_consumes_lines_in_sku_order(db_session, ledger, engine):
    ledger.add_layer("ALPHA", "PO-1", 5, Decimal("2"), datetime(2026, 1, 1))
    ledger.add_layer("ZED", "PO-1", 5, Decimal("3"), datetime(2026, 1, 1))
    order = _save(
        db_session,
        [_line("ZED", 1), _line("MID", 1), _line("ALPHA", 1)],
        status=SalesOrderStatus.PENDING,
    )

    results = fulfill_order(db_session, engine, order)

    assert [result.sku for result in results] == ["ALPHA", "MID", "ZED"]
    assert order.status == SalesOrderStatus.FULFILLED
    assert order.fulfilled_at.tzinfo is None


def test_cancellation_releases_in_sku_order_at_stored_cost_precision(db_session, ledger, engine):
    order = _save(
        db_session,
        [
            _line("ZED", 3, layer_cost=Decimal("100"), cost_attributed=Decimal("100")),
            _line("ALPHA", 2, layer_cost=Decimal("7"), cost_attributed=Decimal("7")),
        ],
        status=SalesOrderStatus.FULFILLED,
        fulfilled_at=datetime(2026, 5, 1),
    )

    cancel_order(db_session, engine, order)

    zed = list(ledger.layers_for("ZED"))
    assert len(zed) == 1
    assert zed[0].origin_kind is LayerOrigin.CANCELLATION
    assert zed[0].unit_cost == Decimal("33.3333")
    assert list(ledger.layers_for("ALPHA"))[0].unit_cost == Decimal("3.5000")
    assert [layer.sequence for layer in ledger.layers_for("ALPHA")] < [layer.sequence for layer in zed]
    assert all(item.layer_cost is None for item in order.items)


def test_utcnow_is_naive():
    assert utcnow().tzinfo is None
