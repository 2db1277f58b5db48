from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from warehouse.api import deps
from warehouse.models.inventory import PurchaseOrder, PurchaseOrderStatus


def _money(value) -> Decimal:
    return Decimal(str(value))


def _create_po(client, items, *, status="delivered", delivery_cost=0, order_date="2026-01-10"):
    response = client.post(
        "/purchase-orders",
        json={
            "supplier": "Acme Wholesale",
            "order_date": order_date,
            "status": status,
            "delivery_cost": delivery_cost,
            "items": items,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def _create_order(client, external_id, items, **fields):
    payload = {
        "store_name": "Main Street",
        "external_order_id": external_id,
        "order_date": "2026-05-01T10:00:00",
        "items": items,
    }
    payload.update(fields)
    response = client.post("/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _layers(client, sku):
    response = client.get(f"/inventory/{sku}/layers")
    assert response.status_code == 200
    return response.json()


def _inventory(client):
    return {row["sku"]: row for row in client.get("/inventory").json()}


@pytest.fixture
def chairs(client):
    """Ten chairs in stock at 75.00 each."""
    return _create_po(client, [{"sku": "CHAIR", "name": "Chair", "quantity": 10, "unit_cost": 75}])


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_delivered_purchase_order_creates_landed_cost_layers(client):
    po = _create_po(
        client,
        [
            {"sku": "CHAIR", "quantity": 50, "unit_cost": 75.0},
            {"sku": "DESK", "quantity": 25, "unit_cost": 120.0},
            {"sku": "LAMP", "quantity": 100, "unit_cost": 15.0},
        ],
        delivery_cost=250.0,
    )

    assert po["reference"] == "PO-2026-001"
    assert po["item_count"] == 3
    assert _money(po["total_cost"]) == Decimal("8500.00")
    assert {_money(item["delivery_cost_per_unit"]) for item in po["items"]} == {Decimal("1.43")}

    layers = _layers(client, "DESK")
    assert len(layers) == 1
    assert layers[0]["origin_id"] == "PO-2026-001"
    assert layers[0]["origin_kind"] == "purchase_order"
    assert layers[0]["quantity"] == 25
    assert _money(layers[0]["unit_cost"]) == Decimal("121.43")


def test_purchase_order_status_moves_stock_between_incoming_and_layers(client):
    po = _create_po(client, [{"sku": "CHAIR", "quantity": 50, "unit_cost": 75}], status="pending")
    assert _inventory(client)["CHAIR"]["incoming"] == 50
    assert _inventory(client)["CHAIR"]["in_stock"] == 0

    response = client.patch(f"/purchase-orders/{po['id']}", json={"status": "delivered"})
    assert response.status_code == 200
    chair = _inventory(client)["CHAIR"]
    assert (chair["incoming"], chair["in_stock"]) == (0, 50)

    client.patch(f"/purchase-orders/{po['id']}", json={"status": "in_transit"})
    chair = _inventory(client)["CHAIR"]
    assert (chair["incoming"], chair["in_stock"]) == (50, 0)
    assert _layers(client, "CHAIR") == []


def test_editing_a_delivered_purchase_order_rebuilds_its_layers(client):
    po = _create_po(client, [{"sku": "CHAIR", "quantity": 10, "unit_cost": 75}])

    client.patch(
        f"/purchase-orders/{po['id']}",
        json={"items": [{"sku": "CHAIR", "quantity": 12, "unit_cost": 70}], "delivery_cost": 12},
    )

    layers = _layers(client, "CHAIR")
    assert [(layer["quantity"], _money(layer["unit_cost"])) for layer in layers] == [(12, Decimal("71"))]


def test_fulfillment_freezes_cost_and_reports_shortfall(client, chairs):
    order = _create_order(
        client,
        "EXT-1",
        [{"sku": "CHAIR", "quantity": 12, "unit_price": 200}],
        total_amount=2400,
        tax_amount=200,
        shipping_cost=50,
    )

    response = client.post(f"/orders/{order['id']}/fulfill")
    assert response.status_code == 200
    body = response.json()
    assert body["order"]["status"] == "fulfilled"
    assert _money(body["total_cost"]) == Decimal("850.00")
    assert body["shortfalls"] == [{"sku": "CHAIR", "requested": 12, "shortfall_quantity": 2}]
    assert [layer["quantity"] for layer in _layers(client, "CHAIR")] == [0]

    # later stock at a different cost must not move a fulfilled order's profit
    _create_po(client, [{"sku": "CHAIR", "quantity": 5, "unit_cost": 10}], order_date="2026-01-01")
    profit = client.get(f"/orders/{order['id']}/profit").json()
    assert profit["cost_basis"] == "frozen"
    assert _money(profit["total_cost"]) == Decimal("850.00")
    assert _money(profit["profit"]) == Decimal("1300.00")
    assert profit["shortfall_quantity"] == 2


def test_live_cost_basis_quotes_current_layers(client, chairs, monkeypatch):
    order = _create_order(client, "EXT-1", [{"sku": "CHAIR", "quantity": 2, "unit_price": 150}])
    client.post(f"/orders/{order['id']}/fulfill")
    monkeypatch.setattr("warehouse.api.routes.orders.settings", replace(deps.settings, profit_cost_basis="live"))

    profit = client.get(f"/orders/{order['id']}/profit").json()

    assert profit["cost_basis"] == "live"
    assert _money(profit["total_cost"]) == Decimal("150.00")


def test_pending_order_profit_is_quoted_without_consuming(client, chairs):
    order = _create_order(
        client,
        "EXT-1",
        [{"sku": "CHAIR", "quantity": 2, "unit_price": 150}],
        total_amount=299.99,
        tax_amount=24.0,
        shipping_cost=9.99,
    )

    profit = client.get(f"/orders/{order['id']}/profit").json()

    assert profit["cost_basis"] == "live"
    assert _money(profit["profit"]) == Decimal("116.00")
    assert _layers(client, "CHAIR")[0]["quantity"] == 10


def test_cost_breakdown_shows_layer_draws(client):
    _create_po(client, [{"sku": "MUG", "quantity": 5, "unit_cost": 10}], order_date="2026-01-01")
    _create_po(client, [{"sku": "MUG", "quantity": 5, "unit_cost": 20}], order_date="2026-01-02")
    order = _create_order(client, "EXT-1", [{"sku": "MUG", "quantity": 7, "unit_price": 30}])

    breakdown = client.get(f"/orders/{order['id']}/cost-breakdown").json()

    assert [(draw["origin_id"], draw["quantity"]) for draw in breakdown["MUG"]] == [
        ("PO-2026-001", 5),
        ("PO-2026-002", 2),
    ]
    assert sum(_money(draw["total_cost"]) for draw in breakdown["MUG"]) == Decimal("90.00")


def test_order_cannot_be_fulfilled_twice(client, chairs):
    order = _create_order(client, "EXT-1", [{"sku": "CHAIR", "quantity": 1, "unit_price": 150}])
    client.post(f"/orders/{order['id']}/fulfill")

    response = client.post(f"/orders/{order['id']}/fulfill")

    assert response.status_code == 409
    assert "only pending orders" in response.json()["detail"]
    assert _layers(client, "CHAIR")[0]["quantity"] == 9


def test_reject_policy_refuses_short_fulfillment(client, chairs, monkeypatch):
    monkeypatch.setattr(deps, "settings", replace(deps.settings, shortfall_policy="reject"))
    order = _create_order(client, "EXT-1", [{"sku": "CHAIR", "quantity": 11, "unit_price": 150}])

    response = client.post(f"/orders/{order['id']}/fulfill")

    assert response.status_code == 409
    assert client.get(f"/orders/{order['id']}").json()["status"] == "pending"
    assert _layers(client, "CHAIR")[0]["quantity"] == 10


def test_cancelling_a_fulfilled_order_puts_stock_back(client, chairs):
    order = _create_order(client, "EXT-1", [{"sku": "CHAIR", "quantity": 12, "unit_price": 150}])
    client.post(f"/orders/{order['id']}/fulfill")

    response = client.post(f"/orders/{order['id']}/cancel")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    released = [layer for layer in _layers(client, "CHAIR") if layer["origin_kind"] == "cancellation"]
    assert len(released) == 1
    assert released[0]["origin_id"] == f"ORDER-{order['id']}"
    assert released[0]["quantity"] == 10
    assert _money(released[0]["unit_cost"]) == Decimal("75")
    assert client.post(f"/orders/{order['id']}/cancel").status_code == 409


def test_duplicate_orders_are_skipped_on_bulk_import(client):
    order = {
        "store_name": "Main Street",
        "external_order_id": "EXT-9",
        "items": [{"sku": "MUG", "quantity": 1, "unit_price": 9}],
    }

    first = client.post("/orders/bulk", json=[order, order])
    second = client.post("/orders/bulk", json=[order])

    assert len(first.json()) == 1
    assert second.json() == []
    assert client.post("/orders", json=order).status_code == 409


def test_accepted_return_restocks_at_latest_cost_and_reverts(client):
    response = client.post(
        "/inventory/manual",
        json={"sku": "MUG", "name": "Mug", "quantity": 10, "unit_cost": 4, "acquired_at": "2026-01-01T00:00:00"},
    )
    assert response.status_code == 201
    assert response.json()["origin_kind"] == "manual"

    created = client.post(
        "/returns",
        json={
            "customer_name": "Dana",
            "return_date": "2026-03-01",
            "status": "accepted",
            "items": [{"sku": "MUG", "quantity": 2, "unit_price": 9, "total_refund": 18}],
        },
    )
    assert created.status_code == 201
    ret = created.json()
    assert ret["return_number"] == "RMA-2026-001"
    assert _money(ret["items"][0]["restock_unit_cost"]) == Decimal("4")
    assert [layer["origin_id"] for layer in _layers(client, "MUG")][-1] == "RMA-2026-001"
    assert _inventory(client)["MUG"]["in_stock"] == 12

    reverted = client.patch(f"/returns/{ret['id']}", json={"status": "rejected"})
    assert reverted.status_code == 200
    assert reverted.json()["items"][0]["restock_unit_cost"] is None
    assert _inventory(client)["MUG"]["in_stock"] == 10


def test_return_of_unknown_sku_uses_fallback_cost(client):
    ret = client.post(
        "/returns",
        json={
            "customer_name": "Sam",
            "return_date": "2026-03-01",
            "items": [{"sku": "GHOST", "quantity": 1}],
        },
    ).json()
    assert _layers(client, "GHOST") == []

    client.patch(f"/returns/{ret['id']}", json={"status": "accepted"})

    assert _money(_layers(client, "GHOST")[0]["unit_cost"]) == Decimal("50")


def test_valuation_report_and_export(client, chairs):
    report = client.get("/inventory/valuation").json()

    assert report["method"] == "latest_cost"
    assert _money(report["total_value"]) == Decimal("750.00")
    assert report["items"][0]["sku"] == "CHAIR"

    export = client.get("/inventory/valuation/export/csv")
    assert export.headers["content-type"].startswith("text/csv")
    assert export.text.splitlines()[0] == "sku,quantity,unit_cost,value"
    assert export.text.splitlines()[1] == "CHAIR,10,75.00,750.00"


def test_reports_summary_top_products_and_export(client, chairs):
    sold = _create_order(
        client,
        "EXT-1",
        [{"sku": "CHAIR", "quantity": 2, "unit_price": 150}],
        total_amount=299.99,
        tax_amount=24.0,
        shipping_cost=9.99,
    )
    client.post(f"/orders/{sold['id']}/fulfill")
    dropped = _create_order(client, "EXT-2", [{"sku": "CHAIR", "quantity": 1, "unit_price": 999}])
    client.post(f"/orders/{dropped['id']}/cancel")

    summary = client.get("/reports/summary").json()
    assert summary["total_orders"] == 1
    assert _money(summary["total_revenue"]) == Decimal("299.99")
    assert _money(summary["total_cost"]) == Decimal("150.00")
    assert _money(summary["total_profit"]) == Decimal("116.00")
    assert _money(summary["profit_margin"]) == Decimal("38.67")
    assert _money(summary["inventory_value"]) == Decimal("600.00")

    top = client.get("/reports/top-products", params={"limit": 5}).json()
    assert [(row["sku"], _money(row["revenue"]), row["quantity"]) for row in top] == [
        ("CHAIR", Decimal("300.00"), 2)
    ]

    rows = client.get("/reports/orders/export/csv").text.splitlines()
    assert len(rows) == 2
    assert rows[0].startswith("order_id,store_name")
    assert ",frozen," in rows[1]
    assert rows[1].endswith(",116.00,0")


def test_validation_errors(client):
    assert client.get("/orders/999").status_code == 404
    assert client.patch("/purchase-orders/999", json={"status": "pending"}).status_code == 404
    bad = client.post(
        "/inventory/manual",
        json={"sku": "MUG", "name": "Mug", "quantity": 0, "unit_cost": 4},
    )
    assert bad.status_code == 422
    assert client.get("/reports/top-products", params={"limit": 0}).status_code == 422


def _sell(client, external_id, sku, quantity):
    order = _create_order(client, external_id, [{"sku": sku, "quantity": quantity, "unit_price": 150}])
    assert client.post(f"/orders/{order['id']}/fulfill").status_code == 200
    return order


def test_reverting_a_partly_sold_delivery_removes_only_remaining_stock(client, chairs, caplog):
    _sell(client, "EXT-1", "CHAIR", 4)
    assert _inventory(client)["CHAIR"]["in_stock"] == 6

    with caplog.at_level("WARNING", logger="warehouse.costing.ledger"):
        response = client.patch(f"/purchase-orders/{chairs['id']}", json={"status": "in_transit"})

    assert response.status_code == 200
    chair = _inventory(client)["CHAIR"]
    assert (chair["in_stock"], chair["incoming"]) == (0, 10)
    assert "4 of 10 units were consumed" in caplog.text


def test_editing_a_partly_sold_delivery_keeps_sold_units_sold(client, chairs):
    _sell(client, "EXT-1", "CHAIR", 4)

    response = client.patch(f"/purchase-orders/{chairs['id']}", json={"delivery_cost": 10})

    assert response.status_code == 200
    layers = _layers(client, "CHAIR")
    assert [(layer["quantity"], layer["original_quantity"]) for layer in layers] == [(6, 10)]
    assert _money(layers[0]["unit_cost"]) == Decimal("76")
    assert _inventory(client)["CHAIR"]["in_stock"] == 6


def test_shrinking_a_sold_delivery_cannot_go_below_zero(client, chairs, caplog):
    _sell(client, "EXT-1", "CHAIR", 8)

    with caplog.at_level("WARNING", logger="warehouse.services.inventory"):
        client.patch(
            f"/purchase-orders/{chairs['id']}",
            json={"items": [{"sku": "CHAIR", "quantity": 5, "unit_cost": 75}]},
        )

    assert [layer["quantity"] for layer in _layers(client, "CHAIR")] == [0]
    assert "3 unit(s) of CHAIR that were already sold" in caplog.text


def test_redating_an_accepted_return_keeps_sold_units_sold(client):
    client.post(
        "/inventory/manual",
        json={"sku": "MUG", "name": "Mug", "quantity": 2, "unit_cost": 4, "acquired_at": "2026-01-01T00:00:00"},
    )
    ret = client.post(
        "/returns",
        json={
            "customer_name": "Dana",
            "return_date": "2026-03-01",
            "status": "accepted",
            "items": [{"sku": "MUG", "quantity": 2}],
        },
    ).json()
    _sell(client, "EXT-1", "MUG", 3)
    assert _inventory(client)["MUG"]["in_stock"] == 1

    response = client.patch(f"/returns/{ret['id']}", json={"return_date": "2026-03-05"})

    assert response.status_code == 200
    assert _inventory(client)["MUG"]["in_stock"] == 1
    restocked = [layer for layer in _layers(client, "MUG") if layer["origin_id"] == ret["return_number"]]
    assert [(layer["quantity"], layer["acquired_at"][:10]) for layer in restocked] == [(1, "2026-03-05")]


def test_duplicate_purchase_order_reference_is_a_conflict(client, session_factory):
    with session_factory() as db:
        db.add(
            PurchaseOrder(
                reference="PO-2026-002",
                supplier="Imported",
                order_date=date(2026, 1, 1),
                status=PurchaseOrderStatus.DRAFT,
                delivery_cost=Decimal("0"),
                total_cost=Decimal("0"),
            )
        )
        db.commit()

    response = client.post(
        "/purchase-orders",
        json={
            "supplier": "Acme Wholesale",
            "order_date": "2026-02-01",
            "status": "delivered",
            "items": [{"sku": "DESK", "quantity": 1, "unit_cost": 120}],
        },
    )

    assert response.status_code == 409
    assert _layers(client, "DESK") == []
