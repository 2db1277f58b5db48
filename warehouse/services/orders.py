import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.costing import (
    ConsumptionEngine,
    ConsumptionResult,
    InvalidTransitionError,
    LayerOrigin,
    LineCost,
    OrderLine,
    OrderProfit,
    OrderSnapshot,
    ProfitReporter,
)
from warehouse.costing.money import ZERO, quantize_cost
from warehouse.db.database import utcnow
from warehouse.models.inventory import SalesOrder, SalesOrderItem, SalesOrderStatus
from warehouse.schemas.inventory import SalesOrderCreate

logger = logging.getLogger(__name__)


def build_order(payload: SalesOrderCreate) -> SalesOrder:
    return SalesOrder(
        store_name=payload.store_name.strip(),
        external_order_id=payload.external_order_id.strip(),
        order_number=payload.order_number,
        customer_name=payload.customer_name,
        customer_email=payload.customer_email,
        order_date=payload.order_date or utcnow(),
        status=SalesOrderStatus.PENDING,
        total_amount=payload.total_amount,
        shipping_cost=payload.shipping_cost,
        tax_amount=payload.tax_amount,
        items=[
            SalesOrderItem(
                sku=item.sku.strip(),
                product_name=item.product_name,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total_price=item.total_price if item.total_price is not None else item.unit_price * item.quantity,
                shortfall_quantity=0,
            )
            for item in payload.items
        ],
    )


def import_orders(db: Session, payloads: list[SalesOrderCreate]) -> list[SalesOrder]:
    """Insert orders not seen before, keyed by store and external order id."""
    stores = {p.store_name.strip() for p in payloads}
    existing: set[tuple[str, str]] = set()
    if stores:
        existing = {
            (row[0], row[1])
            for row in db.execute(
                select(SalesOrder.store_name, SalesOrder.external_order_id).where(
                    SalesOrder.store_name.in_(sorted(stores))
                )
            ).all()
        }

    created = []
    for payload in payloads:
        key = (payload.store_name.strip(), payload.external_order_id.strip())
        if key in existing:
            continue
        existing.add(key)
        order = build_order(payload)
        db.add(order)
        created.append(order)
    db.flush()
    logger.info("Imported %s of %s orders", len(created), len(payloads))
    return created


def order_snapshot(order: SalesOrder) -> OrderSnapshot:
    return OrderSnapshot(
        order_id=str(order.id),
        lines=tuple(
            OrderLine(
                sku=item.sku,
                quantity=item.quantity,
                unit_price=Decimal(item.unit_price),
                total_price=Decimal(item.total_price),
            )
            for item in order.items
        ),
        total_amount=order.total_amount,
        tax_amount=order.tax_amount,
        shipping_cost=order.shipping_cost,
    )


def _in_lock_order(items: list[SalesOrderItem]) -> list[SalesOrderItem]:
    # row locks are taken per SKU, always in SKU order across requests
    return sorted(items, key=lambda item: (item.sku, item.id or 0))


def fulfill_order(db: Session, engine: ConsumptionEngine, order: SalesOrder) -> list[ConsumptionResult]:
    if order.status != SalesOrderStatus.PENDING:
        raise InvalidTransitionError(f"Order {order.id} is {order.status.value}, only pending orders can be fulfilled")

    results = []
    for item in _in_lock_order(order.items):
        result = engine.consume(item.sku, item.quantity)
        item.cost_attributed = result.cost_attributed
        item.layer_cost = sum((draw.total_cost for draw in result.draws), ZERO)
        item.shortfall_quantity = result.shortfall_quantity
        results.append(result)

    order.status = SalesOrderStatus.FULFILLED
    order.fulfilled_at = utcnow()
    db.flush()

    shortfall = sum(result.shortfall_quantity for result in results)
    if shortfall:
        logger.warning("Order %s fulfilled with %s unit(s) not backed by stock layers", order.id, shortfall)
    return results


def cancel_order(db: Session, engine: ConsumptionEngine, order: SalesOrder) -> SalesOrder:
    if order.status == SalesOrderStatus.CANCELLED:
        raise InvalidTransitionError(f"Order {order.id} is already cancelled")

    if order.status == SalesOrderStatus.FULFILLED:
        origin_id = f"ORDER-{order.id}"
        for item in _in_lock_order(order.items):
            backed = item.quantity - item.shortfall_quantity
            if backed > 0:
                engine.release(
                    item.sku,
                    origin_id,
                    backed,
                    quantize_cost(Decimal(item.layer_cost or 0) / backed),
                    order.fulfilled_at or utcnow(),
                    origin_kind=LayerOrigin.CANCELLATION,
                )
            item.cost_attributed = None
            item.layer_cost = None
            item.shortfall_quantity = 0

    order.status = SalesOrderStatus.CANCELLED
    db.flush()
    return order


def has_frozen_costs(order: SalesOrder) -> bool:
    return order.status == SalesOrderStatus.FULFILLED and all(
        item.cost_attributed is not None for item in order.items
    )


def order_profit(reporter: ProfitReporter, order: SalesOrder, cost_basis: str) -> tuple[str, OrderProfit]:
    """Profit from costs frozen at fulfillment, or a live FIFO quote.

    Unfulfilled orders, and every order when ``cost_basis`` is ``live``, are
    quoted against current layers, so their figures move as stock changes.
    """
    snapshot = order_snapshot(order)
    if cost_basis == "frozen" and has_frozen_costs(order):
        line_costs = [
            LineCost(
                sku=item.sku,
                quantity=item.quantity,
                cost=Decimal(item.cost_attributed),
                shortfall_quantity=item.shortfall_quantity,
            )
            for item in order.items
        ]
        return "frozen", reporter.frozen_order_profit(snapshot, line_costs)
    return "live", reporter.order_profit(snapshot)
