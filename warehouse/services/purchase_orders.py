"""Purchase-order status transitions and their effect on stock.

draft -> pending -> in_transit -> delivered. Pending and in-transit lines
count as incoming; a delivered PO owns one cost layer per line, keyed by the
PO reference. Moving a PO out of delivered removes those layers even if part
of them was already sold. Editing a PO that stays delivered rebuilds its
layers with the units already sold still marked as consumed.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.costing import LayerLedger, LayerOrigin, PurchaseLine, allocate_delivery_cost
from warehouse.costing.allocation import purchase_order_total
from warehouse.models.inventory import PurchaseOrder, PurchaseOrderItem, PurchaseOrderStatus
from warehouse.schemas.inventory import PurchaseOrderCreate, PurchaseOrderItemIn, PurchaseOrderUpdate
from warehouse.services.inventory import adjust_incoming, carry_consumed, ensure_item

logger = logging.getLogger(__name__)

INCOMING_STATUSES = {PurchaseOrderStatus.PENDING, PurchaseOrderStatus.IN_TRANSIT}


@dataclass(frozen=True)
class _Effect:
    reference: str
    status: PurchaseOrderStatus
    lines: tuple[tuple[str, str | None, int], ...]


def next_reference(db: Session, order_date: date) -> str:
    prefix = f"PO-{order_date.year}-"
    existing = int(
        db.scalar(select(func.count(PurchaseOrder.id)).where(PurchaseOrder.reference.like(f"{prefix}%"))) or 0
    )
    return f"{prefix}{existing + 1:03d}"


def _build_items(items: list[PurchaseOrderItemIn], delivery_cost: Decimal) -> list[PurchaseOrderItem]:
    lines = [
        PurchaseLine(sku=item.sku.strip(), quantity=item.quantity, unit_cost=item.unit_cost, name=item.name)
        for item in items
    ]
    return [
        PurchaseOrderItem(
            sku=line.sku,
            name=line.name,
            quantity=line.quantity,
            unit_cost=line.unit_cost,
            delivery_cost_per_unit=line.delivery_cost_per_unit,
            total_cost=line.total_cost,
        )
        for line in allocate_delivery_cost(lines, delivery_cost)
    ]


def _order_total(items: list[PurchaseOrderItemIn], delivery_cost: Decimal) -> Decimal:
    return purchase_order_total(
        [PurchaseLine(sku=item.sku, quantity=item.quantity, unit_cost=item.unit_cost) for item in items],
        delivery_cost,
    )


def _effect_of(po: PurchaseOrder) -> _Effect:
    return _Effect(
        reference=po.reference,
        status=po.status,
        lines=tuple((item.sku, item.name, item.quantity) for item in po.items),
    )


def _remove_effect(db: Session, ledger: LayerLedger, effect: _Effect) -> dict[str, int]:
    """Undo what ``effect`` did to stock; returns units already sold per SKU."""
    consumed: dict[str, int] = {}
    if effect.status == PurchaseOrderStatus.DELIVERED:
        for sku in sorted({sku for sku, _, _ in effect.lines}):
            removed = ledger.remove_layers_by_origin(sku, effect.reference)
            consumed[sku] = sum(layer.consumed_quantity for layer in removed)
            logger.info("Reverted delivery of %s: removed %s layer(s) for %s", effect.reference, len(removed), sku)
    elif effect.status in INCOMING_STATUSES:
        for sku, name, quantity in effect.lines:
            adjust_incoming(db, sku, name, -quantity)
    return consumed


def _apply_effect(db: Session, ledger: LayerLedger, po: PurchaseOrder) -> None:
    if po.status == PurchaseOrderStatus.DELIVERED:
        for item in po.items:
            ensure_item(db, item.sku, item.name)
            ledger.add_layer(
                item.sku,
                po.reference,
                item.quantity,
                Decimal(item.unit_cost) + Decimal(item.delivery_cost_per_unit),
                po.order_date,
                origin_kind=LayerOrigin.PURCHASE_ORDER,
            )
        logger.info("Delivered %s: added %s layer(s)", po.reference, len(po.items))
    elif po.status in INCOMING_STATUSES:
        for item in po.items:
            adjust_incoming(db, item.sku, item.name, item.quantity)
    else:
        for item in po.items:
            ensure_item(db, item.sku, item.name)


def create_purchase_order(db: Session, ledger: LayerLedger, payload: PurchaseOrderCreate) -> PurchaseOrder:
    po = PurchaseOrder(
        reference=next_reference(db, payload.order_date),
        supplier=payload.supplier.strip(),
        order_date=payload.order_date,
        status=payload.status,
        delivery_cost=payload.delivery_cost,
        total_cost=_order_total(payload.items, payload.delivery_cost),
        notes=payload.notes.strip() if payload.notes else None,
        items=_build_items(payload.items, payload.delivery_cost),
    )
    db.add(po)
    db.flush()
    _apply_effect(db, ledger, po)
    return po


def update_purchase_order(
    db: Session,
    ledger: LayerLedger,
    po: PurchaseOrder,
    payload: PurchaseOrderUpdate,
) -> PurchaseOrder:
    before = _effect_of(po)
    stock_changed = (
        (payload.status is not None and payload.status != po.status)
        or payload.items is not None
        or (payload.delivery_cost is not None and payload.delivery_cost != po.delivery_cost)
        or (payload.order_date is not None and payload.order_date != po.order_date)
    )

    if payload.supplier is not None:
        po.supplier = payload.supplier.strip()
    if payload.notes is not None:
        po.notes = payload.notes.strip() or None
    if payload.order_date is not None:
        po.order_date = payload.order_date
    if payload.delivery_cost is not None:
        po.delivery_cost = payload.delivery_cost
    if payload.status is not None:
        po.status = payload.status

    if payload.items is not None or payload.delivery_cost is not None:
        items = payload.items
        if items is None:
            items = [
                PurchaseOrderItemIn(sku=item.sku, name=item.name, quantity=item.quantity, unit_cost=item.unit_cost)
                for item in po.items
            ]
        po.items = _build_items(items, Decimal(po.delivery_cost))
        po.total_cost = _order_total(items, Decimal(po.delivery_cost))

    if stock_changed:
        consumed = _remove_effect(db, ledger, before)
        db.flush()
        _apply_effect(db, ledger, po)
        if before.status == po.status == PurchaseOrderStatus.DELIVERED:
            carry_consumed(ledger, po.reference, consumed)
        logger.info("Purchase order %s moved %s -> %s", po.reference, before.status.value, po.status.value)
    return po
