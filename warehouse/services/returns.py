import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from warehouse.costing import ConsumptionEngine, LayerOrigin
from warehouse.models.inventory import ReturnItem, ReturnRequest, ReturnStatus
from warehouse.schemas.inventory import ReturnCreate, ReturnUpdate
from warehouse.services.inventory import carry_consumed, ensure_item

logger = logging.getLogger(__name__)


def next_return_number(db: Session, year: int) -> str:
    prefix = f"RMA-{year}-"
    existing = int(
        db.scalar(select(func.count(ReturnRequest.id)).where(ReturnRequest.return_number.like(f"{prefix}%"))) or 0
    )
    return f"{prefix}{existing + 1:03d}"


def restock_unit_cost(engine: ConsumptionEngine, sku: str) -> Decimal:
    ledger = engine.ledger
    if ledger.has_sku(sku):
        return ledger.latest_unit_cost(sku)
    logger.warning("No cost history for returned SKU %s, restocking at fallback cost", sku)
    return engine.policy.fallback_unit_cost


def _accept(db: Session, engine: ConsumptionEngine, ret: ReturnRequest) -> None:
    for item in ret.items:
        ensure_item(db, item.sku, item.product_name)
        unit_cost = restock_unit_cost(engine, item.sku)
        engine.release(
            item.sku,
            ret.return_number,
            item.quantity,
            unit_cost,
            ret.return_date,
            origin_kind=LayerOrigin.RETURN,
        )
        item.restock_unit_cost = unit_cost
    logger.info("Return %s accepted, %s line(s) restocked", ret.return_number, len(ret.items))


def _revert(engine: ConsumptionEngine, ret: ReturnRequest) -> dict[str, int]:
    consumed: dict[str, int] = {}
    for sku in sorted({item.sku for item in ret.items}):
        removed = engine.ledger.remove_layers_by_origin(sku, ret.return_number)
        consumed[sku] = sum(layer.consumed_quantity for layer in removed)
    for item in ret.items:
        item.restock_unit_cost = None
    logger.info("Return %s moved out of accepted, restocked layers removed", ret.return_number)
    return consumed


def create_return(db: Session, engine: ConsumptionEngine, payload: ReturnCreate) -> ReturnRequest:
    ret = ReturnRequest(
        return_number=next_return_number(db, payload.return_date.year),
        customer_name=payload.customer_name.strip(),
        customer_email=payload.customer_email,
        order_number=payload.order_number,
        return_date=payload.return_date,
        status=payload.status,
        total_refund=sum((item.total_refund for item in payload.items), Decimal("0")),
        notes=payload.notes,
        items=[
            ReturnItem(
                sku=item.sku.strip(),
                product_name=item.product_name,
                quantity=item.quantity,
                reason=item.reason,
                condition=item.condition,
                unit_price=item.unit_price,
                total_refund=item.total_refund,
            )
            for item in payload.items
        ],
    )
    db.add(ret)
    db.flush()
    if ret.status == ReturnStatus.ACCEPTED:
        _accept(db, engine, ret)
    return ret


def update_return(
    db: Session,
    engine: ConsumptionEngine,
    ret: ReturnRequest,
    payload: ReturnUpdate,
) -> ReturnRequest:
    previous = ret.status
    date_changed = payload.return_date is not None and payload.return_date != ret.return_date

    if payload.customer_name is not None:
        ret.customer_name = payload.customer_name.strip()
    if payload.customer_email is not None:
        ret.customer_email = payload.customer_email or None
    if payload.order_number is not None:
        ret.order_number = payload.order_number or None
    if payload.notes is not None:
        ret.notes = payload.notes or None
    if payload.return_date is not None:
        ret.return_date = payload.return_date
    if payload.status is not None:
        ret.status = payload.status

    was_accepted = previous == ReturnStatus.ACCEPTED
    is_accepted = ret.status == ReturnStatus.ACCEPTED
    consumed: dict[str, int] = {}
    if was_accepted and (not is_accepted or date_changed):
        consumed = _revert(engine, ret)
    if is_accepted and (not was_accepted or date_changed):
        _accept(db, engine, ret)
        if was_accepted:
            carry_consumed(engine.ledger, ret.return_number, consumed)
    db.flush()
    return ret
