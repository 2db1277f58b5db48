from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse.api.deps import get_engine, get_reporter
from warehouse.core.config import settings
from warehouse.costing import ConsumptionEngine, ProfitReporter
from warehouse.costing.money import ZERO, quantize_money
from warehouse.db.database import get_db
from warehouse.models.inventory import SalesOrder, SalesOrderStatus
from warehouse.schemas.inventory import (
    FulfillmentOut,
    LayerDrawOut,
    LineCostOut,
    OrderProfitOut,
    SalesOrderCreate,
    SalesOrderOut,
    ShortfallOut,
)
from warehouse.services.orders import (
    build_order,
    cancel_order,
    fulfill_order,
    import_orders,
    order_profit,
    order_snapshot,
)

router = APIRouter(prefix="/orders", tags=["Orders"])


def _get_order(db: Session, order_id: int) -> SalesOrder:
    order = db.get(SalesOrder, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


@router.post("", response_model=SalesOrderOut, status_code=status.HTTP_201_CREATED)
def create_order(payload: SalesOrderCreate, db: Session = Depends(get_db)):
    order = build_order(payload)
    db.add(order)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Order already imported for this store") from exc
    db.refresh(order)
    return order


@router.post("/bulk", response_model=list[SalesOrderOut], status_code=status.HTTP_201_CREATED)
def import_orders_route(payload: list[SalesOrderCreate], db: Session = Depends(get_db)):
    created = import_orders(db, payload)
    db.commit()
    for order in created:
        db.refresh(order)
    return created


@router.get("", response_model=list[SalesOrderOut])
def list_orders(
    status_filter: SalesOrderStatus | None = Query(default=None, alias="status"),
    store_name: str | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = select(SalesOrder).order_by(SalesOrder.order_date.desc(), SalesOrder.id.desc())
    if status_filter is not None:
        query = query.where(SalesOrder.status == status_filter)
    if store_name:
        query = query.where(SalesOrder.store_name == store_name.strip())
    if date_from is not None:
        query = query.where(SalesOrder.order_date >= date_from)
    if date_to is not None:
        query = query.where(SalesOrder.order_date <= date_to)
    return list(db.scalars(query).all())


@router.get("/{order_id}", response_model=SalesOrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return _get_order(db, order_id)


@router.post("/{order_id}/fulfill", response_model=FulfillmentOut)
def fulfill_order_route(
    order_id: int,
    db: Session = Depends(get_db),
    engine: ConsumptionEngine = Depends(get_engine),
):
    order = _get_order(db, order_id)
    results = fulfill_order(db, engine, order)
    db.commit()
    db.refresh(order)
    return FulfillmentOut(
        order=SalesOrderOut.model_validate(order),
        total_cost=quantize_money(sum((result.cost_attributed for result in results), ZERO)),
        shortfalls=[
            ShortfallOut(sku=result.sku, requested=result.quantity, shortfall_quantity=result.shortfall_quantity)
            for result in results
            if result.has_shortfall
        ],
    )


@router.post("/{order_id}/cancel", response_model=SalesOrderOut)
def cancel_order_route(
    order_id: int,
    db: Session = Depends(get_db),
    engine: ConsumptionEngine = Depends(get_engine),
):
    order = _get_order(db, order_id)
    cancel_order(db, engine, order)
    db.commit()
    db.refresh(order)
    return order


@router.get("/{order_id}/profit", response_model=OrderProfitOut)
def get_order_profit(
    order_id: int,
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    order = _get_order(db, order_id)
    basis, profit = order_profit(reporter, order, settings.profit_cost_basis)
    return OrderProfitOut(
        order_id=order.id,
        cost_basis=basis,
        total_amount=quantize_money(profit.total_amount),
        tax_amount=quantize_money(profit.tax_amount),
        shipping_cost=quantize_money(profit.shipping_cost),
        total_cost=quantize_money(profit.total_cost),
        profit=quantize_money(profit.profit),
        shortfall_quantity=profit.shortfall_quantity,
        lines=[
            LineCostOut(
                sku=line.sku,
                quantity=line.quantity,
                cost=quantize_money(line.cost),
                shortfall_quantity=line.shortfall_quantity,
            )
            for line in profit.lines
        ],
    )


@router.get("/{order_id}/cost-breakdown", response_model=dict[str, list[LayerDrawOut]])
def get_order_cost_breakdown(
    order_id: int,
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    order = _get_order(db, order_id)
    breakdown = reporter.cost_breakdown(order_snapshot(order))
    return {
        sku: [
            LayerDrawOut(
                origin_id=draw.origin_id,
                quantity=draw.quantity,
                unit_cost=draw.unit_cost,
                total_cost=quantize_money(draw.total_cost),
            )
            for draw in draws
        ]
        for sku, draws in breakdown.items()
    }
