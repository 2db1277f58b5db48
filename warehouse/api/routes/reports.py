import csv
import io
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.api.deps import get_reporter
from warehouse.core.config import settings
from warehouse.costing import ProfitReporter
from warehouse.costing.money import ZERO, quantize_money
from warehouse.db.database import get_db
from warehouse.models.inventory import SalesOrder, SalesOrderStatus
from warehouse.schemas.inventory import ProductRevenueOut, ReportSummaryOut
from warehouse.services.orders import order_profit, order_snapshot

router = APIRouter(prefix="/reports", tags=["Reports"])


def _reportable_orders(
    db: Session,
    *,
    date_from: datetime | None,
    date_to: datetime | None,
) -> list[SalesOrder]:
    query = (
        select(SalesOrder)
        .where(SalesOrder.status != SalesOrderStatus.CANCELLED)
        .order_by(SalesOrder.order_date, SalesOrder.id)
    )
    if date_from is not None:
        query = query.where(SalesOrder.order_date >= date_from)
    if date_to is not None:
        query = query.where(SalesOrder.order_date <= date_to)
    return list(db.scalars(query).all())


@router.get("/summary", response_model=ReportSummaryOut)
def report_summary(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    orders = _reportable_orders(db, date_from=date_from, date_to=date_to)
    revenue = cost = profit = ZERO
    shortfall = 0
    for order in orders:
        _, result = order_profit(reporter, order, settings.profit_cost_basis)
        revenue += result.total_amount
        cost += result.total_cost
        profit += result.profit
        shortfall += result.shortfall_quantity

    margin = (profit / revenue * Decimal("100")) if revenue else ZERO
    return ReportSummaryOut(
        period_from=date_from,
        period_to=date_to,
        total_orders=len(orders),
        total_revenue=quantize_money(revenue),
        total_cost=quantize_money(cost),
        total_profit=quantize_money(profit),
        profit_margin=quantize_money(margin),
        shortfall_quantity=shortfall,
        inventory_value=quantize_money(reporter.total_valuation()),
    )


@router.get("/top-products", response_model=list[ProductRevenueOut])
def top_products(
    limit: int | None = Query(default=None, ge=1, le=500),
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    orders = _reportable_orders(db, date_from=date_from, date_to=date_to)
    ranked = reporter.top_products_by_revenue(
        [order_snapshot(order) for order in orders],
        limit or settings.top_products_default_limit,
    )
    return [
        ProductRevenueOut(sku=item.sku, revenue=quantize_money(item.revenue), quantity=item.quantity)
        for item in ranked
    ]


@router.get("/orders/export/csv")
def export_order_profit_csv(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    sio = io.StringIO()
    writer = csv.writer(sio)
    writer.writerow(
        [
            "order_id",
            "store_name",
            "order_number",
            "order_date",
            "status",
            "cost_basis",
            "total_amount",
            "tax_amount",
            "shipping_cost",
            "total_cost",
            "profit",
            "shortfall_quantity",
        ]
    )
    for order in _reportable_orders(db, date_from=date_from, date_to=date_to):
        basis, result = order_profit(reporter, order, settings.profit_cost_basis)
        writer.writerow(
            [
                order.id,
                order.store_name,
                order.order_number or "",
                order.order_date.isoformat(),
                order.status.value,
                basis,
                str(quantize_money(result.total_amount)),
                str(quantize_money(result.tax_amount)),
                str(quantize_money(result.shipping_cost)),
                str(quantize_money(result.total_cost)),
                str(quantize_money(result.profit)),
                result.shortfall_quantity,
            ]
        )
    return Response(
        content=sio.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="order-profit.csv"'},
    )
