import csv
import io

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from warehouse.api.deps import get_ledger, get_reporter
from warehouse.costing import CostLayer, LayerLedger, ProfitReporter
from warehouse.costing.money import ZERO, quantize_money
from warehouse.db.database import get_db
from warehouse.schemas.inventory import (
    CostLayerOut,
    InventoryItemOut,
    ManualInventoryCreate,
    SkuValuationOut,
    ValuationReportOut,
)
from warehouse.services.inventory import add_manual_inventory, inventory_positions

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _layer_out(layer: CostLayer) -> CostLayerOut:
    return CostLayerOut(
        id=layer.id,
        sku=layer.sku,
        origin_kind=layer.origin_kind.value,
        origin_id=layer.origin_id,
        quantity=layer.quantity,
        original_quantity=layer.original_quantity,
        unit_cost=layer.unit_cost,
        acquired_at=layer.acquired_at,
    )


@router.get("", response_model=list[InventoryItemOut])
def list_inventory(
    db: Session = Depends(get_db),
    reporter: ProfitReporter = Depends(get_reporter),
):
    return [
        InventoryItemOut(
            sku=position.sku,
            name=position.name,
            in_stock=position.in_stock,
            incoming=position.incoming,
            reserved=position.reserved,
            latest_unit_cost=position.latest_unit_cost,
            valuation=quantize_money(position.valuation),
        )
        for position in inventory_positions(db, reporter)
    ]


@router.get("/valuation", response_model=ValuationReportOut)
def valuation_report(reporter: ProfitReporter = Depends(get_reporter)):
    items = reporter.valuation_report()
    return ValuationReportOut(
        method=reporter.valuation_method.value,
        total_value=quantize_money(sum((item.value for item in items), ZERO)),
        items=[
            SkuValuationOut(
                sku=item.sku,
                quantity=item.quantity,
                unit_cost=quantize_money(item.unit_cost),
                value=quantize_money(item.value),
            )
            for item in items
        ],
    )


@router.get("/valuation/export/csv")
def export_valuation_csv(reporter: ProfitReporter = Depends(get_reporter)):
    sio = io.StringIO()
    writer = csv.writer(sio)
    writer.writerow(["sku", "quantity", "unit_cost", "value"])
    for item in reporter.valuation_report():
        writer.writerow(
            [
                item.sku,
                item.quantity,
                str(quantize_money(item.unit_cost)),
                str(quantize_money(item.value)),
            ]
        )
    return Response(
        content=sio.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="inventory-valuation.csv"'},
    )


@router.get("/{sku}/layers", response_model=list[CostLayerOut])
def list_layers(sku: str, ledger: LayerLedger = Depends(get_ledger)):
    return [_layer_out(layer) for layer in ledger.layers_for(sku)]


@router.post("/manual", response_model=CostLayerOut, status_code=status.HTTP_201_CREATED)
def create_manual_inventory(
    payload: ManualInventoryCreate,
    db: Session = Depends(get_db),
    ledger: LayerLedger = Depends(get_ledger),
):
    layer = add_manual_inventory(
        db,
        ledger,
        sku=payload.sku.strip(),
        name=payload.name,
        quantity=payload.quantity,
        unit_cost=payload.unit_cost,
        acquired_at=payload.acquired_at,
    )
    db.commit()
    return _layer_out(layer)
