import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.costing import CostLayer, LayerLedger, LayerOrigin, ProfitReporter
from warehouse.costing.money import ZERO
from warehouse.db.database import utcnow
from warehouse.models.inventory import InventoryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventoryPosition:
    sku: str
    name: str
    in_stock: int
    incoming: int
    reserved: int
    latest_unit_cost: Decimal | None
    valuation: Decimal


def ensure_item(db: Session, sku: str, name: str | None = None) -> InventoryItem:
    item = db.scalar(select(InventoryItem).where(InventoryItem.sku == sku))
    if item is None:
        item = InventoryItem(sku=sku, name=(name or sku).strip(), incoming=0, reserved=0)
        db.add(item)
        db.flush()
    return item


def adjust_incoming(db: Session, sku: str, name: str | None, delta: int) -> None:
    item = ensure_item(db, sku, name)
    item.incoming = max(0, int(item.incoming) + delta)


def carry_consumed(ledger: LayerLedger, origin_id: str, consumed: dict[str, int]) -> None:
    for sku, quantity in sorted(consumed.items()):
        lost = ledger.draw_from_origin(sku, origin_id, quantity)
        if lost:
            logger.warning(
                "%s no longer covers %s unit(s) of %s that were already sold; they leave the ledger",
                origin_id,
                lost,
                sku,
            )


def add_manual_inventory(
    db: Session,
    ledger: LayerLedger,
    *,
    sku: str,
    name: str,
    quantity: int,
    unit_cost: Decimal,
    acquired_at: datetime | None = None,
) -> CostLayer:
    ensure_item(db, sku, name)
    now = utcnow()
    origin_id = f"MANUAL-{int(now.timestamp() * 1000)}"
    return ledger.add_layer(
        sku,
        origin_id,
        quantity,
        unit_cost,
        acquired_at or now,
        origin_kind=LayerOrigin.MANUAL,
    )


def inventory_positions(db: Session, reporter: ProfitReporter) -> list[InventoryPosition]:
    ledger = reporter.ledger
    items = {item.sku: item for item in db.scalars(select(InventoryItem).order_by(InventoryItem.sku)).all()}
    skus = sorted(set(items) | set(ledger.skus()))

    positions = []
    for sku in skus:
        item = items.get(sku)
        if ledger.has_sku(sku):
            valuation = reporter.valuation(sku)
            in_stock, latest, value = valuation.quantity, ledger.latest_unit_cost(sku), valuation.value
        else:
            in_stock, latest, value = 0, None, ZERO
        positions.append(
            InventoryPosition(
                sku=sku,
                name=item.name if item else sku,
                in_stock=in_stock,
                incoming=item.incoming if item else 0,
                reserved=item.reserved if item else 0,
                latest_unit_cost=latest,
                valuation=value,
            )
        )
    return positions
