from typing import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from warehouse.costing.errors import LedgerInvariantError
from warehouse.costing.layers import CostLayer, LayerOrigin
from warehouse.models.inventory import CostLayerRecord


def _to_layer(record: CostLayerRecord) -> CostLayer:
    return CostLayer(
        sku=record.sku,
        origin_id=record.origin_id,
        quantity=record.quantity,
        unit_cost=record.unit_cost,
        acquired_at=record.acquired_at,
        origin_kind=LayerOrigin(record.origin_kind),
        original_quantity=record.original_quantity,
        sequence=record.id,
        id=record.id,
    )


class SqlLayerStore:
    """Layer store on the request session.

    Nothing here commits; the caller owns the transaction, so a consume that
    fails half way is rolled back together with everything else.
    """

    def __init__(self, db: Session):
        self.db = db

    def skus(self) -> list[str]:
        return list(self.db.scalars(select(CostLayerRecord.sku).distinct().order_by(CostLayerRecord.sku)).all())

    def layers(self, sku: str, *, for_update: bool = False) -> list[CostLayer]:
        query = (
            select(CostLayerRecord)
            .where(CostLayerRecord.sku == sku)
            .order_by(CostLayerRecord.acquired_at, CostLayerRecord.id)
        )
        if for_update:
            query = query.with_for_update()
        return [_to_layer(record) for record in self.db.scalars(query).all()]

    def insert(self, layer: CostLayer) -> CostLayer:
        record = CostLayerRecord(
            sku=layer.sku,
            origin_kind=LayerOrigin(layer.origin_kind).value,
            origin_id=layer.origin_id,
            quantity=layer.quantity,
            original_quantity=layer.original_quantity,
            unit_cost=layer.unit_cost,
            acquired_at=layer.acquired_at,
        )
        self.db.add(record)
        self.db.flush()
        layer.id = record.id
        layer.sequence = record.id
        return layer

    def set_quantities(self, updates: Sequence[tuple[CostLayer, int]]) -> None:
        records = []
        for layer, quantity in updates:
            record = self.db.get(CostLayerRecord, layer.id)
            if record is None:
                raise LedgerInvariantError(f"Cost layer {layer.id} disappeared during consumption")
            records.append((record, layer, quantity))
        for record, layer, quantity in records:
            record.quantity = quantity
            layer.quantity = quantity
        self.db.flush()

    def delete_by_origin(self, sku: str, origin_id: str) -> list[CostLayer]:
        records = list(
            self.db.scalars(
                select(CostLayerRecord)
                .where(CostLayerRecord.sku == sku, CostLayerRecord.origin_id == origin_id)
                .order_by(CostLayerRecord.acquired_at, CostLayerRecord.id)
                .with_for_update()
            ).all()
        )
        removed = [_to_layer(record) for record in records]
        for record in records:
            self.db.delete(record)
        self.db.flush()
        return removed
