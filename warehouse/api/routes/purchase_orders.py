from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse.api.deps import get_ledger
from warehouse.costing import LayerLedger
from warehouse.db.database import get_db
from warehouse.models.inventory import PurchaseOrder, PurchaseOrderStatus
from warehouse.schemas.inventory import PurchaseOrderCreate, PurchaseOrderOut, PurchaseOrderUpdate
from warehouse.services.purchase_orders import create_purchase_order, update_purchase_order

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])


def _get_purchase_order(db: Session, purchase_order_id: int) -> PurchaseOrder:
    po = db.get(PurchaseOrder, purchase_order_id)
    if not po:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Purchase order not found")
    return po


@router.post("", response_model=PurchaseOrderOut, status_code=status.HTTP_201_CREATED)
def create_purchase_order_route(
    payload: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    ledger: LayerLedger = Depends(get_ledger),
):
    try:
        po = create_purchase_order(db, ledger, payload)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Purchase order reference already exists") from exc
    db.refresh(po)
    return po


@router.get("", response_model=list[PurchaseOrderOut])
def list_purchase_orders(
    status_filter: PurchaseOrderStatus | None = Query(default=None, alias="status"),
    supplier: str | None = None,
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = select(PurchaseOrder).order_by(PurchaseOrder.order_date.desc(), PurchaseOrder.id.desc())
    if status_filter is not None:
        query = query.where(PurchaseOrder.status == status_filter)
    if supplier:
        query = query.where(PurchaseOrder.supplier.ilike(f"%{supplier.strip()}%"))
    if date_from is not None:
        query = query.where(PurchaseOrder.order_date >= date_from)
    if date_to is not None:
        query = query.where(PurchaseOrder.order_date <= date_to)
    return list(db.scalars(query).all())


@router.get("/{purchase_order_id}", response_model=PurchaseOrderOut)
def get_purchase_order(purchase_order_id: int, db: Session = Depends(get_db)):
    return _get_purchase_order(db, purchase_order_id)


@router.patch("/{purchase_order_id}", response_model=PurchaseOrderOut)
def update_purchase_order_route(
    purchase_order_id: int,
    payload: PurchaseOrderUpdate,
    db: Session = Depends(get_db),
    ledger: LayerLedger = Depends(get_ledger),
):
    po = _get_purchase_order(db, purchase_order_id)
    update_purchase_order(db, ledger, po, payload)
    db.commit()
    db.refresh(po)
    return po
