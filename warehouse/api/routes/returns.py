from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from warehouse.api.deps import get_engine
from warehouse.costing import ConsumptionEngine
from warehouse.db.database import get_db
from warehouse.models.inventory import ReturnRequest, ReturnStatus
from warehouse.schemas.inventory import ReturnCreate, ReturnOut, ReturnUpdate
from warehouse.services.returns import create_return, update_return

router = APIRouter(prefix="/returns", tags=["Returns"])


@router.post("", response_model=ReturnOut, status_code=status.HTTP_201_CREATED)
def create_return_route(
    payload: ReturnCreate,
    db: Session = Depends(get_db),
    engine: ConsumptionEngine = Depends(get_engine),
):
    try:
        ret = create_return(db, engine, payload)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Return number already exists") from exc
    db.refresh(ret)
    return ret


@router.get("", response_model=list[ReturnOut])
def list_returns(
    status_filter: ReturnStatus | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = select(ReturnRequest).order_by(ReturnRequest.return_date.desc(), ReturnRequest.id.desc())
    if status_filter is not None:
        query = query.where(ReturnRequest.status == status_filter)
    if date_from is not None:
        query = query.where(ReturnRequest.return_date >= date_from)
    if date_to is not None:
        query = query.where(ReturnRequest.return_date <= date_to)
    return list(db.scalars(query).all())


@router.patch("/{return_id}", response_model=ReturnOut)
def update_return_route(
    return_id: int,
    payload: ReturnUpdate,
    db: Session = Depends(get_db),
    engine: ConsumptionEngine = Depends(get_engine),
):
    ret = db.get(ReturnRequest, return_id)
    if not ret:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Return not found")
    update_return(db, engine, ret, payload)
    db.commit()
    db.refresh(ret)
    return ret
