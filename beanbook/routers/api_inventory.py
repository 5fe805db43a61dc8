from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.beans import list_beans
from ..crud.inventory import (
    adjust_lot_quantity,
    create_lot,
    delete_lot,
    get_lot,
    inventory_by_origin,
    inventory_summary,
    list_adjustments,
    list_lots,
    update_lot,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import require_bean
from ..models.inventory import InventoryLot
from ..schemas.inventory import (
    InventoryAdjustmentOut,
    InventoryAdjustRequest,
    InventorySummary,
    LotCreate,
    LotOut,
    LotUpdate,
    LowStockBean,
    OriginInventory,
)
from ..services.inventory import low_stock_beans

router = APIRouter(prefix="/api/v1/inventory", tags=["inventory"], dependencies=[Depends(require_account)])


def _require_lot(db: Session, lot_id: int, auth: AuthContext) -> InventoryLot:
    lot = get_lot(db, lot_id, owner=auth.account)
    if not lot:
        raise HTTPException(status_code=404, detail="Inventory lot not found")
    return lot


@router.get("", response_model=list[LotOut])
def api_list_lots(
    limit: Optional[int] = 200,
    offset: int = 0,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_lots(db, owner=auth.account, limit=limit, offset=offset)


@router.get("/summary", response_model=InventorySummary)
def api_inventory_summary(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return inventory_summary(db, local_today(), owner=auth.account)


@router.get("/by-origin", response_model=list[OriginInventory])
def api_inventory_by_origin(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return inventory_by_origin(db, owner=auth.account)


@router.get("/low-stock", response_model=list[LowStockBean])
def api_low_stock(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return low_stock_beans(list_beans(db, owner=auth.account))


@router.get("/bean/{bean_id}", response_model=list[LotOut])
def api_bean_lots(bean_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    bean = require_bean(db, bean_id, auth)
    return list_lots(db, coffee_bean_id=bean.id, limit=None)


@router.get("/{lot_id}", response_model=LotOut)
def api_get_lot(lot_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return _require_lot(db, lot_id, auth)


@router.post("", response_model=LotOut, status_code=201)
def api_create_lot(payload: LotCreate, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    require_bean(db, payload.coffee_bean_id, auth)
    try:
        return create_lot(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{lot_id}", response_model=LotOut)
def api_update_lot(
    lot_id: int,
    payload: LotUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    lot = _require_lot(db, lot_id, auth)
    try:
        return update_lot(db, lot, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{lot_id}", status_code=204)
def api_delete_lot(lot_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    delete_lot(db, _require_lot(db, lot_id, auth))
    return Response(status_code=204)


@router.post("/{lot_id}/adjust", response_model=InventoryAdjustmentOut, status_code=201)
def api_adjust_lot(
    lot_id: int,
    payload: InventoryAdjustRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    lot = _require_lot(db, lot_id, auth)
    return adjust_lot_quantity(db, lot, payload.adjustment, reason=payload.reason)


@router.get("/{lot_id}/adjustments", response_model=list[InventoryAdjustmentOut])
def api_lot_adjustments(lot_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return list_adjustments(db, _require_lot(db, lot_id, auth))
