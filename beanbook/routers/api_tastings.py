from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.tastings import (
    create_tasting,
    delete_tasting,
    get_tasting,
    list_tastings,
    tasting_stats,
    top_rated,
    update_tasting,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import require_bean
from ..models.tasting import TastingNote
from ..schemas.tasting import TastingCreate, TastingOut, TastingStats, TastingUpdate

router = APIRouter(prefix="/api/v1/tastings", tags=["tastings"], dependencies=[Depends(require_account)])


def _require_tasting(db: Session, tasting_id: int, auth: AuthContext) -> TastingNote:
    tasting = get_tasting(db, tasting_id, owner=auth.account)
    if not tasting:
        raise HTTPException(status_code=404, detail="Tasting note not found")
    return tasting


@router.get("", response_model=list[TastingOut])
def api_list_tastings(
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_tastings(db, owner=auth.account, limit=limit)


@router.get("/bean/{bean_id}", response_model=list[TastingOut])
def api_bean_tastings(bean_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    bean = require_bean(db, bean_id, auth)
    return list_tastings(db, coffee_bean_id=bean.id)


@router.get("/date-range", response_model=list[TastingOut])
def api_tastings_in_range(
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    return list_tastings(db, owner=auth.account, start_date=start_date, end_date=end_date)


@router.get("/top-rated", response_model=list[TastingOut])
def api_top_rated(
    limit: int = Query(default=10, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return top_rated(db, owner=auth.account, limit=limit)


@router.get("/stats", response_model=TastingStats)
def api_tasting_stats(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return tasting_stats(db, owner=auth.account)


@router.get("/{tasting_id}", response_model=TastingOut)
def api_get_tasting(tasting_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return _require_tasting(db, tasting_id, auth)


@router.post("", response_model=TastingOut, status_code=201)
def api_create_tasting(
    payload: TastingCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    require_bean(db, payload.coffee_bean_id, auth)
    try:
        return create_tasting(db, payload.model_dump(), today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{tasting_id}", response_model=TastingOut)
def api_update_tasting(
    tasting_id: int,
    payload: TastingUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    tasting = _require_tasting(db, tasting_id, auth)
    try:
        return update_tasting(db, tasting, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{tasting_id}", status_code=204)
def api_delete_tasting(tasting_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    delete_tasting(db, _require_tasting(db, tasting_id, auth))
    return Response(status_code=204)
