from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.brew_logs import brew_method_breakdown, brewing_stats, create_brew_log, delete_brew_log, get_brew_log, list_brew_logs
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import require_bean
from ..schemas.brewing import BrewingStats, BrewLogCreate, BrewLogOut, BrewMethodBreakdown

router = APIRouter(prefix="/api/v1/brewing-log", tags=["brewing-log"], dependencies=[Depends(require_account)])


@router.get("", response_model=list[BrewLogOut])
def api_list_brew_logs(
    coffee_bean_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_brew_logs(
        db,
        owner=auth.account,
        coffee_bean_id=coffee_bean_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )


@router.get("/stats", response_model=BrewingStats)
def api_brewing_stats(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return brewing_stats(db, owner=auth.account)


@router.get("/methods", response_model=list[BrewMethodBreakdown])
def api_brew_methods(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return brew_method_breakdown(db, owner=auth.account)


@router.post("", response_model=BrewLogOut, status_code=201)
def api_create_brew_log(payload: BrewLogCreate, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    bean = require_bean(db, payload.coffee_bean_id, auth)
    try:
        return create_brew_log(db, bean, payload.model_dump(), today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{log_id}", status_code=204)
def api_delete_brew_log(log_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    entry = get_brew_log(db, log_id, owner=auth.account)
    if not entry:
        raise HTTPException(status_code=404, detail="Brewing log entry not found")
    delete_brew_log(db, entry)
    return Response(status_code=204)
