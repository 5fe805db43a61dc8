from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.brewing import (
    create_schedule_entry,
    delete_schedule_entry,
    get_schedule_entry,
    list_schedule,
    reopen_schedule_entry,
    schedule_stats,
    set_schedule_status,
    upcoming_schedule,
    update_schedule_entry,
)
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import require_bean
from ..models.brewing import BrewingScheduleEntry
from ..schemas.brewing import ScheduleCreate, ScheduleOut, ScheduleStats, ScheduleStatusChange, ScheduleUpdate

router = APIRouter(prefix="/api/v1/brewing", tags=["brewing"], dependencies=[Depends(require_account)])


def _require_entry(db: Session, entry_id: int, auth: AuthContext) -> BrewingScheduleEntry:
    entry = get_schedule_entry(db, entry_id, owner=auth.account)
    if not entry:
        raise HTTPException(status_code=404, detail="Brewing schedule entry not found")
    return entry


@router.get("", response_model=list[ScheduleOut])
def api_list_schedule(
    on_date: Optional[date] = Query(default=None, alias="date"),
    status: Optional[str] = None,
    coffee_bean_id: Optional[int] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_schedule(db, owner=auth.account, on_date=on_date, status=status, coffee_bean_id=coffee_bean_id)


@router.get("/upcoming", response_model=list[ScheduleOut])
def api_upcoming(
    limit: int = Query(default=5, ge=1, le=100),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return upcoming_schedule(db, local_today(), owner=auth.account, limit=limit)


@router.get("/stats", response_model=ScheduleStats)
def api_schedule_stats(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return schedule_stats(db, local_today(), owner=auth.account)


@router.get("/{entry_id}", response_model=ScheduleOut)
def api_get_entry(entry_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return _require_entry(db, entry_id, auth)


@router.post("", response_model=ScheduleOut, status_code=201)
def api_create_entry(payload: ScheduleCreate, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    require_bean(db, payload.coffee_bean_id, auth)
    try:
        return create_schedule_entry(db, payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.patch("/{entry_id}", response_model=ScheduleOut)
def api_update_entry(
    entry_id: int,
    payload: ScheduleUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    entry = _require_entry(db, entry_id, auth)
    try:
        return update_schedule_entry(db, entry, payload.model_dump(exclude_unset=True))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/{entry_id}/status", response_model=ScheduleOut)
def api_change_status(
    entry_id: int,
    payload: ScheduleStatusChange,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    entry = _require_entry(db, entry_id, auth)
    try:
        return set_schedule_status(db, entry, payload.status)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/{entry_id}/reopen", response_model=ScheduleOut)
def api_reopen_entry(entry_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return reopen_schedule_entry(db, _require_entry(db, entry_id, auth))


@router.delete("/{entry_id}", status_code=204)
def api_delete_entry(entry_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    delete_schedule_entry(db, _require_entry(db, entry_id, auth))
    return Response(status_code=204)
