from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.beans import list_beans
from ..crud.costs import create_cost_entry, delete_cost_entry, get_cost_entry, list_cost_entries, monthly_spending
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import currency_converter, require_bean
from ..schemas.cost import (
    CostAnalysisRow,
    CostEntryCreate,
    CostEntryOut,
    CostRoiRow,
    MonthlySpendingRow,
    PortfolioTotals,
)
from ..services.costing import cost_analysis, cost_roi, portfolio_totals

router = APIRouter(prefix="/api/v1/cost", tags=["cost"], dependencies=[Depends(require_account)])


@router.get("", response_model=list[CostEntryOut])
def api_list_cost_entries(
    coffee_bean_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    return list_cost_entries(
        db,
        owner=auth.account,
        coffee_bean_id=coffee_bean_id,
        start_date=start_date,
        end_date=end_date,
    )


@router.get("/analysis", response_model=list[CostAnalysisRow])
def api_cost_analysis(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return cost_analysis(list_beans(db, owner=auth.account))


@router.get("/roi", response_model=list[CostRoiRow])
def api_cost_roi(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return cost_roi(list_beans(db, owner=auth.account))


@router.get("/monthly/{year}/{month}", response_model=list[MonthlySpendingRow])
def api_monthly_spending(
    year: int,
    month: int,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    try:
        return monthly_spending(db, year, month, owner=auth.account)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.get("/totals", response_model=PortfolioTotals)
def api_cost_totals(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    try:
        return portfolio_totals(list_beans(db, owner=auth.account), currency_converter())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("", response_model=CostEntryOut, status_code=201)
def api_create_cost_entry(
    payload: CostEntryCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_account),
):
    bean = require_bean(db, payload.coffee_bean_id, auth)
    try:
        return create_cost_entry(db, bean, payload.model_dump(), today=local_today())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.delete("/{entry_id}", status_code=204)
def api_delete_cost_entry(entry_id: int, db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    entry = get_cost_entry(db, entry_id, owner=auth.account)
    if not entry:
        raise HTTPException(status_code=404, detail="Cost entry not found")
    delete_cost_entry(db, entry)
    return Response(status_code=204)
