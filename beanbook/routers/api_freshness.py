from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.beans import beans_with_dates
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..schemas.stats import FreshnessAlert, FreshnessSummary
from ..services.freshness import freshness_alerts, freshness_summary

router = APIRouter(prefix="/api/v1/freshness", tags=["freshness"], dependencies=[Depends(require_account)])


@router.get("/alerts", response_model=list[FreshnessAlert])
def api_freshness_alerts(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return freshness_alerts(beans_with_dates(db, owner=auth.account), local_today())


@router.get("/summary", response_model=FreshnessSummary)
def api_freshness_summary(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    return freshness_summary(beans_with_dates(db, owner=auth.account), local_today())
