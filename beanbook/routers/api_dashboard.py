from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..core.config import local_today
from ..crud.beans import list_beans
from ..crud.brewing import upcoming_schedule
from ..crud.tastings import top_rated
from ..db.session import get_db
from ..deps.auth import AuthContext, require_account
from ..deps.resources import currency_converter
from ..schemas.stats import DashboardOut
from ..services.dashboard import dashboard_stats
from ..services.freshness import freshness_alerts
from ..services.inventory import low_stock_beans

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"], dependencies=[Depends(require_account)])


@router.get("", response_model=DashboardOut)
def api_dashboard(db: Session = Depends(get_db), auth: AuthContext = Depends(require_account)):
    today = local_today()
    beans = list_beans(db, owner=auth.account)
    try:
        stats = dashboard_stats(beans, currency_converter())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return {
        "stats": stats,
        "low_stock": low_stock_beans(beans)[:5],
        "top_rated": top_rated(db, owner=auth.account, limit=5),
        "upcoming_brews": upcoming_schedule(db, today, owner=auth.account, limit=3),
        "freshness_alerts": freshness_alerts(beans, today)[:3],
    }
