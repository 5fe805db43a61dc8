"""Lookup helpers shared by the API routers."""

from __future__ import annotations

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.beans import get_bean
from ..models.bean import CoffeeBean
from ..services.costing import CurrencyConverter
from .auth import AuthContext


def require_bean(db: Session, bean_id: int, auth: AuthContext) -> CoffeeBean:
    """Return the caller's bean; beans owned by another account look missing."""

    bean = get_bean(db, bean_id, owner=auth.account)
    if not bean:
        raise HTTPException(status_code=404, detail="Coffee bean not found")
    return bean


def currency_converter() -> CurrencyConverter:
    return CurrencyConverter(settings.BASE_CURRENCY, settings.EXCHANGE_RATES)
