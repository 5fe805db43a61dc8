"""Response shapes for freshness alerts and the dashboard."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from .brewing import ScheduleOut
from .inventory import LowStockBean
from .tasting import TastingOut


class FreshnessAlert(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    roast_date: Optional[date] = None
    best_by_date: Optional[date] = None
    total_inventory: float
    freshness_status: str
    days_until_expiry: Optional[int] = None
    days_since_roast: Optional[int] = None


class FreshnessSummary(BaseModel):
    total_beans_with_dates: int
    expired_count: int
    expiring_soon_count: int
    expiring_month_count: int
    old_roast_count: int
    aging_roast_count: int
    fresh_count: int


class ExpensiveBean(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    price_per_gram: float
    buying_price_currency: str


class RatedBean(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    avg_rating: Optional[float] = None


class DashboardStats(BaseModel):
    total_beans: int
    total_inventory: float
    total_tastings: int
    avg_rating: float
    unique_origins: int
    low_stock_count: int
    most_expensive: Optional[ExpensiveBean] = None
    highest_rated: Optional[RatedBean] = None


class DashboardOut(BaseModel):
    stats: DashboardStats
    low_stock: list[LowStockBean] = Field(default_factory=list)
    top_rated: list[TastingOut] = Field(default_factory=list)
    upcoming_brews: list[ScheduleOut] = Field(default_factory=list)
    freshness_alerts: list[FreshnessAlert] = Field(default_factory=list)
