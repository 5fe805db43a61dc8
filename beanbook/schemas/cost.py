from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class CostEntryCreate(BaseModel):
    coffee_bean_id: int
    purchase_date: Optional[date] = None
    amount: float = Field(ge=0)
    quantity_grams: int = Field(ge=1)
    notes: Optional[str] = None


class CostEntryOut(BaseModel):
    id: int
    coffee_bean_id: int
    purchase_date: date
    amount: float
    quantity_grams: int
    cost_per_gram: float
    notes: Optional[str] = None
    coffee_bean_name: Optional[str] = None
    origin: Optional[str] = None
    currency: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class CostRow(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    currency: str
    total_cost: float
    cups_brewed: int
    cost_per_cup: float


class CostAnalysisRow(CostRow):
    monthly_cost_at_1_cup_per_day: float


class CostRoiRow(CostRow):
    cost_percentage_of_total: float
    premium_over_standard_cup: float


class MonthlySpendingRow(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    currency: str
    total_spent: float
    total_grams: int
    avg_cost_per_gram: float
    purchases: int


class CurrencyTotal(BaseModel):
    currency: str
    total_cost: float
    cups_brewed: int
    cost_per_cup: float
    beans: int


class PortfolioTotals(BaseModel):
    base_currency: str
    total_cost: float
    cups_brewed: int
    avg_cost_per_cup: float
    by_currency: list[CurrencyTotal] = Field(default_factory=list)
