"""Pydantic schemas for coffee bean payloads."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from ..core.coffee_types import CURRENCY_CHOICES, ROAST_LEVEL_CHOICES

ROAST_LEVEL_PATTERN = f"^({'|'.join(ROAST_LEVEL_CHOICES)})$"
# Case-insensitive; codes are upper-cased before storage.
CURRENCY_PATTERN = f"(?i)^({'|'.join(CURRENCY_CHOICES)})$"


class BeanBase(BaseModel):
    name: str = Field(min_length=1)
    origin: Optional[str] = None
    roast_level: Optional[str] = Field(default=None, pattern=ROAST_LEVEL_PATTERN)
    process_method: Optional[str] = None
    altitude: Optional[str] = None
    varietal: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None
    photo_url: Optional[str] = None
    buying_date: Optional[date] = None
    buying_place: Optional[str] = None
    buying_price: Optional[float] = Field(default=None, ge=0)
    buying_price_currency: str = Field(default="USD", pattern=CURRENCY_PATTERN)
    amount_grams: Optional[float] = Field(default=None, gt=0)
    roast_date: Optional[date] = None
    best_by_date: Optional[date] = None


class BeanCreate(BeanBase):
    pass


class BeanUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    origin: Optional[str] = None
    roast_level: Optional[str] = Field(default=None, pattern=ROAST_LEVEL_PATTERN)
    process_method: Optional[str] = None
    altitude: Optional[str] = None
    varietal: Optional[str] = None
    description: Optional[str] = None
    supplier: Optional[str] = None
    photo_url: Optional[str] = None
    buying_date: Optional[date] = None
    buying_place: Optional[str] = None
    buying_price: Optional[float] = Field(default=None, ge=0)
    buying_price_currency: Optional[str] = Field(default=None, pattern=CURRENCY_PATTERN)
    amount_grams: Optional[float] = Field(default=None, gt=0)
    roast_date: Optional[date] = None
    best_by_date: Optional[date] = None


class BeanOut(BeanBase):
    id: int
    price_per_gram: float = 0.0
    total_cost: float = 0.0
    cups_brewed: int = 0
    cost_per_cup: float = 0.0
    total_inventory: float = 0.0
    tasting_count: int = 0
    avg_rating: Optional[float] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True
