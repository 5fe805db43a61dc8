from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class TastingBase(BaseModel):
    brew_method: Optional[str] = None
    grind_size: Optional[str] = None
    water_temp: Optional[float] = Field(default=None, gt=0)
    brew_time: Optional[int] = Field(default=None, ge=0)
    aroma_rating: Optional[int] = Field(default=None, ge=1, le=10)
    acidity_rating: Optional[int] = Field(default=None, ge=1, le=10)
    body_rating: Optional[int] = Field(default=None, ge=1, le=10)
    flavor_rating: Optional[int] = Field(default=None, ge=1, le=10)
    aftertaste_rating: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None
    tasting_date: Optional[date] = None


class TastingCreate(TastingBase):
    coffee_bean_id: int
    overall_rating: int = Field(ge=1, le=10)
    # Input unit for water_temp; Celsius is converted before storage.
    water_temp_unit: str = Field(default="F", pattern="^[FfCc]$")


class TastingUpdate(TastingBase):
    overall_rating: Optional[int] = Field(default=None, ge=1, le=10)
    water_temp_unit: str = Field(default="F", pattern="^[FfCc]$")


class TastingOut(TastingBase):
    id: int
    coffee_bean_id: int
    overall_rating: int
    tasting_date: date
    coffee_bean_name: Optional[str] = None
    origin: Optional[str] = None
    roast_level: Optional[str] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class TastingStats(BaseModel):
    total_tastings: int
    unique_beans: int
    avg_overall_rating: Optional[float] = None
    avg_aroma_rating: Optional[float] = None
    avg_acidity_rating: Optional[float] = None
    avg_body_rating: Optional[float] = None
    avg_flavor_rating: Optional[float] = None
    avg_aftertaste_rating: Optional[float] = None
    excellent_count: int
    good_count: int
    poor_count: int
