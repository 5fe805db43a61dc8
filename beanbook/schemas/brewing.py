"""Schemas for brewing schedule entries and brewing log entries."""

from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from ..core.coffee_types import SCHEDULE_STATUS_CHOICES, WATER_TEMP_MAX_F

STATUS_PATTERN = f"^({'|'.join(SCHEDULE_STATUS_CHOICES)})$"
TIME_PATTERN = r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$"


class ScheduleBase(BaseModel):
    scheduled_date: date
    scheduled_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    brew_method: Optional[str] = None
    grind_size: Optional[str] = None
    water_temp: Optional[float] = Field(default=None, ge=1, le=WATER_TEMP_MAX_F)
    brew_time: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None


class ScheduleCreate(ScheduleBase):
    coffee_bean_id: int
    status: str = Field(default="planned", pattern=STATUS_PATTERN)


class ScheduleUpdate(BaseModel):
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    brew_method: Optional[str] = None
    grind_size: Optional[str] = None
    water_temp: Optional[float] = Field(default=None, ge=1, le=WATER_TEMP_MAX_F)
    brew_time: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    status: Optional[str] = Field(default=None, pattern=STATUS_PATTERN)


class ScheduleStatusChange(BaseModel):
    status: str = Field(pattern=STATUS_PATTERN)


class ScheduleOut(ScheduleBase):
    id: int
    coffee_bean_id: int
    status: str
    completed_at: Optional[str] = None
    coffee_bean_name: Optional[str] = None
    origin: Optional[str] = None
    roast_level: Optional[str] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class ScheduleStats(BaseModel):
    total_schedules: int
    planned_count: int
    completed_count: int
    cancelled_count: int
    skipped_count: int
    today_count: int


class BrewLogCreate(BaseModel):
    coffee_bean_id: int
    brew_date: Optional[date] = None
    brew_method: Optional[str] = None
    grams_used: int = Field(ge=1)
    cups_made: int = Field(default=1, ge=1)
    notes: Optional[str] = None


class BrewLogOut(BaseModel):
    id: int
    coffee_bean_id: int
    brew_date: date
    brew_method: Optional[str] = None
    grams_used: int
    cups_made: int
    notes: Optional[str] = None
    coffee_bean_name: Optional[str] = None
    origin: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class BrewingStats(BaseModel):
    total_brews: int
    total_cups: int
    total_grams: int
    avg_grams_per_brew: float
    avg_cups_per_brew: float
    unique_beans: int
    unique_methods: int


class BrewMethodBreakdown(BaseModel):
    brew_method: Optional[str] = None
    brew_count: int
    total_cups: int
    total_grams: int
    avg_grams: float
