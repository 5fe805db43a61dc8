from __future__ import annotations

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field


class LotBase(BaseModel):
    quantity_grams: float = Field(default=0, ge=0)
    purchase_date: Optional[date] = None
    roast_date: Optional[date] = None
    expiry_date: Optional[date] = None
    storage_location: Optional[str] = None
    notes: Optional[str] = None


class LotCreate(LotBase):
    coffee_bean_id: int


class LotUpdate(BaseModel):
    quantity_grams: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[date] = None
    roast_date: Optional[date] = None
    expiry_date: Optional[date] = None
    storage_location: Optional[str] = None
    notes: Optional[str] = None


class LotOut(LotBase):
    id: int
    coffee_bean_id: int
    coffee_bean_name: Optional[str] = None
    origin: Optional[str] = None
    roast_level: Optional[str] = None
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class InventoryAdjustRequest(BaseModel):
    """Signed gram delta; negative values withdraw stock."""

    adjustment: float
    reason: Optional[str] = None


class InventoryAdjustmentOut(BaseModel):
    id: int
    lot_id: int
    requested_delta: float
    applied_delta: float
    quantity_after: float
    clamped: bool
    reason: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True


class InventorySummary(BaseModel):
    total_beans: int
    total_lots: int
    total_quantity: float
    avg_quantity: float
    low_stock_count: int
    expired_count: int
    unique_origins: int


class OriginInventory(BaseModel):
    origin: Optional[str] = None
    unique_beans: int
    total_items: int
    total_quantity: float
    avg_quantity: float
    low_stock_count: int
    earliest_purchase: Optional[date] = None
    latest_purchase: Optional[date] = None


class LowStockBean(BaseModel):
    id: int
    name: str
    origin: Optional[str] = None
    roast_level: Optional[str] = None
    total_inventory: float

    class Config:
        from_attributes = True
