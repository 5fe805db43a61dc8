"""Inventory lots and the audit trail of quantity adjustments."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class InventoryLot(Base):
    """A quantity of one bean acquired at a point in time."""

    __tablename__ = "inventory_lots"
    __table_args__ = (CheckConstraint("quantity_grams >= 0", name="ck_inventory_lots_quantity_nonneg"),)

    id = Column(Integer, primary_key=True, index=True)
    coffee_bean_id = Column(
        Integer,
        ForeignKey("coffee_beans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    quantity_grams = Column(Float, nullable=False, default=0.0)
    purchase_date = Column(Date, nullable=True)
    roast_date = Column(Date, nullable=True)
    expiry_date = Column(Date, nullable=True)
    storage_location = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    bean = relationship("CoffeeBean", back_populates="lots", lazy="joined")
    adjustments = relationship(
        "InventoryAdjustment",
        back_populates="lot",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="InventoryAdjustment.id",
    )

    @property
    def coffee_bean_name(self) -> str | None:
        return self.bean.name if self.bean else None

    @property
    def origin(self) -> str | None:
        return self.bean.origin if self.bean else None

    @property
    def roast_level(self) -> str | None:
        return self.bean.roast_level if self.bean else None


class InventoryAdjustment(Base):
    """One signed quantity change applied to a lot.

    ``requested_delta`` is what the caller asked for; ``applied_delta`` is what
    actually happened after the zero floor was enforced.
    """

    __tablename__ = "inventory_adjustments"

    id = Column(Integer, primary_key=True, index=True)
    lot_id = Column(
        Integer,
        ForeignKey("inventory_lots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requested_delta = Column(Float, nullable=False)
    applied_delta = Column(Float, nullable=False)
    quantity_after = Column(Float, nullable=False)
    reason = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)

    lot = relationship("InventoryLot", back_populates="adjustments")

    @property
    def clamped(self) -> bool:
        return self.applied_delta != self.requested_delta


__all__ = ["InventoryAdjustment", "InventoryLot"]
