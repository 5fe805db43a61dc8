"""SQLAlchemy model for a coffee bean and its denormalized cost counters."""

from __future__ import annotations

from sqlalchemy import Column, Date, Float, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class CoffeeBean(Base):
    """A coffee product owned by one account.

    ``total_cost``, ``cups_brewed`` and ``cost_per_cup`` mirror the bean's cost
    entries and brewing log; they are rewritten from those tables whenever an
    entry changes.
    """

    __tablename__ = "coffee_beans"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    owner = Column(Text, nullable=False, index=True)
    name = Column(Text, nullable=False)
    origin = Column(Text, nullable=True, index=True)
    roast_level = Column(Text, nullable=True)
    process_method = Column(Text, nullable=True)
    altitude = Column(Text, nullable=True)
    varietal = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    supplier = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)
    buying_date = Column(Date, nullable=True)
    buying_place = Column(Text, nullable=True)
    buying_price = Column(Float, nullable=True)
    buying_price_currency = Column(Text, nullable=False, default="USD")
    amount_grams = Column(Float, nullable=True)
    roast_date = Column(Date, nullable=True)
    best_by_date = Column(Date, nullable=True)
    price_per_gram = Column(Float, nullable=False, default=0.0)
    total_cost = Column(Float, nullable=False, default=0.0)
    cups_brewed = Column(Integer, nullable=False, default=0)
    cost_per_cup = Column(Float, nullable=False, default=0.0)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    lots = relationship(
        "InventoryLot",
        back_populates="bean",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    tastings = relationship(
        "TastingNote",
        back_populates="bean",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    schedule_entries = relationship(
        "BrewingScheduleEntry",
        back_populates="bean",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    cost_entries = relationship(
        "CostEntry",
        back_populates="bean",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    brew_logs = relationship(
        "BrewingLogEntry",
        back_populates="bean",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


__all__ = ["CoffeeBean"]
