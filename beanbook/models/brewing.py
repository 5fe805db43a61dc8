"""Brewing schedule entries (planned sessions) and brewing log entries (grounds used)."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class BrewingScheduleEntry(Base):
    __tablename__ = "brewing_schedule"

    id = Column(Integer, primary_key=True, index=True)
    coffee_bean_id = Column(
        Integer,
        ForeignKey("coffee_beans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    scheduled_date = Column(Date, nullable=False, index=True)
    scheduled_time = Column(Text, nullable=True)
    brew_method = Column(Text, nullable=True)
    grind_size = Column(Text, nullable=True)
    water_temp = Column(Float, nullable=True)
    brew_time = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="planned", index=True)
    completed_at = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    bean = relationship("CoffeeBean", back_populates="schedule_entries", lazy="joined")

    @property
    def coffee_bean_name(self) -> str | None:
        return self.bean.name if self.bean else None

    @property
    def origin(self) -> str | None:
        return self.bean.origin if self.bean else None

    @property
    def roast_level(self) -> str | None:
        return self.bean.roast_level if self.bean else None


class BrewingLogEntry(Base):
    """Grounds actually consumed; ``cups_made`` feeds the bean's cups_brewed counter."""

    __tablename__ = "brewing_log"
    __table_args__ = (
        CheckConstraint("grams_used >= 1", name="ck_brewing_log_grams_used"),
        CheckConstraint("cups_made >= 1", name="ck_brewing_log_cups_made"),
    )

    id = Column(Integer, primary_key=True, index=True)
    coffee_bean_id = Column(
        Integer,
        ForeignKey("coffee_beans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    brew_date = Column(Date, nullable=False, index=True)
    brew_method = Column(Text, nullable=True)
    grams_used = Column(Integer, nullable=False)
    cups_made = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)

    bean = relationship("CoffeeBean", back_populates="brew_logs", lazy="joined")

    @property
    def coffee_bean_name(self) -> str | None:
        return self.bean.name if self.bean else None

    @property
    def origin(self) -> str | None:
        return self.bean.origin if self.bean else None


__all__ = ["BrewingLogEntry", "BrewingScheduleEntry"]
