from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class CostEntry(Base):
    """A purchase of a bean. Amount is in the bean's ``buying_price_currency``."""

    __tablename__ = "cost_entries"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_cost_entries_amount"),
        CheckConstraint("quantity_grams >= 1", name="ck_cost_entries_quantity"),
    )

    id = Column(Integer, primary_key=True, index=True)
    coffee_bean_id = Column(
        Integer,
        ForeignKey("coffee_beans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    purchase_date = Column(Date, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    quantity_grams = Column(Integer, nullable=False)
    cost_per_gram = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False)

    bean = relationship("CoffeeBean", back_populates="cost_entries", lazy="joined")

    @property
    def coffee_bean_name(self) -> str | None:
        return self.bean.name if self.bean else None

    @property
    def origin(self) -> str | None:
        return self.bean.origin if self.bean else None

    @property
    def currency(self) -> str | None:
        return self.bean.buying_price_currency if self.bean else None


__all__ = ["CostEntry"]
