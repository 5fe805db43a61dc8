from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, Date, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from ..db.session import Base

RATING_FIELDS = (
    "aroma_rating",
    "acidity_rating",
    "body_rating",
    "flavor_rating",
    "aftertaste_rating",
    "overall_rating",
)


class TastingNote(Base):
    """A tasting session. ``water_temp`` is always stored in Fahrenheit."""

    __tablename__ = "tasting_notes"
    __table_args__ = tuple(
        CheckConstraint(f"{field} IS NULL OR {field} BETWEEN 1 AND 10", name=f"ck_tasting_notes_{field}")
        for field in RATING_FIELDS
    )

    id = Column(Integer, primary_key=True, index=True)
    coffee_bean_id = Column(
        Integer,
        ForeignKey("coffee_beans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    brew_method = Column(Text, nullable=True)
    grind_size = Column(Text, nullable=True)
    water_temp = Column(Float, nullable=True)
    brew_time = Column(Integer, nullable=True)
    aroma_rating = Column(Integer, nullable=True)
    acidity_rating = Column(Integer, nullable=True)
    body_rating = Column(Integer, nullable=True)
    flavor_rating = Column(Integer, nullable=True)
    aftertaste_rating = Column(Integer, nullable=True)
    overall_rating = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    tasting_date = Column(Date, nullable=False)
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    bean = relationship("CoffeeBean", back_populates="tastings", lazy="joined")

    @property
    def coffee_bean_name(self) -> str | None:
        return self.bean.name if self.bean else None

    @property
    def origin(self) -> str | None:
        return self.bean.origin if self.bean else None

    @property
    def roast_level(self) -> str | None:
        return self.bean.roast_level if self.bean else None


__all__ = ["RATING_FIELDS", "TastingNote"]
