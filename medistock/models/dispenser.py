# medistock/models/dispenser.py
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medistock.models.base import Base
from medistock.models.medicine import Medicine


class Dispenser(Base):
    """
    A physical pickup point with its own inventory.
    """

    __tablename__ = "dispensers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    open_days: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "mon-sat"
    open_hour: Mapped[str | None] = mapped_column(String(5), nullable=True)
    close_hour: Mapped[str | None] = mapped_column(String(5), nullable=True)

    inventory: Mapped[list["InventoryItem"]] = relationship(
        "InventoryItem", back_populates="dispenser"
    )


class InventoryItem(Base):
    """
    Units of one medicine on hand at one dispenser.
    Units held by PENDING reservations are already subtracted.
    """

    __tablename__ = "inventory"
    __table_args__ = (CheckConstraint("units >= 0", name="ck_inventory_units_non_negative"),)

    dispenser_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("dispensers.id", ondelete="CASCADE"),
        primary_key=True,
    )
    medicine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medicines.id", ondelete="CASCADE"),
        primary_key=True,
    )
    units: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"), default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    dispenser: Mapped["Dispenser"] = relationship("Dispenser", back_populates="inventory")
    medicine: Mapped["Medicine"] = relationship("Medicine")
