# medistock/models/reservation.py
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medistock.models.base import Base
from medistock.models.dispenser import Dispenser
from medistock.models.medicine import Medicine
from medistock.models.patient import Patient


class ReservationStatus(str, PyEnum):
    PENDING = "PENDING"
    DELIVERED = "DELIVERED"
    EXPIRED = "EXPIRED"


class Reservation(Base):
    """
    A time-boxed claim on dispenser stock, redeemable once by its pickup code.

    Status transitions:
        PENDING -> DELIVERED (redeemed before expires_at)
        PENDING -> EXPIRED   (lapsed; held units returned to stock)
    """

    __tablename__ = "reservations"
    __table_args__ = (
        Index("ix_reservations_pickup_code_status", "pickup_code", "status"),
        Index("ix_reservations_dispenser_status", "dispenser_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    dispenser_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("dispensers.id", ondelete="RESTRICT"),
        nullable=False,
    )

    pickup_code: Mapped[str] = mapped_column(String(16), nullable=False)
    status: Mapped[ReservationStatus] = mapped_column(
        SAEnum(ReservationStatus, name="reservation_status_enum"),
        nullable=False,
        default=ReservationStatus.PENDING,
        server_default=text("'PENDING'"),
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    delivered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    patient: Mapped["Patient"] = relationship("Patient")
    dispenser: Mapped["Dispenser"] = relationship("Dispenser")
    items: Mapped[list["ReservationItem"]] = relationship(
        "ReservationItem",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationItem.medicine_id",
    )

    @property
    def total_units(self) -> int:
        return sum(item.units for item in self.items)


class ReservationItem(Base):
    """
    One medicine line of a reservation. Units are frozen at creation.
    """

    __tablename__ = "reservation_items"
    __table_args__ = (CheckConstraint("units > 0", name="ck_reservation_items_units_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    reservation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    medicine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medicines.id", ondelete="RESTRICT"),
        nullable=False,
    )
    units: Mapped[int] = mapped_column(Integer, nullable=False)

    reservation: Mapped["Reservation"] = relationship("Reservation", back_populates="items")
    medicine: Mapped["Medicine"] = relationship("Medicine")
