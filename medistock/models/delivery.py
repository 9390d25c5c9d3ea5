# medistock/models/delivery.py
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medistock.models.base import Base
from medistock.models.dispenser import Dispenser
from medistock.models.medicine import Medicine
from medistock.models.reservation import Reservation


class Delivery(Base):
    """
    Append-only record of units handed to a patient.

    Never updated or deleted; the sum per patient/medicine is the source of
    truth for Prescription.used_units.
    """

    __tablename__ = "deliveries"
    __table_args__ = (Index("ix_deliveries_patient_medicine", "patient_id", "medicine_id"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    reservation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("reservations.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="RESTRICT"),
        nullable=False,
    )
    dispenser_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("dispensers.id", ondelete="RESTRICT"),
        nullable=False,
    )
    medicine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medicines.id", ondelete="RESTRICT"),
        nullable=False,
    )
    units: Mapped[int] = mapped_column(Integer, nullable=False)
    delivered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    reservation: Mapped["Reservation"] = relationship("Reservation")
    dispenser: Mapped["Dispenser"] = relationship("Dispenser")
    medicine: Mapped["Medicine"] = relationship("Medicine")
