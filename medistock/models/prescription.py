# medistock/models/prescription.py
from datetime import date, datetime

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from medistock.models.base import Base
from medistock.models.medicine import Medicine
from medistock.models.patient import Patient


class Prescription(Base):
    """
    Ledger row: prescribed ceiling and cumulative delivered units for one
    patient/medicine pair. Pending units are derived, never stored.
    """

    __tablename__ = "prescriptions"
    __table_args__ = (
        UniqueConstraint("patient_id", "medicine_id", name="uq_prescriptions_patient_medicine"),
        CheckConstraint("max_units >= 0", name="ck_prescriptions_max_units"),
        CheckConstraint("used_units >= 0", name="ck_prescriptions_used_units"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    patient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    medicine_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("medicines.id", ondelete="RESTRICT"),
        nullable=False,
    )

    rx_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    max_units: Mapped[int] = mapped_column(Integer, nullable=False)
    used_units: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"), default=0)

    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    dosage: Mapped[str | None] = mapped_column(String(100), nullable=True)  # e.g. "500 mg"
    frequency: Mapped[str | None] = mapped_column(String(100), nullable=True)  # e.g. "every 8 hours"

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    patient: Mapped["Patient"] = relationship("Patient", back_populates="prescriptions")
    medicine: Mapped["Medicine"] = relationship("Medicine")

    @property
    def pending_units(self) -> int:
        return max(0, self.max_units - self.used_units)
