# medistock/models/medicine.py
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from medistock.models.base import Base


class Medicine(Base):
    """
    Catalog entry. Immutable reference data.
    """

    __tablename__ = "medicines"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    atc: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        doc="WHO Anatomical Therapeutic Chemical code.",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    form: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "Tablet"
    strength: Mapped[str | None] = mapped_column(String(50), nullable=True)  # e.g. "500 mg"

    @property
    def label(self) -> str:
        parts = [f"{self.name} ({self.code})"]
        presentation = " ".join(p for p in (self.form, self.strength) if p)
        if presentation:
            parts.append(presentation)
        return " - ".join(parts)
