# medistock/models/__init__.py
# Import every model so Base.metadata is complete for create_all / Alembic.
from medistock.models.base import Base
from medistock.models.delivery import Delivery
from medistock.models.dispenser import Dispenser, InventoryItem
from medistock.models.medicine import Medicine
from medistock.models.patient import Patient
from medistock.models.prescription import Prescription
from medistock.models.reservation import Reservation, ReservationItem, ReservationStatus

__all__ = [
    "Base",
    "Delivery",
    "Dispenser",
    "InventoryItem",
    "Medicine",
    "Patient",
    "Prescription",
    "Reservation",
    "ReservationItem",
    "ReservationStatus",
]
