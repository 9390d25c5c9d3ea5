# medistock/repositories/base.py
"""
Storage interface consumed by the ledger, reservation and fulfillment services.

Services never touch a database handle directly; they run their mutations
inside ``store.transaction()`` and use the locking reads below to re-read
authoritative rows right before changing them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Iterable
from uuid import UUID

from medistock.models import (
    Delivery,
    Dispenser,
    InventoryItem,
    Medicine,
    Patient,
    Prescription,
    Reservation,
)


class ReservationStore(ABC):
    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """
        Atomic unit of work: commit on success, roll back on any exception.
        Storage failures surface as TransactionConflictError or InternalError.
        """

    # Master data

    @abstractmethod
    def get_patient(self, patient_id: int) -> Patient | None: ...

    @abstractmethod
    def get_dispenser(self, dispenser_id: int) -> Dispenser | None: ...

    @abstractmethod
    def get_medicines(self, medicine_ids: Iterable[int]) -> dict[int, Medicine]: ...

    # Inventory

    @abstractmethod
    def lock_inventory(self, dispenser_id: int, medicine_id: int) -> InventoryItem | None:
        """Re-read and lock the stock row for update."""

    @abstractmethod
    def add_inventory(self, dispenser_id: int, medicine_id: int, units: int) -> InventoryItem:
        """Create the stock row for a dispenser/medicine pair."""

    @abstractmethod
    def list_stock(
        self,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[InventoryItem]:
        """Rows with units > 0, dispenser and medicine loaded."""

    # Ledger

    @abstractmethod
    def get_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None: ...

    @abstractmethod
    def lock_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None:
        """Re-read and lock the prescription row for update."""

    @abstractmethod
    def list_prescriptions(self, patient_id: int) -> list[Prescription]: ...

    @abstractmethod
    def delivered_units(self, patient_id: int, medicine_id: int) -> int: ...

    @abstractmethod
    def held_units(self, patient_id: int, medicine_id: int, now: datetime) -> int:
        """Units on the patient's PENDING, unexpired reservations for a medicine."""

    # Reservations

    @abstractmethod
    def pickup_code_in_use(self, code: str) -> bool:
        """True if any PENDING reservation (lapsed or not) carries the code."""

    @abstractmethod
    def add_reservation(self, reservation: Reservation) -> None: ...

    @abstractmethod
    def get_reservation(self, reservation_id: UUID) -> Reservation | None: ...

    @abstractmethod
    def find_reservation_by_code(self, code: str, *, for_update: bool = False) -> Reservation | None:
        """The PENDING reservation with this code, else the newest one with it."""

    @abstractmethod
    def list_lapsed_reservations(
        self,
        now: datetime,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[Reservation]:
        """PENDING reservations past expires_at, locked for update."""

    @abstractmethod
    def list_reservations(self, patient_id: int) -> list[Reservation]: ...

    # Deliveries

    @abstractmethod
    def add_delivery(self, delivery: Delivery) -> None: ...

    @abstractmethod
    def list_deliveries(
        self,
        *,
        patient_id: int | None = None,
        reservation_id: UUID | None = None,
    ) -> list[Delivery]: ...
