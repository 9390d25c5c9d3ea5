"""
In-memory ReservationStore used to exercise the services without a database.

Rows are plain (transient) ORM instances kept in dicts. transaction() takes a
process-wide lock and restores a snapshot of every mutable field when the
block raises, so a failed operation leaves no trace.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
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
    ReservationStatus,
)
from medistock.repositories.base import ReservationStore
from medistock.utils.datetime_utils import as_utc, is_expired


class InMemoryStore(ReservationStore):
    def __init__(self):
        self.patients: dict[int, Patient] = {}
        self.dispensers: dict[int, Dispenser] = {}
        self.medicines: dict[int, Medicine] = {}
        self.inventory: dict[tuple[int, int], InventoryItem] = {}
        self.prescriptions: dict[tuple[int, int], Prescription] = {}
        self.reservations: list[Reservation] = []
        self.deliveries: list[Delivery] = []
        self.commits = 0
        self.rollbacks = 0
        self._lock = threading.RLock()

    # Test setup helpers

    def put_patient(self, patient: Patient) -> Patient:
        self.patients[patient.id] = patient
        return patient

    def put_dispenser(self, dispenser: Dispenser) -> Dispenser:
        self.dispensers[dispenser.id] = dispenser
        return dispenser

    def put_medicine(self, medicine: Medicine) -> Medicine:
        self.medicines[medicine.id] = medicine
        return medicine

    def put_inventory(self, dispenser_id: int, medicine_id: int, units: int) -> InventoryItem:
        item = InventoryItem(dispenser_id=dispenser_id, medicine_id=medicine_id, units=units)
        item.dispenser = self.dispensers.get(dispenser_id)
        item.medicine = self.medicines.get(medicine_id)
        self.inventory[(dispenser_id, medicine_id)] = item
        return item

    def put_prescription(self, prescription: Prescription) -> Prescription:
        prescription.medicine = self.medicines.get(prescription.medicine_id)
        self.prescriptions[(prescription.patient_id, prescription.medicine_id)] = prescription
        return prescription

    # Transactions

    def _snapshot(self) -> dict:
        return {
            "inventory": {k: (v.units, v.updated_at) for k, v in self.inventory.items()},
            "prescriptions": {k: v.used_units for k, v in self.prescriptions.items()},
            "reservations": [(r, r.status, r.delivered_at, r.expired_at) for r in self.reservations],
            "deliveries": list(self.deliveries),
        }

    def _restore(self, snapshot: dict) -> None:
        for key in set(self.inventory) - set(snapshot["inventory"]):
            del self.inventory[key]
        for key, (units, updated_at) in snapshot["inventory"].items():
            self.inventory[key].units = units
            self.inventory[key].updated_at = updated_at
        for key, used in snapshot["prescriptions"].items():
            self.prescriptions[key].used_units = used
        self.reservations = []
        for reservation, status, delivered_at, expired_at in snapshot["reservations"]:
            reservation.status = status
            reservation.delivered_at = delivered_at
            reservation.expired_at = expired_at
            self.reservations.append(reservation)
        self.deliveries = snapshot["deliveries"]

    @contextmanager
    def transaction(self):
        with self._lock:
            snapshot = self._snapshot()
            try:
                yield
            except Exception:
                self._restore(snapshot)
                self.rollbacks += 1
                raise
            self.commits += 1

    # Master data

    def get_patient(self, patient_id: int) -> Patient | None:
        return self.patients.get(patient_id)

    def get_dispenser(self, dispenser_id: int) -> Dispenser | None:
        return self.dispensers.get(dispenser_id)

    def get_medicines(self, medicine_ids: Iterable[int]) -> dict[int, Medicine]:
        return {mid: self.medicines[mid] for mid in set(medicine_ids) if mid in self.medicines}

    # Inventory

    def lock_inventory(self, dispenser_id: int, medicine_id: int) -> InventoryItem | None:
        return self.inventory.get((dispenser_id, medicine_id))

    def add_inventory(self, dispenser_id: int, medicine_id: int, units: int) -> InventoryItem:
        return self.put_inventory(dispenser_id, medicine_id, units)

    def list_stock(
        self,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[InventoryItem]:
        wanted = set(medicine_ids) if medicine_ids is not None else None
        rows = [
            item
            for (did, mid), item in self.inventory.items()
            if item.units > 0
            and (dispenser_id is None or did == dispenser_id)
            and (wanted is None or mid in wanted)
        ]
        return sorted(rows, key=lambda i: (i.dispenser_id, i.medicine_id))

    # Ledger

    def get_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None:
        return self.prescriptions.get((patient_id, medicine_id))

    def lock_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None:
        return self.prescriptions.get((patient_id, medicine_id))

    def list_prescriptions(self, patient_id: int) -> list[Prescription]:
        rows = [p for (pid, _), p in self.prescriptions.items() if pid == patient_id]
        return sorted(rows, key=lambda p: p.medicine_id)

    def delivered_units(self, patient_id: int, medicine_id: int) -> int:
        return sum(
            d.units for d in self.deliveries if d.patient_id == patient_id and d.medicine_id == medicine_id
        )

    def held_units(self, patient_id: int, medicine_id: int, now: datetime) -> int:
        return sum(
            item.units
            for r in self.reservations
            if r.patient_id == patient_id
            and r.status == ReservationStatus.PENDING
            and not is_expired(r.expires_at, now)
            for item in r.items
            if item.medicine_id == medicine_id
        )

    # Reservations

    def pickup_code_in_use(self, code: str) -> bool:
        return any(r.pickup_code == code and r.status == ReservationStatus.PENDING for r in self.reservations)

    def add_reservation(self, reservation: Reservation) -> None:
        reservation.patient = self.patients.get(reservation.patient_id)
        reservation.dispenser = self.dispensers.get(reservation.dispenser_id)
        for item in reservation.items:
            item.medicine = self.medicines.get(item.medicine_id)
        self.reservations.append(reservation)

    def get_reservation(self, reservation_id: UUID) -> Reservation | None:
        return next((r for r in self.reservations if r.id == reservation_id), None)

    def find_reservation_by_code(self, code: str, *, for_update: bool = False) -> Reservation | None:
        matches = [r for r in self.reservations if r.pickup_code == code]
        pending = [r for r in matches if r.status == ReservationStatus.PENDING]
        if pending:
            return pending[0]
        if not matches:
            return None
        return max(matches, key=lambda r: as_utc(r.created_at))

    def list_lapsed_reservations(
        self,
        now: datetime,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[Reservation]:
        wanted = set(medicine_ids) if medicine_ids is not None else None
        rows = [
            r
            for r in self.reservations
            if r.status == ReservationStatus.PENDING
            and is_expired(r.expires_at, now)
            and (dispenser_id is None or r.dispenser_id == dispenser_id)
            and (wanted is None or any(i.medicine_id in wanted for i in r.items))
        ]
        return sorted(rows, key=lambda r: as_utc(r.created_at))

    def list_reservations(self, patient_id: int) -> list[Reservation]:
        rows = [r for r in self.reservations if r.patient_id == patient_id]
        return sorted(rows, key=lambda r: as_utc(r.created_at), reverse=True)

    # Deliveries

    def add_delivery(self, delivery: Delivery) -> None:
        delivery.dispenser = self.dispensers.get(delivery.dispenser_id)
        delivery.medicine = self.medicines.get(delivery.medicine_id)
        self.deliveries.append(delivery)

    def list_deliveries(
        self,
        *,
        patient_id: int | None = None,
        reservation_id: UUID | None = None,
    ) -> list[Delivery]:
        rows = [
            d
            for d in self.deliveries
            if (patient_id is None or d.patient_id == patient_id)
            and (reservation_id is None or d.reservation_id == reservation_id)
        ]
        return sorted(rows, key=lambda d: (-as_utc(d.delivered_at).timestamp(), d.medicine_id))
