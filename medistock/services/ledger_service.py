# medistock/services/ledger_service.py
"""
Balance ledger: pending units per patient/medicine.

pending = max_units - used_units, where used_units always reconciles to the
sum of Delivery rows for the pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime

from medistock.core.errors import NotFoundError
from medistock.models import Prescription
from medistock.repositories.base import ReservationStore
from medistock.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


@dataclass
class PendingBalance:
    medicine_id: int
    med_code: str | None
    name: str | None
    form: str | None
    strength: str | None
    rx_number: str | None
    dosage: str | None
    frequency: str | None
    valid_until: date | None
    max_units: int
    used_units: int
    pending: int
    reserved: int

    @property
    def reservable(self) -> int:
        return max(0, self.pending - self.reserved)


def pending_units(store: ReservationStore, *, patient_id: int, medicine_id: int) -> int:
    """
    Outstanding units for the pair; zero when there is no prescription.
    """
    prescription = store.get_prescription(patient_id, medicine_id)
    if prescription is None:
        return 0
    return prescription.pending_units


def reservable_units(
    prescription: Prescription | None,
    *,
    store: ReservationStore,
    now: datetime,
) -> int:
    """
    Pending units not already held by the patient's live reservations.
    """
    if prescription is None:
        return 0
    held = store.held_units(prescription.patient_id, prescription.medicine_id, now)
    return max(0, prescription.pending_units - held)


def _to_balance(store: ReservationStore, prescription: Prescription, now: datetime) -> PendingBalance:
    medicine = prescription.medicine
    return PendingBalance(
        medicine_id=prescription.medicine_id,
        med_code=getattr(medicine, "code", None),
        name=getattr(medicine, "name", None),
        form=getattr(medicine, "form", None),
        strength=getattr(medicine, "strength", None),
        rx_number=prescription.rx_number,
        dosage=prescription.dosage,
        frequency=prescription.frequency,
        valid_until=prescription.valid_until,
        max_units=prescription.max_units,
        used_units=prescription.used_units,
        pending=prescription.pending_units,
        reserved=store.held_units(prescription.patient_id, prescription.medicine_id, now),
    )


def list_pending_balances(
    store: ReservationStore,
    *,
    patient_id: int,
    now: datetime | None = None,
) -> list[PendingBalance]:
    now = now or utc_now()
    return [_to_balance(store, p, now) for p in store.list_prescriptions(patient_id)]


def _recompute_locked(store: ReservationStore, prescription: Prescription) -> int:
    delivered = store.delivered_units(prescription.patient_id, prescription.medicine_id)
    if delivered != prescription.used_units:
        logger.warning(
            "Ledger drift corrected patient=%s medicine=%s used_units %s -> %s",
            prescription.patient_id,
            prescription.medicine_id,
            prescription.used_units,
            delivered,
        )
    if delivered > prescription.max_units:
        logger.error(
            "Deliveries exceed prescription patient=%s medicine=%s delivered=%s max=%s",
            prescription.patient_id,
            prescription.medicine_id,
            delivered,
            prescription.max_units,
        )
    prescription.used_units = delivered
    return delivered


def recompute_used(store: ReservationStore, *, patient_id: int, medicine_id: int) -> int:
    """
    Rewrite used_units from the delivery history and return it.
    Idempotent; the written value always equals the delivered sum.

    A sum above max_units is still written and only logged as an error: the
    ledger records what was handed out. pending_units floors at zero, so
    further reservations fail with InsufficientPendingBalance and the
    redemption guard refuses more deliveries until max_units is raised.
    """
    with store.transaction():
        prescription = store.lock_prescription(patient_id, medicine_id)
        if prescription is None:
            raise NotFoundError(
                f"No prescription found for patient {patient_id} and medicine {medicine_id}."
            )
        used = _recompute_locked(store, prescription)

    logger.info("Ledger reconciled patient=%s medicine=%s used_units=%s", patient_id, medicine_id, used)
    return used


def reconcile_patient_ledger(
    store: ReservationStore,
    *,
    patient_id: int,
    medicine_id: int | None = None,
) -> list[PendingBalance]:
    """
    Run recompute_used for one or all of the patient's prescriptions and
    return the refreshed balances.
    """
    if medicine_id is not None:
        recompute_used(store, patient_id=patient_id, medicine_id=medicine_id)
    else:
        medicine_ids = [p.medicine_id for p in store.list_prescriptions(patient_id)]
        with store.transaction():
            for mid in sorted(medicine_ids):
                prescription = store.lock_prescription(patient_id, mid)
                if prescription is not None:
                    _recompute_locked(store, prescription)
        logger.info("Ledger reconciled patient=%s prescriptions=%s", patient_id, len(medicine_ids))
    return list_pending_balances(store, patient_id=patient_id)
