# medistock/services/reservation_service.py
"""
Reservation manager.

Stock is debited when the reservation is created: a PENDING reservation is a
hard hold on dispenser inventory. Fulfillment never touches inventory again;
expiry returns the held units.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable

from medistock.core.config import Settings, get_settings
from medistock.core.errors import (
    InsufficientPendingBalanceError,
    InsufficientStockError,
    InvalidQuantityError,
    NotFoundError,
    NothingToReserveError,
    TransactionConflictError,
)
from medistock.core.redis import invalidate_stock_cache
from medistock.models import Reservation, ReservationItem, ReservationStatus
from medistock.repositories.base import ReservationStore
from medistock.services.ledger_service import reservable_units
from medistock.utils.datetime_utils import expiry_from, is_expired, utc_now
from medistock.utils.pickup_codes import generate_pickup_code, normalize_pickup_code

logger = logging.getLogger(__name__)


@dataclass
class RequestedItem:
    medicine_id: int
    units: int


@dataclass
class ReservationLine:
    medicine_id: int
    units: int
    label: str | None = None


@dataclass
class ReservationView:
    id: uuid.UUID
    code: str
    status: ReservationStatus
    patient_id: int
    patient_name: str | None
    dispenser_id: int
    dispenser_name: str | None
    dispenser_location: str | None
    created_at: datetime
    expires_at: datetime
    delivered_at: datetime | None
    items: list[ReservationLine] = field(default_factory=list)

    @property
    def total_units(self) -> int:
        return sum(line.units for line in self.items)


def _merge_requested_items(items: Iterable[RequestedItem]) -> dict[int, int]:
    """
    Validate quantities and merge repeated medicines.
    Runs before any state is touched.
    """
    merged: dict[int, int] = {}
    for item in items:
        if isinstance(item.units, bool) or not isinstance(item.units, int) or item.units <= 0:
            raise InvalidQuantityError(
                f"Units to reserve must be a positive integer (medicine {item.medicine_id})."
            )
        merged[item.medicine_id] = merged.get(item.medicine_id, 0) + item.units
    if not merged:
        raise InvalidQuantityError("At least one medicine must be requested.")
    return merged


def release_reservation_hold(store: ReservationStore, reservation: Reservation, now: datetime) -> int:
    """
    Move a lapsed PENDING reservation to EXPIRED and return its units to stock.
    Caller owns the transaction.
    """
    released = 0
    for item in sorted(reservation.items, key=lambda i: i.medicine_id):
        inventory = store.lock_inventory(reservation.dispenser_id, item.medicine_id)
        if inventory is None:
            # Held units go back to the shelf even if the stock row was removed
            logger.warning(
                "Inventory row missing while releasing reservation=%s dispenser=%s medicine=%s, recreating it",
                reservation.id,
                reservation.dispenser_id,
                item.medicine_id,
            )
            inventory = store.add_inventory(reservation.dispenser_id, item.medicine_id, 0)
        inventory.units += item.units
        inventory.updated_at = now
        released += item.units

    reservation.status = ReservationStatus.EXPIRED
    reservation.expired_at = now
    return released


def _release_lapsed(store: ReservationStore, now: datetime, **filters) -> int:
    count = 0
    for reservation in store.list_lapsed_reservations(now, **filters):
        units = release_reservation_hold(store, reservation, now)
        logger.info(
            "Reservation expired code=%s id=%s released_units=%s",
            reservation.pickup_code,
            reservation.id,
            units,
        )
        count += 1
    return count


def release_lapsed_reservations(store: ReservationStore, *, now: datetime | None = None) -> int:
    """
    Expire every lapsed reservation and return held units to stock.
    Maintenance entry point; the request paths release lazily.
    """
    now = now or utc_now()
    with store.transaction():
        count = _release_lapsed(store, now)
    if count:
        invalidate_stock_cache()
    return count


def reserve(
    store: ReservationStore,
    *,
    patient_id: int,
    dispenser_id: int,
    items: Iterable[RequestedItem],
    now: datetime | None = None,
    settings: Settings | None = None,
) -> Reservation:
    """
    Carve units out of a dispenser's stock and the patient's reservable
    balance, all lines in one transaction.

    Strict mode (default) rejects the whole request when any line cannot be
    fully satisfied. With reservation_clamp_quantities each line is reduced
    to min(requested, stock, reservable) and empty lines are dropped.
    """
    settings = settings or get_settings()
    now = now or utc_now()
    requested = _merge_requested_items(items)

    with store.transaction():
        if store.get_patient(patient_id) is None:
            raise NotFoundError(f"Patient {patient_id} not found.")
        if store.get_dispenser(dispenser_id) is None:
            raise NotFoundError(f"Dispenser {dispenser_id} not found.")
        medicines = store.get_medicines(requested)
        missing = sorted(set(requested) - set(medicines))
        if missing:
            raise NotFoundError(f"Medicine {missing[0]} not found.")

        # Lapsed holds on the same shelf go back to stock before we look at it
        _release_lapsed(store, now, dispenser_id=dispenser_id, medicine_ids=requested)

        lines = []
        # Ascending medicine id keeps lock order stable across transactions
        for medicine_id in sorted(requested):
            wanted = requested[medicine_id]
            inventory = store.lock_inventory(dispenser_id, medicine_id)
            available = inventory.units if inventory is not None else 0
            prescription = store.lock_prescription(patient_id, medicine_id)
            reservable = reservable_units(prescription, store=store, now=now)

            if settings.reservation_clamp_quantities:
                units = min(wanted, available, reservable)
                if units < wanted:
                    logger.warning(
                        "Clamped reservation line patient=%s dispenser=%s medicine=%s requested=%s granted=%s",
                        patient_id,
                        dispenser_id,
                        medicine_id,
                        wanted,
                        max(units, 0),
                    )
                if units <= 0:
                    continue
            else:
                if reservable < wanted:
                    raise InsufficientPendingBalanceError(
                        f"Requested units exceed your pending balance for medicine {medicine_id} "
                        f"(requested {wanted}, reservable {reservable}).",
                        medicine_id=medicine_id,
                        reservable=reservable,
                    )
                if available < wanted:
                    raise InsufficientStockError(
                        f"Insufficient stock for medicine {medicine_id} "
                        f"(requested {wanted}, available {available}).",
                        medicine_id=medicine_id,
                        available=available,
                    )
                units = wanted
            lines.append((inventory, medicine_id, units))

        if not lines:
            raise NothingToReserveError("None of the requested medicines can be reserved right now.")

        code = generate_pickup_code(
            store.pickup_code_in_use,
            length=settings.pickup_code_length,
            fallback_length=settings.pickup_code_fallback_length,
            max_attempts=settings.pickup_code_max_attempts,
        )
        if code is None:
            raise TransactionConflictError("Could not allocate a unique pickup code. Please retry.")

        for inventory, _, units in lines:
            inventory.units -= units
            inventory.updated_at = now

        reservation = Reservation(
            id=uuid.uuid4(),
            patient_id=patient_id,
            dispenser_id=dispenser_id,
            pickup_code=code,
            status=ReservationStatus.PENDING,
            created_at=now,
            expires_at=expiry_from(now, settings.reservation_ttl_minutes),
            items=[ReservationItem(medicine_id=mid, units=units) for _, mid, units in lines],
        )
        store.add_reservation(reservation)

    invalidate_stock_cache()
    logger.info(
        "Reservation created id=%s code=%s patient=%s dispenser=%s lines=%s units=%s",
        reservation.id,
        code,
        patient_id,
        dispenser_id,
        len(lines),
        sum(units for _, _, units in lines),
    )
    return reservation


def effective_status(reservation: Reservation, now: datetime) -> ReservationStatus:
    """
    Stored status, except a PENDING reservation past its window reads as EXPIRED.
    """
    if reservation.status == ReservationStatus.PENDING and is_expired(reservation.expires_at, now):
        return ReservationStatus.EXPIRED
    return reservation.status


def _to_view(reservation: Reservation, now: datetime) -> ReservationView:
    patient = reservation.patient
    dispenser = reservation.dispenser
    return ReservationView(
        id=reservation.id,
        code=reservation.pickup_code,
        status=effective_status(reservation, now),
        patient_id=reservation.patient_id,
        patient_name=getattr(patient, "name", None),
        dispenser_id=reservation.dispenser_id,
        dispenser_name=getattr(dispenser, "name", None),
        dispenser_location=getattr(dispenser, "location", None),
        created_at=reservation.created_at,
        expires_at=reservation.expires_at,
        delivered_at=reservation.delivered_at,
        items=[
            ReservationLine(
                medicine_id=item.medicine_id,
                units=item.units,
                label=item.medicine.label if item.medicine is not None else None,
            )
            for item in reservation.items
        ],
    )


def get_reservation_details(
    store: ReservationStore,
    *,
    code: str,
    patient_id: int | None = None,
    now: datetime | None = None,
) -> ReservationView:
    """
    Look up a reservation by pickup code. When patient_id is given the
    reservation must belong to that patient.
    """
    now = now or utc_now()
    reservation = store.find_reservation_by_code(normalize_pickup_code(code))
    if reservation is None or (patient_id is not None and reservation.patient_id != patient_id):
        raise NotFoundError("Reservation not found.")
    return _to_view(reservation, now)


def list_patient_reservations(
    store: ReservationStore,
    *,
    patient_id: int,
    now: datetime | None = None,
) -> list[ReservationView]:
    now = now or utc_now()
    return [_to_view(r, now) for r in store.list_reservations(patient_id)]
