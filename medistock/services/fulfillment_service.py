# medistock/services/fulfillment_service.py
"""
Fulfillment processor: redeems a pickup code into delivery records.

PENDING --(valid, unexpired)--> DELIVERED
PENDING --(now > expires_at)--> EXPIRED, held stock returned, redemption rejected
DELIVERED and EXPIRED are terminal.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from medistock.core.errors import (
    InsufficientPendingBalanceError,
    InternalError,
    NotFoundError,
    ReservationAlreadyFulfilledError,
    ReservationExpiredError,
)
from medistock.core.redis import invalidate_stock_cache
from medistock.models import Delivery, ReservationStatus
from medistock.repositories.base import ReservationStore
from medistock.services.reservation_service import release_reservation_hold
from medistock.utils.datetime_utils import is_expired, utc_now
from medistock.utils.pickup_codes import normalize_pickup_code

logger = logging.getLogger(__name__)


@dataclass
class DeliveryBatch:
    reservation_id: uuid.UUID
    patient_id: int
    dispenser_id: int
    deliveries: list[Delivery] = field(default_factory=list)

    @property
    def delivered_count(self) -> int:
        return len(self.deliveries)

    @property
    def total_units(self) -> int:
        return sum(d.units for d in self.deliveries)


@dataclass
class DeliveryHistoryEntry:
    reservation_id: uuid.UUID
    delivered_at: datetime
    dispenser_id: int
    dispenser: str | None
    medicine_id: int
    med: str | None
    med_code: str | None
    units: int


def redeem(store: ReservationStore, *, code: str, now: datetime | None = None) -> DeliveryBatch:
    """
    Consume a reservation by its pickup code.

    One transaction: every line increments the prescription's used_units and
    appends a Delivery, then the reservation becomes DELIVERED. Inventory is
    untouched here because it was debited at reservation time. On any error
    the reservation stays PENDING and can be retried.
    """
    now = now or utc_now()
    normalized = normalize_pickup_code(code)
    if not normalized:
        raise NotFoundError("A pickup code is required.")

    lapsed = None
    with store.transaction():
        reservation = store.find_reservation_by_code(normalized, for_update=True)
        if reservation is None:
            raise NotFoundError("Reservation not found or already delivered.")
        if reservation.status == ReservationStatus.DELIVERED:
            raise ReservationAlreadyFulfilledError("This reservation has already been delivered.")
        if reservation.status == ReservationStatus.EXPIRED:
            raise ReservationExpiredError("This reservation has expired.")

        if is_expired(reservation.expires_at, now):
            # Commit the expiry and stock release, then reject below
            released = release_reservation_hold(store, reservation, now)
            lapsed = (reservation.id, released)
        else:
            items = sorted(reservation.items, key=lambda i: i.medicine_id)
            if not items:
                raise InternalError(f"Reservation {reservation.id} has no items.")

            batch = DeliveryBatch(
                reservation_id=reservation.id,
                patient_id=reservation.patient_id,
                dispenser_id=reservation.dispenser_id,
            )
            for item in items:
                prescription = store.lock_prescription(reservation.patient_id, item.medicine_id)
                if prescription is None:
                    raise NotFoundError(
                        f"No prescription found for medicine {item.medicine_id} on this reservation."
                    )
                if prescription.used_units + item.units > prescription.max_units:
                    raise InsufficientPendingBalanceError(
                        f"Delivering {item.units} units of medicine {item.medicine_id} would exceed "
                        f"the prescribed maximum.",
                        medicine_id=item.medicine_id,
                        reservable=prescription.pending_units,
                    )
                prescription.used_units += item.units

                delivery = Delivery(
                    id=uuid.uuid4(),
                    reservation_id=reservation.id,
                    patient_id=reservation.patient_id,
                    dispenser_id=reservation.dispenser_id,
                    medicine_id=item.medicine_id,
                    units=item.units,
                    delivered_at=now,
                )
                store.add_delivery(delivery)
                batch.deliveries.append(delivery)

            reservation.status = ReservationStatus.DELIVERED
            reservation.delivered_at = now

    if lapsed is not None:
        reservation_id, released = lapsed
        invalidate_stock_cache()
        logger.info(
            "Redemption rejected, reservation expired code=%s id=%s released_units=%s",
            normalized,
            reservation_id,
            released,
        )
        raise ReservationExpiredError("This reservation has expired.")

    logger.info(
        "Pickup completed code=%s reservation=%s deliveries=%s units=%s",
        normalized,
        batch.reservation_id,
        batch.delivered_count,
        batch.total_units,
    )
    return batch


def list_delivery_history(store: ReservationStore, *, patient_id: int) -> list[DeliveryHistoryEntry]:
    return [
        DeliveryHistoryEntry(
            reservation_id=d.reservation_id,
            delivered_at=d.delivered_at,
            dispenser_id=d.dispenser_id,
            dispenser=getattr(d.dispenser, "name", None),
            medicine_id=d.medicine_id,
            med=getattr(d.medicine, "name", None),
            med_code=getattr(d.medicine, "code", None),
            units=d.units,
        )
        for d in store.list_deliveries(patient_id=patient_id)
    ]
