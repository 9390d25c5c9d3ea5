# medistock/repositories/sqlalchemy_store.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Generator, Iterable
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from medistock.core.errors import InternalError, MediStockError, TransactionConflictError
from medistock.models import (
    Delivery,
    Dispenser,
    InventoryItem,
    Medicine,
    Patient,
    Prescription,
    Reservation,
    ReservationItem,
    ReservationStatus,
)
from medistock.repositories.base import ReservationStore

logger = logging.getLogger(__name__)

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = {"40001", "40P01"}


def is_transaction_conflict(exc: SQLAlchemyError) -> bool:
    """
    Detect lock/serialization failures that are safe to retry.
    """
    if not isinstance(exc, DBAPIError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    # SQLite reports writer contention as "database is locked"
    return "database is locked" in str(orig).lower()


class SqlAlchemyReservationStore(ReservationStore):
    """
    Store over a SQLAlchemy session.

    SessionLocal has autoflush off, so locking reads and aggregates flush
    first; populate_existing would otherwise discard unflushed changes.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Generator[None, None, None]:
        try:
            yield
            self.db.commit()
        except MediStockError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            if is_transaction_conflict(exc):
                logger.warning("Transaction conflict, rolled back: %s", exc)
                raise TransactionConflictError(
                    "The request collided with a concurrent update. Please retry."
                ) from exc
            logger.exception("Storage failure, transaction rolled back")
            raise InternalError("Storage failure while processing the request.") from exc
        except Exception:
            self.db.rollback()
            raise

    # Master data

    def get_patient(self, patient_id: int) -> Patient | None:
        return self.db.get(Patient, patient_id)

    def get_dispenser(self, dispenser_id: int) -> Dispenser | None:
        return self.db.get(Dispenser, dispenser_id)

    def get_medicines(self, medicine_ids: Iterable[int]) -> dict[int, Medicine]:
        ids = set(medicine_ids)
        if not ids:
            return {}
        rows = self.db.query(Medicine).filter(Medicine.id.in_(ids)).all()
        return {m.id: m for m in rows}

    # Inventory

    def lock_inventory(self, dispenser_id: int, medicine_id: int) -> InventoryItem | None:
        self.db.flush()
        return (
            self.db.query(InventoryItem)
            .filter(
                InventoryItem.dispenser_id == dispenser_id,
                InventoryItem.medicine_id == medicine_id,
            )
            .populate_existing()
            .with_for_update()
            .first()
        )

    def add_inventory(self, dispenser_id: int, medicine_id: int, units: int) -> InventoryItem:
        item = InventoryItem(dispenser_id=dispenser_id, medicine_id=medicine_id, units=units)
        self.db.add(item)
        self.db.flush()
        return item

    def list_stock(
        self,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[InventoryItem]:
        query = (
            self.db.query(InventoryItem)
            .options(joinedload(InventoryItem.dispenser), joinedload(InventoryItem.medicine))
            .filter(InventoryItem.units > 0)
        )
        if dispenser_id is not None:
            query = query.filter(InventoryItem.dispenser_id == dispenser_id)
        if medicine_ids is not None:
            query = query.filter(InventoryItem.medicine_id.in_(set(medicine_ids)))
        return query.order_by(InventoryItem.dispenser_id.asc(), InventoryItem.medicine_id.asc()).all()

    # Ledger

    def get_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None:
        return (
            self.db.query(Prescription)
            .filter(Prescription.patient_id == patient_id, Prescription.medicine_id == medicine_id)
            .first()
        )

    def lock_prescription(self, patient_id: int, medicine_id: int) -> Prescription | None:
        self.db.flush()
        return (
            self.db.query(Prescription)
            .filter(Prescription.patient_id == patient_id, Prescription.medicine_id == medicine_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def list_prescriptions(self, patient_id: int) -> list[Prescription]:
        return (
            self.db.query(Prescription)
            .options(joinedload(Prescription.medicine))
            .filter(Prescription.patient_id == patient_id)
            .order_by(Prescription.medicine_id.asc())
            .all()
        )

    def delivered_units(self, patient_id: int, medicine_id: int) -> int:
        self.db.flush()
        total = (
            self.db.query(func.coalesce(func.sum(Delivery.units), 0))
            .filter(Delivery.patient_id == patient_id, Delivery.medicine_id == medicine_id)
            .scalar()
        )
        return int(total or 0)

    def held_units(self, patient_id: int, medicine_id: int, now: datetime) -> int:
        self.db.flush()
        total = (
            self.db.query(func.coalesce(func.sum(ReservationItem.units), 0))
            .join(Reservation, ReservationItem.reservation_id == Reservation.id)
            .filter(
                Reservation.patient_id == patient_id,
                Reservation.status == ReservationStatus.PENDING,
                Reservation.expires_at >= now,
                ReservationItem.medicine_id == medicine_id,
            )
            .scalar()
        )
        return int(total or 0)

    # Reservations

    def pickup_code_in_use(self, code: str) -> bool:
        self.db.flush()
        return (
            self.db.query(Reservation.id)
            .filter(Reservation.pickup_code == code, Reservation.status == ReservationStatus.PENDING)
            .first()
            is not None
        )

    def add_reservation(self, reservation: Reservation) -> None:
        self.db.add(reservation)
        self.db.flush()

    def get_reservation(self, reservation_id: UUID) -> Reservation | None:
        return (
            self.db.query(Reservation)
            .options(
                joinedload(Reservation.patient),
                joinedload(Reservation.dispenser),
                selectinload(Reservation.items).joinedload(ReservationItem.medicine),
            )
            .filter(Reservation.id == reservation_id)
            .first()
        )

    def find_reservation_by_code(self, code: str, *, for_update: bool = False) -> Reservation | None:
        self.db.flush()
        query = self.db.query(Reservation).filter(Reservation.pickup_code == code)
        if for_update:
            query = query.populate_existing().with_for_update()
        pending = query.filter(Reservation.status == ReservationStatus.PENDING).first()
        if pending is not None:
            return pending
        return query.order_by(Reservation.created_at.desc()).first()

    def list_lapsed_reservations(
        self,
        now: datetime,
        *,
        dispenser_id: int | None = None,
        medicine_ids: Iterable[int] | None = None,
    ) -> list[Reservation]:
        self.db.flush()
        query = self.db.query(Reservation).filter(
            Reservation.status == ReservationStatus.PENDING,
            Reservation.expires_at < now,
        )
        if dispenser_id is not None:
            query = query.filter(Reservation.dispenser_id == dispenser_id)
        if medicine_ids is not None:
            query = query.filter(
                Reservation.items.any(ReservationItem.medicine_id.in_(set(medicine_ids)))
            )
        return query.order_by(Reservation.created_at.asc()).populate_existing().with_for_update().all()

    def list_reservations(self, patient_id: int) -> list[Reservation]:
        return (
            self.db.query(Reservation)
            .options(
                joinedload(Reservation.dispenser),
                selectinload(Reservation.items).joinedload(ReservationItem.medicine),
            )
            .filter(Reservation.patient_id == patient_id)
            .order_by(Reservation.created_at.desc())
            .all()
        )

    # Deliveries

    def add_delivery(self, delivery: Delivery) -> None:
        self.db.add(delivery)

    def list_deliveries(
        self,
        *,
        patient_id: int | None = None,
        reservation_id: UUID | None = None,
    ) -> list[Delivery]:
        query = self.db.query(Delivery).options(
            joinedload(Delivery.dispenser), joinedload(Delivery.medicine)
        )
        if patient_id is not None:
            query = query.filter(Delivery.patient_id == patient_id)
        if reservation_id is not None:
            query = query.filter(Delivery.reservation_id == reservation_id)
        return query.order_by(Delivery.delivered_at.desc(), Delivery.medicine_id.asc()).all()
