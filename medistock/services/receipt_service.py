# medistock/services/receipt_service.py
"""
Collects the data the document renderer needs for reservation and
delivery receipts.
"""

from __future__ import annotations

from uuid import UUID

from medistock.core.config import get_settings
from medistock.core.errors import NotFoundError
from medistock.repositories.base import ReservationStore
from medistock.services.stock_service import suggestions_for_patient
from medistock.utils.datetime_utils import format_local
from medistock.utils.pickup_codes import normalize_pickup_code


def reservation_receipt_data(store: ReservationStore, *, code: str, patient_id: int) -> dict:
    reservation = store.find_reservation_by_code(normalize_pickup_code(code))
    if reservation is None or reservation.patient_id != patient_id:
        raise NotFoundError("Reservation not found.")

    patient = reservation.patient
    dispenser = reservation.dispenser
    items = [
        {"label": item.medicine.label if item.medicine else str(item.medicine_id), "units": item.units}
        for item in reservation.items
    ]
    return {
        "code": reservation.pickup_code,
        "created_at": format_local(reservation.created_at),
        "expires_at": format_local(reservation.expires_at),
        "patient_name": getattr(patient, "name", None),
        "patient_cc": getattr(patient, "cc", None),
        "patient_phone": getattr(patient, "phone", None),
        "dispenser_name": getattr(dispenser, "name", None),
        "dispenser_location": getattr(dispenser, "location", None),
        "lat": getattr(dispenser, "lat", None),
        "lng": getattr(dispenser, "lng", None),
        "items": items,
        "total_units": sum(i["units"] for i in items),
        "ttl_hours": round(get_settings().reservation_ttl_minutes / 60, 1),
    }


def delivery_receipt_data(store: ReservationStore, *, reservation_id: UUID, patient_id: int) -> dict:
    reservation = store.get_reservation(reservation_id)
    if reservation is None or reservation.patient_id != patient_id:
        raise NotFoundError("Reservation not found.")

    deliveries = store.list_deliveries(reservation_id=reservation_id)
    if not deliveries:
        raise NotFoundError("No deliveries recorded for this reservation.")

    pending = [
        {
            "medicine_id": p.medicine_id,
            "label": p.medicine.label if p.medicine else str(p.medicine_id),
            "rx_number": p.rx_number,
            "pending": p.pending_units,
            "max_units": p.max_units,
        }
        for p in store.list_prescriptions(patient_id)
        if p.pending_units > 0
    ]
    labels = {p["medicine_id"]: p["label"] for p in pending}
    alternatives: dict[str, list[dict]] = {}
    for row in suggestions_for_patient(store, patient_id=patient_id):
        alternatives.setdefault(labels.get(row.medicine_id, row.med_name or ""), []).append(
            {"dispenser_name": row.dispenser_name, "location": row.location, "stock": row.stock}
        )

    patient = reservation.patient
    dispenser = reservation.dispenser
    return {
        "delivered_at": format_local(reservation.delivered_at or deliveries[0].delivered_at),
        "patient_name": getattr(patient, "name", None),
        "patient_cc": getattr(patient, "cc", None),
        "dispenser_name": getattr(dispenser, "name", None),
        "dispenser_location": getattr(dispenser, "location", None),
        "delivered": [
            {"label": d.medicine.label if d.medicine else str(d.medicine_id), "units": d.units}
            for d in deliveries
        ],
        "pending": pending,
        "alternatives": alternatives,
    }
