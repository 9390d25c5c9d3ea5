# medistock/services/stock_service.py
from __future__ import annotations

from dataclasses import asdict, dataclass

from medistock.core.errors import NotFoundError
from medistock.core.redis import get_cached_stock, set_cached_stock
from medistock.models import InventoryItem
from medistock.repositories.base import ReservationStore


@dataclass
class StockRow:
    dispenser_id: int
    dispenser_code: str | None
    dispenser_name: str | None
    city: str | None
    location: str | None
    lat: float | None
    lng: float | None
    medicine_id: int
    med_code: str | None
    med_name: str | None
    form: str | None
    strength: str | None
    stock: int


def _to_row(item: InventoryItem) -> StockRow:
    dispenser = item.dispenser
    medicine = item.medicine
    return StockRow(
        dispenser_id=item.dispenser_id,
        dispenser_code=getattr(dispenser, "code", None),
        dispenser_name=getattr(dispenser, "name", None),
        city=getattr(dispenser, "city", None),
        location=getattr(dispenser, "location", None),
        lat=getattr(dispenser, "lat", None),
        lng=getattr(dispenser, "lng", None),
        medicine_id=item.medicine_id,
        med_code=getattr(medicine, "code", None),
        med_name=getattr(medicine, "name", None),
        form=getattr(medicine, "form", None),
        strength=getattr(medicine, "strength", None),
        stock=item.units,
    )


def dispenser_stock(
    store: ReservationStore,
    *,
    dispenser_id: int | None = None,
    use_cache: bool = True,
) -> list[StockRow]:
    """
    Snapshot of positive stock, optionally for one dispenser.
    Presentation data only; never used for reservation checks.
    """
    if dispenser_id is not None and store.get_dispenser(dispenser_id) is None:
        raise NotFoundError(f"Dispenser {dispenser_id} not found.")

    if use_cache:
        cached = get_cached_stock(dispenser_id)
        if cached is not None:
            return [StockRow(**row) for row in cached]

    rows = [_to_row(item) for item in store.list_stock(dispenser_id=dispenser_id)]
    if use_cache:
        set_cached_stock(dispenser_id, [asdict(row) for row in rows])
    return rows


def suggestions_for_patient(store: ReservationStore, *, patient_id: int) -> list[StockRow]:
    """
    Where the patient can pick up what is still pending, most stock first.
    """
    pending_ids = [p.medicine_id for p in store.list_prescriptions(patient_id) if p.pending_units > 0]
    if not pending_ids:
        return []
    rows = [_to_row(item) for item in store.list_stock(medicine_ids=pending_ids)]
    return sorted(rows, key=lambda r: (-r.stock, r.dispenser_id, r.medicine_id))
