# medistock/api/v1/endpoints/pickup.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from medistock.dependencies.authz import get_store, require_terminal_key
from medistock.repositories.base import ReservationStore
from medistock.schemas.delivery import PickupRequest, PickupResponse
from medistock.services.fulfillment_service import redeem

router = APIRouter()


@router.post("", response_model=PickupResponse, dependencies=[Depends(require_terminal_key)])
def pickup(
    payload: PickupRequest,
    store: ReservationStore = Depends(get_store),
) -> PickupResponse:
    """
    Redeem a pickup code at a dispenser terminal.
    No patient session is needed; the code identifies the reservation.
    """
    batch = redeem(store, code=payload.code)
    return PickupResponse(
        reservation_id=batch.reservation_id,
        delivered_count=batch.delivered_count,
        total_units=batch.total_units,
        message=(
            f"Delivery confirmed: {batch.delivered_count} medicine(s), "
            f"{batch.total_units} unit(s) in total"
        ),
    )
