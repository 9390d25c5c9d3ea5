# medistock/api/v1/endpoints/reservations.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status

from medistock.api.v1.endpoints.auth import get_current_patient
from medistock.dependencies.authz import get_store
from medistock.models import Patient
from medistock.repositories.base import ReservationStore
from medistock.schemas.reservation import (
    ReservationCreate,
    ReservationCreatedResponse,
    ReservationItemResponse,
    ReservationResponse,
)
from medistock.services.receipt_service import reservation_receipt_data
from medistock.services.reservation_service import (
    RequestedItem,
    get_reservation_details,
    list_patient_reservations,
    reserve,
)
from medistock.utils.receipt_pdf import generate_qr_svg, generate_reservation_pdf

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=ReservationCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> ReservationCreatedResponse:
    reservation = reserve(
        store,
        patient_id=current_patient.id,
        dispenser_id=payload.dispenser_id,
        items=[RequestedItem(medicine_id=i.medicine_id, units=i.units) for i in payload.items],
    )
    return ReservationCreatedResponse(
        reservation_id=reservation.id,
        code=reservation.pickup_code,
        expires_at=reservation.expires_at,
        items=[
            ReservationItemResponse(medicine_id=item.medicine_id, units=item.units)
            for item in reservation.items
        ],
    )


@router.get("", response_model=list[ReservationResponse])
def list_reservations(
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[ReservationResponse]:
    views = list_patient_reservations(store, patient_id=current_patient.id)
    return [ReservationResponse.model_validate(v) for v in views]


@router.get("/{code}", response_model=ReservationResponse)
def get_reservation(
    code: str,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> ReservationResponse:
    view = get_reservation_details(store, code=code, patient_id=current_patient.id)
    return ReservationResponse.model_validate(view)


@router.get("/{code}/pdf")
def get_reservation_pdf(
    code: str,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> Response:
    data = reservation_receipt_data(store, code=code, patient_id=current_patient.id)
    pdf = generate_reservation_pdf(data)
    logger.info("Reservation receipt generated code=%s", data["code"])
    return Response(
        content=pdf.getvalue(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="Reservation_{data["code"]}.pdf"'},
    )


@router.get("/{code}/qr")
def get_reservation_qr(
    code: str,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> Response:
    view = get_reservation_details(store, code=code, patient_id=current_patient.id)
    return Response(content=generate_qr_svg(view.code), media_type="image/svg+xml")
