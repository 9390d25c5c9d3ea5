# medistock/api/v1/endpoints/deliveries.py
from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response

from medistock.api.v1.endpoints.auth import get_current_patient
from medistock.dependencies.authz import get_store
from medistock.models import Patient
from medistock.repositories.base import ReservationStore
from medistock.schemas.delivery import DeliveryHistoryResponse
from medistock.services.fulfillment_service import list_delivery_history
from medistock.services.receipt_service import delivery_receipt_data
from medistock.utils.receipt_pdf import generate_delivery_pdf

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[DeliveryHistoryResponse])
def list_deliveries(
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[DeliveryHistoryResponse]:
    entries = list_delivery_history(store, patient_id=current_patient.id)
    return [DeliveryHistoryResponse.model_validate(e) for e in entries]


@router.get("/{reservation_id}/pdf")
def get_delivery_pdf(
    reservation_id: UUID,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> Response:
    data = delivery_receipt_data(store, reservation_id=reservation_id, patient_id=current_patient.id)
    pdf = generate_delivery_pdf(data)
    logger.info("Delivery receipt generated reservation=%s", reservation_id)
    return Response(
        content=pdf.getvalue(),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'inline; filename="Delivery_{str(reservation_id)[:8]}.pdf"'
        },
    )
