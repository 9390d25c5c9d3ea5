# medistock/api/v1/endpoints/dispensers.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from medistock.api.v1.endpoints.auth import get_current_patient
from medistock.dependencies.authz import get_store
from medistock.models import Patient
from medistock.repositories.base import ReservationStore
from medistock.schemas.stock import StockRowResponse
from medistock.services.stock_service import dispenser_stock, suggestions_for_patient

router = APIRouter()


@router.get("", response_model=list[StockRowResponse])
def list_dispenser_stock(
    dispenser_id: Optional[int] = Query(None, description="Restrict to one dispenser"),
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[StockRowResponse]:
    """
    Dispensers with coordinates and every medicine they have in stock.
    """
    rows = dispenser_stock(store, dispenser_id=dispenser_id)
    return [StockRowResponse.model_validate(r) for r in rows]


@router.get("/suggestions", response_model=list[StockRowResponse])
def list_suggestions(
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[StockRowResponse]:
    """
    Stock of the medicines the current patient still has pending.
    """
    rows = suggestions_for_patient(store, patient_id=current_patient.id)
    return [StockRowResponse.model_validate(r) for r in rows]
