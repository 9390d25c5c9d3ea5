# medistock/api/v1/endpoints/prescriptions.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from medistock.api.v1.endpoints.auth import get_current_patient
from medistock.dependencies.authz import get_store
from medistock.models import Patient
from medistock.repositories.base import ReservationStore
from medistock.schemas.ledger import PendingBalanceResponse, ReconcileRequest
from medistock.services.ledger_service import list_pending_balances, reconcile_patient_ledger

router = APIRouter()


@router.get("", response_model=list[PendingBalanceResponse])
def list_pending_balances_endpoint(
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[PendingBalanceResponse]:
    """
    Prescribed, delivered, pending and currently reserved units per medicine.
    """
    balances = list_pending_balances(store, patient_id=current_patient.id)
    return [PendingBalanceResponse.model_validate(b) for b in balances]


@router.post("/reconcile", response_model=list[PendingBalanceResponse])
def reconcile_ledger_endpoint(
    payload: ReconcileRequest | None = None,
    current_patient: Patient = Depends(get_current_patient),
    store: ReservationStore = Depends(get_store),
) -> list[PendingBalanceResponse]:
    """
    Recompute used units from delivery history, then return fresh balances.
    """
    balances = reconcile_patient_ledger(
        store,
        patient_id=current_patient.id,
        medicine_id=payload.medicine_id if payload else None,
    )
    return [PendingBalanceResponse.model_validate(b) for b in balances]
