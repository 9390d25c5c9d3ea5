# medistock/schemas/ledger.py
from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class PendingBalanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    medicine_id: int
    med_code: str | None = None
    name: str | None = None
    form: str | None = None
    strength: str | None = None
    rx_number: str | None = None
    dosage: str | None = None
    frequency: str | None = None
    valid_until: date | None = None
    max_units: int
    used_units: int
    pending: int
    reserved: int
    reservable: int


class ReconcileRequest(BaseModel):
    medicine_id: int | None = None
