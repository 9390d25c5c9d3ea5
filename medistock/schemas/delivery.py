# medistock/schemas/delivery.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from medistock.utils.datetime_utils import as_utc


class PickupRequest(BaseModel):
    code: str


class PickupResponse(BaseModel):
    ok: bool = True
    reservation_id: UUID
    delivered_count: int
    total_units: int
    message: str


class DeliveryHistoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    reservation_id: UUID
    delivered_at: datetime
    dispenser_id: int
    dispenser: str | None = None
    medicine_id: int
    med: str | None = None
    med_code: str | None = None
    units: int

    @field_validator("delivered_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)
