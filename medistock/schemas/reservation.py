# medistock/schemas/reservation.py
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from medistock.models.reservation import ReservationStatus
from medistock.utils.datetime_utils import as_utc


class ReservationItemRequest(BaseModel):
    medicine_id: int
    # Strict so JSON true/1.5 are rejected instead of coerced; positivity is
    # checked by the reservation service so it reports InvalidQuantity
    units: StrictInt


class ReservationCreate(BaseModel):
    dispenser_id: int
    items: list[ReservationItemRequest] = Field(min_length=1)

    model_config = ConfigDict(extra="forbid")


class ReservationItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    medicine_id: int
    units: int
    label: str | None = None


class ReservationCreatedResponse(BaseModel):
    reservation_id: UUID
    code: str
    expires_at: datetime
    items: list[ReservationItemResponse]

    @field_validator("expires_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ReservationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    status: ReservationStatus
    patient_id: int
    patient_name: str | None = None
    dispenser_id: int
    dispenser_name: str | None = None
    dispenser_location: str | None = None
    created_at: datetime
    expires_at: datetime
    delivered_at: datetime | None = None
    items: list[ReservationItemResponse]
    total_units: int

    @field_validator("created_at", "expires_at", "delivered_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        # SQLite hands timestamps back naive; they are stored as UTC
        return as_utc(value) if value is not None else None
