# medistock/schemas/stock.py
from pydantic import BaseModel, ConfigDict


class StockRowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    dispenser_id: int
    dispenser_code: str | None = None
    dispenser_name: str | None = None
    city: str | None = None
    location: str | None = None
    lat: float | None = None
    lng: float | None = None
    medicine_id: int
    med_code: str | None = None
    med_name: str | None = None
    form: str | None = None
    strength: str | None = None
    stock: int
