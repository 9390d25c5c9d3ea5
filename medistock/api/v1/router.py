# medistock/api/v1/router.py
from fastapi import APIRouter

from medistock.api.v1.endpoints import (
    auth,
    deliveries,
    dispensers,
    pickup,
    prescriptions,
    reservations,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(prescriptions.router, prefix="/prescriptions", tags=["prescriptions"])
api_router.include_router(dispensers.router, prefix="/dispensers", tags=["dispensers"])
api_router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
api_router.include_router(pickup.router, prefix="/pickup", tags=["pickup"])
api_router.include_router(deliveries.router, prefix="/deliveries", tags=["deliveries"])
