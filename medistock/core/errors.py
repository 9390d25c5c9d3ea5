# medistock/core/errors.py
"""
Error taxonomy for the reservation and fulfillment engine.

Every error carries a stable machine-readable ``kind`` plus a human message.
Only ``TransactionConflict`` is safe for a caller to retry automatically.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NotFound"
    INVALID_QUANTITY = "InvalidQuantity"
    VALIDATION_ERROR = "ValidationError"
    INSUFFICIENT_STOCK = "InsufficientStock"
    INSUFFICIENT_PENDING_BALANCE = "InsufficientPendingBalance"
    NOTHING_TO_RESERVE = "NothingToReserve"
    RESERVATION_EXPIRED = "ReservationExpired"
    RESERVATION_ALREADY_FULFILLED = "ReservationAlreadyFulfilled"
    TRANSACTION_CONFLICT = "TransactionConflict"
    INTERNAL = "Internal"


class MediStockError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }


class NotFoundError(MediStockError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InvalidQuantityError(MediStockError):
    kind = ErrorKind.INVALID_QUANTITY
    status_code = 400


class InsufficientStockError(MediStockError):
    kind = ErrorKind.INSUFFICIENT_STOCK
    status_code = 409

    def __init__(self, message: str, *, medicine_id: int | None = None, available: int | None = None):
        super().__init__(message)
        self.medicine_id = medicine_id
        self.available = available


class InsufficientPendingBalanceError(MediStockError):
    kind = ErrorKind.INSUFFICIENT_PENDING_BALANCE
    status_code = 409

    def __init__(self, message: str, *, medicine_id: int | None = None, reservable: int | None = None):
        super().__init__(message)
        self.medicine_id = medicine_id
        self.reservable = reservable


class NothingToReserveError(MediStockError):
    kind = ErrorKind.NOTHING_TO_RESERVE
    status_code = 409


class ReservationExpiredError(MediStockError):
    kind = ErrorKind.RESERVATION_EXPIRED
    status_code = 410


class ReservationAlreadyFulfilledError(MediStockError):
    kind = ErrorKind.RESERVATION_ALREADY_FULFILLED
    status_code = 409


class TransactionConflictError(MediStockError):
    kind = ErrorKind.TRANSACTION_CONFLICT
    status_code = 409
    retryable = True


class InternalError(MediStockError):
    kind = ErrorKind.INTERNAL
    status_code = 500


class RequestValidationFailed(MediStockError):
    """Malformed request body or parameters, rejected before any service runs."""

    kind = ErrorKind.VALIDATION_ERROR
    status_code = 422
