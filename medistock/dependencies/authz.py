from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from medistock.core.database import get_db
from medistock.core.security import terminal_key_matches
from medistock.repositories.sqlalchemy_store import SqlAlchemyReservationStore


def get_store(db: Session = Depends(get_db)) -> SqlAlchemyReservationStore:
    """
    FastAPI dependency handing services the storage interface instead of a session.
    """
    return SqlAlchemyReservationStore(db)


def require_terminal_key(
    x_terminal_key: str | None = Header(default=None, alias="X-Terminal-Key"),
) -> None:
    """
    Dispenser-terminal auth for pickup.

    The pickup code itself identifies the patient; when TERMINAL_API_KEY is
    configured the terminal must also present it.
    """
    if not terminal_key_matches(x_terminal_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Terminal key missing or invalid",
        )
