from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from medistock.core.config import get_settings
from medistock.core.database import get_db
from medistock.core.security import decode_patient_id
from medistock.models import Patient
from medistock.schemas.auth import (
    LoginRequest,
    PatientSummary,
    TerminalLoginRequest,
    TerminalLoginResponse,
    TokenResponse,
)
from medistock.services.auth_service import (
    AuthenticationError,
    authenticate_patient,
    authenticate_patient_by_document,
    issue_access_token_for_patient,
)

router = APIRouter()

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/login")


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """
    Email + password login. Returns a bearer token whose subject is the patient id.
    """
    try:
        patient = authenticate_patient(db, email=payload.email, password=payload.password)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return TokenResponse(access_token=issue_access_token_for_patient(patient))


@router.post("/terminal-login", response_model=TerminalLoginResponse)
def terminal_login(payload: TerminalLoginRequest, db: Session = Depends(get_db)) -> TerminalLoginResponse:
    """
    Identity check at a dispenser terminal (document number + password).
    """
    try:
        patient = authenticate_patient_by_document(db, cc=payload.cc, password=payload.password)
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    return TerminalLoginResponse(patient=PatientSummary(id=patient.id, name=patient.name, cc=patient.cc))


def get_current_patient(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Patient:
    """
    Dependency to retrieve the current patient from a JWT bearer token.
    """
    try:
        patient_id = decode_patient_id(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    patient = db.get(Patient, patient_id)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Patient not found",
        )
    return patient


@router.get("/me", response_model=PatientSummary)
def read_current_patient(current_patient: Patient = Depends(get_current_patient)) -> PatientSummary:
    return PatientSummary(
        id=current_patient.id,
        name=current_patient.name,
        cc=current_patient.cc,
        email=current_patient.email,
    )
