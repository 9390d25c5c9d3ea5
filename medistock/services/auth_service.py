# medistock/services/auth_service.py
"""
Thin identity-provider seam: credential checks and token issue.
The reservation engine itself only ever sees a trusted patient id.
"""

from sqlalchemy.orm import Session

from medistock.core.security import create_access_token, verify_password
from medistock.models import Patient


class AuthenticationError(Exception):
    pass


def authenticate_patient(db: Session, *, email: str, password: str) -> Patient:
    patient = db.query(Patient).filter(Patient.email == email.strip().lower()).first()
    if not patient or not verify_password(password, patient.password_hash):
        raise AuthenticationError("Invalid email or password")
    return patient


def authenticate_patient_by_document(db: Session, *, cc: str, password: str) -> Patient:
    """
    Dispenser-terminal login with the identity document number.
    """
    patient = db.query(Patient).filter(Patient.cc == cc.strip()).first()
    if not patient or not verify_password(password, patient.password_hash):
        raise AuthenticationError("Invalid document number or password")
    return patient


def issue_access_token_for_patient(patient: Patient) -> str:
    return create_access_token(subject=patient.id, name=patient.name, email=patient.email)
