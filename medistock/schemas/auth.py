from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TerminalLoginRequest(BaseModel):
    cc: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class PatientSummary(BaseModel):
    id: int
    name: str
    cc: str
    email: str | None = None


class TerminalLoginResponse(BaseModel):
    ok: bool = True
    patient: PatientSummary
