from fastapi import APIRouter, Depends
from typing import List, Optional, Union

from ...api.deps import (
    get_current_principal, get_identity_manager, get_session_token
)
from ...core.security import PrincipalKind
from ...models.doctor import Doctor
from ...models.patient import Patient
from ...schemas.auth import (
    DoctorRegister, LoginRequest, PatientRegister, PatientResponse,
    PrincipalResponse, RegisterResponse, SavedCredentialsResponse, SessionResponse
)
from ...services.identity_service import IdentityManager

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/patients/register", response_model=RegisterResponse, status_code=201)
def register_patient(
    user_data: PatientRegister,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Register a new patient."""
    patient_id = identity.register(PrincipalKind.PATIENT, user_data.model_dump())
    return RegisterResponse(id=patient_id, message="Registration successful")

@router.post("/doctors/register", response_model=RegisterResponse, status_code=201)
def register_doctor(
    doctor_data: DoctorRegister,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Register a new doctor."""
    doctor_id = identity.register(PrincipalKind.DOCTOR, doctor_data.model_dump(mode="json"))
    return RegisterResponse(id=doctor_id, message="Registration successful")

def _login(kind: PrincipalKind, login_data: LoginRequest, identity: IdentityManager) -> SessionResponse:
    result = identity.authenticate(
        kind, login_data.identifier, login_data.password, login_data.remember
    )
    return SessionResponse(
        access_token=result.token,
        expires_at=result.session.expires_at,
        remember=result.session.remember,
        user=PrincipalResponse.from_record(result.principal),
    )

@router.post("/patients/login", response_model=SessionResponse)
def login_patient(
    login_data: LoginRequest,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Log a patient in by email or CPF."""
    return _login(PrincipalKind.PATIENT, login_data, identity)

@router.post("/doctors/login", response_model=SessionResponse)
def login_doctor(
    login_data: LoginRequest,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Log a doctor in by email or CRM."""
    return _login(PrincipalKind.DOCTOR, login_data, identity)

@router.post("/logout")
def logout(
    token: Optional[str] = Depends(get_session_token),
    identity: IdentityManager = Depends(get_identity_manager)
):
    """End the current session."""
    if token:
        identity.end_session(token)
    return {"message": "Successfully logged out"}

@router.get("/me", response_model=PrincipalResponse)
async def get_current_user_info(
    principal: Union[Patient, Doctor] = Depends(get_current_principal)
):
    """Get the logged-in patient or doctor."""
    return PrincipalResponse.from_record(principal)

@router.get("/saved-credentials/{kind}", response_model=Optional[SavedCredentialsResponse])
def saved_credentials(
    kind: PrincipalKind,
    token: Optional[str] = Depends(get_session_token),
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Credentials saved by this client's "remember me" login, for prefilling the form.

    The bearer token of that remembered session is required; it may have expired.
    """
    credentials = identity.saved_credentials(kind, token)
    if credentials is None:
        return None
    return SavedCredentialsResponse(
        identifier=credentials.identifier,
        password=credentials.password,
        last_used=credentials.last_used,
        session_expired=identity.is_session_expired(kind, token),
    )

@router.get("/users", response_model=List[PatientResponse])
def list_users(
    skip: int = 0,
    limit: int = 50,
    identity: IdentityManager = Depends(get_identity_manager)
):
    """List registered patients.

    Open to any caller, like the admin users page it serves.
    """
    patients = identity.list_patients()[skip:skip + limit]
    return [PatientResponse.from_record(patient) for patient in patients]

@router.delete("/users")
def clear_users(
    identity: IdentityManager = Depends(get_identity_manager)
):
    """Remove every registered patient. Unauthenticated, like the admin users page."""
    identity.clear_patients()
    return {"message": "All users removed"}
