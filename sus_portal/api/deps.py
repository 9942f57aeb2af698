from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional, Union

from ..core.database import get_store, get_session_store
from ..core.security import (
    security, AuthenticationError, AuthorizationError, PrincipalKind
)
from ..core.storage import RecordStore
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..services.booking_service import BookingService
from ..services.identity_service import IdentityManager
from ..services.slot_service import SlotEngine

# Service dependencies
def get_identity_manager(
    store: RecordStore = Depends(get_store),
    session_store: RecordStore = Depends(get_session_store)
) -> IdentityManager:
    return IdentityManager(store, session_store)

def get_slot_engine(
    store: RecordStore = Depends(get_store),
    identity: IdentityManager = Depends(get_identity_manager)
) -> SlotEngine:
    return SlotEngine(store, identity)

def get_booking_service(
    store: RecordStore = Depends(get_store),
    identity: IdentityManager = Depends(get_identity_manager),
    slots: SlotEngine = Depends(get_slot_engine)
) -> BookingService:
    return BookingService(store, identity, slots)

def get_session_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Raw bearer token, if any."""
    return credentials.credentials if credentials else None

async def get_current_principal(
    token: Optional[str] = Depends(get_session_token),
    identity: IdentityManager = Depends(get_identity_manager)
) -> Union[Patient, Doctor]:
    """Resolve the logged-in patient or doctor from the session token."""
    if not token:
        raise AuthenticationError("Not authenticated")

    principal = identity.current_principal(token)
    if principal is None:
        raise AuthenticationError("Invalid or expired session")
    return principal

async def get_current_patient(
    principal: Union[Patient, Doctor] = Depends(get_current_principal)
) -> Patient:
    """Require a patient session."""
    if not isinstance(principal, Patient):
        raise AuthorizationError(f"Access denied. Required role: {PrincipalKind.PATIENT.value}")
    return principal

async def get_current_doctor(
    principal: Union[Patient, Doctor] = Depends(get_current_principal)
) -> Doctor:
    """Require a doctor session."""
    if not isinstance(principal, Doctor):
        raise AuthorizationError(f"Access denied. Required role: {PrincipalKind.DOCTOR.value}")
    return principal
