from datetime import datetime, timedelta
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple, Type, Union
import logging

from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..core.exceptions import (
    AuthenticationFailed, ConflictError, NotFoundError, ValidationError
)
from ..core.security import PrincipalKind, create_session_token, verify_token
from ..core.storage import CollectionKey, RecordStore
from ..core.time_utils import now_local
from ..core.validators import (
    digits_only, is_valid_cpf, is_valid_crm, is_valid_email, is_valid_phone
)
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.session import SavedCredentials, Session

logger = logging.getLogger(__name__)

Principal = Union[Patient, Doctor]

class LoginResult(NamedTuple):
    principal: Principal
    session: Session
    token: str

class IdentityManager:
    """Registers and authenticates patients and doctors, and tracks their sessions.

    Sessions live in two tiers: ``session_store`` holds short-lived sessions,
    while sessions created with ``remember`` go to the durable ``store`` and
    survive restarts until they expire.
    """

    _COLLECTIONS: Dict[PrincipalKind, Tuple[CollectionKey, Type[Principal]]] = {
        PrincipalKind.PATIENT: (CollectionKey.PATIENTS, Patient),
        PrincipalKind.DOCTOR: (CollectionKey.DOCTORS, Doctor),
    }

    def __init__(
        self,
        store: RecordStore,
        session_store: RecordStore,
        clock: Callable[[], datetime] = now_local,
        session_ttl: Optional[timedelta] = None,
        remember_ttl: Optional[timedelta] = None,
    ):
        self.store = store
        self.session_store = session_store
        self.clock = clock
        self.session_ttl = session_ttl or timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
        self.remember_ttl = remember_ttl or timedelta(days=settings.REMEMBER_SESSION_DAYS)

    # Principals

    def register(self, kind: PrincipalKind, fields: Mapping) -> str:
        """Register a new patient or doctor and return the generated id."""
        key, model = self._COLLECTIONS[kind]
        self._validate_fields(kind, fields)

        try:
            principal = model.model_validate(
                {name: value for name, value in fields.items() if name not in ("id", "createdAt", "created_at")}
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {kind.value} registration: {e.errors()[0]['msg']}") from e

        if self._exists(kind, principal.email, self._secondary_id(principal)):
            label = "CPF" if kind == PrincipalKind.PATIENT else "CRM"
            raise ConflictError(f"A {kind.value} with this email or {label} is already registered")

        principal.created_at = self.clock().isoformat()
        self.store.append(key, principal.to_storage())
        logger.info(f"Registered {kind.value} {principal.id}")
        return principal.id

    def list_principals(self, kind: PrincipalKind) -> List[Principal]:
        key, model = self._COLLECTIONS[kind]
        return [model.from_storage(raw) for raw in self.store.get_collection(key)]

    def list_patients(self) -> List[Patient]:
        return self.list_principals(PrincipalKind.PATIENT)

    def list_doctors(self) -> List[Doctor]:
        return self.list_principals(PrincipalKind.DOCTOR)

    def get_principal(self, kind: PrincipalKind, principal_id: str) -> Principal:
        for principal in self.list_principals(kind):
            if principal.id == principal_id:
                return principal
        raise NotFoundError(f"{kind.value.capitalize()} not found")

    def get_patient(self, patient_id: str) -> Patient:
        return self.get_principal(PrincipalKind.PATIENT, patient_id)

    def get_doctor(self, doctor_id: str) -> Doctor:
        return self.get_principal(PrincipalKind.DOCTOR, doctor_id)

    def find_patient_by_name(self, name: str) -> Optional[Patient]:
        """Look up a patient by the email local-part a slot stores as patientName."""
        for patient in self.list_patients():
            if patient.display_name == name:
                return patient
        return None

    def clear_patients(self) -> None:
        """Remove every registered patient (the admin users page)."""
        self.store.remove(CollectionKey.PATIENTS)
        logger.info("Cleared all registered patients")

    # Authentication and sessions

    def authenticate(
        self,
        kind: PrincipalKind,
        identifier: str,
        password: str,
        remember: bool = False,
    ) -> LoginResult:
        """Log in by email or CPF/CRM and plain-text password."""
        principal = self._match_credentials(kind, identifier or "", password or "")
        if principal is None:
            logger.warning(f"Failed {kind.value} login attempt")
            raise AuthenticationFailed("Invalid email/identifier or password")

        now = self.clock()
        ttl = self.remember_ttl if remember else self.session_ttl
        session = Session(
            principal_id=principal.id,
            kind=kind,
            expires_at=(now + ttl).isoformat(),
            remember=remember,
            created_at=now.isoformat(),
        )

        tier = self.store if remember else self.session_store
        key = CollectionKey.REMEMBER_SESSION if remember else CollectionKey.SESSION
        records = self._live_sessions(tier, key, now)
        records.append(session.to_storage())
        tier.set_collection(key, records)

        if remember:
            self._save_credentials(kind, principal.id, session.id, identifier, password, now)

        token = create_session_token(principal.id, kind, session.id, expires_delta=ttl)
        logger.info(f"{kind.value.capitalize()} {principal.id} logged in (remember={remember})")
        return LoginResult(principal=principal, session=session, token=token)

    def current_principal(self, token: Optional[str]) -> Optional[Principal]:
        """Resolve a session token, ephemeral tier first; expired sessions are dropped."""
        if not token:
            return None
        payload = verify_token(token)
        if payload is None or not payload.sid:
            return None

        now = self.clock()
        for tier, key in self._tiers():
            session = self._find_session(tier, key, payload.sid)
            if session is None:
                continue
            if session.is_expired(now):
                self._drop_session(tier, key, session.id)
                logger.info(f"Session {session.id} expired")
                return None
            if session.principal_id != payload.sub:
                return None
            try:
                return self.get_principal(session.kind, session.principal_id)
            except NotFoundError:
                return None
        return None

    def end_session(self, token: Optional[str] = None) -> None:
        """Drop the token's session from both tiers, or every session when no token is given."""
        payload = verify_token(token) if token else None
        for tier, key in self._tiers():
            if payload is not None and payload.sid:
                self._drop_session(tier, key, payload.sid)
            else:
                tier.remove(key)

    def is_session_expired(self, kind: PrincipalKind, token: Optional[str]) -> bool:
        """True when the token's remembered session saved credentials but is no longer live."""
        if self.saved_credentials(kind, token) is None:
            return False
        payload = verify_token(token, verify_exp=False)
        session = self._find_session(self.store, CollectionKey.REMEMBER_SESSION, payload.sid)
        return session is None or session.is_expired(self.clock())

    def saved_credentials(self, kind: PrincipalKind, token: Optional[str]) -> Optional[SavedCredentials]:
        """Credentials saved by the remembered session the token belongs to, even if it lapsed."""
        payload = verify_token(token, verify_exp=False) if token else None
        if payload is None or payload.kind != kind or not payload.sid:
            return None
        for raw in self.store.get_collection(CollectionKey.SAVED_CREDENTIALS):
            if raw.get("sessionId") == payload.sid and raw.get("principalId") == payload.sub:
                return SavedCredentials.from_storage(raw)
        return None

    # Helpers

    def _validate_fields(self, kind: PrincipalKind, fields: Mapping) -> None:
        email = fields.get("email") or ""
        if not is_valid_email(email):
            raise ValidationError("Invalid email")
        if len(fields.get("password") or "") < 6:
            raise ValidationError("Password must be at least 6 characters")
        if not is_valid_phone(fields.get("phone") or ""):
            raise ValidationError("Invalid phone number")

        if kind == PrincipalKind.PATIENT:
            if not is_valid_cpf(fields.get("cpf") or fields.get("national_id") or ""):
                raise ValidationError("Invalid CPF")
        else:
            if len((fields.get("name") or "").strip()) < 2:
                raise ValidationError("Name must be at least 2 characters")
            if not is_valid_crm(fields.get("crm") or fields.get("license_number") or ""):
                raise ValidationError("CRM must contain between 4 and 6 digits")

    @staticmethod
    def _secondary_id(principal: Principal) -> str:
        if isinstance(principal, Patient):
            return principal.national_id_digits
        return principal.license_digits

    def _exists(self, kind: PrincipalKind, email: str, secondary: str) -> bool:
        return any(
            p.email.lower() == email.lower() or self._secondary_id(p) == secondary
            for p in self.list_principals(kind)
        )

    def _match_credentials(self, kind: PrincipalKind, identifier: str, password: str) -> Optional[Principal]:
        digits = digits_only(identifier)
        for principal in self.list_principals(kind):
            email_match = principal.email.lower() == identifier.lower()
            secondary_match = bool(digits) and self._secondary_id(principal) == digits
            if (email_match or secondary_match) and principal.password == password:
                return principal
        return None

    def _tiers(self):
        return (
            (self.session_store, CollectionKey.SESSION),
            (self.store, CollectionKey.REMEMBER_SESSION),
        )

    @staticmethod
    def _find_session(tier: RecordStore, key: CollectionKey, session_id: str) -> Optional[Session]:
        for raw in tier.get_collection(key):
            if raw.get("id") == session_id:
                return Session.from_storage(raw)
        return None

    @staticmethod
    def _drop_session(tier: RecordStore, key: CollectionKey, session_id: str) -> None:
        records = tier.get_collection(key)
        remaining = [raw for raw in records if raw.get("id") != session_id]
        if len(remaining) != len(records):
            tier.set_collection(key, remaining)

    @staticmethod
    def _live_sessions(tier: RecordStore, key: CollectionKey, now: datetime) -> List[dict]:
        """The tier's records minus the expired ones, pruned whenever a session is written."""
        return [raw for raw in tier.get_collection(key) if not Session.from_storage(raw).is_expired(now)]

    def _save_credentials(
        self,
        kind: PrincipalKind,
        principal_id: str,
        session_id: str,
        identifier: str,
        password: str,
        now: datetime,
    ) -> None:
        # One record per principal; records with no owning session are unreadable
        records = [
            raw for raw in self.store.get_collection(CollectionKey.SAVED_CREDENTIALS)
            if raw.get("sessionId") and raw.get("principalId") != principal_id
        ]
        credentials = SavedCredentials(
            identifier=identifier,
            password=password,
            kind=kind,
            principal_id=principal_id,
            session_id=session_id,
            last_used=now.isoformat(),
        )
        records.append(credentials.to_storage())
        self.store.set_collection(CollectionKey.SAVED_CREDENTIALS, records)
