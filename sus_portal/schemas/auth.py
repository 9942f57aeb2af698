from pydantic import BaseModel, Field, field_validator
from typing import Optional, Union

from ..core.security import PrincipalKind
from ..core.validators import (
    is_valid_cpf, is_valid_crm, is_valid_email, is_valid_phone, digits_only
)
from ..models.doctor import Doctor, Specialty
from ..models.patient import Patient

class _Credentials(BaseModel):
    email: str
    password: str = Field(min_length=6)
    phone: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_email(v):
            raise ValueError("Invalid email")
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("Phone must look like (11) 99999-9999")
        return v

class PatientRegister(_Credentials):
    cpf: str

    @field_validator("cpf")
    @classmethod
    def check_cpf(cls, v: str) -> str:
        if not is_valid_cpf(v):
            raise ValueError("Invalid CPF")
        return v

class DoctorRegister(_Credentials):
    name: str = Field(min_length=2)
    crm: str
    specialty: Specialty

    @field_validator("crm")
    @classmethod
    def check_crm(cls, v: str) -> str:
        if not is_valid_crm(v):
            raise ValueError("CRM must contain between 4 and 6 digits")
        return digits_only(v)

class LoginRequest(BaseModel):
    identifier: str = Field(min_length=1, description="Email, CPF (patients) or CRM (doctors)")
    password: str = Field(min_length=1)
    remember: bool = False

class PatientResponse(BaseModel):
    id: str
    email: str
    cpf: str
    phone: str
    created_at: str

    @classmethod
    def from_record(cls, patient: Patient) -> "PatientResponse":
        return cls(
            id=patient.id,
            email=patient.email,
            cpf=patient.national_id,
            phone=patient.phone,
            created_at=patient.created_at,
        )

class DoctorResponse(BaseModel):
    id: str
    email: str
    name: str
    crm: str
    specialty: Specialty
    phone: str
    created_at: str

    @classmethod
    def from_record(cls, doctor: Doctor) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            email=doctor.email,
            name=doctor.name,
            crm=doctor.license_number,
            specialty=doctor.specialty,
            phone=doctor.phone,
            created_at=doctor.created_at,
        )

class PrincipalResponse(BaseModel):
    kind: PrincipalKind
    profile: Union[PatientResponse, DoctorResponse]

    @classmethod
    def from_record(cls, principal: Union[Patient, Doctor]) -> "PrincipalResponse":
        if isinstance(principal, Patient):
            return cls(kind=PrincipalKind.PATIENT, profile=PatientResponse.from_record(principal))
        return cls(kind=PrincipalKind.DOCTOR, profile=DoctorResponse.from_record(principal))

class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    remember: bool
    user: PrincipalResponse

class SavedCredentialsResponse(BaseModel):
    identifier: str
    password: str
    last_used: str
    session_expired: bool = False

class RegisterResponse(BaseModel):
    id: str
    message: Optional[str] = None
