from pydantic import Field
from enum import Enum

from .record import Record, generate_id, timestamp
from ..core.validators import digits_only

class Specialty(str, Enum):
    GINECOLOGIA = "Ginecologia"
    PEDIATRIA = "Pediatria"
    CLINICA_GERAL = "Clínica Geral"
    CARDIOLOGIA = "Cardiologia"
    DERMATOLOGIA = "Dermatologia"
    ORTOPEDIA = "Ortopedia"
    NEUROLOGIA = "Neurologia"
    PSIQUIATRIA = "Psiquiatria"
    OFTALMOLOGIA = "Oftalmologia"
    OTORRINOLARINGOLOGIA = "Otorrinolaringologia"

class Doctor(Record):
    id: str = Field(default_factory=generate_id)
    email: str
    password: str
    name: str
    license_number: str = Field(alias="crm")
    specialty: Specialty
    phone: str
    created_at: str = Field(default_factory=timestamp, alias="createdAt")

    @property
    def license_digits(self) -> str:
        return digits_only(self.license_number)

    def __repr__(self):
        return f"<Doctor(id={self.id}, name='{self.name}', specialty='{self.specialty.value}')>"
