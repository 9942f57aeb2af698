from pydantic import Field

from .record import Record, generate_id, timestamp
from ..core.validators import digits_only

class Patient(Record):
    id: str = Field(default_factory=generate_id)
    email: str
    password: str
    national_id: str = Field(alias="cpf")
    phone: str
    created_at: str = Field(default_factory=timestamp, alias="createdAt")

    @property
    def national_id_digits(self) -> str:
        return digits_only(self.national_id)

    @property
    def display_name(self) -> str:
        """Email local-part; the name a claimed slot carries for this patient."""
        return self.email.split("@")[0]

    def __repr__(self):
        return f"<Patient(id={self.id}, email='{self.email}')>"
