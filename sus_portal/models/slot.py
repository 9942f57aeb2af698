from pydantic import Field
from typing import Any, Dict, Optional
import enum

from .record import Record, generate_id, timestamp

class SlotStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

PATIENT_FIELDS = ("patientName", "patientCpf", "patientPhone")

def migrate_slot_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Upgrade a stored slot to the current shape.

    Older records carried a mandatory ``patientCpf`` (empty string when no
    patient was bound) and no ``patientPhone``; the current shape keeps every
    patient field optional and uses null for "unset".
    """
    record = dict(raw)
    for field in PATIENT_FIELDS + ("notes",):
        value = record.get(field)
        if isinstance(value, str) and not value.strip():
            value = None
        record[field] = value
    record.setdefault("status", SlotStatus.SCHEDULED.value)
    return record

class Slot(Record):
    """A doctor-published appointment window, optionally bound to a patient."""
    id: str = Field(default_factory=generate_id)
    doctor_id: str = Field(alias="doctorId")
    patient_name: Optional[str] = Field(default=None, alias="patientName")
    patient_national_id: Optional[str] = Field(default=None, alias="patientCpf")
    patient_phone: Optional[str] = Field(default=None, alias="patientPhone")
    specialty: str
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    date: str
    status: SlotStatus = SlotStatus.SCHEDULED
    notes: Optional[str] = None
    created_at: str = Field(default_factory=timestamp, alias="createdAt")

    @classmethod
    def from_storage(cls, raw: Dict[str, Any]) -> "Slot":
        return cls.model_validate(migrate_slot_record(raw))

    @property
    def is_claimed(self) -> bool:
        return bool(self.patient_name)

    @property
    def is_open(self) -> bool:
        return self.status == SlotStatus.SCHEDULED and not self.is_claimed

    def __repr__(self):
        return f"<Slot(id={self.id}, doctor_id={self.doctor_id}, date='{self.date}', {self.start_time}-{self.end_time})>"
