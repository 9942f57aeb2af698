from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional

from ..core.time_utils import normalize_date, normalize_time
from ..models.appointment import UnifiedAppointment
from ..models.slot import Slot, SlotStatus
from ..services.catalog import SpecialtyCatalog

class SlotCreate(BaseModel):
    start_time: str = Field(description="HH:mm")
    end_time: str = Field(description="HH:mm")
    date: str = Field(description="DD/MM/YYYY")
    patient_name: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def check_time(cls, v: str) -> str:
        return normalize_time(v)

    @field_validator("date")
    @classmethod
    def check_date(cls, v: str) -> str:
        return normalize_date(v)

class SlotStatusUpdate(BaseModel):
    status: SlotStatus
    notes: Optional[str] = None

class SlotResponse(BaseModel):
    id: str
    doctor_id: str
    patient_name: Optional[str] = None
    patient_cpf: Optional[str] = None
    patient_phone: Optional[str] = None
    specialty: str
    start_time: str
    end_time: str
    date: str
    status: SlotStatus
    notes: Optional[str] = None
    created_at: str
    is_open: bool

    @classmethod
    def from_record(cls, slot: Slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            doctor_id=slot.doctor_id,
            patient_name=slot.patient_name,
            patient_cpf=slot.patient_national_id,
            patient_phone=slot.patient_phone,
            specialty=slot.specialty,
            start_time=slot.start_time,
            end_time=slot.end_time,
            date=slot.date,
            status=slot.status,
            notes=slot.notes,
            created_at=slot.created_at,
            is_open=slot.is_open,
        )

class SlotSummary(BaseModel):
    counts: Dict[str, int]

class BookingCreate(BaseModel):
    specialty: str = Field(description="Catalog key, e.g. 'cardiologia'")
    doctor_name: str
    date: str
    time: str

class AppointmentResponse(BaseModel):
    id: str
    source: str
    doctor_name: str
    specialty: str
    day: str
    time: str
    date: str
    status: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_record(cls, appointment: UnifiedAppointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            source=appointment.source.value,
            doctor_name=appointment.doctor_name,
            specialty=appointment.specialty,
            day=appointment.day_of_week,
            time=appointment.time_range,
            date=appointment.date,
            status=appointment.status,
            notes=appointment.notes,
        )

class AppointmentsResponse(BaseModel):
    future: List[AppointmentResponse]
    past: List[AppointmentResponse]

class CatalogResponse(BaseModel):
    specialties: List[SpecialtyCatalog]
