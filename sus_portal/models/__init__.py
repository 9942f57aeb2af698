from .record import Record, generate_id
from .patient import Patient
from .doctor import Doctor, Specialty
from .slot import Slot, SlotStatus, migrate_slot_record
from .booking import LegacyBooking
from .appointment import AppointmentSource, UnifiedAppointment
from .session import Session, SavedCredentials

__all__ = [
    "Record",
    "generate_id",
    "Patient",
    "Doctor",
    "Specialty",
    "Slot",
    "SlotStatus",
    "migrate_slot_record",
    "LegacyBooking",
    "AppointmentSource",
    "UnifiedAppointment",
    "Session",
    "SavedCredentials",
]
