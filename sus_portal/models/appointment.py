from pydantic import Field
from typing import Optional
import enum

from .record import Record

class AppointmentSource(str, enum.Enum):
    BOOKING = "booking"
    SLOT = "slot"

class UnifiedAppointment(Record):
    """A patient's appointment in the legacy booking shape, whichever path created it."""
    id: str
    source: AppointmentSource
    doctor_name: str = Field(alias="doctorName")
    specialty: str
    day_of_week: str = Field(alias="day")
    time_range: str = Field(alias="time")
    date: str
    status: Optional[str] = None
    notes: Optional[str] = None

    @property
    def dedupe_key(self):
        return (self.doctor_name, self.date, self.time_range)
