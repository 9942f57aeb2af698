from pydantic import Field

from .record import Record, generate_id, timestamp

class LegacyBooking(Record):
    """Patient booking made directly against the static specialty catalog."""
    id: str = Field(default_factory=generate_id)
    patient_id: str = Field(alias="patientId")
    doctor_name: str = Field(alias="doctorName")
    specialty: str
    day_of_week: str = Field(alias="day")
    time_range: str = Field(alias="time")
    date: str
    booked_at: str = Field(default_factory=timestamp, alias="bookedAt")

    def __repr__(self):
        return f"<LegacyBooking(id={self.id}, patient_id={self.patient_id}, date='{self.date}')>"
