"""
Merging of the two booking paths into one per-patient appointment list.

Patients hold legacy bookings made against the static catalog and doctor
slots they claimed. These functions are pure: callers load the records and
pass them in.
"""
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..core.time_utils import format_time_range, parse_date, weekday_name
from ..core.validators import digits_only
from ..models.appointment import AppointmentSource, UnifiedAppointment
from ..models.booking import LegacyBooking
from ..models.doctor import Doctor
from ..models.patient import Patient
from ..models.slot import Slot

UNKNOWN_DOCTOR = "Médico(a)"


def doctor_display_name(doctor: Optional[Doctor]) -> str:
    if doctor is None:
        return UNKNOWN_DOCTOR
    return f"Dr(a). {doctor.name} - {doctor.specialty.value}"


def slot_belongs_to(slot: Slot, patient: Patient) -> bool:
    """
    Whether a claimed slot is the patient's.

    Slots carry no patient id: they are matched by the email local-part stored
    as patientName, or by CPF. Two patients sharing a local-part collide.
    """
    if slot.patient_name and slot.patient_name == patient.display_name:
        return True
    if slot.patient_national_id and digits_only(slot.patient_national_id) == patient.national_id_digits:
        return True
    return False


def booking_to_unified(booking: LegacyBooking) -> UnifiedAppointment:
    return UnifiedAppointment(
        id=booking.id,
        source=AppointmentSource.BOOKING,
        doctor_name=booking.doctor_name,
        specialty=booking.specialty,
        day_of_week=booking.day_of_week,
        time_range=booking.time_range,
        date=booking.date,
    )


def slot_to_unified(slot: Slot, doctor_name: str = UNKNOWN_DOCTOR) -> UnifiedAppointment:
    return UnifiedAppointment(
        id=slot.id,
        source=AppointmentSource.SLOT,
        doctor_name=doctor_name,
        specialty=slot.specialty,
        day_of_week=weekday_name(parse_date(slot.date)),
        time_range=format_time_range(slot.start_time, slot.end_time),
        date=slot.date,
        status=slot.status.value,
        notes=slot.notes,
    )


def merge_appointments(*groups: Iterable[UnifiedAppointment]) -> List[UnifiedAppointment]:
    """Concatenate the groups, keeping the first of each (doctor, date, time range)."""
    seen = set()
    merged = []
    for group in groups:
        for appointment in group:
            if appointment.dedupe_key in seen:
                continue
            seen.add(appointment.dedupe_key)
            merged.append(appointment)
    return merged


def split_future_vs_past(
    appointments: Iterable[UnifiedAppointment], now: datetime
) -> Tuple[List[UnifiedAppointment], List[UnifiedAppointment]]:
    """
    Partition by calendar date only.

    An appointment dated today counts as future whatever the time of day.
    Unparseable dates are treated as past.
    """
    today = now.date()
    future, past = [], []
    for appointment in appointments:
        try:
            is_future = parse_date(appointment.date) >= today
        except ValueError:
            is_future = False
        (future if is_future else past).append(appointment)
    return future, past
