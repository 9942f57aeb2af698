from fastapi import APIRouter, Depends

from ...api.deps import get_booking_service, get_current_patient, get_slot_engine
from ...models.patient import Patient
from ...schemas.slots import (
    AppointmentResponse, AppointmentsResponse, BookingCreate, CatalogResponse, SlotResponse
)
from ...services.booking_service import BookingService
from ...services.catalog import SpecialtyCatalog
from ...services.reconciliation import booking_to_unified
from ...services.slot_service import SlotEngine

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.get("/catalog", response_model=CatalogResponse)
def get_catalog(
    bookings: BookingService = Depends(get_booking_service)
):
    """Specialties with their doctors and available windows."""
    return CatalogResponse(specialties=bookings.specialties())

@router.get("/catalog/{specialty}", response_model=SpecialtyCatalog)
def get_specialty(
    specialty: str,
    bookings: BookingService = Depends(get_booking_service)
):
    return bookings.specialty_catalog(specialty)

@router.get("", response_model=AppointmentsResponse)
def list_appointments(
    patient: Patient = Depends(get_current_patient),
    bookings: BookingService = Depends(get_booking_service)
):
    """The patient's bookings and claimed slots, split into upcoming and past."""
    future, past = bookings.split_future_vs_past(bookings.appointments_for(patient.id))
    return AppointmentsResponse(
        future=[AppointmentResponse.from_record(a) for a in future],
        past=[AppointmentResponse.from_record(a) for a in past],
    )

@router.post("/bookings", response_model=AppointmentResponse, status_code=201)
def book_catalog_window(
    booking_data: BookingCreate,
    patient: Patient = Depends(get_current_patient),
    bookings: BookingService = Depends(get_booking_service)
):
    """Book a window from the specialty catalog."""
    booking = bookings.book(
        patient.id,
        booking_data.specialty,
        booking_data.doctor_name,
        booking_data.date,
        booking_data.time,
    )
    return AppointmentResponse.from_record(booking_to_unified(booking))

@router.delete("/bookings/{booking_id}")
def cancel_booking(
    booking_id: str,
    patient: Patient = Depends(get_current_patient),
    bookings: BookingService = Depends(get_booking_service)
):
    """Cancel one of the patient's catalog bookings."""
    bookings.cancel_booking(booking_id, patient_id=patient.id)
    return {"message": "Booking cancelled successfully"}

@router.post("/slots/{slot_id}/claim", response_model=SlotResponse)
def claim_slot(
    slot_id: str,
    patient: Patient = Depends(get_current_patient),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Book an open doctor slot."""
    return SlotResponse.from_record(engine.claim(slot_id, patient.id))

@router.post("/slots/{slot_id}/release", response_model=SlotResponse)
def release_slot(
    slot_id: str,
    patient: Patient = Depends(get_current_patient),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Cancel the patient's booking of a doctor slot; the slot becomes open again."""
    return SlotResponse.from_record(engine.release(slot_id, patient_id=patient.id))
