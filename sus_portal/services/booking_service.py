from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple
import logging

from ..core.exceptions import ConflictError, NotFoundError, StateError
from ..core.storage import CollectionKey, RecordStore
from ..core.time_utils import now_local
from ..models.appointment import UnifiedAppointment
from ..models.booking import LegacyBooking
from .catalog import CATALOG, SpecialtyCatalog
from .identity_service import IdentityManager
from .reconciliation import (
    booking_to_unified, doctor_display_name, merge_appointments,
    slot_belongs_to, slot_to_unified, split_future_vs_past
)
from .slot_service import SlotEngine

logger = logging.getLogger(__name__)

class BookingService:
    """Legacy catalog bookings and the patient's reconciled appointment list."""

    def __init__(
        self,
        store: RecordStore,
        identity: IdentityManager,
        slots: SlotEngine,
        clock: Callable[[], datetime] = now_local,
        catalog: Optional[Dict[str, SpecialtyCatalog]] = None,
    ):
        self.store = store
        self.identity = identity
        self.slots = slots
        self.clock = clock
        self.catalog = CATALOG if catalog is None else catalog

    # Catalog

    def specialties(self) -> List[SpecialtyCatalog]:
        return list(self.catalog.values())

    def specialty_catalog(self, key: str) -> SpecialtyCatalog:
        try:
            return self.catalog[key]
        except KeyError:
            raise NotFoundError(f"Unknown specialty: {key}")

    # Legacy bookings

    def bookings_for(self, patient_id: str) -> List[LegacyBooking]:
        return [
            LegacyBooking.from_storage(raw)
            for raw in self.store.get_collection(CollectionKey.BOOKINGS)
            if raw.get("patientId") == patient_id
        ]

    def book(self, patient_id: str, specialty_key: str, doctor_name: str, date: str, time: str) -> LegacyBooking:
        """Book a catalog window for a patient."""
        self.identity.get_patient(patient_id)
        specialty = self.specialty_catalog(specialty_key)
        window = specialty.find_window(doctor_name, date, time)
        if window is None:
            raise NotFoundError("This time is not offered by the selected doctor")

        if any(
            b.doctor_name == doctor_name and b.date == date and b.time_range == time
            for b in self.bookings_for(patient_id)
        ):
            raise ConflictError("You already have this appointment booked")

        booking = LegacyBooking(
            patient_id=patient_id,
            doctor_name=doctor_name,
            specialty=specialty.name,
            day_of_week=window.day,
            time_range=window.time,
            date=window.date,
            booked_at=self.clock().isoformat(),
        )
        self.store.append(CollectionKey.BOOKINGS, booking.to_storage())
        logger.info(f"Patient {patient_id} booked {doctor_name} on {date} {time}")
        return booking

    def cancel_booking(self, booking_id: str, patient_id: Optional[str] = None) -> None:
        """Delete a legacy booking; with ``patient_id`` only its owner may do so."""
        records = self.store.get_collection(CollectionKey.BOOKINGS)
        target = next((raw for raw in records if raw.get("id") == booking_id), None)
        if target is None:
            raise NotFoundError("Booking not found")
        if patient_id is not None and target.get("patientId") != patient_id:
            raise StateError("Booking belongs to another patient")

        self.store.set_collection(
            CollectionKey.BOOKINGS, [raw for raw in records if raw.get("id") != booking_id]
        )
        logger.info(f"Booking {booking_id} cancelled")

    # Reconciled view

    def appointments_for(self, patient_id: str) -> List[UnifiedAppointment]:
        """Legacy bookings followed by claimed slots, deduplicated."""
        patient = self.identity.get_patient(patient_id)
        doctors = {doctor.id: doctor for doctor in self.identity.list_doctors()}

        bookings = [booking_to_unified(b) for b in self.bookings_for(patient_id)]
        claimed = [
            slot_to_unified(slot, doctor_display_name(doctors.get(slot.doctor_id)))
            for slot in self.slots.list_slots()
            if slot_belongs_to(slot, patient)
        ]
        return merge_appointments(bookings, claimed)

    def split_future_vs_past(
        self, appointments: List[UnifiedAppointment], now: Optional[datetime] = None
    ) -> Tuple[List[UnifiedAppointment], List[UnifiedAppointment]]:
        return split_future_vs_past(appointments, now or self.clock())
