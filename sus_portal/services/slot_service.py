from datetime import date, datetime
from typing import Callable, Dict, List, Optional
import logging

from ..core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from ..core.storage import CollectionKey, RecordStore
from ..core.time_utils import (
    combine, normalize_date, normalize_time, now_local, overlaps, parse_date, parse_time
)
from ..models.slot import Slot, SlotStatus
from .identity_service import IdentityManager
from .reconciliation import slot_belongs_to

logger = logging.getLogger(__name__)

# scheduled is the only state with outgoing transitions
TRANSITIONS = {
    SlotStatus.SCHEDULED: {SlotStatus.COMPLETED, SlotStatus.CANCELLED},
    SlotStatus.COMPLETED: set(),
    SlotStatus.CANCELLED: set(),
}

class SlotEngine:
    """Doctor-published slots: creation, conflict detection, status and claims."""

    def __init__(
        self,
        store: RecordStore,
        identity: IdentityManager,
        clock: Callable[[], datetime] = now_local,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock

    def _load(self) -> List[Slot]:
        return [Slot.from_storage(raw) for raw in self.store.get_collection(CollectionKey.SLOTS)]

    def _save(self, slots: List[Slot]) -> None:
        self.store.set_collection(CollectionKey.SLOTS, [slot.to_storage() for slot in slots])

    def _replace(self, updated: Slot) -> None:
        self._save([updated if slot.id == updated.id else slot for slot in self._load()])

    # Reads

    def list_slots(self) -> List[Slot]:
        return self._load()

    def get_slot(self, slot_id: str) -> Slot:
        for slot in self._load():
            if slot.id == slot_id:
                return slot
        raise NotFoundError("Slot not found")

    def slots_for_doctor(self, doctor_id: str) -> List[Slot]:
        return [slot for slot in self._load() if slot.doctor_id == doctor_id]

    def open_slots(self, specialty: Optional[str] = None) -> List[Slot]:
        """Scheduled, unclaimed slots, earliest first."""
        slots = [
            slot for slot in self._load()
            if slot.is_open and (specialty is None or slot.specialty == specialty)
        ]
        return sorted(slots, key=lambda s: (parse_date(s.date), parse_time(s.start_time)))

    def status_summary(self, doctor_id: str) -> Dict[str, int]:
        summary = {status.value: 0 for status in SlotStatus}
        for slot in self.slots_for_doctor(doctor_id):
            summary[slot.status.value] += 1
        return summary

    # Conflict detection

    def has_conflict(
        self,
        doctor_id: str,
        date: str,
        start_time: str,
        end_time: str,
        slots: Optional[List[Slot]] = None,
    ) -> bool:
        """True if a non-cancelled slot of the doctor on that date overlaps [start, end)."""
        day = parse_date(date)
        new_start, new_end = parse_time(start_time), parse_time(end_time)
        for existing in self._load() if slots is None else slots:
            if existing.status == SlotStatus.CANCELLED:
                continue
            if existing.doctor_id != doctor_id or not self._on_day(existing, day):
                continue
            if overlaps(parse_time(existing.start_time), parse_time(existing.end_time), new_start, new_end):
                return True
        return False

    @staticmethod
    def _on_day(slot: Slot, day: date) -> bool:
        # Stored dates written before normalization may be unpadded
        try:
            return parse_date(slot.date) == day
        except ValueError:
            return False

    # Mutations

    def publish_slot(
        self,
        doctor_id: str,
        specialty: Optional[str],
        start_time: str,
        end_time: str,
        date: str,
        patient_name: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> str:
        """Create a scheduled slot, open or bound to a patient name. Returns the slot id."""
        if not start_time or not end_time or not date:
            raise ValidationError("Start time, end time and date are required")

        try:
            start_time, end_time = normalize_time(start_time), normalize_time(end_time)
            date = normalize_date(date)
            start_minutes, end_minutes = parse_time(start_time), parse_time(end_time)
            starts_at = combine(date, start_time)
        except ValueError as e:
            raise ValidationError("Date must be DD/MM/YYYY and times HH:mm") from e

        if end_minutes <= start_minutes:
            raise ValidationError("End time must be after start time")
        if starts_at <= self.clock():
            raise ValidationError("Cannot create a slot at a time that has already passed")

        doctor = self.identity.get_doctor(doctor_id)

        slots = self._load()
        if self.has_conflict(doctor_id, date, start_time, end_time, slots=slots):
            logger.warning(f"Rejected overlapping slot for doctor {doctor_id} on {date} {start_time}-{end_time}")
            raise ConflictError("There is already a slot scheduled at this time")

        slot = Slot(
            doctor_id=doctor_id,
            specialty=specialty or doctor.specialty.value,
            start_time=start_time,
            end_time=end_time,
            date=date,
            status=SlotStatus.SCHEDULED,
            notes=(notes or "").strip() or None,
            created_at=self.clock().isoformat(),
        )

        name = (patient_name or "").strip()
        if name:
            slot.patient_name = name
            patient = self.identity.find_patient_by_name(name)
            if patient is not None:
                slot.patient_national_id = patient.national_id
                slot.patient_phone = patient.phone

        slots.append(slot)
        self._save(slots)
        logger.info(f"Doctor {doctor_id} published slot {slot.id} on {date} {start_time}-{end_time}")
        return slot.id

    def set_status(self, slot_id: str, new_status: SlotStatus, notes: Optional[str] = None) -> Slot:
        """Move a scheduled slot to completed or cancelled."""
        try:
            new_status = SlotStatus(new_status)
        except ValueError as e:
            raise ValidationError(f"Unknown status: {new_status}") from e

        slot = self.get_slot(slot_id)
        if new_status not in TRANSITIONS[slot.status]:
            raise StateError(f"Cannot change status from {slot.status.value} to {new_status.value}")

        slot.status = new_status
        if notes is not None:
            slot.notes = notes.strip() or None
        self._replace(slot)
        logger.info(f"Slot {slot_id} is now {new_status.value}")
        return slot

    def claim(self, slot_id: str, patient_id: str) -> Slot:
        """Bind a patient to an open slot."""
        slot = self.get_slot(slot_id)
        if slot.status != SlotStatus.SCHEDULED:
            raise StateError("Slot is not available for booking")
        if slot.is_claimed:
            raise StateError("Slot has already been booked")

        patient = self.identity.get_patient(patient_id)
        slot.patient_name = patient.display_name
        slot.patient_national_id = patient.national_id
        slot.patient_phone = patient.phone
        self._replace(slot)
        logger.info(f"Patient {patient_id} claimed slot {slot_id}")
        return slot

    def release(self, slot_id: str, patient_id: Optional[str] = None) -> Slot:
        """
        Unbind the patient from a slot, leaving its status untouched.

        With ``patient_id`` the slot must currently belong to that patient.
        """
        slot = self.get_slot(slot_id)
        if not slot.is_claimed:
            raise StateError("Slot is not booked")
        if patient_id is not None and not slot_belongs_to(slot, self.identity.get_patient(patient_id)):
            raise StateError("Slot is not booked by this patient")

        slot.patient_name = None
        slot.patient_national_id = None
        slot.patient_phone = None
        self._replace(slot)
        logger.info(f"Slot {slot_id} released")
        return slot

    def delete_slot(self, slot_id: str) -> None:
        slots = self._load()
        remaining = [slot for slot in slots if slot.id != slot_id]
        if len(remaining) == len(slots):
            raise NotFoundError("Slot not found")
        self._save(remaining)
        logger.info(f"Slot {slot_id} deleted")
