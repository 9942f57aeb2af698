from fastapi import APIRouter, Depends
from typing import List, Optional, Union

from ...api.deps import get_current_doctor, get_current_principal, get_slot_engine
from ...core.security import AuthorizationError
from ...models.doctor import Doctor
from ...models.patient import Patient
from ...schemas.slots import SlotCreate, SlotResponse, SlotStatusUpdate, SlotSummary
from ...services.slot_service import SlotEngine

router = APIRouter(prefix="/slots", tags=["Slots"])

def _owned_slot(slot_id: str, doctor: Doctor, engine: SlotEngine):
    slot = engine.get_slot(slot_id)
    if slot.doctor_id != doctor.id:
        raise AuthorizationError("This slot belongs to another doctor")
    return slot

@router.post("", response_model=SlotResponse, status_code=201)
def publish_slot(
    slot_data: SlotCreate,
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Publish a time slot, open or already bound to a patient."""
    slot_id = engine.publish_slot(
        doctor.id,
        doctor.specialty.value,
        slot_data.start_time,
        slot_data.end_time,
        slot_data.date,
        patient_name=slot_data.patient_name,
        notes=slot_data.notes,
    )
    return SlotResponse.from_record(engine.get_slot(slot_id))

@router.get("", response_model=List[SlotResponse])
def list_my_slots(
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """List the logged-in doctor's slots."""
    return [SlotResponse.from_record(slot) for slot in engine.slots_for_doctor(doctor.id)]

@router.get("/summary", response_model=SlotSummary)
def slot_summary(
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Slot counts per status."""
    return SlotSummary(counts=engine.status_summary(doctor.id))

@router.get("/open", response_model=List[SlotResponse])
def list_open_slots(
    specialty: Optional[str] = None,
    principal: Union[Patient, Doctor] = Depends(get_current_principal),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Slots any patient can still book."""
    return [SlotResponse.from_record(slot) for slot in engine.open_slots(specialty)]

@router.patch("/{slot_id}/status", response_model=SlotResponse)
def update_slot_status(
    slot_id: str,
    status_data: SlotStatusUpdate,
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Mark a scheduled slot completed or cancelled."""
    _owned_slot(slot_id, doctor, engine)
    slot = engine.set_status(slot_id, status_data.status, notes=status_data.notes)
    return SlotResponse.from_record(slot)

@router.post("/{slot_id}/release", response_model=SlotResponse)
def release_slot(
    slot_id: str,
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Free a booked slot so another patient can take it."""
    _owned_slot(slot_id, doctor, engine)
    return SlotResponse.from_record(engine.release(slot_id))

@router.delete("/{slot_id}")
def delete_slot(
    slot_id: str,
    doctor: Doctor = Depends(get_current_doctor),
    engine: SlotEngine = Depends(get_slot_engine)
):
    """Discard a slot outright."""
    _owned_slot(slot_id, doctor, engine)
    engine.delete_slot(slot_id)
    return {"message": "Slot deleted successfully"}
