import itertools
import random

import pytest

from sus_portal.core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from sus_portal.core.storage import CollectionKey
from sus_portal.core.time_utils import parse_time
from sus_portal.models.slot import Slot, SlotStatus, migrate_slot_record
from sus_portal.schemas.slots import SlotCreate

from .conftest import CPF_BRUNO, register_doctor, register_patient

DATE = "20/06/2025"


def publish(engine, doctor_id, start, end, date=DATE, **kwargs):
    return engine.publish_slot(doctor_id, None, start, end, date, **kwargs)


class TestPublishSlot:

    def test_publish_open_slot(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")

        slot = engine.get_slot(slot_id)
        assert slot.status == SlotStatus.SCHEDULED
        assert slot.is_open
        assert slot.specialty == "Clínica Geral"
        assert slot.created_at == "2025-06-15T10:00:00"

    def test_overlap_scenario(self, engine, doctor_id):
        """08:00-09:00 is taken, 08:30-09:30 overlaps, 09:00-10:00 only touches."""
        publish(engine, doctor_id, "08:00", "09:00")

        with pytest.raises(ConflictError):
            publish(engine, doctor_id, "08:30", "09:30")

        publish(engine, doctor_id, "09:00", "10:00")
        assert len(engine.slots_for_doctor(doctor_id)) == 2

    def test_overlap_boundaries(self, engine, doctor_id):
        publish(engine, doctor_id, "09:00", "10:00")

        assert engine.has_conflict(doctor_id, DATE, "10:00", "11:00") is False
        assert engine.has_conflict(doctor_id, DATE, "08:00", "09:00") is False
        assert engine.has_conflict(doctor_id, DATE, "09:30", "10:30") is True
        assert engine.has_conflict(doctor_id, DATE, "08:00", "12:00") is True
        assert engine.has_conflict(doctor_id, DATE, "09:15", "09:45") is True

    def test_unpadded_date_is_the_same_day(self, engine, doctor_id):
        publish(engine, doctor_id, "08:00", "09:00", date="01/07/2025")

        with pytest.raises(ConflictError):
            publish(engine, doctor_id, "8:30", "9:30", date="1/7/2025")

        slot_id = publish(engine, doctor_id, "9:00", "10:00", date="1/7/2025")
        slot = engine.get_slot(slot_id)
        assert (slot.date, slot.start_time, slot.end_time) == ("01/07/2025", "09:00", "10:00")

    def test_unpadded_stored_date_still_blocks(self, engine, store, doctor_id):
        store.append(CollectionKey.SLOTS, Slot(
            doctor_id=doctor_id, specialty="Clínica Geral", start_time="08:00", end_time="09:00", date="1/7/2025"
        ).to_storage())

        assert engine.has_conflict(doctor_id, "01/07/2025", "08:30", "09:30") is True

    def test_slot_form_normalizes_date_and_times(self):
        form = SlotCreate(start_time=" 8:30", end_time="9:30", date="1/7/2025")
        assert (form.start_time, form.end_time, form.date) == ("08:30", "09:30", "01/07/2025")

    def test_conflicts_are_per_doctor_and_date(self, engine, identity, doctor_id):
        other_doctor = register_doctor(identity, email="wilson@example.com", crm="54321", name="James Wilson")
        publish(engine, doctor_id, "08:00", "09:00")

        publish(engine, other_doctor, "08:00", "09:00")
        publish(engine, doctor_id, "08:00", "09:00", date="21/06/2025")

    def test_cancelled_slot_frees_its_interval(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.set_status(slot_id, SlotStatus.CANCELLED)

        publish(engine, doctor_id, "08:00", "09:00")

    def test_completed_slot_still_blocks(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.set_status(slot_id, SlotStatus.COMPLETED)

        with pytest.raises(ConflictError):
            publish(engine, doctor_id, "08:30", "09:00")

    @pytest.mark.parametrize("start,end", [("09:00", "09:00"), ("10:00", "09:00")])
    def test_end_must_follow_start(self, engine, doctor_id, start, end):
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, start, end)

    @pytest.mark.parametrize("start,end,date", [("", "09:00", DATE), ("08:00", "", DATE), ("08:00", "09:00", "")])
    def test_missing_fields(self, engine, doctor_id, start, end, date):
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, start, end, date=date)

    def test_malformed_values(self, engine, doctor_id):
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, "8h", "9h")
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, "08:00", "09:00", date="2025-06-20")

    def test_no_retroactive_slots(self, engine, doctor_id):
        """The clock reads 15/06/2025 10:00."""
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, "09:00", "10:00", date="15/06/2025")
        with pytest.raises(ValidationError):
            publish(engine, doctor_id, "10:00", "11:00", date="15/06/2025")

        publish(engine, doctor_id, "10:30", "11:00", date="15/06/2025")

    def test_unknown_doctor(self, engine):
        with pytest.raises(NotFoundError):
            publish(engine, "missing", "08:00", "09:00")

    def test_patient_name_binds_registered_patient(self, engine, identity, doctor_id):
        register_patient(identity)
        slot_id = publish(engine, doctor_id, "08:00", "09:00", patient_name="ana", notes="Retorno")

        slot = engine.get_slot(slot_id)
        assert slot.patient_name == "ana"
        assert slot.patient_national_id == "529.982.247-25"
        assert slot.notes == "Retorno"
        assert not slot.is_open

    def test_no_overlap_invariant_holds_for_random_slots(self, engine, identity, doctor_id):
        other_doctor = register_doctor(identity, email="wilson@example.com", crm="54321", name="James Wilson")
        rng = random.Random(1234)
        grid = [f"{hour:02d}:{minute:02d}" for hour in range(7, 19) for minute in (0, 30)]

        for _ in range(200):
            doctor = rng.choice([doctor_id, other_doctor])
            date = rng.choice([DATE, "21/06/2025"])
            start_index = rng.randrange(len(grid) - 1)
            end_index = rng.randrange(start_index + 1, min(start_index + 5, len(grid)))
            start, end = grid[start_index], grid[end_index]

            expected_conflict = engine.has_conflict(doctor, date, start, end)
            try:
                slot_id = publish(engine, doctor, start, end, date=date)
            except ConflictError:
                assert expected_conflict
                continue
            assert not expected_conflict
            if rng.random() < 0.2:
                engine.set_status(slot_id, SlotStatus.CANCELLED)

        live = [s for s in engine.list_slots() if s.status != SlotStatus.CANCELLED]
        for a, b in itertools.combinations(live, 2):
            if a.doctor_id != b.doctor_id or a.date != b.date:
                continue
            assert not (
                parse_time(a.start_time) < parse_time(b.end_time)
                and parse_time(b.start_time) < parse_time(a.end_time)
            ), f"{a!r} overlaps {b!r}"


class TestStatusTransitions:

    @pytest.mark.parametrize("target", [SlotStatus.COMPLETED, SlotStatus.CANCELLED])
    def test_scheduled_moves_once(self, engine, doctor_id, target):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")

        assert engine.set_status(slot_id, target, notes="ok").status == target
        assert engine.get_slot(slot_id).notes == "ok"

        for follow_up in SlotStatus:
            with pytest.raises(StateError):
                engine.set_status(slot_id, follow_up)
        assert engine.get_slot(slot_id).status == target

    def test_scheduled_to_scheduled_is_rejected(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        with pytest.raises(StateError):
            engine.set_status(slot_id, SlotStatus.SCHEDULED)

    def test_unknown_status_value(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        with pytest.raises(ValidationError):
            engine.set_status(slot_id, "postponed")

    def test_unknown_slot(self, engine):
        with pytest.raises(NotFoundError):
            engine.set_status("missing", SlotStatus.COMPLETED)

    def test_status_summary(self, engine, doctor_id):
        first = publish(engine, doctor_id, "08:00", "09:00")
        publish(engine, doctor_id, "09:00", "10:00")
        engine.set_status(first, SlotStatus.COMPLETED)

        assert engine.status_summary(doctor_id) == {"scheduled": 1, "completed": 1, "cancelled": 0}


class TestClaims:

    def test_claim_is_exclusive_until_released(self, engine, identity, doctor_id):
        p1 = register_patient(identity)
        p2 = register_patient(identity, email="bruno@example.com", cpf=CPF_BRUNO)
        slot_id = publish(engine, doctor_id, "08:00", "09:00")

        claimed = engine.claim(slot_id, p1)
        assert claimed.patient_name == "ana"
        assert claimed.patient_national_id == "529.982.247-25"
        assert claimed.patient_phone == "(11) 99999-9999"

        with pytest.raises(StateError):
            engine.claim(slot_id, p2)

        released = engine.release(slot_id, patient_id=p1)
        assert released.is_open
        assert released.status == SlotStatus.SCHEDULED

        assert engine.claim(slot_id, p2).patient_name == "bruno"

    def test_claim_requires_scheduled(self, engine, patient_id, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.set_status(slot_id, SlotStatus.CANCELLED)

        with pytest.raises(StateError):
            engine.claim(slot_id, patient_id)

    def test_release_by_other_patient_is_rejected(self, engine, identity, patient_id, doctor_id):
        other = register_patient(identity, email="bruno@example.com", cpf=CPF_BRUNO)
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.claim(slot_id, patient_id)

        with pytest.raises(StateError):
            engine.release(slot_id, patient_id=other)
        assert engine.get_slot(slot_id).patient_name == "ana"

    def test_release_open_slot_is_rejected(self, engine, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        with pytest.raises(StateError):
            engine.release(slot_id)

    def test_release_keeps_status(self, engine, patient_id, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.claim(slot_id, patient_id)
        engine.set_status(slot_id, SlotStatus.COMPLETED)

        assert engine.release(slot_id).status == SlotStatus.COMPLETED

    def test_open_slots(self, engine, patient_id, doctor_id):
        later = publish(engine, doctor_id, "14:00", "15:00")
        earlier = publish(engine, doctor_id, "08:00", "09:00")
        claimed = publish(engine, doctor_id, "10:00", "11:00")
        engine.claim(claimed, patient_id)

        assert [s.id for s in engine.open_slots()] == [earlier, later]
        assert engine.open_slots(specialty="Cardiologia") == []

    def test_delete_slot(self, engine, patient_id, doctor_id):
        slot_id = publish(engine, doctor_id, "08:00", "09:00")
        engine.claim(slot_id, patient_id)

        engine.delete_slot(slot_id)
        with pytest.raises(NotFoundError):
            engine.get_slot(slot_id)
        with pytest.raises(NotFoundError):
            engine.delete_slot(slot_id)


class TestSlotMigration:

    def test_older_shape_is_upgraded(self):
        raw = {
            "id": "1",
            "doctorId": "d1",
            "patientName": "",
            "patientCpf": "",
            "specialty": "Cardiologia",
            "startTime": "08:00",
            "endTime": "09:00",
            "date": DATE,
            "status": "scheduled",
            "notes": "",
            "createdAt": "2025-06-01T09:00:00",
        }

        migrated = migrate_slot_record(raw)
        assert migrated["patientName"] is None
        assert migrated["patientCpf"] is None
        assert migrated["patientPhone"] is None
        assert migrated["notes"] is None
        assert raw["patientName"] == ""

        slot = Slot.from_storage(raw)
        assert slot.is_open

    def test_stored_legacy_slot_is_readable(self, engine, store, patient_id, doctor_id):
        store.set_collection(CollectionKey.SLOTS, [{
            "id": "legacy-1",
            "doctorId": doctor_id,
            "patientName": "",
            "patientCpf": "",
            "specialty": "Clínica Geral",
            "startTime": "08:00",
            "endTime": "09:00",
            "date": DATE,
            "status": "scheduled",
            "createdAt": "2025-06-01T09:00:00",
        }])

        assert engine.claim("legacy-1", patient_id).patient_name == "ana"
        stored = store.get_collection(CollectionKey.SLOTS)[0]
        assert stored["patientPhone"] == "(11) 99999-9999"
