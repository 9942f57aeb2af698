import os
from datetime import datetime

import pytest

os.environ["TESTING"] = "1"

from sus_portal.core.security import PrincipalKind
from sus_portal.core.storage import MemoryRecordStore
from sus_portal.services.booking_service import BookingService
from sus_portal.services.identity_service import IdentityManager
from sus_portal.services.slot_service import SlotEngine

# Valid check-digit CPFs
CPF_ANA = "529.982.247-25"
CPF_BRUNO = "111.444.777-35"
CPF_CARLA = "123.456.789-09"


class FakeClock:
    """Settable clock passed to the services in place of datetime.now."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 15, 10, 0))


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def session_store():
    return MemoryRecordStore()


@pytest.fixture
def identity(store, session_store, clock):
    return IdentityManager(store, session_store, clock=clock)


@pytest.fixture
def engine(store, identity, clock):
    return SlotEngine(store, identity, clock=clock)


@pytest.fixture
def bookings(store, identity, engine, clock):
    return BookingService(store, identity, engine, clock=clock)


def register_patient(identity, email="ana@example.com", cpf=CPF_ANA, password="secret123"):
    return identity.register(PrincipalKind.PATIENT, {
        "email": email,
        "password": password,
        "cpf": cpf,
        "phone": "(11) 99999-9999",
    })


def register_doctor(identity, email="house@example.com", crm="12345", name="Gregory House",
                    specialty="Clínica Geral", password="secret123"):
    return identity.register(PrincipalKind.DOCTOR, {
        "email": email,
        "password": password,
        "name": name,
        "crm": crm,
        "specialty": specialty,
        "phone": "(11) 3333-4444",
    })


@pytest.fixture
def patient_id(identity):
    return register_patient(identity)


@pytest.fixture
def doctor_id(identity):
    return register_doctor(identity)
