import pytest
import redis
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sus_portal.core.database import init_db
from sus_portal.core.exceptions import InfrastructureError
from sus_portal.core.storage import (
    CollectionKey, MemoryRecordStore, RedisRecordStore, SQLRecordStore
)


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    init_db(bind=engine)
    yield SQLRecordStore(sessionmaker(autocommit=False, autoflush=False, bind=engine))
    engine.dispose()


class UnavailableRedis:
    """Redis client whose every call fails as if the server were down."""

    def get(self, key):
        raise redis.ConnectionError("connection refused")

    def set(self, key, value):
        raise redis.ConnectionError("connection refused")

    def delete(self, key):
        raise redis.ConnectionError("connection refused")


@pytest.mark.parametrize("store_factory", ["memory", "sql"])
def test_collection_lifecycle(store_factory, sql_store):
    store = MemoryRecordStore() if store_factory == "memory" else sql_store

    assert store.get_collection(CollectionKey.PATIENTS) == []

    store.append(CollectionKey.PATIENTS, {"id": "1", "email": "a@example.com"})
    store.append(CollectionKey.PATIENTS, {"id": "2", "email": "b@example.com"})
    assert [r["id"] for r in store.get_collection(CollectionKey.PATIENTS)] == ["1", "2"]

    store.set_collection(CollectionKey.PATIENTS, [{"id": "3"}])
    assert store.get_collection("sus_users") == [{"id": "3"}]
    assert store.get_collection(CollectionKey.DOCTORS) == []

    store.remove(CollectionKey.PATIENTS)
    assert store.get_collection(CollectionKey.PATIENTS) == []


def test_memory_store_returns_copies():
    store = MemoryRecordStore()
    store.set_collection(CollectionKey.SLOTS, [{"id": "1"}])

    store.get_collection(CollectionKey.SLOTS).append({"id": "2"})
    assert store.get_collection(CollectionKey.SLOTS) == [{"id": "1"}]


@pytest.mark.parametrize("store_factory", ["memory", "sql"])
def test_failed_write_leaves_collection_unchanged(store_factory, sql_store):
    store = MemoryRecordStore() if store_factory == "memory" else sql_store
    store.set_collection(CollectionKey.BOOKINGS, [{"id": "1"}])

    with pytest.raises(InfrastructureError):
        store.set_collection(CollectionKey.BOOKINGS, [{"id": object()}])

    assert store.get_collection(CollectionKey.BOOKINGS) == [{"id": "1"}]


def test_redis_failures_surface_as_infrastructure_errors():
    store = RedisRecordStore(UnavailableRedis())

    with pytest.raises(InfrastructureError):
        store.get_collection(CollectionKey.PATIENTS)
    with pytest.raises(InfrastructureError):
        store.set_collection(CollectionKey.PATIENTS, [])
    with pytest.raises(InfrastructureError):
        store.remove(CollectionKey.PATIENTS)


def test_corrupt_sql_payload_is_an_infrastructure_error(sql_store):
    from sus_portal.models.collection import RecordCollection

    with sql_store.session_factory() as db:
        db.add(RecordCollection(key=CollectionKey.DOCTORS.value, payload="{not json"))
        db.commit()

    with pytest.raises(InfrastructureError):
        sql_store.get_collection(CollectionKey.DOCTORS)
