"""
Record store port and its backends.

Every collection is a flat, ordered list of JSON objects stored under one
namespaced key. Writes replace the whole collection, so a failed write leaves
the previous collection in place.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Union
import json
import logging

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .config import Settings
from .exceptions import InfrastructureError

logger = logging.getLogger(__name__)

class CollectionKey(str, Enum):
    PATIENTS = "sus_users"
    DOCTORS = "sus_doctors"
    BOOKINGS = "sus_bookings"
    SLOTS = "sus_doctor_appointments"
    SESSION = "sus_session"
    REMEMBER_SESSION = "sus_remember_session"
    SAVED_CREDENTIALS = "sus_saved_credentials"

KeyLike = Union[CollectionKey, str]

def _key_name(key: KeyLike) -> str:
    return key.value if isinstance(key, CollectionKey) else key


class RecordStore(ABC):
    """Get/set/remove over namespaced record collections."""

    @abstractmethod
    def get_collection(self, key: KeyLike) -> List[dict]:
        """Return the stored records, or an empty list for an unknown key."""

    @abstractmethod
    def set_collection(self, key: KeyLike, records: List[dict]) -> None:
        """Replace the whole collection."""

    @abstractmethod
    def remove(self, key: KeyLike) -> None:
        """Drop the collection entirely."""

    def append(self, key: KeyLike, record: dict) -> None:
        records = self.get_collection(key)
        records.append(record)
        self.set_collection(key, records)


class MemoryRecordStore(RecordStore):
    """Process-local store; also backs the ephemeral session tier."""

    def __init__(self):
        self.data: Dict[str, str] = {}

    def get_collection(self, key: KeyLike) -> List[dict]:
        raw = self.data.get(_key_name(key))
        return json.loads(raw) if raw else []

    def set_collection(self, key: KeyLike, records: List[dict]) -> None:
        try:
            self.data[_key_name(key)] = json.dumps(records)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize collection {_key_name(key)}: {str(e)}")
            raise InfrastructureError() from e

    def remove(self, key: KeyLike) -> None:
        self.data.pop(_key_name(key), None)


class SQLRecordStore(RecordStore):
    """Collections persisted as rows of the record_collections table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def get_collection(self, key: KeyLike) -> List[dict]:
        from ..models.collection import RecordCollection

        name = _key_name(key)
        try:
            with self.session_factory() as db:
                row = db.get(RecordCollection, name)
                return json.loads(row.payload) if row else []
        except (SQLAlchemyError, ValueError) as e:
            logger.error(f"Failed to read collection {name}: {str(e)}")
            raise InfrastructureError() from e

    def set_collection(self, key: KeyLike, records: List[dict]) -> None:
        from ..models.collection import RecordCollection

        name = _key_name(key)
        try:
            payload = json.dumps(records)
            with self.session_factory() as db:
                db.merge(RecordCollection(key=name, payload=payload))
                db.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            logger.error(f"Failed to write collection {name}: {str(e)}")
            raise InfrastructureError() from e

    def remove(self, key: KeyLike) -> None:
        from ..models.collection import RecordCollection

        name = _key_name(key)
        try:
            with self.session_factory() as db:
                db.query(RecordCollection).filter(RecordCollection.key == name).delete()
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to remove collection {name}: {str(e)}")
            raise InfrastructureError() from e


class RedisRecordStore(RecordStore):
    """Collections persisted as one JSON string per Redis key."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def get_collection(self, key: KeyLike) -> List[dict]:
        name = _key_name(key)
        try:
            raw = self.client.get(name)
            return json.loads(raw) if raw else []
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Failed to read collection {name} from Redis: {str(e)}")
            raise InfrastructureError() from e

    def set_collection(self, key: KeyLike, records: List[dict]) -> None:
        name = _key_name(key)
        try:
            self.client.set(name, json.dumps(records))
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.error(f"Failed to write collection {name} to Redis: {str(e)}")
            raise InfrastructureError() from e

    def remove(self, key: KeyLike) -> None:
        name = _key_name(key)
        try:
            self.client.delete(name)
        except redis.RedisError as e:
            logger.error(f"Failed to remove collection {name} from Redis: {str(e)}")
            raise InfrastructureError() from e


def build_store(settings: Settings, backend: Optional[str] = None) -> RecordStore:
    """Create the durable store selected by STORAGE_BACKEND."""
    from .database import SessionLocal, get_redis, init_db

    backend = backend or ("memory" if settings.TESTING else settings.STORAGE_BACKEND)
    if backend == "memory":
        return MemoryRecordStore()
    if backend == "redis":
        return RedisRecordStore(get_redis())
    if backend == "sql":
        init_db()
        return SQLRecordStore(SessionLocal)
    raise ValueError(f"Unknown storage backend: {backend}")


def build_session_store(settings: Settings) -> RecordStore:
    """Create the ephemeral session tier selected by SESSION_BACKEND."""
    if settings.SESSION_BACKEND == "redis" and not settings.TESTING:
        from .database import get_redis
        return RedisRecordStore(get_redis())
    return MemoryRecordStore()
