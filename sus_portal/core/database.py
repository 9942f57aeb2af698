from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from typing import Optional
import redis
from .config import settings

def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 1800,  # Recycle connections after 30 minutes
    }

engine = create_engine(settings.get_database_url, **_engine_options(settings.get_database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

_redis_client: Optional[redis.Redis] = None
_store = None
_session_store = None

def get_redis() -> redis.Redis:
    """Get Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client

# Record store dependencies
def get_store():
    """Durable record store (patients, doctors, slots, bookings, long-lived sessions)."""
    global _store
    if _store is None:
        from .storage import build_store
        _store = build_store(settings)
    return _store

def get_session_store():
    """Ephemeral session tier."""
    global _session_store
    if _session_store is None:
        from .storage import build_session_store
        _session_store = build_session_store(settings)
    return _session_store

# Database initialization
def init_db(bind=None):
    """Initialize database tables."""
    from ..models import collection  # noqa: F401  registers the table
    Base.metadata.create_all(bind=bind or engine)
