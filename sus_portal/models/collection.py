from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func

from ..core.database import Base

class RecordCollection(Base):
    """One stored collection: a JSON array of flat records under a namespaced key."""
    __tablename__ = "record_collections"
    
    key = Column(String(100), primary_key=True)
    payload = Column(Text, nullable=False, default="[]")
    
    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    
    def __repr__(self):
        return f"<RecordCollection(key='{self.key}')>"
