from datetime import datetime
from typing import Any, Dict
import random
import string
import time

from pydantic import BaseModel, ConfigDict

_ID_ALPHABET = string.ascii_lowercase + string.digits

def generate_id() -> str:
    """Epoch milliseconds followed by nine random base-36 characters."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}{suffix}"

def timestamp(moment: datetime = None) -> str:
    return (moment or datetime.now()).isoformat()

class Record(BaseModel):
    """A flat record stored in a collection under its camelCase field names."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @classmethod
    def from_storage(cls, raw: Dict[str, Any]):
        return cls.model_validate(raw)

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
