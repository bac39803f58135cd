"""Holiday record. System-seeded holidays may lack created/user_id."""
import datetime as dt
import uuid
from typing import Optional

from pydantic import Field

from field_scheduler.models.base import Record


class Holiday(Record):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    date: dt.date
    icon: str
    url: Optional[str] = None
    created: Optional[dt.datetime] = None
    user_id: Optional[str] = None
    deleted: Optional[dt.datetime] = None

    @property
    def active(self) -> bool:
        return self.deleted is None
