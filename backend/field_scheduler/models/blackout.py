"""Blackout record: a slot on a day when the field is unavailable."""
import datetime as dt
from typing import Optional

from field_scheduler.models.base import Record


class Blackout(Record):
    date: dt.date
    slot: str
    created: dt.datetime
    user_id: str
    reason: Optional[str] = None
    deleted: Optional[dt.datetime] = None

    @property
    def active(self) -> bool:
        return self.deleted is None
