"""Site event record: a whole-day annotation."""
import datetime as dt
from typing import Optional

from field_scheduler.models.base import Record


class SiteEvent(Record):
    date: dt.date
    created: dt.datetime
    user_id: str
    notes: Optional[str] = None
    deleted: Optional[dt.datetime] = None

    @property
    def active(self) -> bool:
        return self.deleted is None
