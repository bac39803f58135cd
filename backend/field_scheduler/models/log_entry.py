"""Append-only change log records: one JSON object per line in <year>/logs.txt.

Every entry carries who/when/where (timestamp, ip, user agent, acting user)
plus a ``type`` discriminator naming the change.
"""
import datetime as dt
import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from field_scheduler.models.base import Record
from field_scheduler.models.reservation import TeamFull
from field_scheduler.models.user import Teams


class LogType(str, enum.Enum):
    created = "created"
    updated = "updated"
    deleted = "deleted"
    blackout_add = "blackoutAdd"
    blackout_remove = "blackoutRemove"
    site_event_add = "siteEventAdd"
    site_event_remove = "siteEventRemove"
    holiday_add = "holidayAdd"
    holiday_remove = "holidayRemove"
    user_add = "userAdd"
    user_update = "userUpdate"
    identity_link = "identityLink"
    house_team_add = "houseTeamAdd"


class LogCommon(Record):
    timestamp: dt.datetime
    ip: str
    user_agent: str
    user_id: str


class ReservationLog(LogCommon):
    type: Literal["created", "updated", "deleted"]
    date: dt.date
    slot: str
    team: TeamFull
    notes: Optional[str] = None


class BlackoutLog(LogCommon):
    type: Literal["blackoutAdd", "blackoutRemove"]
    date: dt.date
    slot: str
    reason: Optional[str] = None


class SiteEventLog(LogCommon):
    type: Literal["siteEventAdd", "siteEventRemove"]
    date: dt.date
    notes: Optional[str] = None


class HolidayLog(LogCommon):
    type: Literal["holidayAdd", "holidayRemove"]
    holiday_id: str
    name: str
    date: dt.date


class UserLog(LogCommon):
    type: Literal["userAdd", "userUpdate"]
    subject_id: str
    name: str
    teams: Teams
    disabled: Optional[bool] = None


class IdentityLog(LogCommon):
    type: Literal["identityLink"]
    external_id: str
    subject_id: str


class HouseTeamLog(LogCommon):
    type: Literal["houseTeamAdd"]
    team: int


LogEntry = Annotated[
    Union[ReservationLog, BlackoutLog, SiteEventLog, HolidayLog, UserLog, IdentityLog, HouseTeamLog],
    Field(discriminator="type"),
]

log_entry_adapter: TypeAdapter = TypeAdapter(LogEntry)
