"""Reservation record: one team holding one slot on one day."""
import datetime as dt
import uuid
from typing import Optional, Union

from pydantic import Field, field_validator

from field_scheduler.models.base import Record

# Team number, or a designator with a postfix such as "114Backup".
TeamFull = Union[int, str]


def normalize_team(team: TeamFull) -> TeamFull:
    """A purely numeric designator is the team number itself ("100" -> 100)."""
    if isinstance(team, str) and team.isdecimal():
        return int(team)
    return team


class Reservation(Record):
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    date: dt.date
    slot: str
    team: TeamFull
    created: dt.datetime
    user_id: str  # last modifier
    priority: bool = False
    notes: Optional[str] = None
    abandoned: Optional[dt.datetime] = None

    @field_validator("team")
    @classmethod
    def single_team_form(cls, v: TeamFull) -> TeamFull:
        return normalize_team(v)

    @property
    def active(self) -> bool:
        return self.abandoned is None
