"""Pydantic schemas for Reservations."""
from __future__ import annotations

import datetime as dt
import re
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from field_scheduler.models.reservation import TeamFull, normalize_team

# Team number 1-99999 with an optional non-digit postfix ("100", "114Backup", "1868 Guest: 1234")
_VALID_TEAM = re.compile(r"^[1-9]\d{0,4}(?:\D|$)")


class ReservationCreate(BaseModel):
    date: dt.date
    slot: str = Field(min_length=1)
    team: TeamFull
    notes: Optional[str] = None
    priority: bool = False

    @field_validator("team")
    @classmethod
    def valid_team(cls, v: TeamFull) -> TeamFull:
        if isinstance(v, int):
            if not 1 <= v <= 99999:
                raise ValueError("Team number must be between 1 and 99999")
            return v
        if not _VALID_TEAM.match(v):
            raise ValueError("Invalid team designator")
        return normalize_team(v)


class ReservationRemove(BaseModel):
    reason: Optional[str] = None
