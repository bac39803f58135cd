"""Pydantic schemas for Blackouts and Site Events."""
from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class BlackoutCreate(BaseModel):
    date: dt.date
    slot: str = Field(min_length=1)
    reason: Optional[str] = None


class BlackoutRemove(BaseModel):
    date: dt.date
    slot: str


class SiteEventCreate(BaseModel):
    date: dt.date
    notes: Optional[str] = None


class SiteEventRemove(BaseModel):
    date: dt.date
