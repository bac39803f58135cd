"""Pydantic schemas for Holidays."""
from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class HolidayCreate(BaseModel):
    name: str = Field(min_length=1)
    date: dt.date
    icon: str = Field(min_length=1)
    url: Optional[str] = None

    @field_validator("url", mode="after")
    @classmethod
    def blank_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        v = (v or "").strip()
        if not v:
            return None
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must be an http(s) URL")
        return v
