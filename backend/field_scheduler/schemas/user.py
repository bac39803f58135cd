"""Pydantic schemas for Users and caller identity."""
from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class AuthIdentity(BaseModel):
    """Caller identity as issued by the upstream auth provider."""

    subject: str
    email: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    image: Optional[str] = None


class UserUpdate(BaseModel):
    teams: Optional[Union[Literal["admin"], list[int]]] = None
    disabled: Optional[bool] = None
    display_name: Optional[str] = None


class TeamJoin(BaseModel):
    team: int = Field(ge=1, le=99999)


class HouseTeamCreate(BaseModel):
    team: int = Field(ge=1, le=99999)
