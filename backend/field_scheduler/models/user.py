"""User entry and the external-identity mapping that resolves to it."""
import datetime as dt
from typing import Literal, Optional, Union

from field_scheduler.models.base import Record

ADMIN = "admin"

Teams = Union[Literal["admin"], list[int]]


class UserEntry(Record):
    id: str
    name: str
    display_name: Optional[str] = None
    created: dt.datetime
    updated: dt.datetime
    disabled: Optional[bool] = None
    teams: Teams = []
    email: str = ""
    image: str = ""


class IdentityMapping(Record):
    """Links an auth provider subject to a persistent UserEntry.id."""

    external_id: str
    user_id: str
    created: Optional[dt.datetime] = None
