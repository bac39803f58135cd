"""Clock helpers. Local dates use the configured IANA zone via pytz."""
import re
from datetime import date, datetime, timezone

import pytz

_TEAM_NUMBER = re.compile(r"^\s*(\d+)")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now(tz_name: str) -> datetime:
    return utcnow().astimezone(pytz.timezone(tz_name))


def local_today(tz_name: str) -> date:
    return local_now(tz_name).date()


def local_year(tz_name: str) -> int:
    return local_now(tz_name).year


def team_number(team: int | str) -> int | None:
    """Leading team number of a team designator ("114Backup" -> 114)."""
    if isinstance(team, int):
        return team
    match = _TEAM_NUMBER.match(team)
    return int(match.group(1)) if match else None
