"""Permission and timeframe checks run before any change takes the lock."""
from datetime import date, timedelta

from field_scheduler.core.errors import PermissionDeniedError
from field_scheduler.models.reservation import TeamFull
from field_scheduler.models.user import ADMIN, UserEntry
from field_scheduler.util.timeutil import team_number


def is_admin(user: UserEntry) -> bool:
    return user.teams == ADMIN


def restrict_to_admin(user: UserEntry, message: str) -> None:
    if is_admin(user):
        return
    raise PermissionDeniedError(message)


def restrict_to_team(user: UserEntry, team: TeamFull, message: str) -> None:
    """Admins pass; otherwise the team's number must be one of the user's teams."""
    if is_admin(user):
        return
    number = team_number(team)
    if number is not None and number in user.teams:
        return
    raise PermissionDeniedError(message)


def restrict_timeframe(user: UserEntry, day: date, window_days: int, today: date) -> None:
    """Non-admins may only book from today up to ``window_days`` ahead, inclusive."""
    if is_admin(user):
        return
    if day < today:
        raise PermissionDeniedError("Cannot reserve a date in the past")
    if day > today + timedelta(days=window_days):
        raise PermissionDeniedError(f"Cannot reserve a date more than {window_days} days in advance")
