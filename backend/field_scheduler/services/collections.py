"""Entity kinds and the per-kind storage metadata.

Each collection is looked up by EntityKind rather than by comparing list
identities, so a kind always knows its file, its record type, the startup
migration applied to raw file contents and which notifier hook announces it.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from pydantic import TypeAdapter

from field_scheduler.models.blackout import Blackout
from field_scheduler.models.holiday import Holiday
from field_scheduler.models.reservation import Reservation
from field_scheduler.models.site_event import SiteEvent
from field_scheduler.models.user import IdentityMapping, UserEntry

logger = logging.getLogger(__name__)


class EntityKind(str, enum.Enum):
    reservations = "reservations"
    blackouts = "blackouts"
    site_events = "siteEvents"
    holidays = "holidays"
    users = "users"
    identities = "identities"
    house_teams = "houseTeams"


@dataclass(frozen=True)
class MigrationPolicy:
    disable_after: timedelta
    expire_after: timedelta


Migration = Callable[[list[Any], datetime, MigrationPolicy], list[Any]]


def _keep_all(raw: list[Any], now: datetime, policy: MigrationPolicy) -> list[Any]:
    return raw


def _parse_created(value: str) -> Optional[datetime]:
    try:
        created = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def migrate_users(raw: list[Any], now: datetime, policy: MigrationPolicy) -> list[Any]:
    """Drop malformed and long-dead users, disable stale ones (mutates in place)."""
    kept = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("created"), str):
            logger.warning("Dropping malformed user record: %r", item)
            continue
        created = _parse_created(item["created"])
        if created is None:
            logger.warning("Dropping user %s with unreadable created date", item.get("id"))
            continue
        age = now - created
        if item.get("disabled"):
            if age > policy.expire_after:
                logger.info("Dropping expired user %s", item.get("id"))
                continue
        elif age > policy.disable_after:
            logger.info("Disabling stale user %s", item.get("id"))
            item["disabled"] = True
        kept.append(item)
    return kept


@dataclass(frozen=True)
class CollectionSpec:
    kind: EntityKind
    filename: str
    yearly: bool
    adapter: TypeAdapter
    migrate: Migration = _keep_all
    notify_hook: Optional[str] = None

    def load(self, raw: list[Any]) -> list[Any]:
        return [self.adapter.validate_python(item) for item in raw]

    def dump(self, records: list[Any]) -> list[Any]:
        return [
            self.adapter.dump_python(record, mode="json", by_alias=True, exclude_none=True)
            for record in records
        ]


COLLECTIONS: dict[EntityKind, CollectionSpec] = {
    EntityKind.reservations: CollectionSpec(
        EntityKind.reservations, "reservations.json", True, TypeAdapter(Reservation),
        notify_hook="notify_reservation_changed",
    ),
    EntityKind.blackouts: CollectionSpec(
        EntityKind.blackouts, "blackouts.json", True, TypeAdapter(Blackout),
        notify_hook="notify_blackout_changed",
    ),
    EntityKind.site_events: CollectionSpec(
        EntityKind.site_events, "events.json", True, TypeAdapter(SiteEvent),
        notify_hook="notify_site_event_changed",
    ),
    EntityKind.holidays: CollectionSpec(
        EntityKind.holidays, "holidays.json", True, TypeAdapter(Holiday),
        notify_hook="notify_holiday_changed",
    ),
    EntityKind.house_teams: CollectionSpec(
        EntityKind.house_teams, "teams.json", True, TypeAdapter(int),
    ),
    EntityKind.users: CollectionSpec(
        EntityKind.users, "users.json", False, TypeAdapter(UserEntry), migrate=migrate_users,
    ),
    EntityKind.identities: CollectionSpec(
        EntityKind.identities, "identities.json", False, TypeAdapter(IdentityMapping),
    ),
}
