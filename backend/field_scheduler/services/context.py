"""Context: per-request transaction façade over the shared AppState.

Every change follows the same path:
1. permission / timeframe checks (no lock)
2. existence or duplicate precondition against the live collection (no lock)
3. acquire the change lock
4. re-check the precondition, since another change may have committed while
   this one waited; a lost race raises ConflictError / NotFoundError
5. mutate the collection in place and build the log entry
6. AppState.commit(): log append, notification and file rewrite run
   concurrently; the lock is released according to CONTINUE_ON_ERROR
7. return the committed record

Reads never take the lock. All of them run on the single event loop, so a
list comprehension over a collection can't observe a half-applied change.
"""
import logging
from datetime import date
from typing import Any, Callable, Optional

from field_scheduler.core.errors import (
    ConflictError,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from field_scheduler.models.blackout import Blackout
from field_scheduler.models.holiday import Holiday
from field_scheduler.models.log_entry import (
    BlackoutLog,
    HolidayLog,
    HouseTeamLog,
    LogType,
    ReservationLog,
    SiteEventLog,
    UserLog,
)
from field_scheduler.models.reservation import Reservation, TeamFull
from field_scheduler.models.site_event import SiteEvent
from field_scheduler.models.user import ADMIN, Teams, UserEntry
from field_scheduler.schemas.blackout import BlackoutCreate, SiteEventCreate
from field_scheduler.schemas.holiday import HolidayCreate
from field_scheduler.schemas.reservation import ReservationCreate
from field_scheduler.schemas.user import AuthIdentity, UserUpdate
from field_scheduler.services import policy
from field_scheduler.services.collections import EntityKind
from field_scheduler.services.identity import find_user, resolve_user
from field_scheduler.services.state import AppState
from field_scheduler.util.timeutil import local_today, utcnow

logger = logging.getLogger(__name__)

Audit = dict[str, Any]


class Context:
    def __init__(self, state: AppState, user: UserEntry, user_agent: str, ip: str) -> None:
        self._state = state
        self._settings = state.settings
        self._user = user
        self._user_agent = user_agent
        self._ip = ip

    @classmethod
    async def create(
        cls,
        state: AppState,
        identity: Optional[AuthIdentity],
        user_agent: str,
        ip: str,
    ) -> "Context":
        """Resolve (or register) the caller once; every operation reuses it."""
        user = await resolve_user(state, identity, user_agent, ip)
        return cls(state, user, user_agent, ip)

    @property
    def user(self) -> UserEntry:
        return self._user

    def get_teams(self) -> Teams:
        return self._user.teams

    def get_name(self) -> str:
        return self._user.display_name or self._user.name

    # ── helpers ────────────────────────────────────────────────────

    def _audit(self) -> Audit:
        return {
            "timestamp": utcnow(),
            "ip": self._ip,
            "user_agent": self._user_agent,
            "user_id": self._user.id,
        }

    def _check_timeframe(self, day: date) -> None:
        policy.restrict_timeframe(
            self._user,
            day,
            self._settings.ADVANCE_RESERVATION_DAYS,
            local_today(self._settings.TIME_ZONE),
        )

    async def _apply(
        self,
        kind: EntityKind,
        recheck: Callable[[], None],
        mutate: Callable[[Audit], tuple[Any, Any]],
        notify: bool = True,
    ) -> Any:
        release = await self._state.lock.acquire()
        try:
            recheck()
            record, entry = mutate(self._audit())
        except BaseException:
            release()
            raise
        await self._state.commit(release, entry, [kind], (kind, record) if notify else None)
        return record

    def _find_reservation(self, day: date, slot: str, team: TeamFull) -> Optional[Reservation]:
        return next(
            (r for r in self._state.reservations
             if r.date == day and r.slot == slot and r.team == team and r.active),
            None,
        )

    def _find_blackout(self, day: date, slot: str) -> Optional[Blackout]:
        return next((b for b in self._state.blackouts if b.date == day and b.slot == slot and b.active), None)

    def _find_site_event(self, day: date) -> Optional[SiteEvent]:
        return next((e for e in self._state.site_events if e.date == day and e.active), None)

    @staticmethod
    def _require_active(record: Any, message: str) -> Callable[[], None]:
        def recheck() -> None:
            if not record.active:
                raise NotFoundError(message)
        return recheck

    # ── reservations ───────────────────────────────────────────────

    async def add_reservation(self, args: ReservationCreate) -> Reservation:
        policy.restrict_to_team(self._user, args.team, "Only team members can add reservations")
        self._check_timeframe(args.date)

        if self._find_reservation(args.date, args.slot, args.team):
            raise DuplicateError("Reservation already exists for this date and slot")

        def recheck() -> None:
            if self._find_reservation(args.date, args.slot, args.team):
                raise ConflictError("Reservation was taken by another change")

        def mutate(audit: Audit) -> tuple[Reservation, ReservationLog]:
            reservation = Reservation(
                date=args.date,
                slot=args.slot,
                team=args.team,
                priority=args.priority,
                notes=args.notes,
                created=audit["timestamp"],
                user_id=self._user.id,
            )
            self._state.reservations.append(reservation)
            entry = ReservationLog(
                type=LogType.created.value, **audit,
                date=args.date, slot=args.slot, team=args.team, notes=args.notes,
            )
            return reservation, entry

        reservation = await self._apply(EntityKind.reservations, recheck, mutate)
        logger.info("Reservation %s added: %s %s team %s", reservation.id, args.date, args.slot, args.team)
        return reservation

    async def remove_reservation(self, reservation_id: str, reason: Optional[str] = None) -> Reservation:
        reservation = next(
            (r for r in self._state.reservations if r.id == reservation_id and r.active), None
        )
        if reservation is None:
            raise NotFoundError("Reservation not found")

        policy.restrict_to_team(self._user, reservation.team, "Only team members can remove reservations")
        self._check_timeframe(reservation.date)

        def mutate(audit: Audit) -> tuple[Reservation, ReservationLog]:
            reservation.abandoned = audit["timestamp"]
            reservation.user_id = self._user.id
            if reason:
                reservation.notes = reason
            entry = ReservationLog(
                type=LogType.deleted.value, **audit,
                date=reservation.date, slot=reservation.slot, team=reservation.team, notes=reason,
            )
            return reservation, entry

        await self._apply(
            EntityKind.reservations,
            self._require_active(reservation, "Reservation not found"),
            mutate,
        )
        logger.info("Reservation %s abandoned by %s", reservation_id, self._user.id)
        return reservation

    def list_reservations(self, day: date) -> list[Reservation]:
        return [r for r in self._state.reservations if r.date == day and r.active]

    # ── blackouts ──────────────────────────────────────────────────

    async def add_blackout(self, args: BlackoutCreate) -> Blackout:
        policy.restrict_to_admin(self._user, "Only admins can add blackouts")
        if self._find_blackout(args.date, args.slot):
            raise DuplicateError("Blackout already exists for this date and slot")

        def recheck() -> None:
            if self._find_blackout(args.date, args.slot):
                raise ConflictError("Blackout was added by another change")

        def mutate(audit: Audit) -> tuple[Blackout, BlackoutLog]:
            blackout = Blackout(
                date=args.date, slot=args.slot, reason=args.reason,
                created=audit["timestamp"], user_id=self._user.id,
            )
            self._state.blackouts.append(blackout)
            entry = BlackoutLog(
                type=LogType.blackout_add.value, **audit,
                date=args.date, slot=args.slot, reason=args.reason,
            )
            return blackout, entry

        return await self._apply(EntityKind.blackouts, recheck, mutate)

    async def remove_blackout(self, day: date, slot: str) -> Blackout:
        policy.restrict_to_admin(self._user, "Only admins can remove blackouts")
        blackout = self._find_blackout(day, slot)
        if blackout is None:
            raise NotFoundError("Blackout not found")

        def mutate(audit: Audit) -> tuple[Blackout, BlackoutLog]:
            blackout.deleted = audit["timestamp"]
            blackout.user_id = self._user.id
            entry = BlackoutLog(type=LogType.blackout_remove.value, **audit, date=day, slot=slot)
            return blackout, entry

        return await self._apply(
            EntityKind.blackouts, self._require_active(blackout, "Blackout not found"), mutate
        )

    def list_blackouts(self, day: Optional[date] = None) -> list[Blackout]:
        return [b for b in self._state.blackouts if b.active and (day is None or b.date == day)]

    # ── site events ────────────────────────────────────────────────

    async def add_site_event(self, args: SiteEventCreate) -> SiteEvent:
        policy.restrict_to_admin(self._user, "Only admins can add site events")
        if self._find_site_event(args.date):
            raise DuplicateError("Site event already exists for this date")

        def recheck() -> None:
            if self._find_site_event(args.date):
                raise ConflictError("Site event was added by another change")

        def mutate(audit: Audit) -> tuple[SiteEvent, SiteEventLog]:
            event = SiteEvent(
                date=args.date, notes=args.notes, created=audit["timestamp"], user_id=self._user.id,
            )
            self._state.site_events.append(event)
            entry = SiteEventLog(
                type=LogType.site_event_add.value, **audit, date=args.date, notes=args.notes,
            )
            return event, entry

        return await self._apply(EntityKind.site_events, recheck, mutate)

    async def remove_site_event(self, day: date) -> SiteEvent:
        policy.restrict_to_admin(self._user, "Only admins can remove site events")
        event = self._find_site_event(day)
        if event is None:
            raise NotFoundError("Site event not found")

        def mutate(audit: Audit) -> tuple[SiteEvent, SiteEventLog]:
            event.deleted = audit["timestamp"]
            event.user_id = self._user.id
            entry = SiteEventLog(type=LogType.site_event_remove.value, **audit, date=day)
            return event, entry

        return await self._apply(
            EntityKind.site_events, self._require_active(event, "Site event not found"), mutate
        )

    def list_site_events(self) -> list[SiteEvent]:
        return [e for e in self._state.site_events if e.active]

    # ── holidays ───────────────────────────────────────────────────

    async def add_holiday(self, args: HolidayCreate) -> Holiday:
        policy.restrict_to_admin(self._user, "Only admins can add holidays")

        def mutate(audit: Audit) -> tuple[Holiday, HolidayLog]:
            holiday = Holiday(
                name=args.name, date=args.date, icon=args.icon, url=args.url,
                created=audit["timestamp"], user_id=self._user.id,
            )
            self._state.holidays.append(holiday)
            entry = HolidayLog(
                type=LogType.holiday_add.value, **audit,
                holiday_id=holiday.id, name=holiday.name, date=holiday.date,
            )
            return holiday, entry

        return await self._apply(EntityKind.holidays, lambda: None, mutate)

    async def remove_holiday(self, holiday_id: str) -> Holiday:
        policy.restrict_to_admin(self._user, "Only admins can remove holidays")
        holiday = next((h for h in self._state.holidays if h.id == holiday_id and h.active), None)
        if holiday is None:
            raise NotFoundError("Holiday not found")

        def mutate(audit: Audit) -> tuple[Holiday, HolidayLog]:
            holiday.deleted = audit["timestamp"]
            holiday.user_id = self._user.id
            entry = HolidayLog(
                type=LogType.holiday_remove.value, **audit,
                holiday_id=holiday.id, name=holiday.name, date=holiday.date,
            )
            return holiday, entry

        return await self._apply(
            EntityKind.holidays, self._require_active(holiday, "Holiday not found"), mutate
        )

    def get_holidays(self) -> list[Holiday]:
        return sorted((h for h in self._state.holidays if h.active), key=lambda h: h.date)

    # ── users & teams ──────────────────────────────────────────────

    def get_users(self) -> list[UserEntry]:
        policy.restrict_to_admin(self._user, "Only admins can list users")
        return list(self._state.users)

    async def get_logs(self) -> list[Any]:
        policy.restrict_to_admin(self._user, "Only admins can read logs")
        return await self._state.store.read_logs()

    def _check_team_join(self, team: int) -> None:
        user = self._user
        if user.teams == ADMIN:
            raise ValidationError("Admins cannot be on teams")
        if team in user.teams:
            raise DuplicateError("User already on team")
        members = [u for u in self._state.users if u.teams != ADMIN and team in u.teams]
        if members:
            raise PermissionDeniedError("Team already has members. Please contact an admin to join it.")
        if team not in self._state.house_teams:
            raise PermissionDeniedError("Only house teams can be added. Please contact an admin.")

    async def add_team(self, team: int) -> UserEntry:
        """Self-service registration of the caller onto an unclaimed house team."""
        self._check_team_join(team)

        def mutate(audit: Audit) -> tuple[UserEntry, UserLog]:
            self._user.teams.append(team)
            self._user.updated = audit["timestamp"]
            entry = UserLog(
                type=LogType.user_update.value, **audit,
                subject_id=self._user.id, name=self._user.name, teams=list(self._user.teams),
            )
            return self._user, entry

        user = await self._apply(
            EntityKind.users, lambda: self._check_team_join(team), mutate, notify=False
        )
        logger.info("User %s joined team %s", user.id, team)
        return user

    async def update_user(self, user_id: str, update: UserUpdate) -> UserEntry:
        """Admin edit of another user's teams, disabled flag or display name."""
        policy.restrict_to_admin(self._user, "Only admins can update users")
        target = find_user(self._state, user_id)
        if target is None:
            raise NotFoundError("User not found")
        if target.id == self._user.id and (update.disabled or (update.teams is not None and update.teams != ADMIN)):
            raise ValidationError("Admins cannot demote or disable themselves")

        def mutate(audit: Audit) -> tuple[UserEntry, UserLog]:
            if update.teams is not None:
                target.teams = update.teams if update.teams == ADMIN else list(update.teams)
            if update.disabled is not None:
                target.disabled = update.disabled or None
            if update.display_name is not None:
                target.display_name = update.display_name or None
            target.updated = audit["timestamp"]
            entry = UserLog(
                type=LogType.user_update.value, **audit,
                subject_id=target.id, name=target.name,
                teams=target.teams if target.teams == ADMIN else list(target.teams),
                disabled=target.disabled,
            )
            return target, entry

        user = await self._apply(EntityKind.users, lambda: None, mutate, notify=False)
        logger.info("User %s updated by admin %s", user_id, self._user.id)
        return user

    async def add_house_team(self, team: int) -> list[int]:
        policy.restrict_to_admin(self._user, "Only admins can add house teams")
        if team in self._state.house_teams:
            raise DuplicateError("Team is already a house team")

        def recheck() -> None:
            if team in self._state.house_teams:
                raise ConflictError("Team was added by another change")

        def mutate(audit: Audit) -> tuple[int, HouseTeamLog]:
            self._state.house_teams.append(team)
            return team, HouseTeamLog(type=LogType.house_team_add.value, **audit, team=team)

        await self._apply(EntityKind.house_teams, recheck, mutate, notify=False)
        return list(self._state.house_teams)


def public_feed_data(state: AppState) -> dict[str, list[Any]]:
    """Shallow copies of every active record, for read-only exports such as calendar feeds."""
    return {
        "reservations": [r.model_copy() for r in state.reservations if r.active],
        "blackouts": [b.model_copy() for b in state.blackouts if b.active],
        "site_events": [e.model_copy() for e in state.site_events if e.active],
        "holidays": [h.model_copy() for h in state.holidays if h.active],
    }
