"""Process-wide application state: the entity collections and their lock.

One AppState is built by the host at startup and handed to every Context.
Collections are plain lists shared by reference; they are only mutated while
``lock`` is held, and records are soft-deleted rather than removed.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Any, Iterable, Optional

from field_scheduler.config import Settings
from field_scheduler.models.base import Record
from field_scheduler.models.blackout import Blackout
from field_scheduler.models.holiday import Holiday
from field_scheduler.models.reservation import Reservation
from field_scheduler.models.site_event import SiteEvent
from field_scheduler.models.user import IdentityMapping, UserEntry
from field_scheduler.services.collections import COLLECTIONS, EntityKind, MigrationPolicy
from field_scheduler.services.notifier import ChangeNotifier
from field_scheduler.services.store import DurableStore
from field_scheduler.util.lock import Lock, Release
from field_scheduler.util.timeutil import local_year

logger = logging.getLogger(__name__)


class AppState:
    def __init__(
        self,
        settings: Settings,
        notifier: Optional[ChangeNotifier] = None,
        store: Optional[DurableStore] = None,
        year: Optional[int] = None,
    ) -> None:
        self.settings = settings
        self.year = year or local_year(settings.TIME_ZONE)
        self.store = store or DurableStore(
            settings.DATA_DIR,
            self.year,
            MigrationPolicy(
                disable_after=timedelta(days=settings.USER_DISABLE_AFTER_DAYS),
                expire_after=timedelta(days=settings.USER_EXPIRE_AFTER_DAYS),
            ),
            disable_writes=settings.DISABLE_WRITES,
        )
        self.notifier = notifier or ChangeNotifier()
        self.lock = Lock()
        self.collections: dict[EntityKind, list[Any]] = {kind: [] for kind in EntityKind}
        self.loaded = False

    @property
    def reservations(self) -> list[Reservation]:
        return self.collections[EntityKind.reservations]

    @property
    def blackouts(self) -> list[Blackout]:
        return self.collections[EntityKind.blackouts]

    @property
    def site_events(self) -> list[SiteEvent]:
        return self.collections[EntityKind.site_events]

    @property
    def holidays(self) -> list[Holiday]:
        return self.collections[EntityKind.holidays]

    @property
    def users(self) -> list[UserEntry]:
        return self.collections[EntityKind.users]

    @property
    def identities(self) -> list[IdentityMapping]:
        return self.collections[EntityKind.identities]

    @property
    def house_teams(self) -> list[int]:
        return self.collections[EntityKind.house_teams]

    async def load(self) -> None:
        """Read every collection from disk while holding the lock.

        On failure the lock is never released, so no change can run against
        a partially loaded state. The host is expected to exit.
        """
        release = await self.lock.acquire()
        kinds = list(EntityKind)
        results = await asyncio.gather(*(self.store.read_collection(kind) for kind in kinds))
        for kind, records in zip(kinds, results):
            target = self.collections[kind]
            if target:
                logger.warning("Reinitializing %s: %d existing items replaced", kind.value, len(target))
            target[:] = records

        # Bring already-connected observers up to date.
        jobs = [
            self.notify(kind, record)
            for kind in kinds
            if COLLECTIONS[kind].notify_hook
            for record in self.collections[kind]
        ]
        for result in await asyncio.gather(*jobs, return_exceptions=True):
            if isinstance(result, BaseException):
                logger.error("Startup notification failed: %r", result)

        self.loaded = True
        release()
        logger.info("Data initialization complete for %s", self.year)

    async def notify(self, kind: EntityKind, record: Any) -> None:
        hook = COLLECTIONS[kind].notify_hook
        if hook:
            await getattr(self.notifier, hook)(record)

    async def commit(
        self,
        release: Release,
        entry: Record,
        persist: Iterable[EntityKind],
        notify: Optional[tuple[EntityKind, Any]] = None,
    ) -> bool:
        """Log, notify and persist concurrently, then release per the fault policy.

        Returns True when every job succeeded.
        """
        jobs = [self.store.append_log(entry)]
        if notify is not None:
            jobs.append(self.notify(*notify))
        jobs.extend(self.store.write_collection(kind, self.collections[kind]) for kind in persist)

        ok = True
        for result in await asyncio.gather(*jobs, return_exceptions=True):
            if isinstance(result, BaseException):
                logger.error("Commit job failed: %r", result)
                ok = False
            elif result is False:
                ok = False

        if ok or self.settings.CONTINUE_ON_ERROR:
            release()
        else:
            logger.critical("Change lock held after a failed commit; changes are blocked until restart")
        return ok
