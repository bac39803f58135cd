"""Identity resolution: external auth subject -> persistent UserEntry.

Lookup order:
1. direct identity mapping
2. existing user with the same email (a new mapping is linked)
3. brand-new user (the very first one becomes admin when enabled)

Creating a user or a mapping goes through the change lock like any other
mutation, and is re-checked once the lock is held so two first requests
from the same subject produce a single user.
"""
import logging
import uuid
from typing import Optional

from field_scheduler.core.errors import PermissionDeniedError
from field_scheduler.models.log_entry import IdentityLog, LogType, UserLog
from field_scheduler.models.user import ADMIN, IdentityMapping, UserEntry
from field_scheduler.schemas.user import AuthIdentity
from field_scheduler.services.collections import EntityKind
from field_scheduler.services.state import AppState
from field_scheduler.util.timeutil import utcnow

logger = logging.getLogger(__name__)


def find_user(state: AppState, user_id: str) -> Optional[UserEntry]:
    return next((u for u in state.users if u.id == user_id), None)


def _lookup(state: AppState, subject: str) -> Optional[UserEntry]:
    mapping = next((m for m in state.identities if m.external_id == subject), None)
    if mapping is None:
        return None
    user = find_user(state, mapping.user_id)
    if user is None:
        raise PermissionDeniedError("User not found")
    return user


def _match_email(state: AppState, email: Optional[str]) -> Optional[UserEntry]:
    if not email:
        return None
    wanted = email.strip().lower()
    return next((u for u in state.users if u.email and u.email.strip().lower() == wanted), None)


def _check_enabled(user: UserEntry) -> UserEntry:
    if user.disabled:
        raise PermissionDeniedError("User disabled")
    return user


async def resolve_user(
    state: AppState,
    identity: Optional[AuthIdentity],
    user_agent: str,
    ip: str,
) -> UserEntry:
    if identity is None or not identity.subject:
        raise PermissionDeniedError("Not authenticated")

    user = _lookup(state, identity.subject)
    if user is not None:
        return _check_enabled(user)
    return _check_enabled(await _register(state, identity, user_agent, ip))


async def _register(state: AppState, identity: AuthIdentity, user_agent: str, ip: str) -> UserEntry:
    release = await state.lock.acquire()
    try:
        user = _lookup(state, identity.subject)
        if user is not None:
            release()
            return user

        now = utcnow()
        persist = [EntityKind.identities]
        user = _match_email(state, identity.email)
        if user is not None:
            if user.disabled:
                release()
                return user
            entry = IdentityLog(
                type=LogType.identity_link.value,
                timestamp=now, ip=ip, user_agent=user_agent, user_id=user.id,
                external_id=identity.subject, subject_id=user.id,
            )
            logger.info("Linked identity %s to existing user %s by email", identity.subject, user.id)
        else:
            teams = ADMIN if state.settings.FIRST_USER_IS_ADMIN and not state.users else []
            user = UserEntry(
                id=str(uuid.uuid4()),
                name=identity.name or identity.email or "Unknown",
                display_name=identity.display_name,
                created=now,
                updated=now,
                teams=teams,
                email=identity.email or "",
                image=identity.image or "",
            )
            state.users.append(user)
            persist.append(EntityKind.users)
            entry = UserLog(
                type=LogType.user_add.value,
                timestamp=now, ip=ip, user_agent=user_agent, user_id=user.id,
                subject_id=user.id, name=user.name, teams=user.teams,
            )
            if teams == ADMIN:
                logger.info("First user is admin: %s", user.name)
            logger.info("Created user %s (%s)", user.id, user.name)

        state.identities.append(IdentityMapping(external_id=identity.subject, user_id=user.id, created=now))
    except BaseException:
        release()
        raise

    await state.commit(release, entry, persist)
    return user
