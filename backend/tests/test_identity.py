"""Tests for identity resolution: bootstrap admin, email linking, disabled users."""
import asyncio
import json

import pytest

from field_scheduler.core.errors import PermissionDeniedError
from field_scheduler.models.user import ADMIN, IdentityMapping
from field_scheduler.schemas.user import AuthIdentity
from field_scheduler.services.collections import EntityKind
from field_scheduler.services.context import Context
from field_scheduler.services.state import AppState
from tests.conftest import make_user


async def _ctx(state, subject, email=None, name=None) -> Context:
    identity = AuthIdentity(subject=subject, email=email, name=name)
    return await Context.create(state, identity, "pytest", "127.0.0.1")


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_first_user_admin_second_plain(self, state):
        first = await _ctx(state, "slack|1", "ada@example.com", "Ada")
        second = await _ctx(state, "slack|2", "bob@example.com", "Bob")

        assert first.get_teams() == ADMIN
        assert second.get_teams() == []
        assert first.get_name() == "Ada"
        assert len(state.users) == 2
        assert len(state.identities) == 2

    @pytest.mark.asyncio
    async def test_bootstrap_can_be_disabled(self, settings, notifier):
        settings.FIRST_USER_IS_ADMIN = False
        state = AppState(settings, notifier=notifier)
        first = await _ctx(state, "slack|1")
        assert first.get_teams() == []

    @pytest.mark.asyncio
    async def test_name_falls_back_to_email(self, state):
        ctx = await _ctx(state, "slack|1", email="ada@example.com")
        assert ctx.user.name == "ada@example.com"
        anon = await _ctx(state, "slack|2")
        assert anon.user.name == "Unknown"


class TestLookup:
    @pytest.mark.asyncio
    async def test_same_subject_same_user(self, state):
        a = await _ctx(state, "slack|1", "ada@example.com")
        b = await _ctx(state, "slack|1", "ada@example.com")
        assert a.user is b.user
        assert len(state.users) == 1
        assert len(state.identities) == 1

    @pytest.mark.asyncio
    async def test_new_subject_links_by_email(self, state):
        a = await _ctx(state, "slack|1", "Ada@Example.com")
        b = await _ctx(state, "google|9", "ada@example.com")
        assert b.user is a.user
        assert len(state.users) == 1
        assert {m.external_id for m in state.identities} == {"slack|1", "google|9"}

        log_types = [json.loads(l)["type"] for l in state.store.logs_path.read_text().splitlines()]
        assert log_types == ["userAdd", "identityLink"]

    @pytest.mark.asyncio
    async def test_concurrent_first_contact_creates_one_user(self, state):
        contexts = await asyncio.gather(*(_ctx(state, "slack|1") for _ in range(5)))
        assert len({id(c.user) for c in contexts}) == 1
        assert len(state.users) == 1
        assert len(state.identities) == 1

    @pytest.mark.asyncio
    async def test_users_and_mappings_persisted(self, state):
        ctx = await _ctx(state, "slack|1", "ada@example.com", "Ada")
        users = json.loads(state.store.path_for(EntityKind.users).read_text())
        mappings = json.loads(state.store.path_for(EntityKind.identities).read_text())
        assert users[0]["id"] == ctx.user.id
        assert users[0]["teams"] == "admin"
        assert mappings == [
            {"externalId": "slack|1", "userId": ctx.user.id, "created": mappings[0]["created"]}
        ]


class TestRejections:
    @pytest.mark.asyncio
    async def test_missing_identity(self, state):
        with pytest.raises(PermissionDeniedError, match="Not authenticated"):
            await Context.create(state, None, "pytest", "127.0.0.1")
        with pytest.raises(PermissionDeniedError, match="Not authenticated"):
            await _ctx(state, "")

    @pytest.mark.asyncio
    async def test_disabled_user(self, state):
        state.users.append(make_user("u1", [100], disabled=True))
        state.identities.append(IdentityMapping(external_id="slack|1", user_id="u1"))
        with pytest.raises(PermissionDeniedError, match="User disabled"):
            await _ctx(state, "slack|1")

    @pytest.mark.asyncio
    async def test_disabled_user_not_linked_by_email(self, state):
        state.users.append(make_user("u1", [100], disabled=True, email="ada@example.com"))
        with pytest.raises(PermissionDeniedError, match="User disabled"):
            await _ctx(state, "google|9", "ada@example.com")
        assert state.identities == []

    @pytest.mark.asyncio
    async def test_mapping_to_missing_user(self, state):
        state.identities.append(IdentityMapping(external_id="slack|1", user_id="ghost"))
        with pytest.raises(PermissionDeniedError, match="User not found"):
            await _ctx(state, "slack|1")
        assert not state.lock.locked
