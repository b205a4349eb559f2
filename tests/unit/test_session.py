"""Unit tests for session contexts and identity transitions."""

import asyncio

import pytest

from pantry_chef.models.models import TextRequest, UserSession
from pantry_chef.services.session import SessionBridge, SessionContext


def history_row(row_id, preview, make_recipe):
    return {
        "id": row_id,
        "timestamp": "2024-01-01T00:00:00Z",
        "query_type": "text",
        "query_preview": preview,
        "recipes": [make_recipe().to_wire()],
    }


class TestSessionContext:
    @pytest.mark.asyncio
    async def test_anonymous_context_has_no_remote_load(self, store):
        context = SessionContext(store)
        await context.load_remote()
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_close_purges_state(self, success_outcome, make_recipe):
        context = SessionContext()
        await context.commit(success_outcome, TextRequest(text="x"))
        await context.toggle_pin(make_recipe())

        context.close()

        assert context.active is False
        assert len(context.history) == 0
        assert len(context.pins) == 0


class TestSessionBridge:
    """Tests for rebuilding state on identity changes."""

    @pytest.mark.asyncio
    async def test_login_loads_remote_state(self, store, user_session, make_recipe):
        store.history_rows["user-1"] = [history_row(1, "remote", make_recipe)]
        store.pin_rows["user-1"] = [make_recipe("p1").to_wire()]
        bridge = SessionBridge(store)

        context = await bridge.identity_established(user_session)

        assert bridge.context is context
        assert bridge.session == user_session
        assert [entry.query_preview for entry in context.history.entries] == ["remote"]
        assert context.pins.is_pinned("p1")

    @pytest.mark.asyncio
    async def test_login_discards_anonymous_state(self, store, user_session, success_outcome, make_recipe):
        bridge = SessionBridge(store)
        await bridge.context.commit(success_outcome, TextRequest(text="guest query"))
        await bridge.context.toggle_pin(make_recipe("guest-pin"))

        context = await bridge.identity_established(user_session)

        assert context.history.entries == []
        assert not context.pins.is_pinned("guest-pin")

    @pytest.mark.asyncio
    async def test_login_from_identity_mapping(self, store):
        bridge = SessionBridge(store)
        await bridge.identity_established({"id": "u9", "email": "bo@example.com"}, access_token="tok")

        assert bridge.session.display_name == "bo"
        assert store.calls and all(user_id == "u9" for _, user_id in store.calls)

    @pytest.mark.asyncio
    async def test_logout_clears_everything(self, store, user_session, make_recipe):
        store.history_rows["user-1"] = [history_row(1, "remote", make_recipe)]
        bridge = SessionBridge(store)
        old_context = await bridge.identity_established(user_session)

        new_context = bridge.identity_lost()

        assert bridge.session is None
        assert new_context.history.entries == []
        assert old_context.history.entries == []
        assert old_context.active is False

    @pytest.mark.asyncio
    async def test_user_switch_never_shows_previous_user(self, store, user_session, make_recipe):
        store.history_rows["user-1"] = [history_row(1, "ada's", make_recipe)]
        store.history_rows["user-2"] = [history_row(2, "bo's", make_recipe)]
        other = UserSession(id="user-2", display_name="Bo", email="bo@example.com", avatar_url="https://a")
        bridge = SessionBridge(store)

        await bridge.identity_established(user_session)
        context = await bridge.identity_established(other)

        assert [entry.query_preview for entry in context.history.entries] == ["bo's"]

    @pytest.mark.asyncio
    async def test_logout_during_login_load(self, store, user_session, make_recipe):
        """Test that a load finishing after logout does not resurrect the old user's data."""
        store.history_rows["user-1"] = [history_row(1, "remote", make_recipe)]
        store.gate = asyncio.Event()
        bridge = SessionBridge(store)

        login = asyncio.create_task(bridge.identity_established(user_session))
        await asyncio.sleep(0)
        bridge.identity_lost()
        store.gate.set()
        stale_context = await login

        assert stale_context.history.entries == []
        assert bridge.session is None
        assert bridge.context.history.entries == []

    @pytest.mark.asyncio
    async def test_listeners_notified_and_unsubscribed(self, user_session):
        bridge = SessionBridge()
        seen = []
        unsubscribe = bridge.subscribe(seen.append)

        await bridge.identity_established(user_session)
        unsubscribe()
        bridge.identity_lost()

        assert len(seen) == 1
        assert seen[0].session == user_session
