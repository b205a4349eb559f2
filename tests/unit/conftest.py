"""Shared fixtures for unit tests: recipe builders and an in-memory remote store."""

import asyncio
from typing import Optional

import pytest

from pantry_chef.models.models import (
    FeedbackEntry,
    HistoryEntry,
    Recipe,
    RemoteStoreError,
    SuccessOutcome,
    UserSession,
)
from pantry_chef.services.store import RemoteStore


def build_recipe(recipe_id: str = "r1", **overrides) -> Recipe:
    fields = {
        "id": recipe_id,
        "title": f"Dish {recipe_id}",
        "cuisine": "Italian",
        "description": "Simple and quick.",
        "ingredients": ["tomato", "basil"],
        "instructions": ["Chop", "Serve"],
        "prep_time": "10 mins",
    }
    fields.update(overrides)
    return Recipe(**fields)


class InMemoryStore(RemoteStore):
    """RemoteStore double. Add method names to ``failing`` to make them raise.

    When ``gate`` is set, fetches wait on it, which lets tests interleave
    identity changes with an in-flight login load.
    """

    def __init__(self) -> None:
        self.history_rows: dict[str, list[dict]] = {}
        self.pin_rows: dict[str, list[dict]] = {}
        self.feedback: list[FeedbackEntry] = []
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str]] = []
        self.gate: Optional[asyncio.Event] = None

    async def _enter(self, method: str, user_id: str) -> None:
        self.calls.append((method, user_id))
        if self.gate is not None and method.startswith("fetch"):
            await self.gate.wait()
        if method in self.failing:
            raise RemoteStoreError(f"{method} unavailable")

    async def fetch_history(self, user_id, access_token=None):
        await self._enter("fetch_history", user_id)
        return list(self.history_rows.get(user_id, []))

    async def insert_history(self, user_id, entry: HistoryEntry, access_token=None):
        await self._enter("insert_history", user_id)
        row = {"id": f"row-{len(self.calls)}", **entry.to_row(user_id)}
        self.history_rows.setdefault(user_id, []).insert(0, row)

    async def fetch_pins(self, user_id, access_token=None):
        await self._enter("fetch_pins", user_id)
        return list(self.pin_rows.get(user_id, []))

    async def insert_pin(self, user_id, recipe: Recipe, access_token=None):
        await self._enter("insert_pin", user_id)
        self.pin_rows.setdefault(user_id, []).append(recipe.to_wire())

    async def delete_pin(self, user_id, recipe_id, access_token=None):
        await self._enter("delete_pin", user_id)
        self.pin_rows[user_id] = [row for row in self.pin_rows.get(user_id, []) if row.get("id") != recipe_id]

    async def insert_feedback(self, entry: FeedbackEntry, access_token=None):
        await self._enter("insert_feedback", entry.user_id or "guest")
        self.feedback.append(entry)


@pytest.fixture
def make_recipe():
    return build_recipe


@pytest.fixture
def success_outcome():
    return SuccessOutcome(
        recipes=[build_recipe("r1"), build_recipe("r2", cuisine="Indian")],
        detected_ingredients=["tomato", "basil"],
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def user_session() -> UserSession:
    return UserSession(
        id="user-1",
        display_name="Ada",
        email="ada@example.com",
        avatar_url="https://example.com/ada.png",
        access_token="token-1",
    )
