"""Per-user remote store for history, pinned recipes and feedback.

RemoteStore is the contract the synchronizers depend on: whole-collection reads
at login time, single-row inserts/deletes afterwards, no partial updates.
SupabaseStore implements it over Supabase's PostgREST interface with aiohttp.

Tables:
- history:         user_id, query_type, query_preview, recipes (json), timestamp
- pinned_recipes:  user_id, recipe_data (json)
- feedback:        user_id (nullable), content, user_email, timestamp
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

import aiohttp

from pantry_chef.models.models import FeedbackEntry, HistoryEntry, Recipe, RemoteStoreError
from pantry_chef.utils.config import config
from pantry_chef.utils.logger import logger

HISTORY_TABLE = "history"
PINS_TABLE = "pinned_recipes"
FEEDBACK_TABLE = "feedback"


class RemoteStore(ABC):
    """Remote persistence keyed by user id. Every method may raise RemoteStoreError."""

    @abstractmethod
    async def fetch_history(self, user_id: str, access_token: Optional[str] = None) -> list[dict]:
        """All history rows for the user, newest first."""

    @abstractmethod
    async def insert_history(self, user_id: str, entry: HistoryEntry, access_token: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def fetch_pins(self, user_id: str, access_token: Optional[str] = None) -> list[dict]:
        """All pinned recipe payloads (wire format) for the user."""

    @abstractmethod
    async def insert_pin(self, user_id: str, recipe: Recipe, access_token: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def delete_pin(self, user_id: str, recipe_id: str, access_token: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def insert_feedback(self, entry: FeedbackEntry, access_token: Optional[str] = None) -> None:
        ...


class SupabaseStore(RemoteStore):
    """RemoteStore backed by Supabase REST (PostgREST)."""

    def __init__(self, url: str, anon_key: str, timeout: Optional[float] = None) -> None:
        if not url or not anon_key:
            raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required")
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.anon_key = anon_key
        self.timeout = aiohttp.ClientTimeout(total=timeout or config.REMOTE_TIMEOUT_SECONDS)

    def _headers(self, access_token: Optional[str]) -> dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {access_token or self.anon_key}",
            "Content-Type": "application/json",
            "Prefer": "return=minimal",
        }

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        payload: Any = None,
        access_token: Optional[str] = None,
    ) -> Any:
        """Issue one PostgREST call; returns decoded JSON for reads, None otherwise."""
        url = f"{self.base_url}/{table}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method, url, params=params, json=payload, headers=self._headers(access_token)
                ) as response:
                    if response.status >= 400:
                        detail = await response.text()
                        raise RemoteStoreError(f"{method} {table} failed with HTTP {response.status}: {detail[:200]}")
                    if method == "GET":
                        return await response.json()
                    return None
        except aiohttp.ClientError as e:
            raise RemoteStoreError(f"{method} {table} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise RemoteStoreError(f"{method} {table} timed out") from e

    async def fetch_history(self, user_id: str, access_token: Optional[str] = None) -> list[dict]:
        rows = await self._request(
            "GET",
            HISTORY_TABLE,
            params={"select": "*", "user_id": f"eq.{user_id}", "order": "timestamp.desc"},
            access_token=access_token,
        )
        return rows or []

    async def insert_history(self, user_id: str, entry: HistoryEntry, access_token: Optional[str] = None) -> None:
        await self._request("POST", HISTORY_TABLE, payload=entry.to_row(user_id), access_token=access_token)
        logger.debug(f"Inserted history entry {entry.id}", extra={"user_id": user_id})

    async def fetch_pins(self, user_id: str, access_token: Optional[str] = None) -> list[dict]:
        rows = await self._request(
            "GET",
            PINS_TABLE,
            params={"select": "*", "user_id": f"eq.{user_id}"},
            access_token=access_token,
        )
        return [row["recipe_data"] for row in rows or [] if row.get("recipe_data")]

    async def insert_pin(self, user_id: str, recipe: Recipe, access_token: Optional[str] = None) -> None:
        await self._request(
            "POST",
            PINS_TABLE,
            payload={"user_id": user_id, "recipe_data": recipe.to_wire()},
            access_token=access_token,
        )

    async def delete_pin(self, user_id: str, recipe_id: str, access_token: Optional[str] = None) -> None:
        await self._request(
            "DELETE",
            PINS_TABLE,
            params={"user_id": f"eq.{user_id}", "recipe_data->>id": f"eq.{recipe_id}"},
            access_token=access_token,
        )

    async def insert_feedback(self, entry: FeedbackEntry, access_token: Optional[str] = None) -> None:
        await self._request("POST", FEEDBACK_TABLE, payload=entry.to_row(), access_token=access_token)


def create_store() -> Optional[RemoteStore]:
    """Build the configured remote store, or None when remote persistence is off."""
    if not config.remote_store_enabled:
        logger.info("Remote store not configured - history and pins stay local")
        return None
    logger.info("Using Supabase remote store")
    return SupabaseStore(config.SUPABASE_URL, config.SUPABASE_ANON_KEY)
