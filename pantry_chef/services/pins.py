"""Pin ledger: the user's bookmarked recipes.

Toggles mutate the local set first, unconditionally, and then mirror the
change (insert or delete by user id + recipe id) to the remote store when a
session exists. A failed mirror does not revert the local state; the remote
copy catches up at the next full refetch.
"""

from typing import Optional

from pydantic import ValidationError

from pantry_chef.models.models import Recipe, RemoteStoreError, UserSession
from pantry_chef.services.store import RemoteStore
from pantry_chef.utils.logger import logger


class PinLedger:
    def __init__(self, store: Optional[RemoteStore] = None) -> None:
        self._store = store
        self._pins: dict[str, Recipe] = {}

    @property
    def recipes(self) -> list[Recipe]:
        """Pinned recipes in pin order."""
        return list(self._pins.values())

    def __len__(self) -> int:
        return len(self._pins)

    def __contains__(self, recipe_id: object) -> bool:
        return recipe_id in self._pins

    def is_pinned(self, recipe_id: str) -> bool:
        return recipe_id in self._pins

    async def toggle(self, recipe: Recipe, session: Optional[UserSession] = None) -> bool:
        """Pin an unpinned recipe or unpin a pinned one.

        Returns:
            True if the recipe is pinned after the call.
        """
        pinned = recipe.id not in self._pins
        if pinned:
            self._pins[recipe.id] = recipe
        else:
            del self._pins[recipe.id]
        logger.info(f"{'Pinned' if pinned else 'Unpinned'} recipe {recipe.id} ({recipe.title})")

        if session is None or self._store is None:
            return pinned

        try:
            if pinned:
                await self._store.insert_pin(session.id, recipe, access_token=session.access_token)
            else:
                await self._store.delete_pin(session.id, recipe.id, access_token=session.access_token)
        except RemoteStoreError as e:
            logger.warning(f"Remote pin mirror failed for {recipe.id}, keeping local state: {e}", extra={"user_id": session.id})

        return pinned

    async def load(self, session: UserSession) -> None:
        """Replace the local set with the user's remote pins (empty on failure)."""
        self.clear()
        if self._store is None:
            return

        try:
            payloads = await self._store.fetch_pins(session.id, access_token=session.access_token)
        except RemoteStoreError as e:
            logger.warning(f"Remote pin fetch failed: {e}", extra={"user_id": session.id})
            return

        pins: dict[str, Recipe] = {}
        for payload in payloads:
            try:
                recipe = Recipe.model_validate(payload)
            except ValidationError as e:
                logger.warning(f"Skipping malformed pinned recipe: {e}", extra={"user_id": session.id})
                continue
            pins[recipe.id] = recipe
        self._pins = pins
        logger.info(f"Loaded {len(pins)} pinned recipe(s)", extra={"user_id": session.id})

    def clear(self) -> None:
        self._pins = {}
