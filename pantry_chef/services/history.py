"""Result synchronizer: successful analyses become history entries.

Local history is authoritative for what the user has seen. Entries are
prepended (newest first) the moment an analysis commits. The remote insert
happens afterwards and its failure is logged, never rolled back. Remote
history replaces local history only at login time.
"""

import time
import uuid
from typing import Callable, Optional

from pydantic import ValidationError

from pantry_chef.models.models import (
    AnalysisOutcome,
    AnalysisRequest,
    HistoryEntry,
    RemoteStoreError,
    SuccessOutcome,
    UserSession,
)
from pantry_chef.services.store import RemoteStore
from pantry_chef.utils.logger import logger


def _now_ms() -> int:
    return int(time.time() * 1000)


class ResultSynchronizer:
    """Owns the in-memory history of one session context."""

    def __init__(self, store: Optional[RemoteStore] = None, clock: Callable[[], int] = _now_ms) -> None:
        self._store = store
        self._clock = clock
        self._entries: list[HistoryEntry] = []

    @property
    def entries(self) -> list[HistoryEntry]:
        """History, most recent first (a copy)."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        return next((entry for entry in self._entries if entry.id == entry_id), None)

    async def commit(
        self,
        outcome: AnalysisOutcome,
        request: AnalysisRequest,
        session: Optional[UserSession] = None,
    ) -> Optional[HistoryEntry]:
        """Record a successful outcome.

        Unclear outcomes and successes without recipes are displayed by the
        caller but never recorded here.

        Args:
            outcome: The outcome to record.
            request: The request it answers; supplies query type and preview.
            session: Current session; the entry is mirrored remotely only when present.

        Returns:
            The new entry, or None when nothing was recorded.
        """
        if not isinstance(outcome, SuccessOutcome) or not outcome.recipes:
            logger.debug(f"Not recording {outcome.status} outcome with {len(outcome.recipes)} recipe(s)")
            return None

        entry = HistoryEntry(
            id=uuid.uuid4().hex,
            timestamp=self._clock(),
            query_type=request.query_type,
            query_preview=request.query_preview,
            recipes=outcome.recipes,
        )
        self._entries.insert(0, entry)
        logger.info(f"History entry added ({entry.query_type}: {entry.query_preview[:40]!r})")

        if session is not None and self._store is not None:
            try:
                await self._store.insert_history(session.id, entry, access_token=session.access_token)
            except RemoteStoreError as e:
                logger.warning(f"Remote history insert failed, keeping local entry: {e}", extra={"user_id": session.id})

        return entry

    async def load(self, session: UserSession) -> None:
        """Replace local history with the user's remote history.

        Local history is emptied first, so a failed fetch leaves it empty
        rather than stale. Rows that do not validate are skipped.
        """
        self.clear()
        if self._store is None:
            return

        try:
            rows = await self._store.fetch_history(session.id, access_token=session.access_token)
        except RemoteStoreError as e:
            logger.warning(f"Remote history fetch failed: {e}", extra={"user_id": session.id})
            return

        entries = []
        for row in rows:
            try:
                entries.append(HistoryEntry.from_row(row))
            except (ValidationError, KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed history row {row.get('id')}: {e}", extra={"user_id": session.id})

        entries.sort(key=lambda entry: entry.timestamp, reverse=True)
        self._entries = entries
        logger.info(f"Loaded {len(entries)} history entries", extra={"user_id": session.id})

    def clear(self) -> None:
        self._entries = []
