"""Session-scoped state and identity transitions.

History and pins belong to exactly one SessionContext, and a context belongs
to exactly one identity (or to no identity at all). SessionBridge consumes
identity-established / identity-lost events from the external auth provider
and rebuilds the context on every change, so nothing cached for one user
survives into another user's session.
"""

import asyncio
from typing import Any, Callable, Mapping, Optional

from pantry_chef.models.models import AnalysisOutcome, AnalysisRequest, HistoryEntry, Recipe, UserSession
from pantry_chef.services.history import ResultSynchronizer
from pantry_chef.services.pins import PinLedger
from pantry_chef.services.store import RemoteStore
from pantry_chef.utils.logger import logger

ContextListener = Callable[["SessionContext"], None]


class SessionContext:
    """History and pinned set bound to one (possibly absent) session."""

    def __init__(self, store: Optional[RemoteStore] = None, session: Optional[UserSession] = None) -> None:
        self.session = session
        self.history = ResultSynchronizer(store)
        self.pins = PinLedger(store)
        self.active = True

    async def commit(self, outcome: AnalysisOutcome, request: AnalysisRequest) -> Optional[HistoryEntry]:
        return await self.history.commit(outcome, request, self.session)

    async def toggle_pin(self, recipe: Recipe) -> bool:
        return await self.pins.toggle(recipe, self.session)

    async def load_remote(self) -> None:
        """Fetch the session's full remote history and pin set (remote wins at login)."""
        if self.session is None:
            return
        await asyncio.gather(self.history.load(self.session), self.pins.load(self.session))
        if not self.active:
            # Torn down while the fetch was in flight
            self.history.clear()
            self.pins.clear()

    def close(self) -> None:
        self.active = False
        self.history.clear()
        self.pins.clear()


class SessionBridge:
    """Turns identity transitions into context teardown and rebuild."""

    def __init__(self, store: Optional[RemoteStore] = None) -> None:
        self.store = store
        self.context = SessionContext(store)
        self._listeners: list[ContextListener] = []

    @property
    def session(self) -> Optional[UserSession]:
        return self.context.session

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """Call ``listener`` with every new context. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def identity_established(
        self,
        identity: UserSession | Mapping[str, Any],
        access_token: Optional[str] = None,
    ) -> SessionContext:
        """Start a fresh context for the identity and load its remote state."""
        session = identity if isinstance(identity, UserSession) else UserSession.from_identity(identity, access_token)
        context = SessionContext(self.store, session)
        self._replace(context)
        logger.info(f"Session established for {session.display_name}", extra={"user_id": session.id})
        await context.load_remote()
        return context

    def identity_lost(self) -> SessionContext:
        """Purge the current context and continue anonymously."""
        previous = self.session
        context = SessionContext(self.store)
        self._replace(context)
        if previous is not None:
            logger.info("Session ended, local history and pins cleared", extra={"user_id": previous.id})
        return context

    def _replace(self, context: SessionContext) -> None:
        self.context.close()
        self.context = context
        for listener in list(self._listeners):
            listener(context)
