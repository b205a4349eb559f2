"""PantryChef: the orchestration facade a front end talks to.

Data flow:
    capture -> normalize_capture() -> PantryChef.submit() -> AnalysisGateway.analyze()
            -> display state + SessionContext.commit()
    pin action -> PantryChef.toggle_pin() -> SessionContext.toggle_pin()
    auth events -> PantryChef.identity_established()/identity_lost() -> SessionBridge

Every submit is tagged with a generation number. Analyses are not cancelled.
A success is not recorded when a newer analysis has already been recorded,
and a completion is not displayed when a newer one is already on screen.
Completions from a session context torn down while in flight are dropped.
"""

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from pantry_chef.models.models import (
    AnalysisOutcome,
    AnalysisRequest,
    ClassifierError,
    FeedbackEntry,
    HistoryEntry,
    Recipe,
    RemoteStoreError,
    SpoilageWarning,
    UnclearOutcome,
    UserSession,
)
from pantry_chef.models.suggestions import SUGGESTED_RECIPES
from pantry_chef.services.gateway import AnalysisGateway
from pantry_chef.services.illustrations import IllustrationService
from pantry_chef.services.session import SessionBridge, SessionContext
from pantry_chef.services.store import RemoteStore
from pantry_chef.utils.logger import logger

RETRY_NOTICE = "Chef is busy! Please try again."


class DisplayState(BaseModel):
    """What the front end should show right now."""

    model_config = ConfigDict(frozen=True)

    outcome: Optional[AnalysisOutcome] = None
    recipes: List[Recipe] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def is_unclear(self) -> bool:
        return isinstance(self.outcome, UnclearOutcome)

    @property
    def unclear_message(self) -> Optional[str]:
        return self.outcome.message if isinstance(self.outcome, UnclearOutcome) else None

    @property
    def detected_ingredients(self) -> List[str]:
        return self.outcome.detected_ingredients if self.outcome is not None else []

    @property
    def spoilage_warnings(self) -> List[SpoilageWarning]:
        return self.outcome.spoilage_warnings if self.outcome is not None else []

    @property
    def is_empty(self) -> bool:
        return self.outcome is None and not self.recipes and self.error is None


class PantryChef:
    def __init__(
        self,
        gateway: AnalysisGateway,
        store: Optional[RemoteStore] = None,
        bridge: Optional[SessionBridge] = None,
        illustrator: Optional[IllustrationService] = None,
    ) -> None:
        self.gateway = gateway
        self.store = store
        self.bridge = bridge or SessionBridge(store)
        self.illustrator = illustrator
        self.display = DisplayState()
        self._issued_generation = 0
        self._displayed_generation = 0
        self._committed_generation = 0
        self._in_flight = 0

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[UserSession]:
        return self.bridge.session

    @property
    def context(self) -> SessionContext:
        return self.bridge.context

    @property
    def history(self) -> list[HistoryEntry]:
        return self.context.history.entries

    @property
    def pinned_recipes(self) -> list[Recipe]:
        return self.context.pins.recipes

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    @property
    def suggestions(self) -> list[Recipe]:
        """Curated recipes, offered only while nothing else is displayed."""
        return list(SUGGESTED_RECIPES) if self.display.is_empty else []

    def is_pinned(self, recipe_id: str) -> bool:
        return self.context.pins.is_pinned(recipe_id)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def _is_displaced(self, generation: int, context: SessionContext) -> bool:
        """A newer analysis is already on screen, or the session changed underneath."""
        return generation < self._displayed_generation or context is not self.context

    async def submit(self, request: AnalysisRequest) -> Optional[DisplayState]:
        """Analyze a request, display the result and record it if successful.

        A completion from a replaced session context is dropped entirely.
        Otherwise a success is recorded unless a newer analysis has already
        been recorded, and any result is displayed unless a newer one is
        already on screen.

        Returns:
            The new display state, or None if the completion was not displayed.
        """
        self._issued_generation += 1
        generation = self._issued_generation
        context = self.context
        extra = {"generation": generation}

        self._in_flight += 1
        try:
            outcome = await self.gateway.analyze(request)
        except ClassifierError as e:
            if self._is_displaced(generation, context):
                logger.info("Discarding failure of a superseded analysis", extra=extra)
                return None
            logger.error(f"Analysis failed: {e}", extra=extra)
            self._displayed_generation = generation
            self.display = DisplayState(error=RETRY_NOTICE)
            return self.display
        finally:
            self._in_flight -= 1

        if context is not self.context:
            logger.info("Discarding result from a closed session", extra=extra)
            return None

        if generation < self._committed_generation:
            logger.info("Not recording result of a superseded analysis", extra=extra)
        elif await context.commit(outcome, request) is not None:
            self._committed_generation = generation

        if self._is_displaced(generation, context):
            logger.info("Newer result already displayed", extra=extra)
            return None

        self._displayed_generation = generation
        self.display = DisplayState(outcome=outcome, recipes=list(outcome.recipes))
        return self.display

    async def illustrate_display(self) -> DisplayState:
        """Fill in images for the displayed recipes, if the display has not moved on."""
        state = self.display
        if self.illustrator is None or not state.recipes:
            return state
        recipes = await self.illustrator.illustrate_all(state.recipes)
        if self.display is state:
            self.display = state.model_copy(update={"recipes": recipes})
        return self.display

    def select_history_entry(self, entry_id: str) -> Optional[DisplayState]:
        """Show the recipes of a past analysis."""
        entry = self.context.history.get(entry_id)
        if entry is None:
            return None
        self.display = DisplayState(recipes=list(entry.recipes))
        return self.display

    def reset_display(self) -> DisplayState:
        self.display = DisplayState()
        return self.display

    # ------------------------------------------------------------------
    # Pins, identity, feedback
    # ------------------------------------------------------------------

    async def toggle_pin(self, recipe: Recipe) -> bool:
        return await self.context.toggle_pin(recipe)

    async def identity_established(
        self,
        identity: UserSession | Mapping[str, Any],
        access_token: Optional[str] = None,
    ) -> SessionContext:
        return await self.bridge.identity_established(identity, access_token)

    def identity_lost(self) -> SessionContext:
        return self.bridge.identity_lost()

    async def submit_feedback(self, content: str) -> bool:
        """Send free-text feedback; guests are recorded as "Guest".

        Returns:
            True if the remote store accepted it.
        """
        if not content or not content.strip():
            return False
        if self.store is None:
            logger.warning("Feedback not sent: remote store is not configured")
            return False

        session = self.session
        entry = FeedbackEntry(
            content=content,
            user_id=session.id if session else None,
            user_email=session.email if session and session.email else "Guest",
        )
        try:
            await self.store.insert_feedback(entry, access_token=session.access_token if session else None)
        except RemoteStoreError as e:
            logger.warning(f"Feedback submission failed: {e}")
            return False
        logger.info("Feedback submitted")
        return True
