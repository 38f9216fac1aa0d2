"""
Interactive search session.

Drives one search box: debounced searching as the user types, keyboard
navigation over the presented results, and analytics recording.

Phases:
    IDLE -> DEBOUNCING      query text changed (pending pass restarted)
    DEBOUNCING -> SCORING   quiet interval elapsed
    SCORING -> PRESENTING   results ranked, truncated and highlighted
    SCORING -> ERROR        the pass failed; results are empty
    any -> PRESENTING       query below minimum length (no scoring)
    any -> IDLE             query cleared or dismissed
"""

import asyncio
import contextlib
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, FrozenSet, Optional, Tuple, Union

import structlog

from .. import metrics
from ..config import Settings
from ..domain.entities import GuideEntry, SearchResult
from ..search.relevance_scorer import normalize_query
from ..services.guide_search_service import GuideSearchService
from .analytics import SearchAnalytics

logger = structlog.get_logger(__name__)


class SessionPhase(str, Enum):
    """Lifecycle phases of a search session."""

    IDLE = "idle"
    DEBOUNCING = "debouncing"
    SCORING = "scoring"
    PRESENTING = "presenting"
    ERROR = "error"


class NavigationKey(str, Enum):
    """Keyboard events understood by the session."""

    MOVE_NEXT = "move-next"
    MOVE_PREVIOUS = "move-previous"
    CONFIRM_SELECTION = "confirm-selection"
    DISMISS = "dismiss"


@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of a search box.

    Attributes:
        query_text: Query as typed
        normalized_query: Trimmed, lowercased query
        expanded_terms: Thesaurus expansion of the query
        results: Presented results, best first
        selected_index: Highlighted result, -1 when none
        phase: Lifecycle phase
        error: User-facing message while in the ERROR phase
    """

    query_text: str = ""
    normalized_query: str = ""
    expanded_terms: FrozenSet[str] = frozenset()
    results: Tuple[SearchResult, ...] = ()
    selected_index: int = -1
    phase: SessionPhase = SessionPhase.IDLE
    error: Optional[str] = None

    @property
    def selected(self) -> Optional[SearchResult]:
        if 0 <= self.selected_index < len(self.results):
            return self.results[self.selected_index]
        return None


def move_next(state: SessionState) -> SessionState:
    """Select the next result, stopping at the last one."""
    if state.phase is not SessionPhase.PRESENTING:
        return state
    index = min(state.selected_index + 1, len(state.results) - 1)
    return replace(state, selected_index=index)


def move_previous(state: SessionState) -> SessionState:
    """Select the previous result, stopping at -1 (nothing selected)."""
    if state.phase is not SessionPhase.PRESENTING:
        return state
    return replace(state, selected_index=max(state.selected_index - 1, -1))


def confirm_selection(state: SessionState) -> Tuple[SessionState, Optional[GuideEntry]]:
    """
    Confirm the selected result.

    Returns:
        The unchanged state and the selected guide, or None when nothing
        is selected
    """
    if state.phase is not SessionPhase.PRESENTING or state.selected is None:
        return state, None
    return state, state.selected.entry


def dismiss(state: SessionState) -> SessionState:
    """Clear the query and return to IDLE."""
    return SessionState()


class SearchSession:
    """
    State machine behind one search box.

    At most one debounced pass is pending; new input cancels and replaces
    it. A pass that has started runs to completion. Failures never reach
    the caller: the session moves to ERROR with an empty result list and
    can be retried or dismissed.

    Analytics records scored passes only. Cleared and too-short queries
    present nothing without scoring and are not recorded.
    """

    ERROR_MESSAGE = "Search is temporarily unavailable. Please try again."
    DEFAULT_DEBOUNCE_SECONDS = 0.2

    def __init__(
        self,
        service: GuideSearchService,
        on_select: Optional[Callable[[str, str], None]] = None,
        analytics: Optional[SearchAnalytics] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ):
        """
        Initialize search session.

        Args:
            service: Guide search service
            on_select: Called with (category, slug) of a confirmed guide
            analytics: Optional analytics collector
            debounce_seconds: Quiet interval before a pass runs
            on_change: Called with every new state
        """
        self.service = service
        self.on_select = on_select
        self.analytics = analytics
        self.debounce_seconds = debounce_seconds
        self.on_change = on_change
        self._state = SessionState()
        self._pending: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(
        cls,
        service: GuideSearchService,
        settings: Settings,
        on_select: Optional[Callable[[str, str], None]] = None,
        analytics: Optional[SearchAnalytics] = None,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ) -> "SearchSession":
        """Create a session whose debounce interval comes from DEBOUNCE_MS."""
        return cls(
            service,
            on_select=on_select,
            analytics=analytics,
            debounce_seconds=settings.debounce_seconds,
            on_change=on_change,
        )

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> SessionPhase:
        return self._state.phase

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def update_query(self, text: str) -> None:
        """
        Handle a change of the query text.

        Must be called from a running event loop. Schedules a debounced
        pass, replacing any pass still waiting.

        Args:
            text: New query text
        """
        if not self._begin(text):
            return

        self._set_state(
            replace(
                self._state,
                query_text=text,
                normalized_query=normalize_query(text),
                phase=SessionPhase.DEBOUNCING,
                error=None,
            )
        )
        self._pending = asyncio.get_running_loop().create_task(self._debounced(text))

    async def search_now(self, text: str) -> SessionState:
        """
        Run a pass immediately, skipping the debounce interval.

        Args:
            text: Query text

        Returns:
            The resulting state
        """
        if self._begin(text):
            self._run_pass(text)
        return self._state

    async def retry(self) -> SessionState:
        """Re-run the current query."""
        return await self.search_now(self._state.query_text)

    async def flush(self) -> SessionState:
        """Wait for a pending pass, if any, and return the resulting state."""
        if self._pending is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._pending
        return self._state

    def handle_key(self, key: Union[NavigationKey, str]) -> SessionState:
        """
        Apply a keyboard event.

        Args:
            key: Navigation key or its name

        Returns:
            The resulting state
        """
        key = NavigationKey(key)

        if key is NavigationKey.MOVE_NEXT:
            self._set_state(move_next(self._state))
        elif key is NavigationKey.MOVE_PREVIOUS:
            self._set_state(move_previous(self._state))
        elif key is NavigationKey.CONFIRM_SELECTION:
            state, entry = confirm_selection(self._state)
            if entry is not None:
                self._select(state, entry)
        elif key is NavigationKey.DISMISS:
            self._cancel_pending()
            self._set_state(dismiss(self._state))

        return self._state

    def close(self) -> None:
        """Cancel pending work and reset the session."""
        self._cancel_pending()
        self._state = SessionState()

    def _begin(self, text: str) -> bool:
        """
        Cancel pending work and short-circuit trivial queries.

        A short-circuited query never reaches analytics.

        Returns:
            True if the query needs a scoring pass
        """
        self._cancel_pending()
        normalized = normalize_query(text)

        if not normalized:
            self._set_state(SessionState())
            return False

        if len(normalized) < self.service.min_query_length:
            self._set_state(
                SessionState(
                    query_text=text,
                    normalized_query=normalized,
                    phase=SessionPhase.PRESENTING,
                )
            )
            return False

        return True

    async def _debounced(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        if self._pending is asyncio.current_task():
            self._pending = None
        self._run_pass(text)

    def _run_pass(self, text: str) -> None:
        normalized = normalize_query(text)
        self._set_state(
            replace(
                self._state,
                query_text=text,
                normalized_query=normalized,
                phase=SessionPhase.SCORING,
            )
        )

        try:
            expanded = self.service.scorer.expand(normalized)
            results = tuple(self.service.search(text))
        except Exception as e:
            logger.error("Search pass failed", query=text, error=str(e), exc_info=True)
            self._set_state(
                SessionState(
                    query_text=text,
                    normalized_query=normalized,
                    phase=SessionPhase.ERROR,
                    error=self.ERROR_MESSAGE,
                )
            )
            return

        self._set_state(
            SessionState(
                query_text=text,
                normalized_query=normalized,
                expanded_terms=expanded,
                results=results,
                selected_index=-1,
                phase=SessionPhase.PRESENTING,
            )
        )
        if self.analytics is not None:
            self.analytics.track_search(text, len(results))

    def _select(self, state: SessionState, entry: GuideEntry) -> None:
        category, slug = entry.route
        logger.info("Guide selected", query=state.query_text, category=category, slug=slug)

        if self.analytics is not None:
            self.analytics.record_selection(state.query_text, f"{category}/{slug}")
        if self.on_select is not None:
            self.on_select(category, slug)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _set_state(self, state: SessionState) -> None:
        previous = self._state.phase
        self._state = state
        if state.phase is not previous:
            metrics.search_session_transitions_total.labels(phase=state.phase.value).inc()
            logger.debug("Session phase changed", previous=previous.value, phase=state.phase.value)
        if self.on_change is not None:
            self.on_change(state)
