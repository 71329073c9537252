"""Scorekeeper: the caller that owns one running game.

Holds the current SessionState and replaces it wholesale on each action,
applies the post-win lock (round entry and deletion are ignored once a
team has won), and runs analysis requests in the background.

Analysis lifecycle (``AnalysisTracker``):

    IDLE --request--> PENDING --result--> READY
                         |    --failure--> FAILED (result absent)
    any --reset--> IDLE

Every request and every reset bumps a generation token. A response that
arrives after its token was superseded is dropped, so a slow reply can
never overwrite a newer result or resurrect commentary after a reset.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable

from quantumdomino.analysis import AnalysisClient, can_request_analysis
from quantumdomino.core.engine import (
    Action,
    AddRound,
    DeleteRound,
    ResetSession,
    Totals,
    apply_action,
    compute_totals,
    leader,
    session_phase,
    winner,
)
from quantumdomino.core.models import AnalysisResult, Phase, SessionState, Team

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class AnalysisTracker:
    """Transient analysis state plus the worker that fills it."""

    def __init__(
        self,
        client: AnalysisClient,
        executor: ThreadPoolExecutor | None = None,
    ):
        self._client = client
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="analysis",
        )
        self._lock = threading.Lock()
        self._generation = 0
        self._status = AnalysisStatus.IDLE
        self._result: AnalysisResult | None = None
        self._future: Future | None = None

    @property
    def status(self) -> AnalysisStatus:
        with self._lock:
            return self._status

    @property
    def result(self) -> AnalysisResult | None:
        with self._lock:
            return self._result

    def request(self, state: SessionState) -> Future:
        """Start an analysis of ``state``. Returns immediately."""
        with self._lock:
            self._generation += 1
            token = self._generation
            self._status = AnalysisStatus.PENDING
        logger.info("Analysis request %d dispatched (%d rounds)", token, len(state.rounds))
        self._future = self._executor.submit(self._run, token, state)
        return self._future

    def clear(self) -> None:
        """Forget the current result and orphan any outstanding request."""
        with self._lock:
            self._generation += 1
            self._status = AnalysisStatus.IDLE
            self._result = None

    def wait(self, timeout: float | None = None) -> None:
        """Block until the most recent request has been applied or dropped."""
        if self._future is not None:
            self._future.result(timeout=timeout)

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _run(self, token: int, state: SessionState) -> None:
        try:
            result = self._client.analyze(state)
        except Exception:
            logger.exception("Analysis request %d crashed", token)
            result = None

        with self._lock:
            if token != self._generation:
                logger.debug(
                    "Dropping stale analysis response %d (current %d)",
                    token, self._generation,
                )
                return
            self._result = result
            self._status = (
                AnalysisStatus.READY if result is not None else AnalysisStatus.FAILED
            )


class Scorekeeper:
    """One game in progress, as seen by the interface."""

    def __init__(
        self,
        state: SessionState | None = None,
        tracker: AnalysisTracker | None = None,
        *,
        clock: Callable[[], float] | None = None,
        new_id: Callable[[], str] | None = None,
    ):
        self._state = state or SessionState()
        self._tracker = tracker
        self._apply_kwargs = {}
        if clock is not None:
            self._apply_kwargs["clock"] = clock
        if new_id is not None:
            self._apply_kwargs["new_id"] = new_id

    # ------------------------------------------------------------------
    # Snapshot and derived reads
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def totals(self) -> Totals:
        return compute_totals(self._state.rounds)

    @property
    def winner(self) -> Team | None:
        return winner(self._state)

    @property
    def leader(self) -> Team | None:
        return leader(self._state)

    @property
    def phase(self) -> Phase:
        return session_phase(self._state)

    @property
    def is_locked(self) -> bool:
        """Round entry and deletion are closed once a team has won."""
        return self.phase is Phase.WON

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> bool:
        """Apply ``action``. Returns True if the snapshot changed."""
        if self.is_locked and isinstance(action, (AddRound, DeleteRound)):
            logger.info("Game is won; ignoring %s", type(action).__name__)
            return False

        new_state = apply_action(self._state, action, **self._apply_kwargs)

        if isinstance(action, ResetSession) and self._tracker is not None:
            self._tracker.clear()

        changed = new_state is not self._state
        self._state = new_state
        return changed

    def reset(self) -> None:
        self.dispatch(ResetSession())

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    @property
    def analysis_enabled(self) -> bool:
        return self._tracker is not None

    @property
    def can_request_analysis(self) -> bool:
        return self.analysis_enabled and can_request_analysis(self._state)

    @property
    def analysis_status(self) -> AnalysisStatus:
        if self._tracker is None:
            return AnalysisStatus.IDLE
        return self._tracker.status

    @property
    def analysis(self) -> AnalysisResult | None:
        if self._tracker is None:
            return None
        return self._tracker.result

    def request_analysis(self) -> Future | None:
        """Ask for commentary on the current snapshot.

        Returns None without dispatching when there is nothing to analyze
        (no rounds yet, or the game is already won).
        """
        if not self.can_request_analysis:
            return None
        return self._tracker.request(self._state)

    def wait_for_analysis(self, timeout: float | None = None) -> None:
        if self._tracker is not None:
            self._tracker.wait(timeout)

    def close(self) -> None:
        if self._tracker is not None:
            self._tracker.close()
