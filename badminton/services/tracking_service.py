"""
Rally recording session for one match: drives a RallyTracker and writes every
closed rally into the shot ledger.
The tracker owns the in-memory rally; the ledger only ever sees closed rallies.
"""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable

from badminton.models import CompletedRally, Match, Rally, Shot, ShotDraft
from badminton.persistence.repositories import MatchRepository, RallyRepository
from badminton.rally_tracker import InvalidStateError, RallyTracker, TrackerState

logger = logging.getLogger(__name__)


class TrackingSession:
    """
    One operator, one match. Callers serialize calls; there is no locking.
    Rallies closed with zero shots are dropped instead of persisted.
    """

    def __init__(
        self,
        match: Match,
        tracker: RallyTracker | None = None,
    ) -> None:
        self.match = match
        self.tracker = tracker or RallyTracker()
        self._rally_repo = RallyRepository()

    @classmethod
    def open(
        cls,
        conn: sqlite3.Connection,
        match_id: str,
        clock: Callable[[], int] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> TrackingSession:
        """Resolve the match and start an idle session. Raises ValueError if the match is unknown."""
        match = MatchRepository().get(conn, match_id)
        if match is None:
            raise ValueError(f"Match not found: {match_id}")
        kwargs: dict[str, Any] = {}
        if clock is not None:
            kwargs["clock"] = clock
        if id_factory is not None:
            kwargs["id_factory"] = id_factory
        return cls(match, RallyTracker(**kwargs))

    @property
    def state(self) -> TrackerState:
        return self.tracker.state

    def start_rally(self) -> Rally:
        try:
            rally = self.tracker.start_rally()
        except InvalidStateError:
            logger.warning("start_rally rejected for match %s: rally already active", self.match.id)
            raise
        logger.debug("Rally %s started for match %s", rally.id, self.match.id)
        return rally

    def _check_draft(self, draft: ShotDraft) -> None:
        if draft.match_id != self.match.id:
            raise ValueError(f"Shot belongs to match {draft.match_id}, session is for {self.match.id}")
        players = self.match.player_ids
        for pid in (draft.hit_player, draft.receive_player):
            if pid not in players:
                raise ValueError(f"Player {pid} is not in match {self.match.id}")

    def add_shot(self, draft: ShotDraft) -> Shot:
        self._check_draft(draft)
        try:
            return self.tracker.add_shot(draft)
        except InvalidStateError:
            logger.warning("add_shot rejected for match %s: no rally in progress", self.match.id)
            raise

    def end_rally(self, conn: sqlite3.Connection) -> CompletedRally | None:
        """
        Close the open rally and persist it with its shots.
        Returns None when idle. A zero-shot rally is closed but not written.
        If the write fails the rally stays open, so the call can be retried.
        """
        return self.tracker.end_rally(before_close=lambda completed: self._record(conn, completed))

    def _record(self, conn: sqlite3.Connection, completed: CompletedRally) -> None:
        if not completed.shots:
            logger.info("Rally %s closed with no shots; not recorded", completed.id)
            return
        try:
            self._rally_repo.save(conn, self.match.id, completed)
        except sqlite3.Error:
            logger.exception("Rally %s could not be recorded for match %s", completed.id, self.match.id)
            raise
        logger.info(
            "Rally %s recorded for match %s (%d shots)",
            completed.id, self.match.id, len(completed.shots),
        )

    def discard_rally(self) -> Rally | None:
        rally = self.tracker.discard_rally()
        if rally is not None:
            logger.info("Rally %s discarded (%d shots)", rally.id, len(rally.shots))
        return rally

    def to_dict(self) -> dict[str, Any]:
        current = self.tracker.current_rally
        return {
            "match_id": self.match.id,
            "state": self.state.value,
            "current_rally": current.to_dict() if current else None,
            "summary": self.tracker.analysis_data(),
        }
