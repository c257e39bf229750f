"""
Rally state machine: idle -> active -> idle, emitting a completed rally on close.
One tracker per recording session (one operator, one match). Callers serialize
start_rally / add_shot / end_rally; there is no locking.
"""
from __future__ import annotations

import time
import uuid
from collections import Counter
from enum import Enum
from typing import Any, Callable

from badminton.models import CompletedRally, Rally, Shot, ShotDraft


class InvalidStateError(ValueError):
    """Rally operation not allowed in the current tracker state (e.g. add_shot while idle)."""


class TrackerState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return str(uuid.uuid4())


class RallyTracker:
    """
    Owns the current open rally and the history of closed rallies.
    Failed calls raise before touching state.
    """

    def __init__(
        self,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._clock = clock
        self._id_factory = id_factory
        self._current: Rally | None = None
        self._history: list[CompletedRally] = []

    @property
    def state(self) -> TrackerState:
        return TrackerState.IDLE if self._current is None else TrackerState.ACTIVE

    @property
    def current_rally(self) -> Rally | None:
        return self._current

    @property
    def history(self) -> tuple[CompletedRally, ...]:
        return tuple(self._history)

    def start_rally(self) -> Rally:
        if self._current is not None:
            raise InvalidStateError(f"Rally {self._current.id} is already in progress")
        self._current = Rally(id=self._id_factory(), start_time=self._clock())
        return self._current

    def add_shot(self, draft: ShotDraft) -> Shot:
        """Stamp id + timestamp on the draft and append it to the open rally."""
        if self._current is None:
            raise InvalidStateError("No rally in progress: call start_rally() first")
        shot = Shot.from_draft(draft, id=self._id_factory(), timestamp=self._clock())
        self._current.shots.append(shot)
        return shot

    def end_rally(
        self, before_close: Callable[[CompletedRally], None] | None = None
    ) -> CompletedRally | None:
        """
        Close the open rally. Idle: no-op, returns None.
        before_close runs on the completed rally first; if it raises, the rally stays open.
        """
        if self._current is None:
            return None
        rally = self._current
        completed = CompletedRally(
            id=rally.id,
            shots=tuple(rally.shots),
            start_time=rally.start_time,
            end_time=self._clock(),
        )
        if before_close is not None:
            before_close(completed)
        self._history.append(completed)
        self._current = None
        return completed

    def discard_rally(self) -> Rally | None:
        """Drop the open rally without recording it (e.g. a point started by mistake)."""
        rally, self._current = self._current, None
        return rally

    def analysis_data(self) -> dict[str, Any]:
        """Summary of closed rallies: count, shot-type distribution, mean shots per rally."""
        distribution: Counter[str] = Counter()
        total_shots = 0
        for rally in self._history:
            total_shots += len(rally.shots)
            distribution.update(s.shot_type.value for s in rally.shots)
        n = len(self._history)
        return {
            "total_rallies": n,
            "shot_distribution": dict(distribution),
            "average_rally_length": total_shots / n if n else 0.0,
        }
