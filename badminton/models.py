"""
Data models for shot and rally tracking.
Domain objects only: no persistence or API logic.

Shots are recorded by an operator one stroke at a time; a rally groups the shots of
one point. Players and matches are referenced by id and never embed shot data.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------- Court zones ----------
class CourtArea(str, Enum):
    """Nine court regions: left/center/right × front/mid/rear."""
    LF = "LF"
    CF = "CF"
    RF = "RF"
    LM = "LM"
    CM = "CM"
    RM = "RM"
    LR = "LR"
    CR = "CR"
    RR = "RR"


REAR_AREAS = frozenset({CourtArea.LR, CourtArea.CR, CourtArea.RR})
MID_AREAS = frozenset({CourtArea.LM, CourtArea.CM, CourtArea.RM})
FRONT_AREAS = frozenset({CourtArea.LF, CourtArea.CF, CourtArea.RF})


# ---------- Shot type ----------
class ShotType(str, Enum):
    SHORT_SERVE = "short_serve"
    LONG_SERVE = "long_serve"
    CLEAR = "clear"
    SMASH = "smash"
    DROP = "drop"
    LONG_RETURN = "long_return"
    SHORT_RETURN = "short_return"
    DRIVE = "drive"
    LOB = "lob"
    PUSH = "push"
    HAIRPIN = "hairpin"


SERVE_TYPES = frozenset({ShotType.SHORT_SERVE, ShotType.LONG_SERVE})


# ---------- Shot result ----------
class ShotResult(str, Enum):
    """continue for every shot but the last one of a rally (point | miss)."""
    CONTINUE = "continue"
    POINT = "point"
    MISS = "miss"


TERMINAL_RESULTS = frozenset({ShotResult.POINT, ShotResult.MISS})


def parse_area(value: str) -> CourtArea:
    try:
        return CourtArea(value)
    except ValueError:
        raise ValueError(f"Unknown court area: {value!r}") from None


def parse_shot_type(value: str) -> ShotType:
    try:
        return ShotType(value)
    except ValueError:
        raise ValueError(f"Unknown shot type: {value!r}") from None


def parse_result(value: str) -> ShotResult:
    try:
        return ShotResult(value)
    except ValueError:
        raise ValueError(f"Unknown shot result: {value!r}") from None


# ---------- Player ----------
@dataclass(frozen=True)
class Player:
    """Club player. Resolved by id from shots and matches."""
    id: str
    name: str
    affiliation: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "affiliation": self.affiliation}


# ---------- Match ----------
@dataclass(frozen=True)
class Match:
    """
    Singles or doubles match: 1-2 player ids per side.
    Owns the shots recorded against it (the store removes them with the match).
    """
    id: str
    side_a: tuple[str, ...]
    side_b: tuple[str, ...]
    created_at: int  # epoch ms

    def __post_init__(self) -> None:
        for side in (self.side_a, self.side_b):
            if not 1 <= len(side) <= 2:
                raise ValueError("Each side of a match needs 1 or 2 players")

    @property
    def player_ids(self) -> tuple[str, ...]:
        return self.side_a + self.side_b

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "side_a": list(self.side_a),
            "side_b": list(self.side_b),
            "created_at": self.created_at,
        }


# ---------- Shot ----------
@dataclass(frozen=True)
class ShotDraft:
    """A shot as captured by the operator, before id and timestamp are assigned."""
    match_id: str
    hit_player: str
    receive_player: str
    hit_area: CourtArea
    receive_area: CourtArea
    shot_type: ShotType
    result: ShotResult = ShotResult.CONTINUE
    is_cross: bool = False


@dataclass(frozen=True)
class Shot:
    """One stroke of a rally. Immutable once created."""
    id: str
    match_id: str
    hit_player: str
    receive_player: str
    hit_area: CourtArea
    receive_area: CourtArea
    shot_type: ShotType
    result: ShotResult
    is_cross: bool
    timestamp: int  # epoch ms

    @classmethod
    def from_draft(cls, draft: ShotDraft, id: str, timestamp: int) -> Shot:
        return cls(
            id=id,
            match_id=draft.match_id,
            hit_player=draft.hit_player,
            receive_player=draft.receive_player,
            hit_area=draft.hit_area,
            receive_area=draft.receive_area,
            shot_type=draft.shot_type,
            result=draft.result,
            is_cross=draft.is_cross,
            timestamp=timestamp,
        )

    @property
    def is_serve(self) -> bool:
        return self.shot_type in SERVE_TYPES

    @property
    def is_terminal(self) -> bool:
        return self.result in TERMINAL_RESULTS

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "match_id": self.match_id,
            "hit_player": self.hit_player,
            "receive_player": self.receive_player,
            "hit_area": self.hit_area.value,
            "receive_area": self.receive_area.value,
            "shot_type": self.shot_type.value,
            "result": self.result.value,
            "is_cross": self.is_cross,
            "timestamp": self.timestamp,
        }


# ---------- Rally ----------
@dataclass
class Rally:
    """
    Sequence of shots for one point.
    Open while end_time is None; the tracker freezes it on close.
    """
    id: str
    start_time: int
    shots: list[Shot] = field(default_factory=list)
    end_time: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "shots": [s.to_dict() for s in self.shots],
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass(frozen=True)
class CompletedRally:
    """Closed rally handed to the ledger. Shots are a tuple; nothing is appended after close."""
    id: str
    shots: tuple[Shot, ...]
    start_time: int
    end_time: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "shots": [s.to_dict() for s in self.shots],
            "start_time": self.start_time,
            "end_time": self.end_time,
        }
