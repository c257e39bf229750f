"""
Deterministic shot analytics.
Read-only: consumes shots from the ledger, returns structured stats.
Used by GET /players/{id}/stats, GET /matches/{id}/stats and the player report CLI.
No persistence, no caching: every call recomputes from the shots it is given.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from badminton.models import (
    FRONT_AREAS,
    MID_AREAS,
    REAR_AREAS,
    Shot,
    ShotResult,
)


def _pct(count: int, total: int) -> float:
    return count / total * 100 if total else 0.0


def one_decimal(value: float) -> str:
    """One decimal place, exact halves rounded up (6.25 -> "6.3")."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _pct_str(count: int, total: int) -> str:
    """Percentage to one decimal place as a string; '0.0' on an empty denominator."""
    return one_decimal(count / total * 100) if total else "0.0"


# ---------- Player zone performance ----------


@dataclass
class PlayerZoneStats:
    """
    Zone-based performance for one player across any number of matches.
    point_rate / miss_rate are measured on rear-court shots only.
    """
    total_shots: int
    rear_rate: float
    mid_rate: float
    front_rate: float
    point_rate: str
    miss_rate: str
    cross_rate: str = "0.0"
    serve_success_rate: str = "0.0"
    miss_areas: dict[str, int] = field(default_factory=dict)
    shot_type_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_shots": self.total_shots,
            "rear_rate": self.rear_rate,
            "mid_rate": self.mid_rate,
            "front_rate": self.front_rate,
            "point_rate": self.point_rate,
            "miss_rate": self.miss_rate,
            "cross_rate": self.cross_rate,
            "serve_success_rate": self.serve_success_rate,
            "miss_areas": dict(self.miss_areas),
            "shot_type_counts": dict(self.shot_type_counts),
        }


def shots_hit_by(shots: Iterable[Shot], player_id: str) -> list[Shot]:
    return [s for s in shots if s.hit_player == player_id]


def compute_player_zone_stats(shots: Iterable[Shot]) -> PlayerZoneStats:
    """
    Compute zone rates for the given shots (all hit by one player).
    Pure function: no I/O, no side effects.
    """
    shots = list(shots)
    total = len(shots)
    rear = [s for s in shots if s.hit_area in REAR_AREAS]
    mid_count = sum(1 for s in shots if s.hit_area in MID_AREAS)
    front_count = sum(1 for s in shots if s.hit_area in FRONT_AREAS)
    # Attacking efficiency is only meaningful from the rear court.
    rear_points = sum(1 for s in rear if s.result == ShotResult.POINT)
    rear_misses = sum(1 for s in rear if s.result == ShotResult.MISS)

    cross = sum(1 for s in shots if s.is_cross)
    serves = [s for s in shots if s.is_serve]
    served_in = sum(1 for s in serves if s.result == ShotResult.CONTINUE)
    miss_areas = Counter(s.hit_area.value for s in shots if s.result == ShotResult.MISS)
    shot_types = Counter(s.shot_type.value for s in shots)

    return PlayerZoneStats(
        total_shots=total,
        rear_rate=_pct(len(rear), total),
        mid_rate=_pct(mid_count, total),
        front_rate=_pct(front_count, total),
        point_rate=_pct_str(rear_points, len(rear)),
        miss_rate=_pct_str(rear_misses, len(rear)),
        cross_rate=_pct_str(cross, total),
        serve_success_rate=_pct_str(served_in, len(serves)),
        miss_areas=dict(miss_areas),
        shot_type_counts=dict(shot_types),
    )


def compute_player_stats(shots: Iterable[Shot], player_id: str) -> PlayerZoneStats:
    """Filter a ledger (any mix of matches and hitters) to player_id's shots, then aggregate."""
    return compute_player_zone_stats(shots_hit_by(shots, player_id))


# ---------- Match stats ----------


@dataclass
class MatchShotStats:
    """
    Per-match shot summary. avg_rally_length = all shots / rally-ending shots,
    i.e. it divides the whole match's shot count, not a single rally's.
    """
    match_id: str
    total_shots: int
    winners: int
    errors: int
    rallies: int
    avg_rally_length: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "match_id": self.match_id,
            "total_shots": self.total_shots,
            "winners": self.winners,
            "errors": self.errors,
            "rallies": self.rallies,
            "avg_rally_length": one_decimal(self.avg_rally_length),
        }


def compute_match_stats(match_id: str, shots: Iterable[Shot]) -> MatchShotStats:
    """Stats for one match; shots from other matches are ignored."""
    match_shots = [s for s in shots if s.match_id == match_id]
    total = len(match_shots)
    winners = sum(1 for s in match_shots if s.result == ShotResult.POINT)
    errors = sum(1 for s in match_shots if s.result == ShotResult.MISS)
    rallies = winners + errors
    return MatchShotStats(
        match_id=match_id,
        total_shots=total,
        winners=winners,
        errors=errors,
        rallies=rallies,
        avg_rally_length=total / rallies if rallies else 0.0,
    )
