"""
Rally-length analysis over a shot ledger.
Splits a flat list of shots back into rallies (a serve opens one, a point or miss
closes it) and derives rally-count, serve-type and rally-range statistics.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from badminton.models import Shot, ShotResult, ShotType


class RallyRange(str, Enum):
    """Rally length bucket."""
    SHORT = "short"    # 1-5 shots
    MEDIUM = "medium"  # 6-10
    LONG = "long"      # 11+


RANGE_LABELS = {
    RallyRange.SHORT: "1-5 shots",
    RallyRange.MEDIUM: "6-10 shots",
    RallyRange.LONG: "11+ shots",
}


def rally_range_from_count(count: int) -> RallyRange:
    if count <= 5:
        return RallyRange.SHORT
    if count <= 10:
        return RallyRange.MEDIUM
    return RallyRange.LONG


@dataclass(frozen=True)
class RallyStats:
    """One rally recovered from the ledger."""
    id: str
    match_id: str
    shots: tuple[Shot, ...]
    winner: str
    start_time: int
    end_time: int
    serve_type: ShotType
    winning_shot: ShotType
    is_win: bool

    @property
    def count(self) -> int:
        return len(self.shots)

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time


def _rally_winner(last: Shot) -> str:
    if last.result == ShotResult.POINT:
        return last.hit_player
    if last.result == ShotResult.MISS:
        return last.receive_player
    return ""


def _build_rally(shots: list[Shot], index: int, player_id: str | None) -> RallyStats:
    first, last = shots[0], shots[-1]
    winner = _rally_winner(last)
    return RallyStats(
        id=f"rally_{index}",
        match_id=first.match_id,
        shots=tuple(shots),
        winner=winner,
        start_time=first.timestamp,
        end_time=last.timestamp,
        serve_type=first.shot_type,
        winning_shot=last.shot_type,
        is_win=player_id is not None and winner == player_id,
    )


def extract_rallies(
    shots: Iterable[Shot],
    match_id: str | None = None,
    player_id: str | None = None,
) -> list[RallyStats]:
    """
    Rebuild rallies from shots ordered by timestamp.
    A serve flushes any unfinished rally and starts a new one; a point or miss closes
    the current rally. Shots after the last terminal shot are not reported.
    """
    target = [s for s in shots if match_id is None or s.match_id == match_id]
    target.sort(key=lambda s: s.timestamp)
    rallies: list[RallyStats] = []
    current: list[Shot] = []
    for shot in target:
        if shot.is_serve:
            if current:
                rallies.append(_build_rally(current, len(rallies), player_id))
            current = [shot]
        else:
            current.append(shot)
        if shot.is_terminal:
            rallies.append(_build_rally(current, len(rallies), player_id))
            current = []
    return rallies


# ---------- Analysis ----------


@dataclass
class WinRecord:
    wins: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return self.wins / self.total if self.total else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {"wins": self.wins, "total": self.total, "rate": self.rate}


@dataclass
class ServeBreakdown:
    avg_rally: float = 0.0
    win_rate: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"avg_rally": self.avg_rally, "win_rate": self.win_rate, "count": self.count}


@dataclass
class RangeBreakdown:
    range: str
    win_rate: float = 0.0
    count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"range": self.range, "win_rate": self.win_rate, "count": self.count}


@dataclass
class RallyAnalysisResult:
    average_rally_count: float = 0.0
    max_rally_count: int = 0
    min_rally_count: int = 0
    median_rally_count: float = 0.0
    total_rallies: int = 0
    win_rate_by_rally_count: dict[int, WinRecord] = field(default_factory=dict)
    rally_count_distribution: dict[int, int] = field(default_factory=dict)
    short_serve: ServeBreakdown = field(default_factory=ServeBreakdown)
    long_serve: ServeBreakdown = field(default_factory=ServeBreakdown)
    ranges: dict[RallyRange, RangeBreakdown] = field(
        default_factory=lambda: {r: RangeBreakdown(range=RANGE_LABELS[r]) for r in RallyRange}
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "average_rally_count": self.average_rally_count,
            "max_rally_count": self.max_rally_count,
            "min_rally_count": self.min_rally_count,
            "median_rally_count": self.median_rally_count,
            "total_rallies": self.total_rallies,
            "win_rate_by_rally_count": {
                str(k): v.to_dict() for k, v in sorted(self.win_rate_by_rally_count.items())
            },
            "rally_count_distribution": {
                str(k): v for k, v in sorted(self.rally_count_distribution.items())
            },
            "serve_analysis": {
                "short_serve": self.short_serve.to_dict(),
                "long_serve": self.long_serve.to_dict(),
            },
            "rally_range_analysis": {r.value: b.to_dict() for r, b in self.ranges.items()},
        }


def _median(values: list[int]) -> float:
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return float(ordered[mid])


def _serve_breakdown(rallies: list[RallyStats]) -> ServeBreakdown:
    if not rallies:
        return ServeBreakdown()
    wins = sum(1 for r in rallies if r.is_win)
    return ServeBreakdown(
        avg_rally=sum(r.count for r in rallies) / len(rallies),
        win_rate=wins / len(rallies),
        count=len(rallies),
    )


def analyze_rallies(
    shots: Iterable[Shot],
    match_id: str | None = None,
    player_id: str | None = None,
) -> RallyAnalysisResult:
    """
    Rally-count statistics for a ledger. Win rates are relative to player_id and
    stay 0 when no player is given.
    """
    rallies = extract_rallies(shots, match_id=match_id, player_id=player_id)
    if not rallies:
        return RallyAnalysisResult()

    counts = [r.count for r in rallies]
    by_count: dict[int, WinRecord] = {}
    distribution: dict[int, int] = {}
    by_range: dict[RallyRange, list[RallyStats]] = {r: [] for r in RallyRange}
    for rally in rallies:
        rec = by_count.setdefault(rally.count, WinRecord())
        rec.total += 1
        if rally.is_win:
            rec.wins += 1
        distribution[rally.count] = distribution.get(rally.count, 0) + 1
        by_range[rally_range_from_count(rally.count)].append(rally)

    ranges: dict[RallyRange, RangeBreakdown] = {}
    for bucket, members in by_range.items():
        wins = sum(1 for r in members if r.is_win)
        ranges[bucket] = RangeBreakdown(
            range=RANGE_LABELS[bucket],
            win_rate=wins / len(members) if members else 0.0,
            count=len(members),
        )

    return RallyAnalysisResult(
        average_rally_count=sum(counts) / len(counts),
        max_rally_count=max(counts),
        min_rally_count=min(counts),
        median_rally_count=_median(counts),
        total_rallies=len(rallies),
        win_rate_by_rally_count=by_count,
        rally_count_distribution=distribution,
        short_serve=_serve_breakdown([r for r in rallies if r.serve_type == ShotType.SHORT_SERVE]),
        long_serve=_serve_breakdown([r for r in rallies if r.serve_type == ShotType.LONG_SERVE]),
        ranges=ranges,
    )
