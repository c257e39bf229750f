"""
Repository interfaces for players, matches, the shot ledger and diagnostics.
No business logic; read/write operations only.
"""
from __future__ import annotations

import json
import sqlite3
import time
import uuid

from badminton.diagnostic.profiles import resolve_profile
from badminton.diagnostic.schemas import (
    AdvancedAnalysis,
    AlternativeType,
    MBTIAnswer,
    MBTIDiagnostic,
    MBTIResult,
)
from badminton.models import (
    CompletedRally,
    Match,
    Player,
    Shot,
    parse_area,
    parse_result,
    parse_shot_type,
)


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---------- PlayerRepository ----------


class PlayerRepository:
    """CRUD for players."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        affiliation: str | None = None,
        id: str | None = None,
    ) -> Player:
        pid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO players (id, name, affiliation) VALUES (?, ?, ?)",
            (pid, name, affiliation),
        )
        conn.commit()
        return Player(id=pid, name=name, affiliation=affiliation)

    def get(self, conn: sqlite3.Connection, player_id: str) -> Player | None:
        row = conn.execute(
            "SELECT id, name, affiliation FROM players WHERE id = ?", (player_id,)
        ).fetchone()
        if row is None:
            return None
        return Player(id=row["id"], name=row["name"], affiliation=row["affiliation"])

    def list_all(self, conn: sqlite3.Connection) -> list[Player]:
        rows = conn.execute("SELECT id, name, affiliation FROM players ORDER BY name").fetchall()
        return [Player(id=r["id"], name=r["name"], affiliation=r["affiliation"]) for r in rows]


# ---------- MatchRepository ----------


class MatchRepository:
    """CRUD for matches. Deleting a match cascades to its rallies and shots."""

    def create(
        self,
        conn: sqlite3.Connection,
        side_a: list[str] | tuple[str, ...],
        side_b: list[str] | tuple[str, ...],
        id: str | None = None,
    ) -> Match:
        mid = id or str(uuid.uuid4())
        match = Match(id=mid, side_a=tuple(side_a), side_b=tuple(side_b), created_at=_now_ms())
        conn.execute(
            "INSERT INTO matches (id, side_a, side_b, created_at) VALUES (?, ?, ?, ?)",
            (match.id, json.dumps(list(match.side_a)), json.dumps(list(match.side_b)), match.created_at),
        )
        conn.commit()
        return match

    def get(self, conn: sqlite3.Connection, match_id: str) -> Match | None:
        row = conn.execute(
            "SELECT id, side_a, side_b, created_at FROM matches WHERE id = ?", (match_id,)
        ).fetchone()
        if row is None:
            return None
        return Match(
            id=row["id"],
            side_a=tuple(json.loads(row["side_a"])),
            side_b=tuple(json.loads(row["side_b"])),
            created_at=row["created_at"],
        )

    def delete(self, conn: sqlite3.Connection, match_id: str) -> None:
        conn.execute("DELETE FROM matches WHERE id = ?", (match_id,))
        conn.commit()


# ---------- Shot ledger ----------


_SHOT_COLS = (
    "id, match_id, hit_player, receive_player, hit_area, receive_area, "
    "shot_type, result, is_cross, timestamp"
)


def _row_to_shot(row: sqlite3.Row) -> Shot:
    return Shot(
        id=row["id"],
        match_id=row["match_id"],
        hit_player=row["hit_player"],
        receive_player=row["receive_player"],
        hit_area=parse_area(row["hit_area"]),
        receive_area=parse_area(row["receive_area"]),
        shot_type=parse_shot_type(row["shot_type"]),
        result=parse_result(row["result"]),
        is_cross=bool(row["is_cross"]),
        timestamp=row["timestamp"],
    )


class ShotRepository:
    """Append-only shot ledger. No update or delete of individual shots."""

    def append(
        self,
        conn: sqlite3.Connection,
        shot: Shot,
        rally_id: str | None = None,
        seq: int = 0,
        commit: bool = True,
    ) -> Shot:
        conn.execute(
            f"INSERT INTO shots ({_SHOT_COLS}, rally_id, seq) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                shot.id, shot.match_id, shot.hit_player, shot.receive_player,
                shot.hit_area.value, shot.receive_area.value, shot.shot_type.value,
                shot.result.value, int(shot.is_cross), shot.timestamp, rally_id, seq,
            ),
        )
        if commit:
            conn.commit()
        return shot

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[Shot]:
        rows = conn.execute(
            f"SELECT {_SHOT_COLS} FROM shots WHERE match_id = ? ORDER BY timestamp, seq",
            (match_id,),
        ).fetchall()
        return [_row_to_shot(r) for r in rows]

    def list_by_player(self, conn: sqlite3.Connection, player_id: str) -> list[Shot]:
        """Shots hit by player_id across all matches."""
        rows = conn.execute(
            f"SELECT {_SHOT_COLS} FROM shots WHERE hit_player = ? ORDER BY timestamp, seq",
            (player_id,),
        ).fetchall()
        return [_row_to_shot(r) for r in rows]

    def list_by_rally(self, conn: sqlite3.Connection, rally_id: str) -> list[Shot]:
        rows = conn.execute(
            f"SELECT {_SHOT_COLS} FROM shots WHERE rally_id = ? ORDER BY seq",
            (rally_id,),
        ).fetchall()
        return [_row_to_shot(r) for r in rows]


class RallyRepository:
    """Completed rallies. Saving a rally writes its shots to the ledger in one transaction."""

    def __init__(self) -> None:
        self._shot_repo = ShotRepository()

    def save(self, conn: sqlite3.Connection, match_id: str, rally: CompletedRally) -> CompletedRally:
        try:
            conn.execute(
                "INSERT INTO rallies (id, match_id, start_time, end_time) VALUES (?, ?, ?, ?)",
                (rally.id, match_id, rally.start_time, rally.end_time),
            )
            for seq, shot in enumerate(rally.shots):
                self._shot_repo.append(conn, shot, rally_id=rally.id, seq=seq, commit=False)
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return rally

    def get(self, conn: sqlite3.Connection, rally_id: str) -> CompletedRally | None:
        row = conn.execute(
            "SELECT id, start_time, end_time FROM rallies WHERE id = ?", (rally_id,)
        ).fetchone()
        if row is None:
            return None
        return CompletedRally(
            id=row["id"],
            shots=tuple(self._shot_repo.list_by_rally(conn, row["id"])),
            start_time=row["start_time"],
            end_time=row["end_time"],
        )

    def list_by_match(self, conn: sqlite3.Connection, match_id: str) -> list[CompletedRally]:
        rows = conn.execute(
            "SELECT id FROM rallies WHERE match_id = ? ORDER BY start_time", (match_id,)
        ).fetchall()
        return [r for r in (self.get(conn, row["id"]) for row in rows) if r is not None]


# ---------- Diagnostics ----------


class DiagnosticRepository:
    """One diagnostic per user. upsert supports partial saves."""

    def upsert(self, conn: sqlite3.Connection, diagnostic: MBTIDiagnostic) -> MBTIDiagnostic:
        conn.execute(
            """
            INSERT INTO mbti_diagnostics (user_id, id, answers, completed, created_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                id = excluded.id,
                answers = excluded.answers,
                completed = excluded.completed,
                created_at = excluded.created_at,
                completed_at = excluded.completed_at
            """,
            (
                diagnostic.user_id,
                diagnostic.id,
                json.dumps([a.to_dict() for a in diagnostic.answers]),
                int(diagnostic.completed),
                diagnostic.created_at,
                diagnostic.completed_at,
            ),
        )
        conn.commit()
        return diagnostic

    def get_by_user(self, conn: sqlite3.Connection, user_id: str) -> MBTIDiagnostic | None:
        row = conn.execute(
            "SELECT user_id, id, answers, completed, created_at, completed_at "
            "FROM mbti_diagnostics WHERE user_id = ?",
            (user_id,),
        ).fetchone()
        if row is None:
            return None
        return MBTIDiagnostic(
            id=row["id"],
            user_id=row["user_id"],
            created_at=row["created_at"],
            answers=[MBTIAnswer.from_dict(a) for a in json.loads(row["answers"])],
            completed=bool(row["completed"]),
            completed_at=row["completed_at"],
        )


def _analysis_from_dict(d: dict) -> AdvancedAnalysis:
    return AdvancedAnalysis(
        confidence_score=d["confidence_score"],
        borderline_traits=tuple(d["borderline_traits"]),
        dominant_functions=tuple(d["dominant_functions"]),
        sub_type=d["sub_type"],
        consistency=d["consistency"],
        alternative_types=tuple(
            AlternativeType(type_code=a["type"], probability=a["probability"])
            for a in d["alternative_types"]
        ),
    )


class MBTIResultRepository:
    """Scored results. The profile is re-resolved from the type code on read."""

    def save(self, conn: sqlite3.Connection, result: MBTIResult) -> MBTIResult:
        conn.execute(
            "INSERT INTO mbti_results (id, user_id, type_code, scores, analysis, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                result.id,
                result.user_id,
                result.type_code,
                json.dumps(result.score_map),
                json.dumps(result.analysis.to_dict()),
                result.created_at,
            ),
        )
        conn.commit()
        return result

    def list_by_user(self, conn: sqlite3.Connection, user_id: str) -> list[MBTIResult]:
        """Newest first."""
        rows = conn.execute(
            "SELECT id, user_id, type_code, scores, analysis, created_at FROM mbti_results "
            "WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
            (user_id,),
        ).fetchall()
        results: list[MBTIResult] = []
        for r in rows:
            scores = json.loads(r["scores"])
            results.append(MBTIResult(
                id=r["id"],
                user_id=r["user_id"],
                type_code=r["type_code"],
                scores=tuple(scores.items()),
                profile=resolve_profile(r["type_code"]),
                analysis=_analysis_from_dict(json.loads(r["analysis"])),
                created_at=r["created_at"],
            ))
        return results

    def get_latest(self, conn: sqlite3.Connection, user_id: str) -> MBTIResult | None:
        results = self.list_by_user(conn, user_id)
        return results[0] if results else None


class UserProfileRepository:
    """User profile fields owned elsewhere; only the type-code columns are written here."""

    def set_mbti_type(
        self, conn: sqlite3.Connection, user_id: str, type_code: str, completed_at: int
    ) -> None:
        conn.execute(
            """
            INSERT INTO user_profiles (user_id, mbti_result, mbti_completed_at) VALUES (?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                mbti_result = excluded.mbti_result,
                mbti_completed_at = excluded.mbti_completed_at
            """,
            (user_id, type_code, completed_at),
        )
        conn.commit()

    def get_mbti_type(self, conn: sqlite3.Connection, user_id: str) -> str | None:
        row = conn.execute(
            "SELECT mbti_result FROM user_profiles WHERE user_id = ?", (user_id,)
        ).fetchone()
        return row["mbti_result"] if row else None
