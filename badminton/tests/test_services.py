"""
Tests for the tracking session and diagnostic service against a temporary SQLite DB.
"""
from __future__ import annotations

import itertools
import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from badminton.analytics import compute_match_stats, compute_player_stats
from badminton.diagnostic import QUESTION_BANK, IncompleteDiagnosticError, MBTIAnswer
from badminton.models import CourtArea, ShotDraft, ShotResult, ShotType
from badminton.persistence.db import get_connection, init_db, set_db_path
from badminton.persistence.repositories import (
    DiagnosticRepository,
    MatchRepository,
    PlayerRepository,
    RallyRepository,
    ShotRepository,
    UserProfileRepository,
)
from badminton.rally_tracker import InvalidStateError, TrackerState
from badminton.services import DiagnosticService, TrackingSession


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "badminton_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def singles_match(db_conn):
    players = PlayerRepository()
    a = players.create(db_conn, "Alice", affiliation="North Club")
    b = players.create(db_conn, "Bob")
    match = MatchRepository().create(db_conn, [a.id], [b.id])
    return match, a, b


@pytest.fixture
def session(db_conn, singles_match):
    match, _, _ = singles_match
    ticks = itertools.count(1_000, 5)
    return TrackingSession.open(db_conn, match.id, clock=lambda: next(ticks))


def draft(match_id, hit, receive, area="CR", shot_type="clear", result="continue"):
    return ShotDraft(
        match_id=match_id,
        hit_player=hit,
        receive_player=receive,
        hit_area=CourtArea(area),
        receive_area=CourtArea.CF,
        shot_type=ShotType(shot_type),
        result=ShotResult(result),
    )


# ---------- Repositories ----------


def test_player_and_match_round_trip(db_conn, singles_match):
    match, a, b = singles_match
    assert PlayerRepository().get(db_conn, a.id) == a
    assert PlayerRepository().get(db_conn, "missing") is None
    loaded = MatchRepository().get(db_conn, match.id)
    assert loaded == match
    assert loaded.player_ids == (a.id, b.id)
    assert [p.name for p in PlayerRepository().list_all(db_conn)] == ["Alice", "Bob"]


def test_match_needs_one_or_two_players_per_side(db_conn):
    with pytest.raises(ValueError):
        MatchRepository().create(db_conn, [], ["x"])
    with pytest.raises(ValueError):
        MatchRepository().create(db_conn, ["a", "b", "c"], ["x"])


def test_init_db_is_idempotent(tmp_path):
    db_path = tmp_path / "twice.db"
    init_db(db_path=db_path)
    init_db(db_path=db_path)
    conn = get_connection(db_path)
    try:
        cols = [r[1] for r in conn.execute("PRAGMA table_info(shots)").fetchall()]
    finally:
        conn.close()
    assert "rally_id" in cols and "seq" in cols


# ---------- TrackingSession ----------


class TestTrackingSession:
    def test_open_unknown_match(self, db_conn):
        with pytest.raises(ValueError):
            TrackingSession.open(db_conn, "no-such-match")

    def test_rally_persisted_on_end(self, db_conn, session, singles_match):
        match, a, b = singles_match
        session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id, "CF", "short_serve"))
        session.add_shot(draft(match.id, b.id, a.id, "CF", "lob"))
        session.add_shot(draft(match.id, a.id, b.id, "CR", "smash", "point"))
        completed = session.end_rally(db_conn)
        assert completed is not None
        assert session.state == TrackerState.IDLE

        shots = ShotRepository().list_by_match(db_conn, match.id)
        assert [s.id for s in shots] == [s.id for s in completed.shots]
        rallies = RallyRepository().list_by_match(db_conn, match.id)
        assert len(rallies) == 1
        assert rallies[0] == completed

    def test_end_rally_twice(self, db_conn, session, singles_match):
        match, a, b = singles_match
        session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id, result="point"))
        assert session.end_rally(db_conn) is not None
        assert session.end_rally(db_conn) is None
        assert len(RallyRepository().list_by_match(db_conn, match.id)) == 1

    def test_empty_rally_not_recorded(self, db_conn, session, singles_match):
        match, _, _ = singles_match
        session.start_rally()
        completed = session.end_rally(db_conn)
        assert completed is not None and completed.shots == ()
        assert RallyRepository().list_by_match(db_conn, match.id) == []

    def test_failed_write_keeps_rally_open(self, db_conn, session, singles_match):
        match, a, b = singles_match
        db_conn.execute(
            "CREATE TRIGGER block_rallies BEFORE INSERT ON rallies "
            "BEGIN SELECT RAISE(ABORT, 'ledger unavailable'); END"
        )
        db_conn.commit()
        rally = session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id, "CR", "smash", "point"))
        with pytest.raises(sqlite3.Error):
            session.end_rally(db_conn)
        assert session.state == TrackerState.ACTIVE
        assert session.tracker.current_rally is rally
        assert session.tracker.history == ()
        assert ShotRepository().list_by_match(db_conn, match.id) == []

        db_conn.execute("DROP TRIGGER block_rallies")
        db_conn.commit()
        completed = session.end_rally(db_conn)
        assert completed is not None and completed.id == rally.id
        assert session.state == TrackerState.IDLE
        assert RallyRepository().list_by_match(db_conn, match.id) == [completed]

    def test_add_shot_before_start(self, session, singles_match):
        match, a, b = singles_match
        with pytest.raises(InvalidStateError):
            session.add_shot(draft(match.id, a.id, b.id))

    def test_shot_for_other_match_rejected(self, session, singles_match):
        _, a, b = singles_match
        session.start_rally()
        with pytest.raises(ValueError):
            session.add_shot(draft("other", a.id, b.id))
        assert session.tracker.current_rally.shots == []

    def test_shot_from_outside_player_rejected(self, session, singles_match):
        match, a, _ = singles_match
        session.start_rally()
        with pytest.raises(ValueError):
            session.add_shot(draft(match.id, a.id, "stranger"))

    def test_discard(self, db_conn, session, singles_match):
        match, a, b = singles_match
        session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id))
        assert session.discard_rally() is not None
        assert session.end_rally(db_conn) is None
        assert ShotRepository().list_by_match(db_conn, match.id) == []

    def test_ledger_feeds_analytics(self, db_conn, session, singles_match):
        match, a, b = singles_match
        session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id, "CR", "clear"))
        session.add_shot(draft(match.id, b.id, a.id, "CR", "clear"))
        session.add_shot(draft(match.id, a.id, b.id, "CR", "smash", "point"))
        session.end_rally(db_conn)

        stats = compute_player_stats(ShotRepository().list_by_player(db_conn, a.id), a.id)
        assert stats.total_shots == 2
        assert stats.rear_rate == 100.0
        assert stats.point_rate == "50.0"
        m = compute_match_stats(match.id, ShotRepository().list_by_match(db_conn, match.id))
        assert m.rallies == 1
        assert m.avg_rally_length == 3.0

    def test_deleting_match_removes_shots(self, db_conn, session, singles_match):
        match, a, b = singles_match
        session.start_rally()
        session.add_shot(draft(match.id, a.id, b.id, result="point"))
        session.end_rally(db_conn)
        MatchRepository().delete(db_conn, match.id)
        assert ShotRepository().list_by_match(db_conn, match.id) == []
        assert RallyRepository().list_by_match(db_conn, match.id) == []


# ---------- DiagnosticService ----------


class TestDiagnosticService:
    def test_partial_save_and_resume(self, db_conn):
        svc = DiagnosticService()
        svc.answer(db_conn, "u1", "q1", "E")
        svc.answer(db_conn, "u1", "q2", "I")
        loaded = DiagnosticRepository().get_by_user(db_conn, "u1")
        assert loaded is not None
        assert [a.question_id for a in loaded.answers] == ["q1", "q2"]
        assert loaded.completed is False

    def test_invalid_answer_not_saved(self, db_conn):
        svc = DiagnosticService()
        svc.answer(db_conn, "u1", "q1", "E")
        with pytest.raises(ValueError):
            svc.answer(db_conn, "u1", "q2", "X")
        assert len(svc.get(db_conn, "u1").answers) == 1

    def test_answer_many_is_all_or_nothing(self, db_conn):
        svc = DiagnosticService()
        with pytest.raises(ValueError):
            svc.answer_many(db_conn, "u1", [MBTIAnswer("q1", "E"), MBTIAnswer("q2", "Z")])
        assert svc.get(db_conn, "u1") is None

        svc.answer(db_conn, "u1", "q1", "E")
        with pytest.raises(ValueError):
            svc.answer_many(db_conn, "u1", [MBTIAnswer("q2", "I"), MBTIAnswer("q99", "E")])
        assert [a.question_id for a in svc.get(db_conn, "u1").answers] == ["q1"]

    def test_rejected_first_answer_saves_nothing(self, db_conn):
        svc = DiagnosticService()
        with pytest.raises(ValueError):
            svc.answer(db_conn, "u2", "q1", "X")
        assert svc.get(db_conn, "u2") is None

    def test_finalize_incomplete(self, db_conn):
        svc = DiagnosticService()
        svc.answer_many(db_conn, "u1", [MBTIAnswer(q.id, q.options[0].value) for q in QUESTION_BANK[:15]])
        with pytest.raises(IncompleteDiagnosticError):
            svc.finalize(db_conn, "u1")
        assert svc.list_results(db_conn, "u1") == []

    def test_finalize_without_diagnostic(self, db_conn):
        with pytest.raises(ValueError):
            DiagnosticService().finalize(db_conn, "nobody")

    def test_finalize_saves_result_and_updates_profile(self, db_conn):
        svc = DiagnosticService()
        diag = svc.answer_many(db_conn, "u1", [MBTIAnswer(q.id, q.options[0].value) for q in QUESTION_BANK])
        assert diag.completed and diag.completed_at is not None
        result = svc.finalize(db_conn, "u1")
        assert result.type_code == "ESTJ"
        assert UserProfileRepository().get_mbti_type(db_conn, "u1") == "ESTJ"

        (stored,) = svc.list_results(db_conn, "u1")
        assert stored.id == result.id
        assert stored.score_map == result.score_map
        assert stored.analysis == result.analysis
        assert stored.profile == result.profile

    def test_results_newest_first(self, db_conn):
        svc = DiagnosticService()
        svc.answer_many(db_conn, "u1", [MBTIAnswer(q.id, q.options[0].value) for q in QUESTION_BANK])
        first = svc.finalize(db_conn, "u1")
        svc.restart(db_conn, "u1")
        svc.answer_many(db_conn, "u1", [MBTIAnswer(q.id, q.options[1].value) for q in QUESTION_BANK])
        second = svc.finalize(db_conn, "u1")
        results = svc.list_results(db_conn, "u1")
        assert [r.id for r in results] == [second.id, first.id]
        assert svc.latest_result(db_conn, "u1").type_code == "INFP"
        assert UserProfileRepository().get_mbti_type(db_conn, "u1") == "INFP"
