"""
SQLite schema for players, matches, the shot ledger and BPSI diagnostics.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def players_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS players (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        affiliation TEXT
    );
    """


def matches_schema() -> str:
    """side_a / side_b: JSON arrays of 1-2 player ids."""
    return """
    CREATE TABLE IF NOT EXISTS matches (
        id TEXT PRIMARY KEY,
        side_a TEXT NOT NULL,
        side_b TEXT NOT NULL,
        created_at INTEGER NOT NULL
    );
    """


def rallies_schema() -> str:
    """Closed rallies only; open rallies live in the tracker."""
    return """
    CREATE TABLE IF NOT EXISTS rallies (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        start_time INTEGER NOT NULL,
        end_time INTEGER NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_rallies_match ON rallies(match_id);
    """


def shots_schema() -> str:
    """Append-only shot ledger. seq keeps arrival order within a rally."""
    return """
    CREATE TABLE IF NOT EXISTS shots (
        id TEXT PRIMARY KEY,
        match_id TEXT NOT NULL,
        rally_id TEXT,
        seq INTEGER NOT NULL DEFAULT 0,
        hit_player TEXT NOT NULL,
        receive_player TEXT NOT NULL,
        hit_area TEXT NOT NULL,
        receive_area TEXT NOT NULL,
        shot_type TEXT NOT NULL,
        result TEXT NOT NULL,
        is_cross INTEGER NOT NULL DEFAULT 0,
        timestamp INTEGER NOT NULL,
        FOREIGN KEY (match_id) REFERENCES matches(id) ON DELETE CASCADE,
        FOREIGN KEY (rally_id) REFERENCES rallies(id) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS ix_shots_match ON shots(match_id);
    CREATE INDEX IF NOT EXISTS ix_shots_hit_player ON shots(hit_player);
    """


def diagnostics_schema() -> str:
    """One in-progress or completed diagnostic per user; answers as JSON."""
    return """
    CREATE TABLE IF NOT EXISTS mbti_diagnostics (
        user_id TEXT PRIMARY KEY,
        id TEXT NOT NULL,
        answers TEXT NOT NULL,
        completed INTEGER NOT NULL DEFAULT 0,
        created_at INTEGER NOT NULL,
        completed_at INTEGER
    );
    """


def results_schema() -> str:
    """Scored results; a user may have many, newest supersedes."""
    return """
    CREATE TABLE IF NOT EXISTS mbti_results (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        type_code TEXT NOT NULL,
        scores TEXT NOT NULL,
        analysis TEXT NOT NULL,
        created_at INTEGER NOT NULL
    );
    CREATE INDEX IF NOT EXISTS ix_mbti_results_user ON mbti_results(user_id);
    """


def user_profiles_schema() -> str:
    """Receives the latest type code; written one-way by the diagnostic service."""
    return """
    CREATE TABLE IF NOT EXISTS user_profiles (
        user_id TEXT PRIMARY KEY,
        mbti_result TEXT,
        mbti_completed_at INTEGER
    );
    """


def all_schema_sql() -> str:
    """Full schema for a fresh database."""
    return (
        players_schema()
        + matches_schema()
        + rallies_schema()
        + shots_schema()
        + diagnostics_schema()
        + results_schema()
        + user_profiles_schema()
    )
