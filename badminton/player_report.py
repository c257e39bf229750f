"""
Print a player's zone statistics and rally analysis from the shot ledger.
Reads the same database the API writes (BADMINTON_DB_PATH or data/badminton.db).

    python -m badminton.player_report <player_id> [--match MATCH_ID] [--db PATH]
"""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from badminton.analytics import compute_match_stats, compute_player_stats, one_decimal
from badminton.persistence import (
    get_connection,
    init_db,
    set_db_path,
    MatchRepository,
    PlayerRepository,
    ShotRepository,
)
from badminton.rally_analysis import RANGE_LABELS, analyze_rallies

logger = logging.getLogger(__name__)


def _print_zone_stats(name: str, stats) -> None:
    print(f"\n  {name}: {stats.total_shots} shots")
    print("  " + "-" * 56)
    print(f"  Rear {stats.rear_rate:5.1f}%   Mid {stats.mid_rate:5.1f}%   Front {stats.front_rate:5.1f}%")
    print(f"  Rear-court point rate {stats.point_rate}%   miss rate {stats.miss_rate}%")
    print(f"  Cross-court {stats.cross_rate}%   Serves in {stats.serve_success_rate}%")
    if stats.shot_type_counts:
        mix = ", ".join(f"{k} {v}" for k, v in sorted(stats.shot_type_counts.items(), key=lambda kv: -kv[1]))
        print(f"  Shot mix: {mix}")
    if stats.miss_areas:
        misses = ", ".join(f"{k} {v}" for k, v in sorted(stats.miss_areas.items()))
        print(f"  Misses by zone: {misses}")


def _print_rally_analysis(result) -> None:
    print()
    if not result.total_rallies:
        print("  No completed rallies.")
        return
    print(
        f"  Rallies {result.total_rallies}   avg {result.average_rally_count:.1f}   "
        f"median {result.median_rally_count:.1f}   max {result.max_rally_count}   min {result.min_rally_count}"
    )
    for bucket, b in result.ranges.items():
        print(f"  {RANGE_LABELS[bucket]:>10}: {b.count:3d} rallies, won {b.win_rate * 100:5.1f}%")
    for label, s in (("Short serve", result.short_serve), ("Long serve", result.long_serve)):
        if s.count:
            print(f"  {label}: {s.count} rallies, avg {s.avg_rally:.1f} shots, won {s.win_rate * 100:.1f}%")


def run(player_id: str, match_id: str | None = None, db_path: Path | None = None) -> None:
    if db_path is not None:
        set_db_path(db_path)
    init_db(db_path)
    conn = get_connection()
    try:
        player = PlayerRepository().get(conn, player_id)
        if player is None:
            raise SystemExit(f"Player not found: {player_id}")
        shot_repo = ShotRepository()
        if match_id is not None:
            if MatchRepository().get(conn, match_id) is None:
                raise SystemExit(f"Match not found: {match_id}")
            ledger = shot_repo.list_by_match(conn, match_id)
        else:
            match_ids = {s.match_id for s in shot_repo.list_by_player(conn, player_id)}
            ledger = [s for mid in sorted(match_ids) for s in shot_repo.list_by_match(conn, mid)]
    finally:
        conn.close()

    logger.debug("Loaded %d shots for player %s", len(ledger), player_id)
    _print_zone_stats(player.name, compute_player_stats(ledger, player_id))
    if match_id is not None:
        m = compute_match_stats(match_id, ledger)
        print(
            f"\n  Match {match_id}: {m.total_shots} shots, {m.winners} winners, {m.errors} errors, "
            f"avg rally {one_decimal(m.avg_rally_length)}"
        )
    _print_rally_analysis(analyze_rallies(ledger, match_id=match_id, player_id=player_id))
    print()


def main():
    parser = argparse.ArgumentParser(description="Print zone statistics and rally analysis for a player.")
    parser.add_argument("player_id", help="Player id")
    parser.add_argument("--match", dest="match_id", default=None, help="Limit to one match")
    parser.add_argument("--db", type=Path, default=None, help="SQLite database path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run(args.player_id, match_id=args.match_id, db_path=args.db)


if __name__ == "__main__":
    main()
