"""
Persistence layer for the shot ledger and BPSI diagnostics.
Read/write interfaces only; scoring and rally rules live elsewhere.
"""
from .db import get_connection, get_db_path, init_db, set_db_path
from .repositories import (
    PlayerRepository,
    MatchRepository,
    ShotRepository,
    RallyRepository,
    DiagnosticRepository,
    MBTIResultRepository,
    UserProfileRepository,
)

__all__ = [
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "PlayerRepository",
    "MatchRepository",
    "ShotRepository",
    "RallyRepository",
    "DiagnosticRepository",
    "MBTIResultRepository",
    "UserProfileRepository",
]
