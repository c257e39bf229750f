"""
Badminton Play Style Indicator (BPSI): forced-choice questionnaire scored into a
four-letter type code, resolved to a play-style profile.

Scoring rules are covered in badminton/tests/test_diagnostic.py (tallies, tie-break,
incomplete diagnostics, determinism).
"""
from __future__ import annotations

from badminton.diagnostic.analysis import assess_growth_level, perform_advanced_analysis
from badminton.diagnostic.engine import (
    IncompleteDiagnosticError,
    is_complete,
    new_diagnostic,
    record_answer,
    resolve_type,
    score_answers,
    score_diagnostic,
    tally_scores,
)
from badminton.diagnostic.profiles import (
    PROFILES,
    UnknownTypeError,
    partner_compatibility,
    resolve_profile,
)
from badminton.diagnostic.questions import QUESTION_BANK, get_question
from badminton.diagnostic.schemas import (
    MBTIAnswer,
    MBTIDiagnostic,
    MBTIQuestion,
    MBTIResult,
    PlayStyleProfile,
    TraitCategory,
)

__all__ = [
    "assess_growth_level",
    "perform_advanced_analysis",
    "IncompleteDiagnosticError",
    "is_complete",
    "new_diagnostic",
    "record_answer",
    "resolve_type",
    "score_answers",
    "score_diagnostic",
    "tally_scores",
    "PROFILES",
    "UnknownTypeError",
    "partner_compatibility",
    "resolve_profile",
    "QUESTION_BANK",
    "get_question",
    "MBTIAnswer",
    "MBTIDiagnostic",
    "MBTIQuestion",
    "MBTIResult",
    "PlayStyleProfile",
    "TraitCategory",
]
