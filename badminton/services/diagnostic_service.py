"""
Diagnostic-centric service: partial saves, finalisation, result history.
Scoring is delegated to badminton.diagnostic; persistence to repositories.
"""
from __future__ import annotations

import logging
import sqlite3

from badminton.diagnostic.engine import (
    IncompleteDiagnosticError,
    new_diagnostic,
    record_answer,
    score_diagnostic,
    validate_answer,
)
from badminton.diagnostic.questions import QUESTION_BANK
from badminton.diagnostic.schemas import MBTIAnswer, MBTIDiagnostic, MBTIResult
from badminton.persistence.repositories import (
    DiagnosticRepository,
    MBTIResultRepository,
    UserProfileRepository,
)

logger = logging.getLogger(__name__)


class DiagnosticService:
    """
    One diagnostic per user, resumable across sessions.
    finalize() writes a new result and pushes the type code to the user profile;
    earlier results are kept.
    """

    def __init__(self, questions=QUESTION_BANK) -> None:
        self._questions = questions
        self._diag_repo = DiagnosticRepository()
        self._result_repo = MBTIResultRepository()
        self._profile_repo = UserProfileRepository()

    def get(self, conn: sqlite3.Connection, user_id: str) -> MBTIDiagnostic | None:
        return self._diag_repo.get_by_user(conn, user_id)

    def _load_or_new(self, conn: sqlite3.Connection, user_id: str) -> MBTIDiagnostic:
        """Stored diagnostic, or an unsaved empty one for a first-time user."""
        return self._diag_repo.get_by_user(conn, user_id) or new_diagnostic(user_id)

    def restart(self, conn: sqlite3.Connection, user_id: str) -> MBTIDiagnostic:
        """Replace any existing diagnostic with an empty one. Results stay."""
        diag = new_diagnostic(user_id)
        self._diag_repo.upsert(conn, diag)
        return diag

    def answer(
        self, conn: sqlite3.Connection, user_id: str, question_id: str, selected_value: str
    ) -> MBTIDiagnostic:
        """Record one answer and save. Invalid answers raise ValueError and nothing is saved."""
        answer = MBTIAnswer(question_id, selected_value)
        try:
            validate_answer(answer, self._questions)
        except ValueError as e:
            logger.warning("Answer rejected for user %s: %s", user_id, e)
            raise
        diag = self._load_or_new(conn, user_id)
        was_completed = diag.completed
        record_answer(diag, answer, self._questions)
        self._diag_repo.upsert(conn, diag)
        if diag.completed and not was_completed:
            logger.info("Diagnostic %s completed for user %s", diag.id, user_id)
        return diag

    def answer_many(
        self, conn: sqlite3.Connection, user_id: str, answers: list[MBTIAnswer]
    ) -> MBTIDiagnostic:
        """All-or-nothing batch: every answer is validated before anything is saved."""
        try:
            for a in answers:
                validate_answer(a, self._questions)
        except ValueError as e:
            logger.warning("Answer batch rejected for user %s: %s", user_id, e)
            raise
        diag = self._load_or_new(conn, user_id)
        for a in answers:
            record_answer(diag, a, self._questions)
        self._diag_repo.upsert(conn, diag)
        return diag

    def finalize(self, conn: sqlite3.Connection, user_id: str) -> MBTIResult:
        """
        Score the user's diagnostic, store the result and notify the user profile.
        Raises ValueError if no diagnostic exists, IncompleteDiagnosticError if unfinished.
        """
        diag = self._diag_repo.get_by_user(conn, user_id)
        if diag is None:
            raise ValueError(f"No diagnostic for user: {user_id}")
        try:
            result = score_diagnostic(diag, self._questions)
        except IncompleteDiagnosticError as e:
            logger.warning("Finalize rejected for user %s: %s", user_id, e)
            raise
        self._result_repo.save(conn, result)
        self._profile_repo.set_mbti_type(conn, user_id, result.type_code, result.created_at)
        logger.info("Result %s saved for user %s: %s", result.id, user_id, result.type_code)
        return result

    def list_results(self, conn: sqlite3.Connection, user_id: str) -> list[MBTIResult]:
        return self._result_repo.list_by_user(conn, user_id)

    def latest_result(self, conn: sqlite3.Connection, user_id: str) -> MBTIResult | None:
        return self._result_repo.get_latest(conn, user_id)
