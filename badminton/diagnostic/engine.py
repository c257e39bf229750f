"""
Trait scoring for BPSI diagnostics.

Answers arrive one at a time (a diagnostic may be saved half-finished and resumed);
scoring is only allowed once every question in the bank has an answer. For each
category the letter with the higher tally wins; an equal split goes to the
first-listed letter (E, S, T, J).
"""
from __future__ import annotations

import time
import uuid
from typing import Callable, Sequence

from badminton.diagnostic.analysis import perform_advanced_analysis
from badminton.diagnostic.profiles import resolve_profile
from badminton.diagnostic.questions import QUESTION_BANK
from badminton.diagnostic.schemas import (
    CATEGORY_ORDER,
    TRAIT_LETTERS,
    MBTIAnswer,
    MBTIDiagnostic,
    MBTIQuestion,
    MBTIResult,
)


class IncompleteDiagnosticError(ValueError):
    """Scoring attempted before every question was answered."""

    def __init__(self, answered: int, total: int) -> None:
        super().__init__(f"Diagnostic incomplete: {answered} of {total} questions answered")
        self.answered = answered
        self.total = total


def _now_ms() -> int:
    return int(time.time() * 1000)


def _questions_by_id(questions: Sequence[MBTIQuestion]) -> dict[str, MBTIQuestion]:
    return {q.id: q for q in questions}


def new_diagnostic(user_id: str, now: int | None = None, id: str | None = None) -> MBTIDiagnostic:
    return MBTIDiagnostic(
        id=id or f"diag_{uuid.uuid4()}",
        user_id=user_id,
        created_at=now if now is not None else _now_ms(),
    )


def validate_answer(answer: MBTIAnswer, questions: Sequence[MBTIQuestion] = QUESTION_BANK) -> MBTIQuestion:
    q = _questions_by_id(questions).get(answer.question_id)
    if q is None:
        raise ValueError(f"Unknown question: {answer.question_id}")
    if answer.selected_value not in q.option_values:
        raise ValueError(
            f"Invalid answer {answer.selected_value!r} for {q.id}; expected one of {q.option_values}"
        )
    return q


def is_complete(answers: Sequence[MBTIAnswer], questions: Sequence[MBTIQuestion] = QUESTION_BANK) -> bool:
    answered = {a.question_id for a in answers}
    return all(q.id in answered for q in questions)


def record_answer(
    diagnostic: MBTIDiagnostic,
    answer: MBTIAnswer,
    questions: Sequence[MBTIQuestion] = QUESTION_BANK,
    now: int | None = None,
) -> MBTIDiagnostic:
    """
    Add or overwrite the answer for one question (in place) and update completion.
    Validation happens first, so a rejected answer leaves the diagnostic untouched.
    """
    validate_answer(answer, questions)
    for i, existing in enumerate(diagnostic.answers):
        if existing.question_id == answer.question_id:
            diagnostic.answers[i] = answer
            break
    else:
        diagnostic.answers.append(answer)
    if not diagnostic.completed and is_complete(diagnostic.answers, questions):
        diagnostic.completed = True
        diagnostic.completed_at = now if now is not None else _now_ms()
    return diagnostic


def tally_scores(
    answers: Sequence[MBTIAnswer], questions: Sequence[MBTIQuestion] = QUESTION_BANK
) -> dict[str, int]:
    """Raw count per letter, all eight letters present. A repeated question id counts once (last wins)."""
    latest = {a.question_id: a for a in answers}
    scores = {letter: 0 for letter in TRAIT_LETTERS}
    for a in latest.values():
        validate_answer(a, questions)
        scores[a.selected_value] += 1
    return scores


def resolve_type(scores: dict[str, int]) -> str:
    """Strictly higher tally wins; a tie goes to the first-listed letter of the category."""
    code = []
    for c in CATEGORY_ORDER:
        first, second = c.letters
        code.append(second if scores.get(second, 0) > scores.get(first, 0) else first)
    return "".join(code)


def score_answers(
    answers: Sequence[MBTIAnswer], questions: Sequence[MBTIQuestion] = QUESTION_BANK
) -> tuple[str, dict[str, int]]:
    """Return (type_code, letter tallies). Raises IncompleteDiagnosticError if any question is unanswered."""
    answered = {a.question_id for a in answers}
    done = sum(1 for q in questions if q.id in answered)
    if done < len(questions):
        raise IncompleteDiagnosticError(done, len(questions))
    scores = tally_scores(answers, questions)
    return resolve_type(scores), scores


def score_diagnostic(
    diagnostic: MBTIDiagnostic,
    questions: Sequence[MBTIQuestion] = QUESTION_BANK,
    now: int | None = None,
    id_factory: Callable[[], str] | None = None,
) -> MBTIResult:
    """Build the immutable result (type, tallies, profile, analysis) for a finished diagnostic."""
    type_code, scores = score_answers(diagnostic.answers, questions)
    profile = resolve_profile(type_code)
    analysis = perform_advanced_analysis(diagnostic.answers, scores, type_code, questions)
    return MBTIResult(
        id=id_factory() if id_factory else f"mbti_{uuid.uuid4()}",
        user_id=diagnostic.user_id,
        type_code=type_code,
        scores=tuple((letter, scores[letter]) for letter in TRAIT_LETTERS),
        profile=profile,
        analysis=analysis,
        created_at=now if now is not None else _now_ms(),
    )
