"""
Tests for BPSI scoring: answer recording, tallies, tie-break, incomplete
diagnostics, advanced analysis and growth level.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from badminton.diagnostic import (
    QUESTION_BANK,
    IncompleteDiagnosticError,
    MBTIAnswer,
    TraitCategory,
    assess_growth_level,
    get_question,
    is_complete,
    new_diagnostic,
    record_answer,
    resolve_type,
    score_answers,
    score_diagnostic,
    tally_scores,
)
from badminton.diagnostic.analysis import (
    alternative_types,
    borderline_traits,
    confidence_score,
    consistency,
    dominant_functions,
    sub_type,
)
from badminton.diagnostic.schemas import MBTIQuestion, QuestionOption


def answers_for(picks: dict[TraitCategory, str]) -> list[MBTIAnswer]:
    """picks: category -> string of letters, one per question of that category in bank order."""
    used = {c: 0 for c in TraitCategory}
    out = []
    for q in QUESTION_BANK:
        out.append(MBTIAnswer(q.id, picks[q.category][used[q.category]]))
        used[q.category] += 1
    return out


def first_letters() -> list[MBTIAnswer]:
    return [MBTIAnswer(q.id, q.options[0].value) for q in QUESTION_BANK]


class TestQuestionBank:
    def test_sixteen_questions_four_per_category(self):
        assert len(QUESTION_BANK) == 16
        for c in TraitCategory:
            assert sum(1 for q in QUESTION_BANK if q.category == c) == 4

    def test_options_cover_category_letters(self):
        for q in QUESTION_BANK:
            assert set(q.option_values) == set(q.category.letters)

    def test_unique_ids(self):
        assert len({q.id for q in QUESTION_BANK}) == len(QUESTION_BANK)

    def test_get_question(self):
        assert get_question("q1").category == TraitCategory.EI
        with pytest.raises(ValueError):
            get_question("q99")

    def test_question_rejects_wrong_letters(self):
        with pytest.raises(ValueError):
            MBTIQuestion(
                id="bad",
                category=TraitCategory.EI,
                question="?",
                options=(QuestionOption("a", "E"), QuestionOption("b", "S")),
            )


class TestScoring:
    def test_all_first_letters_is_estj(self):
        code, scores = score_answers(first_letters())
        assert code == "ESTJ"
        assert scores == {"E": 4, "I": 0, "S": 4, "N": 0, "T": 4, "F": 0, "J": 4, "P": 0}

    def test_all_second_letters_is_infp(self):
        answers = [MBTIAnswer(q.id, q.options[1].value) for q in QUESTION_BANK]
        code, _ = score_answers(answers)
        assert code == "INFP"

    def test_mixed(self):
        answers = answers_for({
            TraitCategory.EI: "IIIE",
            TraitCategory.SN: "NSNN",
            TraitCategory.TF: "TTTF",
            TraitCategory.JP: "PPJP",
        })
        code, scores = score_answers(answers)
        assert code == "INTP"
        assert scores["I"] == 3 and scores["E"] == 1

    def test_tie_goes_to_first_letter(self):
        answers = answers_for({
            TraitCategory.EI: "EIEI",
            TraitCategory.SN: "SNNS",
            TraitCategory.TF: "FTTF",
            TraitCategory.JP: "PJJP",
        })
        code, _ = score_answers(answers)
        assert code == "ESTJ"

    def test_resolve_type_strict_majority(self):
        assert resolve_type({"E": 1, "I": 2, "S": 2, "N": 2, "T": 0, "F": 1, "J": 3, "P": 1}) == "ISFJ"

    def test_deterministic(self):
        answers = answers_for({
            TraitCategory.EI: "EEIE",
            TraitCategory.SN: "NNNS",
            TraitCategory.TF: "FTFF",
            TraitCategory.JP: "JPPP",
        })
        assert score_answers(answers) == score_answers(list(answers))
        assert score_answers(answers)[0] == "ENFP"

    def test_fifteen_of_sixteen_raises(self):
        answers = first_letters()[:15]
        with pytest.raises(IncompleteDiagnosticError) as exc_info:
            score_answers(answers)
        assert exc_info.value.answered == 15
        assert exc_info.value.total == 16
        assert isinstance(exc_info.value, ValueError)

    def test_tally_counts_repeated_question_once(self):
        answers = first_letters() + [MBTIAnswer("q1", "I")]
        scores = tally_scores(answers)
        assert scores["E"] == 3
        assert scores["I"] == 1

    def test_tally_rejects_invalid_letter(self):
        with pytest.raises(ValueError):
            tally_scores([MBTIAnswer("q1", "S")])

    def test_custom_question_set(self):
        bank = tuple(q for q in QUESTION_BANK if q.id in {"q1", "q5", "q9", "q13"})
        answers = [MBTIAnswer("q1", "I"), MBTIAnswer("q5", "S"), MBTIAnswer("q9", "F"), MBTIAnswer("q13", "J")]
        code, _ = score_answers(answers, bank)
        assert code == "ISFJ"


class TestRecordAnswer:
    def test_partial_diagnostic_not_complete(self):
        diag = new_diagnostic("u1", now=1)
        record_answer(diag, MBTIAnswer("q1", "E"), now=2)
        assert diag.completed is False
        assert diag.completed_at is None
        assert len(diag.answers) == 1

    def test_reanswer_overwrites_in_place(self):
        diag = new_diagnostic("u1", now=1)
        record_answer(diag, MBTIAnswer("q1", "E"))
        record_answer(diag, MBTIAnswer("q2", "E"))
        record_answer(diag, MBTIAnswer("q1", "I"))
        assert [a.question_id for a in diag.answers] == ["q1", "q2"]
        assert diag.answer_for("q1").selected_value == "I"

    def test_invalid_letter_rejected_without_change(self):
        diag = new_diagnostic("u1", now=1)
        record_answer(diag, MBTIAnswer("q1", "E"))
        with pytest.raises(ValueError):
            record_answer(diag, MBTIAnswer("q1", "N"))
        assert diag.answer_for("q1").selected_value == "E"

    def test_unknown_question_rejected(self):
        diag = new_diagnostic("u1", now=1)
        with pytest.raises(ValueError):
            record_answer(diag, MBTIAnswer("q42", "E"))
        assert diag.answers == []

    def test_completes_on_last_answer(self):
        diag = new_diagnostic("u1", now=1)
        for i, a in enumerate(first_letters()):
            record_answer(diag, a, now=100 + i)
        assert diag.completed is True
        assert diag.completed_at == 115
        assert is_complete(diag.answers)

    def test_score_diagnostic_builds_result(self):
        diag = new_diagnostic("u1", now=1)
        for a in first_letters():
            record_answer(diag, a)
        result = score_diagnostic(diag, now=500, id_factory=lambda: "r1")
        assert result.id == "r1"
        assert result.user_id == "u1"
        assert result.type_code == "ESTJ"
        assert result.profile.type_code == "ESTJ"
        assert result.profile.title
        assert result.profile.strengths
        assert result.created_at == 500
        d = result.to_dict()
        assert d["result"] == "ESTJ"
        assert d["scores"]["E"] == 4
        assert d["analysis"]["sub_type"] == "ESTJ-A"

    def test_score_incomplete_diagnostic(self):
        diag = new_diagnostic("u1", now=1)
        record_answer(diag, MBTIAnswer("q1", "E"))
        with pytest.raises(IncompleteDiagnosticError):
            score_diagnostic(diag)

    def test_diagnostic_round_trip_dict(self):
        diag = new_diagnostic("u1", now=1, id="d1")
        record_answer(diag, MBTIAnswer("q3", "I"))
        again = type(diag).from_dict(diag.to_dict())
        assert again == diag


class TestAdvancedAnalysis:
    def test_confidence_full_margin(self):
        _, scores = score_answers(first_letters())
        assert confidence_score(scores, QUESTION_BANK) == 100
        assert borderline_traits(scores, QUESTION_BANK) == ()

    def test_confidence_and_borderline_with_ties(self):
        answers = answers_for({
            TraitCategory.EI: "EIEI",   # margin 0
            TraitCategory.SN: "SSSN",   # margin 2
            TraitCategory.TF: "TTTT",   # margin 4
            TraitCategory.JP: "JJJJ",   # margin 4
        })
        _, scores = score_answers(answers)
        # (0 + 0.5 + 1 + 1) / 4
        assert confidence_score(scores, QUESTION_BANK) == 63
        assert borderline_traits(scores, QUESTION_BANK) == ("E/I",)

    def test_dominant_functions(self):
        funcs = dominant_functions("INTJ")
        assert len(funcs) == 4
        assert funcs[0].startswith("Ni:")
        assert funcs[1].startswith("Te:")

    def test_sub_type_threshold(self):
        estj = first_letters()
        assert sub_type(estj, "ESTJ") == "ESTJ-A"
        # 9 of 16 assertive letters is 56%: not above 60%
        answers = answers_for({
            TraitCategory.EI: "EEEE",
            TraitCategory.SN: "SSSS",
            TraitCategory.TF: "TFFF",
            TraitCategory.JP: "PPPP",
        })
        assert sub_type(answers, "ESFP") == "ESFP-T"

    def test_consistency(self):
        answers = answers_for({
            TraitCategory.EI: "EEEI",   # 0.75
            TraitCategory.SN: "SSSS",   # 1.0
            TraitCategory.TF: "TTFF",   # 0.5
            TraitCategory.JP: "JJJJ",   # 1.0
        })
        assert consistency(answers, QUESTION_BANK) == 81

    def test_consistency_uses_bank_categories_not_answer_order(self):
        answers = list(reversed(first_letters()))
        assert consistency(answers, QUESTION_BANK) == 100

    def test_alternative_types_flip_closest_categories(self):
        answers = answers_for({
            TraitCategory.EI: "EIEI",   # margin 0
            TraitCategory.SN: "SSSN",   # margin 2
            TraitCategory.TF: "TTTT",   # margin 4
            TraitCategory.JP: "JJJP",   # margin 2
        })
        code, scores = score_answers(answers)
        assert code == "ESTJ"
        alts = alternative_types(scores, code, QUESTION_BANK)
        assert [a.type_code for a in alts] == ["ISTJ", "ENTJ", "ESTP"]
        assert [a.probability for a in alts] == [100, 50, 50]


@pytest.mark.parametrize("score,level", [
    (100, "Expert"),
    (90, "Expert"),
    (89, "Advanced"),
    (75, "Advanced"),
    (74, "Intermediate"),
    (60, "Intermediate"),
    (59, "Beginner"),
    (0, "Beginner"),
])
def test_growth_level_thresholds(score, level):
    growth = assess_growth_level(score)
    assert growth.level == level
    assert growth.next_steps
