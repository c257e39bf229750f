"""
Advanced read-outs for a scored diagnostic: confidence, borderline traits,
cognitive functions, A/T sub-type, answer consistency, nearby alternative types,
and a growth level derived from consistency.
Pure functions over answers + tallies; nothing here changes the type code.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Sequence

from badminton.diagnostic.schemas import (
    CATEGORY_ORDER,
    AdvancedAnalysis,
    AlternativeType,
    MBTIAnswer,
    MBTIQuestion,
    TraitCategory,
)

BORDERLINE_THRESHOLD = 0.2  # margin / questions-in-category at or below this is borderline
ASSERTIVE_LETTERS = frozenset({"E", "S", "T", "J"})
ASSERTIVE_RATIO = 0.6
ALTERNATIVE_COUNT = 3

COGNITIVE_FUNCTIONS: MappingProxyType[str, tuple[str, ...]] = MappingProxyType({
    "ESTJ": ("Te", "Si", "Ne", "Fi"),
    "ESTP": ("Se", "Ti", "Fe", "Ni"),
    "ESFJ": ("Fe", "Si", "Ne", "Ti"),
    "ESFP": ("Fi", "Se", "Te", "Ni"),
    "ENTJ": ("Te", "Ni", "Se", "Fi"),
    "ENTP": ("Ne", "Ti", "Fe", "Si"),
    "ENFJ": ("Fe", "Ni", "Se", "Ti"),
    "ENFP": ("Ne", "Fi", "Te", "Si"),
    "ISTJ": ("Si", "Te", "Fi", "Ne"),
    "ISTP": ("Ti", "Se", "Ni", "Fe"),
    "ISFJ": ("Si", "Fe", "Ti", "Ne"),
    "ISFP": ("Fi", "Se", "Ni", "Te"),
    "INTJ": ("Ni", "Te", "Fi", "Se"),
    "INTP": ("Ti", "Ne", "Si", "Fe"),
    "INFJ": ("Ni", "Fe", "Ti", "Se"),
    "INFP": ("Fi", "Ne", "Si", "Te"),
})

FUNCTION_DESCRIPTIONS: MappingProxyType[str, str] = MappingProxyType({
    "Te": "Extraverted Thinking - efficient organisation and execution",
    "Ti": "Introverted Thinking - logical analysis and understanding",
    "Fe": "Extraverted Feeling - harmony and care for others",
    "Fi": "Introverted Feeling - personal values and conviction",
    "Se": "Extraverted Sensing - present experience and action",
    "Si": "Introverted Sensing - past experience and memory",
    "Ne": "Extraverted Intuition - possibilities and new ideas",
    "Ni": "Introverted Intuition - insight and future vision",
})


def _round(x: float) -> int:
    """Half-up rounding for non-negative percentages."""
    return math.floor(x + 0.5)


def _questions_per_category(questions: Sequence[MBTIQuestion]) -> dict[TraitCategory, int]:
    counts = {c: 0 for c in CATEGORY_ORDER}
    for q in questions:
        counts[q.category] += 1
    return counts


def _margin_ratios(
    scores: dict[str, int], per_category: dict[TraitCategory, int]
) -> list[tuple[TraitCategory, int, float]]:
    """(category, absolute margin, margin / questions) in type-code order; empty categories skipped."""
    out = []
    for c in CATEGORY_ORDER:
        n = per_category[c]
        if n == 0:
            continue
        a, b = c.letters
        margin = abs(scores.get(a, 0) - scores.get(b, 0))
        out.append((c, margin, margin / n))
    return out


def confidence_score(scores: dict[str, int], questions: Sequence[MBTIQuestion]) -> int:
    ratios = _margin_ratios(scores, _questions_per_category(questions))
    if not ratios:
        return 0
    return _round(sum(r for _, _, r in ratios) / len(ratios) * 100)


def borderline_traits(scores: dict[str, int], questions: Sequence[MBTIQuestion]) -> tuple[str, ...]:
    ratios = _margin_ratios(scores, _questions_per_category(questions))
    return tuple(c.value for c, _, r in ratios if r <= BORDERLINE_THRESHOLD)


def dominant_functions(type_code: str) -> tuple[str, ...]:
    return tuple(f"{f}: {FUNCTION_DESCRIPTIONS[f]}" for f in COGNITIVE_FUNCTIONS[type_code])


def sub_type(answers: Sequence[MBTIAnswer], type_code: str) -> str:
    """-A (assertive) when more than 60% of answers are E/S/T/J, otherwise -T (turbulent)."""
    if not answers:
        return f"{type_code}-T"
    assertive = sum(1 for a in answers if a.selected_value in ASSERTIVE_LETTERS)
    return f"{type_code}-A" if assertive / len(answers) > ASSERTIVE_RATIO else f"{type_code}-T"


def consistency(answers: Sequence[MBTIAnswer], questions: Sequence[MBTIQuestion]) -> int:
    """Mean share of the majority letter within each answered category, 0-100."""
    category_of = {q.id: q.category for q in questions}
    values: dict[TraitCategory, list[str]] = {c: [] for c in CATEGORY_ORDER}
    for a in answers:
        c = category_of.get(a.question_id)
        if c is not None:
            values[c].append(a.selected_value)
    shares = []
    for c, vals in values.items():
        if not vals:
            continue
        first, second = c.letters
        shares.append(max(vals.count(first), vals.count(second)) / len(vals))
    if not shares:
        return 0
    return _round(sum(shares) / len(shares) * 100)


def _flip(type_code: str, category: TraitCategory) -> str:
    index = CATEGORY_ORDER.index(category)
    first, second = category.letters
    letters = list(type_code)
    letters[index] = second if letters[index] == first else first
    return "".join(letters)


def alternative_types(
    scores: dict[str, int], type_code: str, questions: Sequence[MBTIQuestion]
) -> tuple[AlternativeType, ...]:
    """Flip each of the three closest categories; closer margins give higher probability."""
    ratios = _margin_ratios(scores, _questions_per_category(questions))
    closest = sorted(ratios, key=lambda item: item[1])[:ALTERNATIVE_COUNT]
    return tuple(
        AlternativeType(type_code=_flip(type_code, c), probability=_round((1 - r) * 100))
        for c, _, r in closest
    )


def perform_advanced_analysis(
    answers: Sequence[MBTIAnswer],
    scores: dict[str, int],
    type_code: str,
    questions: Sequence[MBTIQuestion],
) -> AdvancedAnalysis:
    return AdvancedAnalysis(
        confidence_score=confidence_score(scores, questions),
        borderline_traits=borderline_traits(scores, questions),
        dominant_functions=dominant_functions(type_code),
        sub_type=sub_type(answers, type_code),
        consistency=consistency(answers, questions),
        alternative_types=alternative_types(scores, type_code, questions),
    )


# ---------- Growth level ----------


@dataclass(frozen=True)
class GrowthLevel:
    level: str  # Beginner | Intermediate | Advanced | Expert
    description: str
    next_steps: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {"level": self.level, "description": self.description, "next_steps": list(self.next_steps)}


_GROWTH_LEVELS = (
    (90, GrowthLevel(
        "Expert",
        "You understand your traits deeply and put them to effective use.",
        ("Coach others", "Help run the team", "Take on new challenges"),
    )),
    (75, GrowthLevel(
        "Advanced",
        "You know how to use your strengths and cover your weaknesses.",
        ("Show leadership", "Sharpen tactical thinking", "Develop coaching skills"),
    )),
    (60, GrowthLevel(
        "Intermediate",
        "You understand your basic traits and are starting to apply them.",
        ("Play more consistently", "Work on weaknesses", "Specialise your strengths"),
    )),
)

_BEGINNER = GrowthLevel(
    "Beginner",
    "You are discovering your traits and beginning to understand them.",
    ("Deepen self-understanding", "Learn the basic techniques", "Build match experience"),
)


def assess_growth_level(consistency_score: int) -> GrowthLevel:
    for threshold, level in _GROWTH_LEVELS:
        if consistency_score >= threshold:
            return level
    return _BEGINNER
