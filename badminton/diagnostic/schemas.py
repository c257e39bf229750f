"""
Schemas for the play-style diagnostic (BPSI).
Questions and profiles are static; diagnostics are mutable until completed;
results are frozen once computed.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TraitCategory(str, Enum):
    """Four opposing-letter dimensions, in type-code order."""
    EI = "E/I"
    SN = "S/N"
    TF = "T/F"
    JP = "J/P"

    @property
    def letters(self) -> tuple[str, str]:
        first, second = self.value.split("/")
        return first, second


CATEGORY_ORDER: tuple[TraitCategory, ...] = tuple(TraitCategory)
TRAIT_LETTERS: tuple[str, ...] = tuple(letter for c in CATEGORY_ORDER for letter in c.letters)


@dataclass(frozen=True)
class QuestionOption:
    text: str
    value: str  # one of TRAIT_LETTERS


@dataclass(frozen=True)
class MBTIQuestion:
    """Forced-choice question: exactly two options, one per letter of its category."""
    id: str
    category: TraitCategory
    question: str
    options: tuple[QuestionOption, ...]

    def __post_init__(self) -> None:
        if len(self.options) != 2:
            raise ValueError(f"Question {self.id} must have exactly two options")
        values = {o.value for o in self.options}
        if values != set(self.category.letters):
            raise ValueError(
                f"Question {self.id} options must cover {self.category.value}, got {sorted(values)}"
            )

    @property
    def option_values(self) -> tuple[str, ...]:
        return tuple(o.value for o in self.options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "question": self.question,
            "options": [{"text": o.text, "value": o.value} for o in self.options],
        }


@dataclass(frozen=True)
class MBTIAnswer:
    question_id: str
    selected_value: str

    def to_dict(self) -> dict[str, Any]:
        return {"question_id": self.question_id, "selected_value": self.selected_value}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MBTIAnswer:
        return cls(question_id=d["question_id"], selected_value=d["selected_value"])


@dataclass
class MBTIDiagnostic:
    """
    A user's in-progress or completed answer set.
    answers keeps first-answer order; re-answering replaces in place.
    completed flips to True exactly when every question has an answer.
    """
    id: str
    user_id: str
    created_at: int  # epoch ms
    answers: list[MBTIAnswer] = field(default_factory=list)
    completed: bool = False
    completed_at: int | None = None

    def answer_for(self, question_id: str) -> MBTIAnswer | None:
        for a in self.answers:
            if a.question_id == question_id:
                return a
        return None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "user_id": self.user_id,
            "answers": [a.to_dict() for a in self.answers],
            "completed": self.completed,
            "created_at": self.created_at,
        }
        if self.completed_at is not None:
            d["completed_at"] = self.completed_at
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MBTIDiagnostic:
        return cls(
            id=d["id"],
            user_id=d["user_id"],
            created_at=d["created_at"],
            answers=[MBTIAnswer.from_dict(a) for a in d.get("answers", [])],
            completed=bool(d.get("completed", False)),
            completed_at=d.get("completed_at"),
        )


@dataclass(frozen=True)
class PlayStyleProfile:
    """Narrative profile for one type code."""
    type_code: str
    title: str
    description: str
    play_style: str
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]
    recommendations: tuple[str, ...]
    partner_recommendations: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type_code,
            "title": self.title,
            "description": self.description,
            "play_style": self.play_style,
            "strengths": list(self.strengths),
            "weaknesses": list(self.weaknesses),
            "recommendations": list(self.recommendations),
            "partner_recommendations": list(self.partner_recommendations),
        }


@dataclass(frozen=True)
class AlternativeType:
    type_code: str
    probability: int


@dataclass(frozen=True)
class AdvancedAnalysis:
    """Secondary read-outs shown next to a result."""
    confidence_score: int  # 0-100
    borderline_traits: tuple[str, ...]
    dominant_functions: tuple[str, ...]
    sub_type: str  # e.g. ESTJ-A / ESTJ-T
    consistency: int  # 0-100
    alternative_types: tuple[AlternativeType, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "confidence_score": self.confidence_score,
            "borderline_traits": list(self.borderline_traits),
            "dominant_functions": list(self.dominant_functions),
            "sub_type": self.sub_type,
            "consistency": self.consistency,
            "alternative_types": [
                {"type": a.type_code, "probability": a.probability} for a in self.alternative_types
            ],
        }


@dataclass(frozen=True)
class MBTIResult:
    """Scored diagnostic. Never mutated; a new diagnosis creates a new result."""
    id: str
    user_id: str
    type_code: str
    scores: tuple[tuple[str, int], ...]  # (letter, count) for all eight letters
    profile: PlayStyleProfile
    analysis: AdvancedAnalysis
    created_at: int

    @property
    def score_map(self) -> dict[str, int]:
        return dict(self.scores)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "result": self.type_code,
            "scores": self.score_map,
            "play_style": {
                "title": self.profile.title,
                "description": self.profile.description,
                "strengths": list(self.profile.strengths),
                "weaknesses": list(self.profile.weaknesses),
                "recommendations": list(self.profile.recommendations),
            },
            "analysis": self.analysis.to_dict(),
            "created_at": self.created_at,
        }
