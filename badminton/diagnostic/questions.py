"""
BPSI question bank: 16 forced-choice questions, four per trait category.
Built once at import; treat as read-only.
"""
from __future__ import annotations

from types import MappingProxyType

from badminton.diagnostic.schemas import MBTIQuestion, QuestionOption, TraitCategory


def _q(qid: str, category: TraitCategory, text: str, first: str, second: str) -> MBTIQuestion:
    a, b = category.letters
    return MBTIQuestion(
        id=qid,
        category=category,
        question=text,
        options=(QuestionOption(text=first, value=a), QuestionOption(text=second, value=b)),
    )


QUESTION_BANK: tuple[MBTIQuestion, ...] = (
    # E/I
    _q("q1", TraitCategory.EI,
       "Which pre-match routine suits you better?",
       "Talking with other players or going over tactics with the coach to get fired up",
       "Focusing quietly on my own and running through the match in my head"),
    _q("q2", TraitCategory.EI,
       "How do you deal with a mistake during a match?",
       "Talk it over straight away with my partner or coach and find a fix",
       "Take a deep breath, analyse it calmly by myself, then focus on the next rally"),
    _q("q3", TraitCategory.EI,
       "What do you do when you join a new badminton club?",
       "Go up to the other members and get involved right away",
       "Watch for a while and let relationships form naturally"),
    _q("q4", TraitCategory.EI,
       "When do you concentrate best in practice?",
       "Drilling together with teammates and calling out to each other",
       "Working through fundamentals alone and in silence"),
    # S/N
    _q("q5", TraitCategory.SN,
       "How do you prefer to learn tactics?",
       "Master concrete techniques and standard patterns one at a time",
       "Think about the overall strategy and invent new tactics"),
    _q("q6", TraitCategory.SN,
       "What do you rely on for decisions during a rally?",
       "Visible information such as the opponent's position and the shuttle's flight",
       "Reading the opponent's state of mind and where the rally might go next"),
    _q("q7", TraitCategory.SN,
       "What matters most for improving at badminton?",
       "Reliably mastering the basic techniques",
       "Always exploring new techniques and styles of play"),
    _q("q8", TraitCategory.SN,
       "How would you teach badminton?",
       "Step by step, from the basics through to advanced play",
       "Show the big picture first, then coach to each player's traits"),
    # T/F
    _q("q9", TraitCategory.TF,
       "How do you review a lost match?",
       "Objectively analyse technical problems and tactical improvements",
       "Focus on team atmosphere and motivation"),
    _q("q10", TraitCategory.TF,
       "What do you value most when coaching?",
       "Technical progress and efficient practice methods",
       "Staying close to how players feel so they enjoy playing"),
    _q("q11", TraitCategory.TF,
       "Your doubles partner disagrees with you on tactics. What do you do?",
       "Pick whichever tactic is logically the most effective",
       "Respect my partner's feelings and look for an approach we both accept"),
    _q("q12", TraitCategory.TF,
       "Which value do you hold most important in badminton?",
       "Pursuing victory and improving technique",
       "Bonds with teammates and the fun of the sport"),
    # J/P
    _q("q13", TraitCategory.JP,
       "How do you approach your practice plan?",
       "Decide each day's menu in advance and follow it",
       "Adjust the content to how I feel on the day"),
    _q("q14", TraitCategory.JP,
       "How do you feel about changing tactics mid-match?",
       "Stick with the plan decided beforehand to the end",
       "Change tactics flexibly as the match unfolds"),
    _q("q15", TraitCategory.JP,
       "How do you prefer to pick up new skills?",
       "Work reliably through a set training menu",
       "Freely try out all kinds of techniques"),
    _q("q16", TraitCategory.JP,
       "How do you feel about timekeeping at tournaments and practice?",
       "Starting on time and finishing as scheduled matters",
       "If the content is good, I don't mind the schedule slipping a little"),
)

QUESTIONS_BY_ID: MappingProxyType[str, MBTIQuestion] = MappingProxyType(
    {q.id: q for q in QUESTION_BANK}
)


def get_question(question_id: str) -> MBTIQuestion:
    q = QUESTIONS_BY_ID.get(question_id)
    if q is None:
        raise ValueError(f"Unknown question: {question_id}")
    return q
