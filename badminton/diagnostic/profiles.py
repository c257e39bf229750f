"""
Play-style profiles for the 16 BPSI type codes, and partner compatibility.

The table is static: built once at import, exposed read-only. resolve_profile is the
only lookup path; codes outside the 16 combinations raise UnknownTypeError.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from badminton.diagnostic.schemas import PlayStyleProfile


class UnknownTypeError(ValueError):
    """Type code is not one of the 16 valid combinations."""


# ---------- Shared phrases ----------
# Complementary pairs (weakness, strength) are matched by substring in partner_compatibility.

ADAPTS = "Adapts quickly to changing rallies"
PLANS = "Plans practice and progress methodically"
TALKS = "Communicates constantly with a partner"
FUNDAMENTALS = "Solid, reliable fundamentals"
LEADS = "Natural on-court leadership"

RIGID = "Slow to adapt when plans change"
UNPLANNED = "Lacks a structured practice plan"
QUIET = "Holds back in on-court communication"
SKIPS_BASICS = "Tends to skip basic drills"
FOLLOWS = "Reluctant to take the lead"

COMPLEMENTARY_PAIRS: tuple[tuple[str, str], ...] = (
    (RIGID, ADAPTS),
    (UNPLANNED, PLANS),
    (QUIET, TALKS),
    (SKIPS_BASICS, FUNDAMENTALS),
    (FOLLOWS, LEADS),
)


def _profile(code: str, title: str, description: str, play_style: str,
             strengths: tuple[str, ...], weaknesses: tuple[str, ...],
             recommendations: tuple[str, ...], partners: tuple[str, ...]) -> PlayStyleProfile:
    return PlayStyleProfile(
        type_code=code,
        title=title,
        description=description,
        play_style=play_style,
        strengths=strengths,
        weaknesses=weaknesses,
        recommendations=recommendations,
        partner_recommendations=partners,
    )


_PROFILES = (
    _profile(
        "ESTJ", "The Court Commander",
        "Organises the pair, sets the plan and drives it through with disciplined, percentage play.",
        "Structured attacking doubles built on solid basics",
        (LEADS, FUNDAMENTALS, PLANS, "Keeps errors low under pressure"),
        (RIGID, "Can overrule a partner's instincts"),
        ("Add deception drills to the routine", "Practise switching tactics mid-game",
         "Ask your partner for input between rallies"),
        ("ISFP: flexible touch player who softens your structure",
         "INTP: inventive reader of the game who broadens your plans"),
    ),
    _profile(
        "ESTP", "The Front-Court Striker",
        "Thrives on speed and reacts instantly to what is in front of them.",
        "Fast, aggressive net play and interceptions",
        (ADAPTS, "Explosive reactions at the net", TALKS),
        (UNPLANNED, SKIPS_BASICS),
        ("Keep a simple weekly practice log", "Build rear-court clear consistency",
         "Set one tactical goal per match"),
        ("ISFJ: steady defender who covers the space you leave",
         "ISTJ: reliable rear-court anchor who brings structure"),
    ),
    _profile(
        "ESFJ", "The Team Motivator",
        "Keeps the pair positive and connected; plays best when the partnership is in sync.",
        "Supportive doubles play with strong rotation",
        (TALKS, "Lifts partner morale", FUNDAMENTALS),
        ("Takes losses personally", RIGID),
        ("Review matches with objective stats", "Train decisive attacking finishes",
         "Practise improvising under unusual patterns"),
        ("ISTP: calm technician who handles the analysis",
         "INFP: creative partner who shares your team spirit"),
    ),
    _profile(
        "ESFP", "The Crowd Pleaser",
        "Plays with flair and energy, feeding off the atmosphere of the match.",
        "Spontaneous, entertaining all-court play",
        (ADAPTS, TALKS, "Brings energy to long matches"),
        (UNPLANNED, SKIPS_BASICS, "Loses focus in slow rallies"),
        ("Schedule regular footwork fundamentals", "Plan shot sequences for key points",
         "Use a pre-serve routine to reset focus"),
        ("ISTJ: disciplined anchor who keeps the pair consistent",
         "ISFJ: patient defender who steadies the tempo"),
    ),
    _profile(
        "ENTJ", "The Strategist General",
        "Sees the whole match as a campaign and takes charge of directing it.",
        "Tactical pressure play that dictates the pace",
        (LEADS, PLANS, "Reads opponents' patterns early"),
        (RIGID, "Impatient with a partner's mistakes"),
        ("Practise patience in long defensive rallies", "Leave room for a partner's ideas",
         "Drill unexpected counter-attacks"),
        ("ISFP: adaptable partner who fills in creative gaps",
         "INFP: empathetic partner who balances your intensity"),
    ),
    _profile(
        "ENTP", "The Tactical Innovator",
        "Loves trying new angles and unusual shot combinations to unsettle opponents.",
        "Creative variation and deceptive shot-making",
        (ADAPTS, TALKS, "Invents tactics on the fly"),
        (SKIPS_BASICS, UNPLANNED),
        ("Anchor creativity in repeatable fundamentals", "Track which experiments actually win points",
         "Finish practice with consistency drills"),
        ("ISFJ: dependable defender who grounds your experiments",
         "ISTJ: methodical partner who turns ideas into routines"),
    ),
    _profile(
        "ENFJ", "The Inspiring Captain",
        "Leads through encouragement and makes every partner play above themselves.",
        "Partner-centred doubles with clear communication",
        (LEADS, TALKS, "Lifts partner morale"),
        ("Takes losses personally", "Neglects own technical weaknesses"),
        ("Set personal technical targets", "Review matches with objective stats",
         "Practise singles to sharpen self-reliance"),
        ("ISTP: cool-headed technician who complements your empathy",
         "INFP: idealistic partner who shares your values"),
    ),
    _profile(
        "ENFP", "The Free Spirit",
        "Plays with imagination and enthusiasm, turning rallies into improvisations.",
        "Inventive, momentum-driven play",
        (ADAPTS, TALKS, "Brings energy to long matches"),
        (UNPLANNED, SKIPS_BASICS, "Loses focus in slow rallies"),
        ("Keep a simple weekly practice log", "Drill clears and lifts for depth",
         "Pick one pattern to perfect each month"),
        ("ISTJ: steady partner who adds structure",
         "INTJ: strategic partner who channels your creativity"),
    ),
    _profile(
        "ISTJ", "The Reliable Anchor",
        "Dependable and precise; wins by making fewer mistakes than the opponent.",
        "Consistent rear-court play with accurate placement",
        (FUNDAMENTALS, PLANS, "Keeps errors low under pressure"),
        (RIGID, QUIET, FOLLOWS),
        ("Practise reading and varying tactics", "Call shots out loud in doubles drills",
         "Try leading the pair in practice games"),
        ("ESFP: lively partner who brings flexibility",
         "ENFP: creative partner who opens up new options"),
    ),
    _profile(
        "ISTP", "The Quiet Technician",
        "Calm and analytical, solving rallies with precise, well-timed shots.",
        "Efficient counter-punching with sharp technique",
        (ADAPTS, "Explosive reactions at the net", "Keeps errors low under pressure"),
        (QUIET, UNPLANNED),
        ("Share your reads with your partner", "Build a season plan with concrete milestones",
         "Practise signalling before serves"),
        ("ESFJ: communicative partner who keeps the pair connected",
         "ENFJ: motivating partner who draws you into the game plan"),
    ),
    _profile(
        "ISFJ", "The Steadfast Defender",
        "Loyal and patient; covers the court and keeps the shuttle coming back.",
        "Tireless defence and supportive doubles coverage",
        (FUNDAMENTALS, "Patient in long defensive rallies", PLANS),
        (FOLLOWS, QUIET, RIGID),
        ("Practise attacking from defensive positions", "Take the lead in some practice games",
         "Vary serve patterns"),
        ("ESTP: aggressive net player you can cover for",
         "ENTP: inventive partner who pushes you forward"),
    ),
    _profile(
        "ISFP", "The Touch Artist",
        "Expressive and sensitive to the feel of the shuttle; excels at delicate net play.",
        "Soft hands, net finesse and flexible shot choice",
        (ADAPTS, "Delicate net touch", "Patient in long defensive rallies"),
        (QUIET, UNPLANNED, FOLLOWS),
        ("Set measurable weekly goals", "Develop a reliable attacking smash",
         "Talk through tactics before each game"),
        ("ESTJ: structured partner who directs the game plan",
         "ENTJ: strategic leader who sets a clear direction"),
    ),
    _profile(
        "INTJ", "The Master Planner",
        "Builds long-term game plans and executes them with independent focus.",
        "Calculated, pattern-based tactical play",
        (PLANS, "Reads opponents' patterns early", FUNDAMENTALS),
        (QUIET, RIGID),
        ("Communicate your plan to your partner", "Practise improvising under unusual patterns",
         "Play more doubles with new partners"),
        ("ENFP: energetic partner who brings spontaneity",
         "ESFP: expressive partner who lightens the pressure"),
    ),
    _profile(
        "INTP", "The Game Analyst",
        "Curious about how the game works; experiments and analyses every rally.",
        "Analytical, deceptive shot selection",
        ("Reads opponents' patterns early", "Invents tactics on the fly", ADAPTS),
        (QUIET, SKIPS_BASICS, UNPLANNED),
        ("Turn analysis into a written practice plan", "Drill footwork basics regularly",
         "Share observations with your partner between points"),
        ("ESTJ: organised partner who turns ideas into action",
         "ESFJ: warm partner who keeps communication flowing"),
    ),
    _profile(
        "INFJ", "The Insightful Guide",
        "Anticipates where the rally is heading and quietly supports the partnership.",
        "Anticipation-led play with thoughtful placement",
        ("Reads opponents' patterns early", PLANS, "Lifts partner morale"),
        (QUIET, "Takes losses personally"),
        ("Voice your reads during play", "Review matches with objective stats",
         "Train aggressive finishing shots"),
        ("ESTP: decisive striker who acts on your reads",
         "ENFP: enthusiastic partner who shares your vision"),
    ),
    _profile(
        "INFP", "The Creative Idealist",
        "Plays for the love of the game, bringing imagination and sincerity to every match.",
        "Expressive, creative play guided by feel",
        ("Invents tactics on the fly", "Delicate net touch", ADAPTS),
        (UNPLANNED, FOLLOWS, "Takes losses personally"),
        ("Build a simple, repeatable practice routine", "Practise leading the pair in drills",
         "Set one concrete goal per session"),
        ("ENTJ: decisive leader who gives direction",
         "ENFJ: supportive captain who shares your values"),
    ),
)

PROFILES: MappingProxyType[str, PlayStyleProfile] = MappingProxyType(
    {p.type_code: p for p in _PROFILES}
)
VALID_TYPE_CODES: frozenset[str] = frozenset(PROFILES)


def resolve_profile(type_code: str) -> PlayStyleProfile:
    """Look up the narrative profile for a 4-letter code. Case-sensitive; no stripping."""
    profile = PROFILES.get(type_code)
    if profile is None:
        raise UnknownTypeError(f"Unknown type code: {type_code!r}")
    return profile


def list_profiles() -> list[PlayStyleProfile]:
    """For API/frontend: all profiles in table order."""
    return list(_PROFILES)


# ---------- Partner compatibility ----------


@dataclass(frozen=True)
class PartnerCompatibility:
    type_a: str
    type_b: str
    score: int  # 0-100
    recommended: bool
    mutual_strengths: tuple[str, ...]
    complementary_areas: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "type_a": self.type_a,
            "type_b": self.type_b,
            "score": self.score,
            "recommended": self.recommended,
            "mutual_strengths": list(self.mutual_strengths),
            "complementary_areas": list(self.complementary_areas),
        }


def _is_complementary(weakness: str, strength: str) -> bool:
    return any(w in weakness and s in strength for w, s in COMPLEMENTARY_PAIRS)


def partner_compatibility(type_a: str, type_b: str) -> PartnerCompatibility:
    """
    Score a doubles pairing from a's point of view.
    Base 50; differing E/I, T/F and J/P add 15/15/10; S/N adds 10 when shared, 5 when not;
    +20 when b is in a's partner recommendations. Clamped to 0-100.
    """
    a = resolve_profile(type_a)
    b = resolve_profile(type_b)
    score = 50
    if type_a[0] != type_b[0]:
        score += 15
    score += 10 if type_a[1] == type_b[1] else 5
    if type_a[2] != type_b[2]:
        score += 15
    if type_a[3] != type_b[3]:
        score += 10
    recommended = any(rec.startswith(type_b) for rec in a.partner_recommendations)
    if recommended:
        score += 20
    return PartnerCompatibility(
        type_a=type_a,
        type_b=type_b,
        score=min(100, max(0, score)),
        recommended=recommended,
        mutual_strengths=tuple(s for s in a.strengths if s in b.strengths),
        complementary_areas=tuple(
            w for w in a.weaknesses if any(_is_complementary(w, s) for s in b.strengths)
        ),
    )
