"""
Tests for the play-style profile table and partner compatibility.
"""
from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from badminton.diagnostic.profiles import (
    PROFILES,
    SKIPS_BASICS,
    UNPLANNED,
    VALID_TYPE_CODES,
    UnknownTypeError,
    list_profiles,
    partner_compatibility,
    resolve_profile,
)

ALL_CODES = {"".join(p) for p in itertools.product("EI", "SN", "TF", "JP")}


def test_table_covers_all_sixteen_codes():
    assert set(PROFILES) == ALL_CODES
    assert VALID_TYPE_CODES == ALL_CODES
    assert [p.type_code for p in list_profiles()] == list(PROFILES)


@pytest.mark.parametrize("code", sorted(ALL_CODES))
def test_every_profile_is_filled_in(code):
    p = resolve_profile(code)
    assert p.type_code == code
    assert p.title and p.description and p.play_style
    assert p.strengths and p.weaknesses and p.recommendations
    assert p.partner_recommendations
    for rec in p.partner_recommendations:
        assert rec[:4] in ALL_CODES


def test_estj_profile():
    p = resolve_profile("ESTJ")
    assert p.title
    assert p.to_dict()["type"] == "ESTJ"


@pytest.mark.parametrize("code", ["estj", " ESTJ", "ESTJ ", "EST", "ESTJX", "XXXX", ""])
def test_unknown_codes_raise(code):
    with pytest.raises(UnknownTypeError):
        resolve_profile(code)


def test_unknown_type_is_value_error():
    assert issubclass(UnknownTypeError, ValueError)


def test_profiles_are_read_only():
    with pytest.raises(TypeError):
        PROFILES["ESTJ"] = PROFILES["INFP"]


class TestPartnerCompatibility:
    def test_recommended_partner_clamped_to_100(self):
        c = partner_compatibility("ESTJ", "ISFP")
        assert c.recommended is True
        assert c.score == 100

    def test_same_type(self):
        c = partner_compatibility("ESTJ", "ESTJ")
        assert c.recommended is False
        assert c.score == 60
        assert set(c.mutual_strengths) == set(resolve_profile("ESTJ").strengths)

    def test_differing_judging_only(self):
        c = partner_compatibility("ESTJ", "ESTP")
        assert c.score == 70

    def test_complementary_areas(self):
        c = partner_compatibility("ESTP", "ESTJ")
        assert set(c.complementary_areas) == {UNPLANNED, SKIPS_BASICS}

    def test_score_in_range_for_all_pairs(self):
        for a, b in itertools.product(sorted(ALL_CODES), repeat=2):
            assert 0 <= partner_compatibility(a, b).score <= 100

    def test_unknown_code_raises(self):
        with pytest.raises(UnknownTypeError):
            partner_compatibility("ESTJ", "ABCD")

    def test_to_dict(self):
        d = partner_compatibility("ESTJ", "ISFP").to_dict()
        assert d["type_a"] == "ESTJ"
        assert d["type_b"] == "ISFP"
        assert isinstance(d["mutual_strengths"], list)
